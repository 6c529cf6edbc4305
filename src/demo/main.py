import readline
import sys

from src.demo.controller import HistoryController

ctrl = HistoryController()

args_cmd = {
    "load": ctrl.load_input,
    "generate": ctrl.generate_input,
    "goto": ctrl.goto_input,
    "next": ctrl.next_input,
    "prev": ctrl.prev_input,
    "file": ctrl.file_input,
    "overlaps": ctrl.overlaps_input,
}
show_cmd = {"levels": ctrl.levels, "play": ctrl.play}

if len(sys.argv) > 1:
    ctrl.load(sys.argv[1])

while True:
    print()
    raw = input("LSM Version History - enter command or 'help': ").strip()
    cmds = " ".join(raw.split()).split(" ")
    cmds[0] = cmds[0].lower()

    if cmds[0] == "exit":
        break

    if cmds[0] == "help":
        ctrl.help()
        continue

    if cmds[0] == "clear-readline-history":
        readline.clear_history()
        continue

    print("-")

    if cmds[0] in args_cmd:
        args_cmd[cmds[0]](cmds)
        continue

    if cmds[0] in show_cmd:
        show_cmd[cmds[0]]()
        continue

    print(f"Command {cmds[0]} not found")
