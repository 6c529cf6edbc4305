from typing import List, Optional

import src.dsa.manifest.utility as mf_u
import src.demo.generator as gen
import src.demo.utility as util
from src.lsm.history import LSMTreeHistory


class HistoryController:
    def __init__(self, history: LSMTreeHistory = None, config: mf_u.VersionConfiguration = None):
        self._config = config or mf_u.VersionConfiguration()
        self._history = history

    @property
    def history(self) -> Optional[LSMTreeHistory]:
        return self._history

    def load(self, path: str):
        self._history = LSMTreeHistory.from_manifest(util.resolve_manifest_path(path), self._config)
        print(f"loaded {len(self._history.files)} files, {self._history.edit_count} edits")
        return self.goto(0)

    def generate(self, flushes: int = None, seed: int = None):
        config = gen.EditLogConfiguration(seed=seed)
        if flushes is not None:
            config.flushes = flushes

        dump = gen.EditLogGenerator(config).generate()
        self._history = LSMTreeHistory.from_manifest(dump, self._config)
        print(f"generated {len(self._history.files)} files, {self._history.edit_count} edits")
        return self.goto(0)

    def goto(self, index: int):
        if not self._require_history():
            return None
        self._history.set_cursor(index)
        return self.levels()

    def step(self, delta: int):
        if not self._require_history():
            return None
        self._history.step(delta)
        return self.levels()

    def play(self):
        if not self._require_history():
            return None
        for _ in self._history.play(1):
            print(f"{self._history.cursor:>5} {self._history.describe_current()}")
        return self._history.cursor

    def levels(self):
        if not self._require_history():
            return None

        print(f"edit {self._history.cursor} of {self._history.edit_count - 1} {self._history.describe_current()}")
        summaries = self._history.level_summaries()
        for s in summaries:
            print(f"{mf_u.level_name(s.level):<3} {s.count:>5} {mf_u.humanize(s.size):>9}")
        return summaries

    def file_at(self, level: int, index: int):
        if not self._require_history():
            return None
        file_id = self._history.file_at(level, index)
        print(self._history.describe_file(level, file_id))
        return file_id

    def overlaps(self, level: int, file_id: str):
        if not self._require_history():
            return None

        print(self._history.describe_file(level, file_id))
        result = self._history.find_overlaps(level, file_id)
        for j, r in sorted(result.items()):
            print(f"  {mf_u.level_name(j)} [{r.start}, {r.end})")
        return result

    # ------------------------------------------------------------------
    # Command parsing
    # ------------------------------------------------------------------

    def load_input(self, parts: List[str]):
        raw = parts[1] if len(parts) > 1 else input("enter manifest dump path: ")
        return self._guarded(self.load, raw.strip())

    def generate_input(self, parts: List[str]):
        flushes = util.try_to_int(parts[1]) if len(parts) > 1 else None
        seed = util.try_to_int(parts[2]) if len(parts) > 2 else None
        return self.generate(flushes, seed)

    def goto_input(self, parts: List[str]):
        raw = parts[1] if len(parts) > 1 else input("enter edit index: ")
        index = util.try_to_int(raw)
        if index is None:
            print(f"invalid edit index {raw!r}")
            return None
        return self.goto(index)

    def next_input(self, parts: List[str]):
        return self.step(self._delta(parts))

    def prev_input(self, parts: List[str]):
        return self.step(-self._delta(parts))

    def file_input(self, parts: List[str]):
        if len(parts) < 3:
            print("usage: file <level> <index>")
            return None
        level, index = util.try_to_int(parts[1]), util.try_to_int(parts[2])
        if level is None or index is None:
            print("level and index must be numbers")
            return None
        return self._guarded(self.file_at, level, index)

    def overlaps_input(self, parts: List[str]):
        if len(parts) < 3:
            print("usage: overlaps <level> <file-id>")
            return None
        level = util.try_to_int(parts[1])
        if level is None:
            print("level must be a number")
            return None
        return self._guarded(self.overlaps, level, parts[2])

    def help(self):
        print("Available commands:")
        print("  load [path]               - Load a manifest dump (JSON). Prompts if not provided.")
        print("  generate [flushes] [seed] - Generate a synthetic edit log of flushes and compactions.")
        print("  goto [index]              - Move to an edit index. Out of range indices clamp.")
        print("  next [n]                  - Step forward n edits (default 1).")
        print("  prev [n]                  - Step backward n edits (default 1).")
        print("  play                      - Play forward to the last edit.")
        print("  levels                    - Show the file count and size of each level.")
        print("  file <level> <index>      - Show the file at a position in a level.")
        print("  overlaps <level> <file>   - Show the overlapping files in other levels.")
        print("  exit                      - Exit the demo.")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _delta(self, parts: List[str]) -> int:
        return (util.try_to_int(parts[1]) if len(parts) > 1 else None) or 1

    def _guarded(self, fn, *args):
        try:
            return fn(*args)
        except (mf_u.ManifestError, OSError) as e:
            print(f"error: {e}")
            return None

    def _require_history(self) -> bool:
        if self._history is None:
            print("error: no edit log loaded, use 'load' or 'generate'")
            return False
        return True
