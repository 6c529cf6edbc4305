import itertools

import pytest

from conftest import file_meta
from src.dsa.manifest.metadata import UnknownFileError
from src.dsa.manifest.utility import VersionConfiguration
from src.lsm.version import EditSequenceError, LSMVersion


def make_version(reader, dump, config=None):
    files, edits = reader.parse(dump)
    return LSMVersion(files, edits, config)


def replay_all(reader, dump):
    # apply every edit in one pass from the empty state
    _, edits = reader.parse(dump)
    levels = [set() for _ in range(7)]
    for edit in edits:
        for level, fids in edit.deleted.items():
            levels[level].difference_update(fids)
        for level, fids in edit.added.items():
            levels[level].update(fids)
    return levels


def as_sets(version):
    return [set(files) for files in version.current_levels()]


def test_edit_application(reader, flush_compact_dump):
    version = make_version(reader, flush_compact_dump)
    assert version.cursor == -1
    assert version.current_levels() == [()] * 7

    version.set_cursor(0)
    assert version.current_levels()[0] == ("1",)

    version.set_cursor(1)
    levels = version.current_levels()
    assert levels[0] == ()
    assert levels[1] == ("2",)

    version.set_cursor(0)
    levels = version.current_levels()
    assert levels[0] == ("1",)
    assert levels[1] == ()


def test_cursor_clamps(reader, flush_compact_dump):
    version = make_version(reader, flush_compact_dump)

    version.set_cursor(99)
    assert version.cursor == 1
    version.set_cursor(-5)
    assert version.cursor == 0

    fresh = make_version(reader, flush_compact_dump)
    fresh.step(-1)
    assert fresh.cursor == 0


def test_empty_log_is_noop(reader):
    version = make_version(reader, {"Files": {}, "Edits": []})
    version.set_cursor(3)
    assert version.cursor == -1
    assert version.describe_current() == ""


def test_round_trip(reader, generated_dump):
    version = make_version(reader, generated_dump)
    last = version.edit_count - 1
    indices = [0, 1, last // 3, last // 2, last - 1, last]

    for a, b in itertools.product(indices, repeat=2):
        direct = make_version(reader, generated_dump)
        direct.set_cursor(a)

        version.set_cursor(a)
        version.set_cursor(b)
        version.set_cursor(a)
        assert as_sets(version) == as_sets(direct), f"round trip {a} -> {b} -> {a} diverged"
        assert version.current_levels() == direct.current_levels()


def test_incremental_replay_matches_single_pass(reader, generated_dump):
    stepped = make_version(reader, generated_dump)
    while stepped.cursor < stepped.edit_count - 1:
        stepped.step(1)

    jumped = make_version(reader, generated_dump)
    jumped.set_cursor(jumped.edit_count - 1)

    expected = replay_all(reader, generated_dump)
    assert as_sets(stepped) == expected
    assert as_sets(jumped) == expected


def test_level_size_is_sum_of_file_sizes(reader, generated_dump):
    files, _ = reader.parse(generated_dump)
    version = make_version(reader, generated_dump)

    for index in range(0, version.edit_count, 3):
        version.set_cursor(index)
        for level, fids in enumerate(version.current_levels()):
            assert version.level_size(level) == sum(files.get(fid).size for fid in fids)
            assert version.level_count(level) == len(fids)


def test_deeper_levels_sorted_and_disjoint(reader, generated_dump):
    files, _ = reader.parse(generated_dump)
    version = make_version(reader, generated_dump)

    for index in range(version.edit_count):
        version.set_cursor(index)
        for level in range(1, 7):
            metas = [files.get(fid) for fid in version.level_files(level)]
            for prev, nxt in zip(metas, metas[1:]):
                assert prev.smallest < nxt.smallest, f"L{level} unsorted at edit {index}"
                assert prev.largest < nxt.smallest, f"L{level} overlap at edit {index}"


def test_level_zero_sorted_by_sequence_numbers(reader):
    dump = {
        "Files": {
            "9": file_meta(1, "a", "z", 5, 20),
            "3": file_meta(1, "a", "z", 1, 20),
            "4": file_meta(1, "a", "z", 1, 20),
            "8": file_meta(1, "a", "z", 1, 10),
        },
        "Edits": [{"Reason": "flushed", "Added": {"0": [9, 4, 3, 8]}}],
    }
    version = make_version(reader, dump)
    version.set_cursor(0)
    assert version.level_files(0) == ("8", "3", "4", "9")


def test_missing_file_removal_is_noop(reader):
    dump = {
        "Files": {"1": file_meta(10, "a", "b"), "2": file_meta(20, "c", "d"), "ghost": file_meta(1, "x", "y")},
        "Edits": [
            {"Reason": "flushed", "Added": {"0": [1, 2]}},
            {"Reason": "compacted", "Deleted": {"0": ["ghost"], "1": ["ghost"]}},
        ],
    }
    version = make_version(reader, dump)
    version.set_cursor(1)
    assert set(version.level_files(0)) == {"1", "2"}
    assert version.level_files(1) == ()


def test_strict_mode_rejects_inconsistent_edits(reader):
    dump = {
        "Files": {"1": file_meta(10, "a", "b")},
        "Edits": [
            {"Reason": "flushed", "Added": {"0": [1]}},
            {"Reason": "compacted", "Deleted": {"1": [1]}},
        ],
    }
    version = make_version(reader, dump, VersionConfiguration(strict=True))
    version.set_cursor(0)
    with pytest.raises(EditSequenceError):
        version.set_cursor(1)

    readd = {"Files": dump["Files"], "Edits": [dump["Edits"][0], dump["Edits"][0]]}
    version = make_version(reader, readd, VersionConfiguration(strict=True))
    with pytest.raises(EditSequenceError):
        version.set_cursor(1)


def test_strict_failure_leaves_levels_untouched(reader):
    dump = {
        "Files": {"1": file_meta(10, "a", "b"), "2": file_meta(10, "c", "d")},
        "Edits": [
            {"Reason": "flushed", "Added": {"0": [1]}},
            {"Reason": "compacted", "Deleted": {"0": [1], "1": [2]}},
        ],
    }
    version = make_version(reader, dump, VersionConfiguration(strict=True))
    version.set_cursor(0)

    with pytest.raises(EditSequenceError):
        version.set_cursor(1)
    assert version.cursor == 0, "cursor moved despite the failed edit"
    assert version.current_levels()[0] == ("1",), "L0 lost files from the failed edit"

    fresh = make_version(reader, dump, VersionConfiguration(strict=True))
    with pytest.raises(EditSequenceError):
        fresh.set_cursor(1)
    assert fresh.cursor == -1
    assert fresh.current_levels() == [()] * 7

    fresh.set_cursor(0)
    assert fresh.current_levels()[0] == ("1",)


def test_unknown_file_surfaces(reader):
    dump = {"Files": {}, "Edits": [{"Reason": "flushed", "Added": {"0": [1]}}]}
    version = make_version(reader, dump)
    with pytest.raises(UnknownFileError):
        version.set_cursor(0)


def test_describe_edit(reader, flush_compact_dump):
    version = make_version(reader, flush_compact_dump)

    assert version.describe_edit(0) == "flushed => 1 @ L0 (1.0 KB)"
    assert version.describe_edit(1) == "compacted 1 @ L0 (1.0 KB) => 1 @ L1 (15 KB)"

    assert version.describe_current() == ""
    version.set_cursor(1)
    assert version.describe_current() == "[compacted 1 @ L0 (1.0 KB) => 1 @ L1 (15 KB)]"


def test_describe_edit_joins_levels(reader):
    dump = {
        "Files": {
            "1": file_meta(1024, "a", "m"),
            "2": file_meta(15360, "a", "f"),
            "3": file_meta(8192, "a", "f"),
            "4": file_meta(8192, "g", "m"),
        },
        "Edits": [{"Reason": "compacted", "Deleted": {"1": [2], "0": [1]}, "Added": {"1": [3, 4]}}],
    }
    version = make_version(reader, dump)
    assert version.describe_edit(0) == "compacted 1 @ L0 (1.0 KB) + 1 @ L1 (15 KB) => 2 @ L1 (16 KB)"


def test_play(reader, generated_dump):
    version = make_version(reader, generated_dump)
    last = version.edit_count - 1

    assert list(version.play()) == list(range(0, last + 1))
    assert list(version.play()) == []
    assert list(version.play(-1)) == list(range(last - 1, -1, -1))


def test_level_summaries(reader, flush_compact_dump):
    version = make_version(reader, flush_compact_dump)
    version.set_cursor(1)

    summaries = version.level_summaries()
    assert len(summaries) == 7
    assert (summaries[1].count, summaries[1].size) == (1, 15360)
    assert (summaries[0].count, summaries[0].size) == (0, 0)
