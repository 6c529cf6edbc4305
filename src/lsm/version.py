import logging
from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple, Union

import src.dsa.manifest.utility as mf_u
from src.dsa.manifest.edit import Level, VersionEdit, validate_level
from src.dsa.manifest.metadata import FileId, MetadataTable


logger = logging.getLogger(__name__)


class EditSequenceError(mf_u.ManifestError):
    """Raised in strict mode when an edit disagrees with the current levels."""

    pass


@dataclass(frozen=True)
class LevelSummary:
    level: Level
    count: int
    size: int


class LSMVersion:
    """Rebuilds the files resident in each level at a cursor into the edit log.

    The cursor starts at -1 (no edits applied). Moving it replays edits
    forward, or unapplies them in reverse order, then re-sorts every level:
    level 0 by sequence numbers, deeper levels by smallest key.
    """

    def __init__(
        self,
        files: MetadataTable,
        edits: Sequence[VersionEdit],
        config: mf_u.VersionConfiguration = None,
    ):
        self._files = files
        self._edits = list(edits)
        self._config = config or mf_u.VersionConfiguration()

        self._levels: List[List[FileId]] = [[] for _ in range(self._config.num_levels)]
        self._cursor = -1

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def edit_count(self) -> int:
        return len(self._edits)

    @property
    def num_levels(self) -> int:
        return self._config.num_levels

    # ------------------------------------------------------------------
    # Cursor movement
    # ------------------------------------------------------------------

    def set_cursor(self, target: int) -> None:
        if not self._edits:
            return

        target = max(0, min(target, len(self._edits) - 1))
        if target == self._cursor:
            return

        # replay on a copy; levels and cursor change only once the walk succeeds
        levels = [list(files) for files in self._levels]
        cursor = self._cursor

        # step forward applying edits
        while cursor < target:
            edit = self._edits[cursor + 1]
            for level, file_ids in edit.deleted_levels():
                self._remove(levels, level, file_ids)
            for level, file_ids in edit.added_levels():
                self._add(levels, level, file_ids)
            cursor += 1

        # step backward unapplying edits
        while cursor > target:
            edit = self._edits[cursor]
            for level, file_ids in edit.added_levels():
                self._remove(levels, level, file_ids)
            for level, file_ids in edit.deleted_levels():
                self._add(levels, level, file_ids)
            cursor -= 1

        self._sort_levels(levels)
        logger.debug(f"moved cursor {self._cursor} -> {cursor}")
        self._levels, self._cursor = levels, cursor

    def step(self, delta: int) -> None:
        self.set_cursor(self._cursor + delta)

    def play(self, increment: int = 1) -> Iterator[int]:
        # one atomic set_cursor per tick; stops once a tick no longer moves
        while True:
            last = self._cursor
            self.set_cursor(self._cursor + increment)
            if self._cursor == last:
                return
            yield self._cursor

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def current_levels(self) -> List[Tuple[FileId, ...]]:
        return [tuple(files) for files in self._levels]

    def level_files(self, level: Level) -> Tuple[FileId, ...]:
        return tuple(self._levels[self._level(level)])

    def level_size(self, level: Level) -> int:
        return self._files.size_of(self._levels[self._level(level)])

    def level_count(self, level: Level) -> int:
        return len(self._levels[self._level(level)])

    def level_summaries(self) -> List[LevelSummary]:
        return [LevelSummary(i, self.level_count(i), self.level_size(i)) for i in range(self.num_levels)]

    def describe_edit(self, edit: Union[int, VersionEdit]) -> str:
        if not isinstance(edit, VersionEdit):
            if not 0 <= edit < len(self._edits):
                raise IndexError(f"edit index {edit} not in 0..{len(self._edits) - 1}")
            edit = self._edits[edit]

        result = edit.reason
        sep = " "
        for level, file_ids in edit.deleted_levels():
            result += sep + self._summarize(level, file_ids)
            sep = " + "

        sep = " => "
        for level, file_ids in edit.added_levels():
            result += sep + self._summarize(level, file_ids)
            sep = " + "

        return result

    def describe_current(self) -> str:
        if self._cursor < 0:
            return ""
        return f"[{self.describe_edit(self._cursor)}]"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _level(self, level) -> Level:
        return validate_level(level, self.num_levels)

    def _summarize(self, level: Level, file_ids: Sequence[FileId]) -> str:
        size = self._files.size_of(file_ids)
        return f"{len(file_ids)} @ {mf_u.level_name(level)} ({mf_u.humanize(size)})"

    def _add(self, levels: List[List[FileId]], level: Level, file_ids: Sequence[FileId]) -> None:
        files = levels[level]
        if self._config.strict:
            resident = set(files).intersection(file_ids)
            if resident:
                raise EditSequenceError(f"{mf_u.level_name(level)} already holds {sorted(resident)}")
        files.extend(file_ids)

    def _remove(self, levels: List[List[FileId]], level: Level, file_ids: Sequence[FileId]) -> None:
        files = levels[level]
        removing = set(file_ids)
        kept = [fid for fid in files if fid not in removing]

        missing = removing.difference(files)
        if missing:
            if self._config.strict:
                raise EditSequenceError(f"{mf_u.level_name(level)} does not hold {sorted(missing)}")
            logger.debug(f"ignoring removal of {sorted(missing)} absent from {mf_u.level_name(level)}")

        levels[level] = kept

    def _sort_levels(self, levels: List[List[FileId]]) -> None:
        for level, files in enumerate(levels):
            if level == 0:
                files.sort(key=self._level_zero_order)
            else:
                files.sort(key=self._level_n_order)

    def _level_zero_order(self, file_id: FileId):
        meta = self._files.get(file_id)
        return meta.largest_seq_num, meta.smallest_seq_num, file_id

    def _level_n_order(self, file_id: FileId):
        return self._files.get(file_id).smallest, file_id
