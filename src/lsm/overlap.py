from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import src.dsa.manifest.utility as mf_u
from src.dsa.manifest.edit import Level, validate_level
from src.dsa.manifest.metadata import FileId, FileMetadata, MetadataTable
from src.lsm.version import LSMVersion


class FileNotResidentError(mf_u.ManifestError, LookupError):
    """Raised when an overlap query names a file not resident in the level."""

    pass


class EmptyLevelError(mf_u.ManifestError, LookupError):
    """Raised when a file is picked from a level with no resident files."""

    pass


@dataclass(frozen=True)
class OverlapRange:
    """Index run ``[start, end)`` of overlapping files in one level.

    ``count`` and ``size`` are only filled in for the level directly below
    the selected file. ``start == end`` marks the position between two
    files with no true overlap.
    """

    start: int
    end: int
    count: Optional[int] = None
    size: Optional[int] = None

    @property
    def width(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.start == self.end


class LSMOverlapSearch:
    """Key range overlap queries against the levels of an LSMVersion."""

    def __init__(self, version: LSMVersion, files: MetadataTable):
        self._version = version
        self._files = files

    def find_overlaps(self, level: Level, file_id: FileId) -> Dict[Level, OverlapRange]:
        level = validate_level(level, self._version.num_levels)
        level_files = self._version.level_files(level)
        meta = self._files.get(file_id)
        if file_id not in level_files:
            raise FileNotResidentError(f"file {file_id!r} is not in {mf_u.level_name(level)}")

        result: Dict[Level, OverlapRange] = {}
        # L0 is ordered by sequence number, so its files form no contiguous key run
        for j in range(1, self._version.num_levels):
            if j == level:
                continue
            others = self._version.level_files(j)
            if not others:
                continue

            overlap = self._overlap_run(others, meta)
            if overlap is None:
                continue

            if j == level + 1:
                t, k = overlap
                result[j] = OverlapRange(t, k, k - t, self._files.size_of(others[t:k]))
            else:
                result[j] = OverlapRange(*overlap)

        return result

    def describe_file(self, level: Level, file_id: FileId) -> str:
        level = validate_level(level, self._version.num_levels)
        overlaps = self.find_overlaps(level, file_id)
        result = f"[{mf_u.level_name(level)} {file_id} ({mf_u.humanize(self._files.get(file_id).size)})"

        below = overlaps.get(level + 1)
        if below is not None and not below.is_empty:
            result += f" overlaps {below.count} @ {mf_u.level_name(level + 1)} ({mf_u.humanize(below.size)})"

        return result + "]"

    def file_at(self, level: Level, index: int) -> FileId:
        level_files = self._version.level_files(level)
        if not level_files:
            raise EmptyLevelError(f"{mf_u.level_name(level)} has no files")

        index = max(0, min(index, len(level_files) - 1))
        return level_files[index]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _overlap_run(self, others: Sequence[FileId], meta: FileMetadata):
        t = self._first_reaching(others, meta.smallest)
        if t is None:
            return None

        k = t
        while k < len(others) and self._files.get(others[k]).smallest < meta.largest:
            k += 1
        return t, k

    def _first_reaching(self, others: Sequence[FileId], smallest) -> Optional[int]:
        # Binary search for the leftmost file whose largest key >= smallest;
        # disjoint sorted levels keep largest keys ascending.
        lo, hi = 0, len(others) - 1
        candidate: Optional[int] = None
        while lo <= hi:
            mid = (lo + hi) // 2
            if not self._files.get(others[mid]).largest < smallest:
                candidate = mid
                hi = mid - 1
            else:
                lo = mid + 1
        return candidate
