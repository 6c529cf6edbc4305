from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Tuple

import src.dsa.manifest.utility as mf_u
from src.dsa.manifest.metadata import FileId


Level = int


class LevelOutOfRangeError(mf_u.ManifestError, ValueError):
    """Raised when a level index falls outside the configured levels."""

    pass


def validate_level(level, num_levels: int = mf_u.max_levels()) -> Level:
    # manifest dumps key levels by JSON object keys, so accept numeric strings
    if isinstance(level, bool):
        raise LevelOutOfRangeError(f"invalid level {level!r}")
    if isinstance(level, str):
        if not level.strip().isdigit():
            raise LevelOutOfRangeError(f"invalid level {level!r}")
        level = int(level)
    if not isinstance(level, int) or not 0 <= level < num_levels:
        raise LevelOutOfRangeError(f"level {level!r} not in 0..{num_levels - 1}")
    return level


def to_file_id(raw) -> FileId:
    if raw is None or isinstance(raw, bool):
        raise mf_u.ManifestError(f"invalid file identifier {raw!r}")
    return str(raw)


@dataclass(frozen=True)
class VersionEdit:
    reason: str
    deleted: Dict[Level, Tuple[FileId, ...]] = field(default_factory=dict)
    added: Dict[Level, Tuple[FileId, ...]] = field(default_factory=dict)

    def deleted_levels(self) -> Iterator[Tuple[Level, Tuple[FileId, ...]]]:
        return iter(sorted(self.deleted.items()))

    def added_levels(self) -> Iterator[Tuple[Level, Tuple[FileId, ...]]]:
        return iter(sorted(self.added.items()))

    @classmethod
    def build(
        cls,
        reason: str,
        deleted: Dict[object, Iterable] = None,
        added: Dict[object, Iterable] = None,
        num_levels: int = mf_u.max_levels(),
    ) -> "VersionEdit":
        return cls(
            reason=reason or "",
            deleted=_normalize_level_files(deleted, num_levels),
            added=_normalize_level_files(added, num_levels),
        )


def _normalize_level_files(raw: Dict[object, Iterable], num_levels: int) -> Dict[Level, Tuple[FileId, ...]]:
    result: Dict[Level, Tuple[FileId, ...]] = {}
    for level, file_ids in (raw or {}).items():
        if not file_ids:
            continue
        result[validate_level(level, num_levels)] = tuple(to_file_id(fid) for fid in file_ids)
    return result
