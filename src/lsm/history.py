from typing import Dict, Iterator, List, Sequence, Tuple, Union

import src.dsa.manifest.utility as mf_u
from src.dsa.manifest.edit import Level, VersionEdit
from src.dsa.manifest.metadata import FileId, MetadataTable
from src.dsa.manifest.read import ManifestReader
from src.lsm.overlap import LSMOverlapSearch, OverlapRange
from src.lsm.version import LevelSummary, LSMVersion


class LSMTreeHistory:
    """One inspection session over a manifest edit log.

    Sessions are independent, so two logs can be compared side by side.
    """

    def __init__(
        self,
        files: MetadataTable,
        edits: Sequence[VersionEdit],
        config: mf_u.VersionConfiguration = None,
    ):
        self._files = files
        self._version = LSMVersion(files, edits, config)
        self._overlap = LSMOverlapSearch(self._version, files)

    @classmethod
    def from_manifest(cls, source: Union[str, dict], config: mf_u.VersionConfiguration = None) -> "LSMTreeHistory":
        config = config or mf_u.VersionConfiguration()
        reader = ManifestReader(num_levels=config.num_levels)
        files, edits = reader.read(source) if isinstance(source, str) else reader.parse(source)
        return cls(files, edits, config)

    @property
    def files(self) -> MetadataTable:
        return self._files

    @property
    def cursor(self) -> int:
        return self._version.cursor

    @property
    def edit_count(self) -> int:
        return self._version.edit_count

    @property
    def num_levels(self) -> int:
        return self._version.num_levels

    def set_cursor(self, index: int) -> None:
        self._version.set_cursor(index)

    def step(self, delta: int) -> None:
        self._version.step(delta)

    def play(self, increment: int = 1) -> Iterator[int]:
        return self._version.play(increment)

    def current_levels(self) -> List[Tuple[FileId, ...]]:
        return self._version.current_levels()

    def level_size(self, level: Level) -> int:
        return self._version.level_size(level)

    def level_count(self, level: Level) -> int:
        return self._version.level_count(level)

    def level_summaries(self) -> List[LevelSummary]:
        return self._version.level_summaries()

    def describe_edit(self, index: int) -> str:
        return self._version.describe_edit(index)

    def describe_current(self) -> str:
        return self._version.describe_current()

    def find_overlaps(self, level: Level, file_id: FileId) -> Dict[Level, OverlapRange]:
        return self._overlap.find_overlaps(level, file_id)

    def describe_file(self, level: Level, file_id: FileId) -> str:
        return self._overlap.describe_file(level, file_id)

    def file_at(self, level: Level, index: int) -> FileId:
        return self._overlap.file_at(level, index)
