from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping

import src.dsa.manifest.utility as mf_u


FileId = str


class UnknownFileError(mf_u.ManifestError, KeyError):
    """Raised when a file identifier has no entry in the metadata table."""

    pass


@dataclass(frozen=True)
class FileMetadata:
    size: int
    smallest: Any
    largest: Any
    smallest_seq_num: int
    largest_seq_num: int


class MetadataTable:
    """Read-only lookup of file metadata by file identifier.

    Entries are never removed, so files deleted from every level stay
    addressable for historical queries.
    """

    def __init__(self, files: Mapping[FileId, FileMetadata]):
        self._files = dict(files)

    def get(self, file_id: FileId) -> FileMetadata:
        try:
            return self._files[file_id]
        except KeyError:
            raise UnknownFileError(f"file {file_id!r} not found in metadata table") from None

    def size_of(self, file_ids: Iterable[FileId]) -> int:
        return sum(self.get(fid).size for fid in file_ids)

    def __contains__(self, file_id) -> bool:
        return file_id in self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[FileId]:
        return iter(self._files)
