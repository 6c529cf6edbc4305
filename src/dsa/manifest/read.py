import json
import logging
from typing import List, Tuple

import src.dsa.manifest.utility as mf_u
from src.dsa.manifest.edit import VersionEdit, to_file_id
from src.dsa.manifest.metadata import FileMetadata, MetadataTable


logger = logging.getLogger(__name__)


class ManifestFormatError(mf_u.ManifestError, ValueError):
    """Raised when a manifest dump is missing required fields."""

    pass


class ManifestReader:
    """Loads a manifest dump into a metadata table and an ordered edit list.

    The dump is a JSON object with ``Files`` keyed by file identifier and an
    ordered ``Edits`` array, as written by the storage engine's manifest
    dumper.
    """

    def __init__(self, num_levels: int = mf_u.max_levels()):
        self._num_levels = num_levels

    def read(self, path: str) -> Tuple[MetadataTable, List[VersionEdit]]:
        with open(path, "r", encoding="utf-8") as f:
            try:
                dump = json.load(f)
            except json.JSONDecodeError as e:
                raise ManifestFormatError(f"{path}: invalid JSON: {e}") from e

        files, edits = self.parse(dump)
        logger.info(f"loaded {len(files)} files and {len(edits)} edits from {path}")
        return files, edits

    def parse(self, dump: dict) -> Tuple[MetadataTable, List[VersionEdit]]:
        if not isinstance(dump, dict):
            raise ManifestFormatError("manifest dump must be an object")

        files = self._parse_files(self._require(dump, "Files", "manifest"))
        edits = [self._parse_edit(i, raw) for i, raw in enumerate(self._require(dump, "Edits", "manifest"))]
        return files, edits

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _parse_files(self, raw_files: dict) -> MetadataTable:
        if not isinstance(raw_files, dict):
            raise ManifestFormatError("Files must be an object keyed by file identifier")

        files = {}
        for raw_id, meta in raw_files.items():
            where = f"file {raw_id}"
            files[to_file_id(raw_id)] = FileMetadata(
                size=self._require_int(meta, "Size", where),
                smallest=self._require(meta, "Smallest", where),
                largest=self._require(meta, "Largest", where),
                smallest_seq_num=self._require_int(meta, "SmallestSeqNum", where),
                largest_seq_num=self._require_int(meta, "LargestSeqNum", where),
            )
        return MetadataTable(files)

    def _parse_edit(self, index: int, raw: dict) -> VersionEdit:
        if not isinstance(raw, dict):
            raise ManifestFormatError(f"edit {index} must be an object")

        return VersionEdit.build(
            reason=raw.get("Reason", ""),
            deleted=raw.get("Deleted"),
            added=raw.get("Added"),
            num_levels=self._num_levels,
        )

    def _require(self, raw, name: str, where: str):
        if not isinstance(raw, dict) or name not in raw:
            raise ManifestFormatError(f"{where}: missing {name}")
        return raw[name]

    def _require_int(self, raw, name: str, where: str) -> int:
        value = self._require(raw, name, where)
        if isinstance(value, bool):
            raise ManifestFormatError(f"{where}: {name} must be an integer, got {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ManifestFormatError(f"{where}: {name} must be an integer, got {value!r}") from None
