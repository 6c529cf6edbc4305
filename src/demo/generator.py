import random
from typing import Dict, List, Optional, Tuple

from ulid import ULID

import src.dsa.manifest.utility as mf_u


class EditLogConfiguration:
    def __init__(
        self,
        flushes: int = 40,
        l0_trigger: int = 4,
        level_file_limits: Dict[int, int] = None,
        flush_size_range: Tuple[int, int] = (256 * 1024, 4 * 1024 * 1024),
        target_file_size: int = 2 * 1024 * 1024,
        key_space: int = 100_000,
        seed: Optional[int] = None,
    ):
        self.flushes = flushes
        self.l0_trigger = l0_trigger
        # max resident files per level before it compacts into the next; the last level is unbounded
        self.level_file_limits = level_file_limits or {1: 4, 2: 8, 3: 16, 4: 32, 5: 64}
        self.flush_size_range = flush_size_range
        self.target_file_size = target_file_size
        self.key_space = key_space
        self.seed = seed


class EditLogGenerator:
    """Simulates flushes and compactions to produce a manifest dump.

    Keys are zero-padded integers so string order matches numeric order.
    Each compaction merges one file from a level with the overlapping files
    of the next level and splits the output at evenly spaced keys, so
    levels 1 and deeper stay disjoint.
    """

    def __init__(self, config: EditLogConfiguration = None):
        self._config = config or EditLogConfiguration()
        self._rng = random.Random(self._config.seed)

        self._files: Dict[str, dict] = {}
        self._levels: List[List[str]] = [[] for _ in range(mf_u.max_levels())]
        self._edits: List[dict] = []
        self._seq_num = 0

    def generate(self) -> dict:
        for _ in range(self._config.flushes):
            self._flush()
            while self._compact_if_needed():
                pass

        return {"Files": self._files, "Edits": self._edits}

    # ------------------------------------------------------------------
    # Simulation steps
    # ------------------------------------------------------------------

    def _flush(self) -> None:
        lo = self._rng.randrange(0, self._config.key_space - 1)
        hi = self._rng.randrange(lo + 1, min(self._config.key_space, lo + self._config.key_space // 4) + 1)
        record_count = self._rng.randint(10, 1000)

        file_id = self._new_file(
            size=self._rng.randint(*self._config.flush_size_range),
            lo=lo,
            hi=hi,
            smallest_seq_num=self._seq_num + 1,
            largest_seq_num=self._seq_num + record_count,
        )
        self._seq_num += record_count

        self._levels[0].append(file_id)
        self._record("flushed", {}, {0: [file_id]})

    def _compact_if_needed(self) -> bool:
        if len(self._levels[0]) >= self._config.l0_trigger:
            # oldest L0 file first, the newest stay behind to absorb reads
            oldest = min(self._levels[0], key=lambda fid: self._files[fid]["LargestSeqNum"])
            self._compact(0, oldest)
            return True

        for level in range(1, mf_u.max_levels() - 1):
            limit = self._config.level_file_limits.get(level)
            if limit is not None and len(self._levels[level]) > limit:
                self._compact(level, self._rng.choice(self._levels[level]))
                return True

        return False

    def _compact(self, from_level: int, file_id: str) -> None:
        to_level = from_level + 1
        from_lo, from_hi = self._key_range(file_id)

        overlapping = [
            fid for fid in self._levels[to_level] if self._key_range(fid)[0] <= from_hi and self._key_range(fid)[1] >= from_lo
        ]
        inputs = [file_id] + overlapping

        lo = min(self._key_range(fid)[0] for fid in inputs)
        hi = max(self._key_range(fid)[1] for fid in inputs)
        total_size = sum(self._files[fid]["Size"] for fid in inputs)
        smallest_seq_num = min(self._files[fid]["SmallestSeqNum"] for fid in inputs)
        largest_seq_num = max(self._files[fid]["LargestSeqNum"] for fid in inputs)

        outputs = []
        splits = self._key_splits(lo, hi, max(1, -(-total_size // self._config.target_file_size)))
        for i, (split_lo, split_hi) in enumerate(splits):
            size = total_size // len(splits)
            if i == len(splits) - 1:
                size += total_size % len(splits)
            outputs.append(self._new_file(size, split_lo, split_hi, smallest_seq_num, largest_seq_num))

        self._levels[from_level].remove(file_id)
        self._levels[to_level] = [fid for fid in self._levels[to_level] if fid not in overlapping] + outputs

        deleted = {from_level: [file_id]}
        if overlapping:
            deleted[to_level] = overlapping
        self._record("compacted", deleted, {to_level: outputs})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _key_splits(self, lo: int, hi: int, n: int) -> List[Tuple[int, int]]:
        # n contiguous, disjoint sub-ranges covering [lo, hi]
        n = min(n, hi - lo + 1)
        width = hi - lo + 1
        bounds = [lo + (i * width) // n for i in range(n + 1)]
        return [(bounds[i], bounds[i + 1] - 1) for i in range(n)]

    def _new_file(self, size: int, lo: int, hi: int, smallest_seq_num: int, largest_seq_num: int) -> str:
        file_id = str(ULID())
        self._files[file_id] = {
            "Size": size,
            "Smallest": self._key(lo),
            "Largest": self._key(hi),
            "SmallestSeqNum": smallest_seq_num,
            "LargestSeqNum": largest_seq_num,
        }
        return file_id

    def _key_range(self, file_id: str) -> Tuple[int, int]:
        meta = self._files[file_id]
        return int(meta["Smallest"]), int(meta["Largest"])

    def _key(self, value: int) -> str:
        return str(value).zfill(len(str(self._config.key_space)))

    def _record(self, reason: str, deleted: Dict[int, List[str]], added: Dict[int, List[str]]) -> None:
        self._edits.append(
            {
                "Reason": reason,
                "Deleted": {str(level): list(fids) for level, fids in deleted.items()},
                "Added": {str(level): list(fids) for level, fids in added.items()},
            }
        )
