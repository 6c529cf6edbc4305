import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from src.dsa.manifest.read import ManifestReader
from src.demo.generator import EditLogConfiguration, EditLogGenerator


def file_meta(size, smallest, largest, smallest_seq_num=0, largest_seq_num=0):
    return {
        "Size": size,
        "Smallest": smallest,
        "Largest": largest,
        "SmallestSeqNum": smallest_seq_num,
        "LargestSeqNum": largest_seq_num,
    }


@pytest.fixture
def overlap_dump():
    """L1 holds A[10-20], B[21-30]; L2 holds C[5-15], D[16-25], E[26-40]."""
    return {
        "Files": {
            "A": file_meta(100, 10, 20, 1, 2),
            "B": file_meta(200, 21, 30, 3, 4),
            "C": file_meta(1000, 5, 15, 1, 1),
            "D": file_meta(2000, 16, 25, 1, 1),
            "E": file_meta(4000, 26, 40, 1, 1),
        },
        "Edits": [{"Reason": "ingested", "Added": {"1": ["A", "B"], "2": ["C", "D", "E"]}}],
    }


@pytest.fixture
def flush_compact_dump():
    """F1 flushed to L0, then compacted into F2 at L1."""
    return {
        "Files": {
            "1": file_meta(1024, "a", "m", 1, 10),
            "2": file_meta(15360, "a", "m", 1, 10),
        },
        "Edits": [
            {"Reason": "flushed", "Added": {"0": [1]}},
            {"Reason": "compacted", "Deleted": {"0": [1]}, "Added": {"1": [2]}},
        ],
    }


@pytest.fixture
def generated_dump():
    return EditLogGenerator(EditLogConfiguration(flushes=30, seed=7)).generate()


@pytest.fixture
def reader():
    return ManifestReader()
