"""Duplicate detection for tabular datasets and stored files.

Row-level clustering (``RowClusterer``) groups near-identical records of a
table; ``ProximitySearch`` finds whole files that are exact hash matches or
close in size.  ``DuplicateDetector`` ties both to configuration.
"""

from dupscan.dedup.clusterer import RowClusterer
from dupscan.dedup.datasets import DatasetGroup, column_similarity, find_duplicate_datasets
from dupscan.dedup.detector import DuplicateDetector, UploadCheckResult
from dupscan.dedup.hashing import compute_digest, hash_file, hash_stream
from dupscan.dedup.models import (
    DuplicateCandidateSet,
    DuplicateGroup,
    FieldMatch,
    FileMetadata,
    FileRecord,
    GroupMember,
    Period,
    Table,
)
from dupscan.dedup.proximity import (
    FileIndex,
    InMemoryFileIndex,
    JsonFileIndex,
    ProximitySearch,
)
from dupscan.dedup.report import DuplicateReport, build_report
from dupscan.dedup.similarity import field_similarity, metadata_similarity

__all__ = [
    "DatasetGroup",
    "DuplicateCandidateSet",
    "DuplicateDetector",
    "DuplicateGroup",
    "DuplicateReport",
    "FieldMatch",
    "FileIndex",
    "FileMetadata",
    "FileRecord",
    "GroupMember",
    "InMemoryFileIndex",
    "JsonFileIndex",
    "Period",
    "ProximitySearch",
    "RowClusterer",
    "Table",
    "UploadCheckResult",
    "build_report",
    "column_similarity",
    "compute_digest",
    "field_similarity",
    "find_duplicate_datasets",
    "hash_file",
    "hash_stream",
    "metadata_similarity",
]
