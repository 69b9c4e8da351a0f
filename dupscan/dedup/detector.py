"""Orchestrator for table scans and upload checks.

The ``DuplicateDetector`` wires the scorers together: a table goes through
the row clusterer and the report assembler; uploaded bytes go through the
content hasher, the proximity search and the metadata scorer; a list of
tables goes through the dataset-level scan.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from dupscan.config import Config, get_config
from dupscan.dedup.clusterer import RowClusterer
from dupscan.dedup.datasets import DatasetGroup, find_duplicate_datasets
from dupscan.dedup.hashing import compute_digest
from dupscan.dedup.models import (
    DuplicateCandidateSet,
    FileMetadata,
    SimilarFile,
    Table,
)
from dupscan.dedup.pairs import PairReport, find_duplicate_pairs
from dupscan.dedup.proximity import InMemoryFileIndex, ProximitySearch
from dupscan.dedup.report import DuplicateReport, build_report
from dupscan.dedup.similarity import metadata_similarity
from dupscan.performance import get_performance_metrics
from dupscan.utils.logger import log_debug, log_info, short_digest


@dataclass
class UploadCheckResult:
    """Outcome of checking an uploaded file against the stored files.

    Attributes:
        digest: SHA-256 hex digest of the upload.
        size: Upload size in bytes.
        candidates: Exact and size-proximate stored files.
        similar_files: Size-proximate files whose metadata similarity reached
            the configured threshold, best first.
    """

    digest: str
    size: int
    candidates: DuplicateCandidateSet
    similar_files: List[SimilarFile] = field(default_factory=list)

    @property
    def is_exact_duplicate(self) -> bool:
        return bool(self.candidates.exact)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "digest": self.digest,
            "size": self.size,
            "isExactDuplicate": self.is_exact_duplicate,
            "candidates": self.candidates.to_dict(),
            "similarFiles": [s.to_dict() for s in self.similar_files],
        }


def _with_size(metadata: Optional[FileMetadata], size: int) -> FileMetadata:
    if metadata is None:
        return FileMetadata(size=size)
    if metadata.size is None:
        return FileMetadata(
            size=size,
            type=metadata.type,
            period=metadata.period,
            spatial_domain=metadata.spatial_domain,
        )
    return metadata


class DuplicateDetector:
    """Run table scans and upload checks with configured components.

    Args:
        clusterer: Row clusterer. Built from configuration if *None*.
        proximity: Proximity search. Defaults to an empty in-memory index.
        config: Settings. Defaults to ``get_config()``.

    Usage::

        detector = DuplicateDetector()
        report = detector.scan_table(table)
        if report.has_duplicates:
            ...
    """

    def __init__(
        self,
        clusterer: Optional[RowClusterer] = None,
        proximity: Optional[ProximitySearch] = None,
        config: Optional[Config] = None,
    ):
        self.config = config or get_config()
        dedup = self.config.dedup
        cluster = self.config.cluster
        self.clusterer = clusterer or RowClusterer(
            threshold=dedup.duplicate_threshold,
            max_workers=cluster.cluster_max_workers,
            parallel_min_rows=cluster.cluster_parallel_min_rows,
            matched_field_policy=dedup.matched_field_policy,
        )
        self.proximity = proximity or ProximitySearch(
            InMemoryFileIndex(), size_tolerance=self.config.proximity.size_tolerance
        )
        self.metrics = get_performance_metrics()

    def scan_table(
        self,
        table: Union[Table, Sequence[Mapping[str, Any]]],
        cancel_event: Optional[threading.Event] = None,
    ) -> DuplicateReport:
        """Cluster the rows of ``table`` and assemble a report."""
        self.metrics.start_timer("cluster_table")
        try:
            groups = self.clusterer.cluster(table, cancel_event=cancel_event)
        finally:
            duration = self.metrics.end_timer("cluster_table")

        total_rows = len(table)
        report = build_report(groups, self.clusterer.threshold, total_rows)
        log_info(
            "Table scan completed",
            duration_ms=round(duration * 1000, 2),
            **report.summarize(),
        )
        return report

    def find_pairs(
        self,
        table: Union[Table, Sequence[Mapping[str, Any]]],
        threshold: Optional[float] = None,
    ) -> PairReport:
        """Pairwise whole-record check; ``threshold`` is a percentage."""
        records = table.rows if isinstance(table, Table) else table
        if threshold is None:
            threshold = self.config.dedup.pair_similarity_threshold
        return find_duplicate_pairs(records, threshold)

    def check_upload(
        self,
        data: bytes,
        metadata: Optional[FileMetadata] = None,
        exclude_id: Optional[str] = None,
    ) -> UploadCheckResult:
        """Hash ``data`` and look for exact and similar stored files.

        Raises:
            UnreachableIndexError: The file index could not be queried.
        """
        self.metrics.start_timer("check_upload")
        try:
            digest = compute_digest(data)
            size = len(data)
            candidates = self.proximity.find_candidates(digest, size, exclude_id=exclude_id)
            similar = self.rank_similar(_with_size(metadata, size), candidates)
        finally:
            self.metrics.end_timer("check_upload")

        result = UploadCheckResult(
            digest=digest, size=size, candidates=candidates, similar_files=similar
        )
        log_info(
            "Upload check completed",
            digest=short_digest(digest),
            size=size,
            exact=len(candidates.exact),
            similar_by_size=len(candidates.similar_by_size),
            similar_files=len(similar),
        )
        return result

    def rank_similar(
        self, metadata: FileMetadata, candidates: DuplicateCandidateSet
    ) -> List[SimilarFile]:
        """Score size-proximate candidates by metadata, best first."""
        threshold = self.config.proximity.metadata_similarity_threshold
        ranked = []
        for record in candidates.similar_by_size:
            score = metadata_similarity(metadata, _with_size(record.metadata, record.size))
            log_debug("Metadata similarity", file_id=record.id, score=round(score, 4))
            if score >= threshold:
                ranked.append(SimilarFile(record=record, similarity=score))
        ranked.sort(key=lambda s: s.similarity, reverse=True)
        return ranked

    def scan_datasets(
        self,
        tables: Sequence[Table],
        names: Optional[Sequence[str]] = None,
        threshold: Optional[float] = None,
    ) -> List[DatasetGroup]:
        """Group whole tables that duplicate each other, best group first.

        ``threshold`` defaults to the row clusterer's threshold.
        """
        if threshold is None:
            threshold = self.clusterer.threshold
        self.metrics.start_timer("scan_datasets")
        try:
            return find_duplicate_datasets(tables, threshold=threshold, names=names)
        finally:
            self.metrics.end_timer("scan_datasets")
