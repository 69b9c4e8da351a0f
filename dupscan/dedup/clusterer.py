"""Greedy row-level duplicate clustering.

Seeds are taken in ascending row order.  Each seed claims every later,
still-unclaimed row whose best field similarity reaches the threshold, and a
claimed row is never reconsidered.  The result is deterministic for a given
row order; it is a single-pass greedy partition, not a transitive closure.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from dupscan.dedup.models import (
    DuplicateGroup,
    FieldMatch,
    GroupMember,
    Row,
    Table,
)
from dupscan.dedup.similarity import field_similarity, is_absent
from dupscan.errors import (
    ClusteringCancelledError,
    InputShapeError,
    InvalidThresholdError,
)
from dupscan.utils.logger import log_debug, log_duplicate_group, log_info

DEFAULT_THRESHOLD = 0.8
DEFAULT_PARALLEL_MIN_ROWS = 200

LAST_PAIR = "last_pair"
UNION = "union"


def validate_threshold(threshold: Any) -> float:
    """Return ``threshold`` as a float, or raise if it is outside (0, 1]."""
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise InvalidThresholdError(threshold)
    if not 0.0 < threshold <= 1.0:
        raise InvalidThresholdError(threshold)
    return float(threshold)


@dataclass
class PairScore:
    """Field-level comparison of one seed row against one partner row."""

    partner_index: int
    max_similarity: float = 0.0
    matches: List[FieldMatch] = field(default_factory=list)


def score_pair(seed: Mapping[str, Any], partner: Mapping[str, Any], partner_index: int, threshold: float) -> PairScore:
    """Compare every field the seed shares with ``partner``.

    Only fields with a present value on both sides are compared.  Rows with
    no comparable field score 0.
    """
    score = PairScore(partner_index=partner_index)
    for name, value in seed.items():
        if is_absent(value):
            continue
        similarity = field_similarity(value, partner.get(name))
        if similarity is None:
            continue
        if similarity > score.max_similarity:
            score.max_similarity = similarity
        if similarity >= threshold:
            score.matches.append(FieldMatch(field_name=name, similarity=similarity))
    return score


def _coerce_rows(table: Union[Table, Sequence[Mapping[str, Any]]]) -> List[Row]:
    if isinstance(table, Table):
        return table.rows
    if not isinstance(table, (list, tuple)):
        raise InputShapeError(
            f"Expected a Table or an ordered sequence of rows, got {type(table).__name__}"
        )
    for position, row in enumerate(table):
        if not isinstance(row, Mapping):
            raise InputShapeError(
                f"Row {position} is {type(row).__name__}, expected a field mapping"
            )
    return list(table)


def _merge_matches(existing: List[FieldMatch], new: List[FieldMatch]) -> List[FieldMatch]:
    merged = {m.field_name: m for m in existing}
    for match in new:
        current = merged.get(match.field_name)
        if current is None or match.similarity > current.similarity:
            merged[match.field_name] = match
    return list(merged.values())


class RowClusterer:
    """Cluster the rows of a table into duplicate groups.

    Args:
        threshold: Minimum similarity, in (0, 1], for a field to count as
            matched and for a row to join a seed's group.
        max_workers: Threads used to score a seed against its partners.
            ``1`` keeps scoring on the calling thread.
        parallel_min_rows: Tables smaller than this are always scored
            serially.
        matched_field_policy: ``"last_pair"`` keeps only the matched fields
            and confidence of the most recently accepted pair (the behaviour
            existing reports rely on); ``"union"`` keeps, per field, the best
            similarity across all accepted pairs and the best confidence.

    Usage::

        clusterer = RowClusterer(threshold=0.8)
        groups = clusterer.cluster(table)
    """

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        max_workers: int = 1,
        parallel_min_rows: int = DEFAULT_PARALLEL_MIN_ROWS,
        matched_field_policy: str = LAST_PAIR,
    ):
        self.threshold = validate_threshold(threshold)
        if max_workers < 1:
            raise InputShapeError(f"max_workers must be >= 1, got {max_workers}")
        if matched_field_policy not in (LAST_PAIR, UNION):
            raise InputShapeError(f"Unknown matched_field_policy: {matched_field_policy!r}")
        self.max_workers = max_workers
        self.parallel_min_rows = parallel_min_rows
        self.matched_field_policy = matched_field_policy

    def cluster(
        self,
        table: Union[Table, Sequence[Mapping[str, Any]]],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[DuplicateGroup]:
        """Run one clustering pass.

        Args:
            table: A ``Table`` or an ordered sequence of row mappings.  It is
                never mutated.
            cancel_event: Optional signal checked between seeds and between
                partners of a seed.

        Returns:
            Groups in ascending seed order; members are the seed followed by
            its duplicates in ascending row order.

        Raises:
            InputShapeError: The table is not an ordered sequence of mappings.
            ClusteringCancelledError: ``cancel_event`` was set mid-run.
        """
        rows = _coerce_rows(table)
        total = len(rows)
        visited = [False] * total
        groups: List[DuplicateGroup] = []

        parallel = self.max_workers > 1 and total >= self.parallel_min_rows
        log_debug(
            "Starting row clustering",
            rows=total,
            threshold=self.threshold,
            parallel=parallel,
            workers=self.max_workers if parallel else 1,
        )

        if parallel:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="dupscan-pairs") as executor:
                self._run(rows, visited, groups, executor, cancel_event)
        else:
            self._run(rows, visited, groups, None, cancel_event)

        log_info(
            "Row clustering finished",
            rows=total,
            groups=len(groups),
            duplicate_rows=sum(len(g) for g in groups),
        )
        return groups

    def _run(
        self,
        rows: List[Row],
        visited: List[bool],
        groups: List[DuplicateGroup],
        executor: Optional[Executor],
        cancel_event: Optional[threading.Event],
    ) -> None:
        for seed_index in range(len(rows)):
            if cancel_event is not None and cancel_event.is_set():
                raise ClusteringCancelledError(seeds_completed=seed_index)
            if visited[seed_index]:
                continue

            group = self._grow_group(seed_index, rows, visited, executor, cancel_event)
            if group is not None:
                visited[seed_index] = True
                groups.append(group)
                log_duplicate_group(group.anchor_index, group.member_indices, group.confidence)

    def _score_partners(
        self,
        seed_index: int,
        rows: List[Row],
        partners: List[int],
        executor: Optional[Executor],
    ) -> Iterable[PairScore]:
        seed = rows[seed_index]
        if executor is None:
            return (score_pair(seed, rows[j], j, self.threshold) for j in partners)
        # Scoring only reads the two rows; accept/claim stays on this thread.
        return executor.map(lambda j: score_pair(seed, rows[j], j, self.threshold), partners)

    def _grow_group(
        self,
        seed_index: int,
        rows: List[Row],
        visited: List[bool],
        executor: Optional[Executor],
        cancel_event: Optional[threading.Event],
    ) -> Optional[DuplicateGroup]:
        partners = [j for j in range(seed_index + 1, len(rows)) if not visited[j]]
        if not partners:
            return None

        group = DuplicateGroup(anchor_index=seed_index)
        for score in self._score_partners(seed_index, rows, partners, executor):
            if cancel_event is not None and cancel_event.is_set():
                raise ClusteringCancelledError(seeds_completed=seed_index)
            if score.max_similarity < self.threshold:
                continue

            if not group.members:
                group.members.append(GroupMember(index=seed_index, fields=dict(rows[seed_index])))
            partner_index = score.partner_index
            group.members.append(GroupMember(index=partner_index, fields=dict(rows[partner_index])))
            visited[partner_index] = True

            if self.matched_field_policy == UNION:
                group.matched_fields = _merge_matches(group.matched_fields, score.matches)
                group.confidence = max(group.confidence, score.max_similarity)
            else:
                group.matched_fields = list(score.matches)
                group.confidence = score.max_similarity

        if len(group.members) < 2:
            return None
        return group
