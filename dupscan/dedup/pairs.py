"""Pairwise whole-record similarity report.

Unlike the clusterer, this check scores every record pair with a weighted
mean over all shared fields and lists each pair at or above a percentage
threshold.  It backs the quick "does this upload contain duplicates" answer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Number
from typing import Any, Dict, List, Mapping, Optional, Sequence

from dupscan.errors import InputShapeError
from dupscan.utils.logger import log_debug, log_info

DEFAULT_PAIR_THRESHOLD = 90.0
PROGRESS_EVERY = 100


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def value_similarity(val1: Any, val2: Any) -> float:
    """Similarity of two cell values as a percentage in [0, 100].

    Numbers compare by relative difference.  Everything else compares as
    trimmed lower-case text by positional character agreement.
    """
    if val1 == val2:
        return 100.0
    if not val1 or not val2:
        return 0.0

    if _is_number(val1) and _is_number(val2):
        largest = max(abs(val1), abs(val2))
        if largest == 0:
            return 100.0
        return max(0.0, (1 - abs(val1 - val2) / largest) * 100)

    str1 = str(val1).lower().strip()
    str2 = str(val2).lower().strip()
    if str1 == str2:
        return 100.0

    length = max(len(str1), len(str2))
    matches = sum(1 for c1, c2 in zip(str1, str2) if c1 == c2)
    return (matches / length) * 100


def field_weight(key: str) -> float:
    """Identifier-like fields count half, name-like fields count double."""
    lowered = key.lower()
    weight = 1.0
    if "id" in lowered:
        weight = 0.5
    if "name" in lowered:
        weight = 2.0
    return weight


def record_similarity(record1: Mapping[str, Any], record2: Mapping[str, Any]) -> float:
    """Weighted mean of ``value_similarity`` over keys present in both records."""
    total_similarity = 0.0
    total_weight = 0.0

    for key in dict.fromkeys([*record1.keys(), *record2.keys()]):
        if key not in record1 or key not in record2:
            continue
        weight = field_weight(key)
        total_similarity += value_similarity(record1[key], record2[key]) * weight
        total_weight += weight

    return total_similarity / total_weight if total_weight > 0 else 0.0


@dataclass
class DuplicatePair:
    """Two records whose similarity reached the threshold (1-based row numbers)."""

    row_number_1: int
    row_number_2: int
    similarity: int
    record1: Dict[str, Any]
    record2: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record1": self.record1,
            "record2": self.record2,
            "similarity": self.similarity,
            "rowNumber1": self.row_number_1,
            "rowNumber2": self.row_number_2,
        }


@dataclass
class PairReport:
    """Result of ``find_duplicate_pairs``."""

    total_records: int
    duplicates: List[DuplicatePair] = field(default_factory=list)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.duplicates)

    @property
    def affected_rows(self) -> int:
        rows = set()
        for pair in self.duplicates:
            rows.add(pair.row_number_1)
            rows.add(pair.row_number_2)
        return len(rows)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasDuplicates": self.has_duplicates,
            "totalRecords": self.total_records,
            "duplicates": [p.to_dict() for p in self.duplicates],
            "summary": {
                "totalDuplicatePairs": len(self.duplicates),
                "affectedRows": self.affected_rows,
            },
        }


def find_duplicate_pairs(
    records: Sequence[Mapping[str, Any]], threshold: Optional[float] = None
) -> PairReport:
    """List every record pair whose ``record_similarity`` is at least ``threshold``.

    Args:
        records: Ordered records (field mappings).
        threshold: Percentage in [0, 100]. Defaults to 90.

    Returns:
        ``PairReport`` with pairs in ``(i, j)`` scan order; similarity is
        rounded to a whole percent.
    """
    if threshold is None:
        threshold = DEFAULT_PAIR_THRESHOLD
    if not 0.0 <= threshold <= 100.0:
        raise InputShapeError(f"Pair threshold must be in [0, 100], got {threshold!r}")
    if not isinstance(records, (list, tuple)):
        raise InputShapeError("Records must be an ordered sequence of mappings")
    for position, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise InputShapeError(
                f"Row {position} is {type(record).__name__}, expected a field mapping"
            )

    report = PairReport(total_records=len(records))
    total = len(records)
    for i in range(total):
        for j in range(i + 1, total):
            similarity = record_similarity(records[i], records[j])
            if similarity >= threshold:
                report.duplicates.append(
                    DuplicatePair(
                        row_number_1=i + 1,
                        row_number_2=j + 1,
                        similarity=int(similarity + 0.5),
                        record1=dict(records[i]),
                        record2=dict(records[j]),
                    )
                )
        if i % PROGRESS_EVERY == 0:
            log_debug(f"Processed {i}/{total} records")

    log_info(
        "Pairwise duplicate check completed",
        total_records=total,
        duplicate_pairs=len(report.duplicates),
        affected_rows=report.affected_rows,
    )
    return report
