"""Serializable duplicate reports built from clustering output."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from dupscan.dedup.models import DuplicateGroup, indices_of


def explain_group(group: DuplicateGroup) -> str:
    """One-line, human-readable reason a group was formed."""
    rows = ", ".join(str(i) for i in group.member_indices)
    if not group.matched_fields:
        return f"Rows {rows} matched with confidence {group.confidence:.0%}"
    fields = ", ".join(
        f"{m.field_name} ({m.similarity:.0%})" for m in group.matched_fields
    )
    return f"Rows {rows} matched on {fields}; confidence {group.confidence:.0%}"


@dataclass
class ReportGroup:
    """A duplicate group with its report id and explanation."""

    group_id: int
    group: DuplicateGroup
    explanation: str

    def to_dict(self) -> Dict[str, Any]:
        matched = [m.to_dict() for m in self.group.matched_fields]
        return {
            "id": self.group_id,
            "confidence": self.group.confidence,
            "memberIndices": self.group.member_indices,
            "members": [
                {"index": m.index, "fields": dict(m.fields), "matchedFields": matched}
                for m in self.group.members
            ],
            "matchedFields": matched,
            "explanation": self.explanation,
        }


@dataclass
class DuplicateReport:
    """Report over one clustering run.

    Attributes:
        threshold: Threshold the groups were produced with.
        total_rows: Row count of the scanned table.
        groups: Report groups in emission order, ids starting at 1.
    """

    threshold: float
    total_rows: int
    groups: List[ReportGroup] = field(default_factory=list)

    @property
    def duplicate_groups(self) -> int:
        return len(self.groups)

    @property
    def duplicate_rows(self) -> int:
        return len(indices_of(g.group for g in self.groups))

    @property
    def duplicate_ratio(self) -> float:
        return self.duplicate_rows / self.total_rows if self.total_rows else 0.0

    @property
    def has_duplicates(self) -> bool:
        return bool(self.groups)

    def summarize(self) -> Dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "threshold": self.threshold,
            "duplicate_groups": self.duplicate_groups,
            "duplicate_rows": self.duplicate_rows,
            "duplicate_ratio": round(self.duplicate_ratio, 4),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasDuplicates": self.has_duplicates,
            "summary": self.summarize(),
            "duplicates": [g.to_dict() for g in self.groups],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False, default=str)


def build_report(groups: Sequence[DuplicateGroup], threshold: float, total_rows: int) -> DuplicateReport:
    """Number groups from 1 in emission order and attach explanations."""
    report = DuplicateReport(threshold=threshold, total_rows=total_rows)
    for group_id, group in enumerate(groups, start=1):
        report.groups.append(
            ReportGroup(group_id=group_id, group=group, explanation=explain_group(group))
        )
    return report
