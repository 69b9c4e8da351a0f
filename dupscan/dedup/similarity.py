"""Similarity scorers for field values and file metadata.

Both scorers are pure, symmetric and bounded in [0, 1].
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Any, List, Mapping, Optional, Union

from dupscan.dedup.models import FileMetadata, Period

_WHITESPACE = re.compile(r"\s+")

MetadataLike = Union[FileMetadata, Mapping[str, Any], None]


# ---------------------------------------------------------------------------
# Field values
# ---------------------------------------------------------------------------


def is_absent(value: Any) -> bool:
    """Absent values make a field non-comparable."""
    return value is None or value == ""


def dice_coefficient(first: str, second: str) -> float:
    """Sørensen–Dice coefficient over character bigram multisets.

    Whitespace is ignored.  Identical strings score 1.0; a differing string
    shorter than two characters has no bigrams and scores 0.0.
    """
    first = _WHITESPACE.sub("", first)
    second = _WHITESPACE.sub("", second)

    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    first_bigrams = Counter(first[i:i + 2] for i in range(len(first) - 1))
    second_bigrams = Counter(second[i:i + 2] for i in range(len(second) - 1))
    intersection = sum((first_bigrams & second_bigrams).values())

    return (2.0 * intersection) / (len(first) + len(second) - 2)


def field_similarity(a: Any, b: Any) -> Optional[float]:
    """Case-insensitive bigram similarity of two scalar field values.

    Returns:
        A score in [0, 1], or ``None`` when either value is absent and the
        field is therefore not comparable.
    """
    if is_absent(a) or is_absent(b):
        return None
    return dice_coefficient(str(a).lower(), str(b).lower())


# ---------------------------------------------------------------------------
# File metadata
# ---------------------------------------------------------------------------


def _as_metadata(value: MetadataLike) -> FileMetadata:
    if isinstance(value, FileMetadata):
        return value
    if not isinstance(value, Mapping):
        return FileMetadata()

    period = value.get("period")
    if isinstance(period, Mapping):
        try:
            period = Period.from_dict(period)
        except (KeyError, TypeError, ValueError):
            period = None
    elif not isinstance(period, Period):
        period = None

    return FileMetadata(
        size=value.get("size"),
        type=value.get("type"),
        period=period,
        spatial_domain=value.get("spatialDomain", value.get("spatial_domain")),
    )


def _is_size(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0


def _size_factor(size_a: float, size_b: float) -> float:
    largest = max(size_a, size_b)
    if largest == 0:
        return 1.0
    return max(0.0, 1.0 - abs(size_a - size_b) / largest)


def _period_factor(a: Period, b: Period) -> Optional[float]:
    try:
        return 1.0 if a.overlaps(b) else 0.0
    except TypeError:
        # start/end values of incomparable types (e.g. date vs datetime)
        return None


def metadata_similarity(a: MetadataLike, b: MetadataLike) -> float:
    """Mean of the metadata factors present on both sides.

    Factors: size (relative difference), type (equality), period (overlap)
    and spatial domain (equality).  With no comparable factor the score is 0.
    Missing or malformed fields only reduce the factor count; this never raises.
    """
    meta_a = _as_metadata(a)
    meta_b = _as_metadata(b)
    factors: List[float] = []

    if _is_size(meta_a.size) and _is_size(meta_b.size):
        factors.append(_size_factor(meta_a.size, meta_b.size))

    if meta_a.type is not None and meta_b.type is not None:
        factors.append(1.0 if meta_a.type == meta_b.type else 0.0)

    if isinstance(meta_a.period, Period) and isinstance(meta_b.period, Period):
        overlap = _period_factor(meta_a.period, meta_b.period)
        if overlap is not None:
            factors.append(overlap)

    if meta_a.spatial_domain is not None and meta_b.spatial_domain is not None:
        factors.append(1.0 if meta_a.spatial_domain == meta_b.spatial_domain else 0.0)

    if not factors:
        return 0.0
    return sum(factors) / len(factors)
