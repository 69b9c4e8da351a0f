"""Hash-exact and size-windowed lookup of stored files.

The search only defines the matching predicate.  Storage is reached through
the ``FileIndex`` interface so the core never assumes a storage technology;
``InMemoryFileIndex`` and ``JsonFileIndex`` are the bundled implementations.
"""

from __future__ import annotations

import abc
import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

from dupscan.dedup.models import DuplicateCandidateSet, FileRecord
from dupscan.errors import InputShapeError, UnreachableIndexError
from dupscan.utils.logger import log_debug, log_error, log_info, short_digest

DEFAULT_SIZE_TOLERANCE = 0.10

# ---------------------------------------------------------------------------
# Index interface
# ---------------------------------------------------------------------------


class FileIndex(abc.ABC):
    """Abstract store of ``FileRecord`` entries.

    Implementations raise ``UnreachableIndexError`` when the backing store
    cannot be read; an empty list always means "searched and found nothing".
    """

    def __init__(self, name: str):
        self.name = name
        self.queries = 0

    @abc.abstractmethod
    def all_records(self) -> List[FileRecord]:
        """Point-in-time snapshot of every record, deleted ones included."""

    @abc.abstractmethod
    def add(self, record: FileRecord) -> None:
        """Insert or replace a record by id."""

    @abc.abstractmethod
    def remove(self, record_id: str) -> bool:
        """Delete a record by id. Returns False when it was not present."""

    def find_by_digest(self, digest: str) -> List[FileRecord]:
        self.queries += 1
        return [r for r in self.all_records() if r.digest == digest]

    def find_by_size_range(self, low: float, high: float) -> List[FileRecord]:
        self.queries += 1
        return [r for r in self.all_records() if low <= r.size <= high]

    def get_stats(self) -> Dict[str, Any]:
        return {"backend": self.name, "queries": self.queries}


class InMemoryFileIndex(FileIndex):
    """Dict-backed index with a digest lookup table."""

    def __init__(self, records: Optional[List[FileRecord]] = None, name: str = "memory"):
        super().__init__(name)
        self._records: Dict[str, FileRecord] = {}
        self._by_digest: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()
        for record in records or []:
            self.add(record)

    def all_records(self) -> List[FileRecord]:
        with self._lock:
            return list(self._records.values())

    def add(self, record: FileRecord) -> None:
        with self._lock:
            previous = self._records.get(record.id)
            if previous is not None:
                self._by_digest.get(previous.digest, set()).discard(record.id)
            self._records[record.id] = record
            self._by_digest.setdefault(record.digest, set()).add(record.id)

    def remove(self, record_id: str) -> bool:
        with self._lock:
            record = self._records.pop(record_id, None)
            if record is None:
                return False
            self._by_digest.get(record.digest, set()).discard(record_id)
            return True

    def find_by_digest(self, digest: str) -> List[FileRecord]:
        with self._lock:
            self.queries += 1
            ids = self._by_digest.get(digest, set())
            return [r for r in self._records.values() if r.id in ids]

    def __len__(self) -> int:
        return len(self._records)


class JsonFileIndex(FileIndex):
    """Index persisted as a JSON list of records.

    Every query re-reads the file, so each lookup sees a fresh snapshot of
    whatever other writers have stored.  A missing file is an empty index;
    an unreadable or corrupt file is ``UnreachableIndexError``.
    """

    def __init__(self, path: Union[str, Path], name: str = "json"):
        super().__init__(name)
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> List[FileRecord]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return [FileRecord.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise UnreachableIndexError(f"Cannot read file index {self.path}: {e}") from e

    def _save(self, records: List[FileRecord]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump([r.to_dict() for r in records], f, indent=2, default=str)
        except OSError as e:
            raise UnreachableIndexError(f"Cannot write file index {self.path}: {e}") from e

    def all_records(self) -> List[FileRecord]:
        with self._lock:
            return self._load()

    def add(self, record: FileRecord) -> None:
        with self._lock:
            records = [r for r in self._load() if r.id != record.id]
            records.append(record)
            self._save(records)

    def remove(self, record_id: str) -> bool:
        with self._lock:
            records = self._load()
            remaining = [r for r in records if r.id != record_id]
            if len(remaining) == len(records):
                return False
            self._save(remaining)
            return True


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def size_window(size: int, tolerance: float) -> tuple:
    """Inclusive ``(low, high)`` byte bounds around ``size``."""
    delta = size * tolerance
    return size - delta, size + delta


class ProximitySearch:
    """Find exact-hash and similar-size files in a ``FileIndex``.

    Args:
        index: Backing store to query.
        size_tolerance: Window half-width as a fraction of the query size.

    Usage::

        search = ProximitySearch(InMemoryFileIndex(records))
        candidates = search.find_candidates(digest, size)
    """

    def __init__(self, index: FileIndex, size_tolerance: float = DEFAULT_SIZE_TOLERANCE):
        if not 0.0 <= size_tolerance <= 1.0:
            raise InputShapeError(f"size_tolerance must be in [0, 1], got {size_tolerance!r}")
        self.index = index
        self.size_tolerance = size_tolerance

    def find_candidates(
        self, digest: str, size: int, exclude_id: Optional[str] = None
    ) -> DuplicateCandidateSet:
        """Look up duplicates of a file described by ``digest`` and ``size``.

        Args:
            digest: Hex content digest of the queried file.
            size: Byte size of the queried file.
            exclude_id: Id of the queried file when it is already stored,
                so it is never reported as its own duplicate.

        Returns:
            ``DuplicateCandidateSet`` with non-deleted ``exact`` digest
            matches and ``similar_by_size`` records whose digest differs and
            whose size lies within the tolerance window.

        Raises:
            InputShapeError: ``digest`` is not a string or ``size`` is negative.
            UnreachableIndexError: The index could not be queried.
        """
        if not isinstance(digest, str) or not digest:
            raise InputShapeError("digest must be a non-empty hex string")
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise InputShapeError(f"size must be a non-negative integer, got {size!r}")

        low, high = size_window(size, self.size_tolerance)
        try:
            exact_hits = self.index.find_by_digest(digest)
            size_hits = self.index.find_by_size_range(low, high)
        except UnreachableIndexError as e:
            log_error("File index unreachable", backend=self.index.name, error=str(e))
            raise

        def keep(record: FileRecord) -> bool:
            return not record.is_deleted and record.id != exclude_id

        candidates = DuplicateCandidateSet(
            exact=[r for r in exact_hits if keep(r) and r.digest == digest],
            similar_by_size=[
                r for r in size_hits
                if keep(r) and r.digest != digest and low <= r.size <= high
            ],
        )

        log_debug(
            "Proximity search completed",
            digest=short_digest(digest),
            size=size,
            window=[low, high],
            exact=len(candidates.exact),
            similar_by_size=len(candidates.similar_by_size),
        )
        if candidates.exact:
            log_info("Exact duplicate files found", digest=short_digest(digest), count=len(candidates.exact))
        return candidates
