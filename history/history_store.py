"""
History Store
=============

Newest-first record of every completed analysis, persisted as one JSON
blob under a single key of a KeyValueStore.

Loading never fails: a missing blob gives an empty history, and an
undecodable blob is logged and treated as empty. A failed save is logged
and the in-memory history is kept as is.
"""

import json
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from common.errors import PersistenceReadError, PersistenceWriteError
from diagnosis.knowledge_base import Severity
from history.storage import KeyValueStore

logger = logging.getLogger(__name__)


DEFAULT_STORAGE_KEY = 'xray_history'

Color = Tuple[float, float, float, float]


def format_medium_date(moment: datetime) -> str:
    """Medium-style calendar date, e.g. 'Oct 19, 2026'."""
    return f"{moment:%b} {moment.day}, {moment.year}"


@dataclass(frozen=True)
class HistoryEntry:
    id: uuid.UUID
    diagnosis: str
    confidence: float
    severity: str
    severity_color: Color
    date: datetime
    recommendations: Tuple[str, ...]

    @property
    def formatted_date(self) -> str:
        return format_medium_date(self.date)

    def to_dict(self) -> Dict:
        return {
            'id': str(self.id),
            'diagnosis': self.diagnosis,
            'confidence': self.confidence,
            'severity': self.severity,
            'date': self.date.isoformat(),
            'recommendations': list(self.recommendations),
            'severity_color': list(self.severity_color),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'HistoryEntry':
        """
        Rebuild an entry from its stored form.

        Raises:
            PersistenceReadError: a field is missing or malformed
        """
        try:
            components = [float(c) for c in data['severity_color']]
            if len(components) != 4:
                raise ValueError(f"expected 4 color components, got {len(components)}")

            return cls(
                id=uuid.UUID(data['id']),
                diagnosis=str(data['diagnosis']),
                confidence=float(data['confidence']),
                severity=str(data['severity']),
                severity_color=tuple(components),
                date=datetime.fromisoformat(data['date']),
                recommendations=tuple(str(r) for r in data['recommendations']),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise PersistenceReadError(f"Malformed history entry: {e}") from e


class HistoryStore:
    """
    Ordered history of analyses, newest first.

    Args:
        store: Key-value backend holding the serialized history
        storage_key: Key under which the whole collection is stored
        clock: Returns the timestamp for new entries
        id_factory: Returns a fresh unique id for new entries
    """

    def __init__(
        self,
        store: KeyValueStore,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
    ):
        self.store = store
        self.storage_key = storage_key
        self.clock = clock or (lambda: datetime.now().astimezone())
        self.id_factory = id_factory
        self._items: List[HistoryEntry] = []
        # One store can back several sessions; mutations and saves go through this
        self._lock = threading.RLock()

        self._load_history()

    @property
    def items(self) -> List[HistoryEntry]:
        return list(self._items)

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    def add_item(
        self,
        diagnosis: str,
        confidence: float,
        severity: Union[Severity, str],
        recommendations: Iterable[str],
    ) -> HistoryEntry:
        """Record a new entry at the head of the history and save."""
        severity = Severity(severity) if isinstance(severity, str) else severity

        entry = HistoryEntry(
            id=self.id_factory(),
            diagnosis=diagnosis,
            confidence=float(confidence),
            severity=severity.value,
            severity_color=severity.color,
            date=self.clock(),
            recommendations=tuple(recommendations),
        )

        with self._lock:
            self._items.insert(0, entry)
            self._save_history()

        return entry

    def delete_item(self, item_id: Union[uuid.UUID, str]) -> None:
        """Remove the entry with this id; unknown ids are ignored."""
        item_id = str(item_id)

        with self._lock:
            remaining = [item for item in self._items if str(item.id) != item_id]
            if len(remaining) == len(self._items):
                return

            self._items = remaining
            self._save_history()

    def delete_items(self, indices: Iterable[int], date_group: str) -> None:
        """
        Remove entries by position within one date group.

        Args:
            indices: Positions inside the group, as listed by grouped_by_date()
            date_group: Formatted date naming the group; unknown groups are ignored
        """
        with self._lock:
            group = next((entries for date, entries in self.grouped_by_date() if date == date_group), None)
            if group is None:
                return

            doomed = {str(group[i].id) for i in indices}
            self._items = [item for item in self._items if str(item.id) not in doomed]
            self._save_history()

    def search_history(self, query: str) -> List[HistoryEntry]:
        """
        Case-insensitive substring search over diagnosis and recommendations.

        An empty query returns the whole history. Order is preserved.
        """
        if not query:
            return self.items

        needle = query.casefold()
        return [
            item for item in self.items
            if needle in item.diagnosis.casefold()
            or needle in ''.join(item.recommendations).casefold()
        ]

    def grouped_by_date(self, entries: Optional[Sequence[HistoryEntry]] = None) -> List[Tuple[str, List[HistoryEntry]]]:
        """
        Group entries by formatted date.

        Groups are ordered by descending comparison of the date strings,
        which is not a chronological order ("Sep 1" sorts after "Oct 30").
        """
        grouped: Dict[str, List[HistoryEntry]] = {}
        for item in (self.items if entries is None else entries):
            grouped.setdefault(item.formatted_date, []).append(item)

        return sorted(grouped.items(), key=lambda group: group[0], reverse=True)

    def to_frame(self) -> pd.DataFrame:
        """History as a DataFrame, one row per entry, newest first."""
        columns = ['id', 'date', 'diagnosis', 'confidence', 'severity', 'recommendations']
        rows = [
            {
                'id': str(item.id),
                'date': item.date,
                'diagnosis': item.diagnosis,
                'confidence': item.confidence,
                'severity': item.severity,
                'recommendations': '; '.join(item.recommendations),
            }
            for item in self.items
        ]
        return pd.DataFrame(rows, columns=columns)

    def _load_history(self):
        try:
            blob = self.store.get(self.storage_key)
            if blob is None:
                return

            records = json.loads(blob)
            if not isinstance(records, list):
                raise PersistenceReadError("History blob is not a list")

            self._items = [HistoryEntry.from_dict(record) for record in records]
            logger.info(f"Loaded {len(self._items)} history entries")

        except (PersistenceReadError, ValueError, RecursionError) as e:
            logger.warning(f"Discarding unreadable history: {e}")
            self._items = []

    def _save_history(self):
        with self._lock:
            blob = json.dumps([item.to_dict() for item in self._items])

            try:
                self.store.set(self.storage_key, blob)
            except PersistenceWriteError as e:
                logger.error(f"Failed to save history: {e}")
