"""Local history of analyses."""

from .history_store import DEFAULT_STORAGE_KEY, HistoryEntry, HistoryStore, format_medium_date
from .storage import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    'DEFAULT_STORAGE_KEY', 'HistoryEntry', 'HistoryStore', 'format_medium_date',
    'JsonFileStore', 'KeyValueStore', 'MemoryStore',
]
