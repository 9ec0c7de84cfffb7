"""PS Hunter - Local persistence."""

from pshunter.storage.backends import InMemoryStore, JsonFileStore, KeyValueStore
from pshunter.storage.history import PriceHistoryStore, normalize_title
from pshunter.storage.preferences import load_target_currency, save_target_currency

__all__ = [
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "PriceHistoryStore",
    "load_target_currency",
    "normalize_title",
    "save_target_currency",
]
