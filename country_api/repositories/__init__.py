"""
Persistence adapters.

Storage backends expose ``load``/``save`` over the whole collection (JSON file
today, memory in tests). Services depend on ``CountryRepository`` rather than
touching the file.
"""
from __future__ import annotations

from country_api.core.config import Settings
from country_api.repositories.country_repository import CountryRepository
from country_api.repositories.json_storage import CountryStorage, JsonFileStorage, StorageError
from country_api.repositories.memory_storage import MemoryStorage


def build_storage(settings: Settings) -> CountryStorage:
    if settings.storage_backend == "memory":
        return MemoryStorage()
    return JsonFileStorage(settings.data_file)


__all__ = [
    "CountryRepository",
    "CountryStorage",
    "JsonFileStorage",
    "MemoryStorage",
    "StorageError",
    "build_storage",
]
