"""Country CRUD helpers built on load/scan/save over an injected storage."""
from __future__ import annotations

import contextlib
import threading
import uuid
from typing import Any, Callable, Optional

from country_api.domain.countries import ID_FIELD, field_matches
from country_api.repositories.json_storage import CountryStorage


def _new_id() -> str:
    return str(uuid.uuid4())


class CountryRepository:
    """
    Every mutation is a full load-modify-save cycle.

    With ``serialize_writes`` the cycle runs under one lock so concurrent
    writers cannot overwrite each other (lost update). Reads never take the
    lock.
    """

    def __init__(
        self,
        storage: CountryStorage,
        *,
        serialize_writes: bool = True,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self.storage = storage
        self.serialize_writes = serialize_writes
        self._id_factory = id_factory
        self._write_lock = threading.Lock()

    def _write_gate(self):
        if self.serialize_writes:
            return self._write_lock
        return contextlib.nullcontext()

    @staticmethod
    def _index_of(records: list[dict], record_id: str) -> int:
        for idx, record in enumerate(records):
            if record.get(ID_FIELD) == record_id:
                return idx
        return -1

    # -------------------------- reads --------------------------
    def list_all(self) -> list[dict]:
        return self.storage.load()

    def get(self, record_id: str) -> Optional[dict]:
        records = self.storage.load()
        idx = self._index_of(records, record_id)
        return records[idx] if idx >= 0 else None

    def filter_by(self, field: str, value: Any) -> list[dict]:
        """Records whose ``field`` matches ``value``; unknown fields match nothing."""
        return [
            record
            for record in self.storage.load()
            if field in record and field_matches(record[field], value)
        ]

    # -------------------------- writes --------------------------
    def create(self, fields: dict) -> dict:
        with self._write_gate():
            records = self.storage.load()
            taken = {record.get(ID_FIELD) for record in records}
            new_id = self._id_factory()
            while new_id in taken:
                new_id = self._id_factory()
            record = {k: v for k, v in fields.items() if k != ID_FIELD}
            record[ID_FIELD] = new_id
            records.append(record)
            self.storage.save(records)
            return record

    def update(self, record_id: str, fields: dict) -> Optional[dict]:
        with self._write_gate():
            records = self.storage.load()
            idx = self._index_of(records, record_id)
            if idx < 0:
                return None
            merged = {**records[idx], **{k: v for k, v in fields.items() if k != ID_FIELD}}
            merged[ID_FIELD] = record_id
            records[idx] = merged
            self.storage.save(records)
            return merged

    def delete(self, record_id: str) -> bool:
        with self._write_gate():
            records = self.storage.load()
            idx = self._index_of(records, record_id)
            if idx < 0:
                return False
            del records[idx]
            self.storage.save(records)
            return True
