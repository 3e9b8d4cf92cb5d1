"""
JSON-file persistence adapter.

The whole collection lives in one text file holding a JSON array. ``load``
reads all of it and ``save`` replaces all of it; there is no partial access.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the backing store cannot be read, parsed or written."""


class CountryStorage(Protocol):
    def load(self) -> list[dict]: ...

    def save(self, records: list[dict]) -> None: ...


class JsonFileStorage:
    """Read-all/write-all access to a JSON array stored in ``path``."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)

    def load(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"No se pudo leer {self.path}: {exc}") from exc
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Contenido inválido en {self.path}: {exc}") from exc
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise StorageError(f"{self.path} no contiene una lista de registros")
        return data

    def save(self, records: list[dict]) -> None:
        payload = json.dumps(list(records), ensure_ascii=False, indent=2)
        directory = self.path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("No se pudo borrar el temporal %s", tmp_name)
            raise StorageError(f"No se pudo escribir {self.path}: {exc}") from exc
