"""Country use cases: validation, lookups and mutations."""
from __future__ import annotations

import logging
from typing import Any

from country_api.domain.countries import FieldError, normalize_country, validate_country
from country_api.repositories.country_repository import CountryRepository
from country_api.repositories.json_storage import StorageError

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Country not found"
INVALID_MESSAGE = "Los datos de la solicitud no cumplen con los requisitos especificados."
STORE_ERROR_MESSAGE = "Error al almacenar país"
READ_ERROR_MESSAGE = "Error al leer los países"
CREATED_MESSAGE = "El país fue creado exitosamente"


class CountryError(Exception):
    def __init__(self, message: str, code: str = "invalid", status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class CountryNotFoundError(CountryError):
    def __init__(self, record_id: str):
        super().__init__(NOT_FOUND_MESSAGE, "not_found", 404)
        self.record_id = record_id


class CountryValidationError(CountryError):
    def __init__(self, errors: list[FieldError]):
        super().__init__(INVALID_MESSAGE, "invalid", 400)
        self.errors = errors


class CountryStorageError(CountryError):
    def __init__(self, message: str = STORE_ERROR_MESSAGE):
        super().__init__(message, "storage", 500)


class CountryService:
    """Orchestrates validation and the repository for routers."""

    def __init__(self, repository: CountryRepository) -> None:
        self.repository = repository

    def _read(self, action, *args):
        try:
            return action(*args)
        except StorageError as exc:
            logger.exception("Fallo al leer el almacenamiento de países")
            raise CountryStorageError(READ_ERROR_MESSAGE) from exc

    def _write(self, action, *args):
        try:
            return action(*args)
        except StorageError as exc:
            logger.exception("Fallo al escribir el almacenamiento de países")
            raise CountryStorageError(STORE_ERROR_MESSAGE) from exc

    def list_countries(self) -> list[dict]:
        return self._read(self.repository.list_all)

    def get_country(self, record_id: str) -> dict:
        record = self._read(self.repository.get, record_id)
        if record is None:
            raise CountryNotFoundError(record_id)
        return record

    def filter_countries(self, field: str | None, value: Any) -> list[dict]:
        """Both key and value are needed to filter; otherwise everything is returned."""
        if not field or value is None or value == "":
            return self.list_countries()
        return self._read(self.repository.filter_by, field, value)

    def create_country(self, payload: Any) -> dict:
        errors = validate_country(payload)
        if errors:
            raise CountryValidationError(errors)
        record = self._write(self.repository.create, normalize_country(payload))
        logger.info("Pais creado id=%s", record.get("id"))
        return record

    def update_country(self, record_id: str, payload: Any) -> dict:
        errors = validate_country(payload, partial=True)
        if errors:
            raise CountryValidationError(errors)
        record = self._write(self.repository.update, record_id, normalize_country(payload))
        if record is None:
            raise CountryNotFoundError(record_id)
        return record

    def delete_country(self, record_id: str) -> None:
        if not self._write(self.repository.delete, record_id):
            raise CountryNotFoundError(record_id)
