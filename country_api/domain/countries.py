"""Domain helpers for country records: typed view, validation and matching."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping

ID_FIELD = "id"

STRING_FIELDS = ("Nombre", "Capital", "Presidente", "Continente")
REQUIRED_FIELDS = ("Nombre", "Capital", "Edad", "EsIndependiente", "Poblacion", "Presidente", "Continente")
COUNTRY_FIELDS = REQUIRED_FIELDS + ("ComidasTipicas",)

FIELD_LABELS = {
    "Nombre": "Nombre",
    "Capital": "Capital",
    "Edad": "Edad",
    "EsIndependiente": "Es independiente",
    "ComidasTipicas": "Comidas típicas",
    "Poblacion": "Población",
    "Presidente": "Presidente",
    "Continente": "Continente",
}

_TRUE_VALUES = {"1", "true", "on", "yes", "si", "sí"}
_FALSE_VALUES = {"0", "false", "off", "no", ""}


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


@dataclass
class TypicalFood:
    nombre: str


@dataclass
class Country:
    """Typed view over a stored record. Unknown stored keys land in ``extra``."""

    id: str = ""
    nombre: str = ""
    capital: str = ""
    edad: int | None = None
    es_independiente: bool | None = None
    comidas_tipicas: list[TypicalFood] = field(default_factory=list)
    poblacion: float | int | None = None
    presidente: str = ""
    continente: str = ""
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Country":
        foods = []
        for item in record.get("ComidasTipicas") or []:
            if isinstance(item, Mapping):
                foods.append(TypicalFood(str(item.get("Nombre") or "")))
        known = set(COUNTRY_FIELDS) | {ID_FIELD}
        return cls(
            id=str(record.get(ID_FIELD) or ""),
            nombre=str(record.get("Nombre") or ""),
            capital=str(record.get("Capital") or ""),
            edad=record.get("Edad"),
            es_independiente=record.get("EsIndependiente"),
            comidas_tipicas=foods,
            poblacion=record.get("Poblacion"),
            presidente=str(record.get("Presidente") or ""),
            continente=str(record.get("Continente") or ""),
            extra={k: v for k, v in record.items() if k not in known},
        )

    @property
    def foods_text(self) -> str:
        return ", ".join(food.nombre for food in self.comidas_tipicas if food.nombre)

    def display_rows(self) -> list[tuple[str, str]]:
        """Label/value pairs used by the HTML table and the PDF export."""
        independent = ""
        if self.es_independiente is not None:
            independent = "Sí" if self.es_independiente else "No"
        rows = [
            (FIELD_LABELS["Nombre"], self.nombre),
            (FIELD_LABELS["Capital"], self.capital),
            (FIELD_LABELS["Edad"], "" if self.edad is None else str(self.edad)),
            (FIELD_LABELS["EsIndependiente"], independent),
            (FIELD_LABELS["Poblacion"], _format_number(self.poblacion)),
            (FIELD_LABELS["Presidente"], self.presidente),
            (FIELD_LABELS["Continente"], self.continente),
            (FIELD_LABELS["ComidasTipicas"], self.foods_text),
        ]
        rows.extend((str(key), str(value)) for key, value in self.extra.items())
        return rows


def _format_number(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value:,}".replace(",", ".")
    return str(value)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _check_field(name: str, value: Any) -> str | None:
    if name in STRING_FIELDS:
        if not isinstance(value, str) or not value.strip():
            return "debe ser un texto no vacío"
    elif name == "Edad":
        if not _is_number(value) or not float(value).is_integer():
            return "debe ser un número entero"
    elif name == "EsIndependiente":
        if not isinstance(value, bool):
            return "debe ser verdadero o falso"
    elif name == "Poblacion":
        if not _is_number(value):
            return "debe ser un número"
    elif name == "ComidasTipicas":
        if not isinstance(value, list):
            return "debe ser una lista"
        for item in value:
            if not isinstance(item, dict):
                return "cada comida debe ser un objeto {Nombre}"
            extra_keys = set(item) - {"Nombre"}
            if extra_keys:
                return f"campo no permitido en comida: {sorted(extra_keys)[0]}"
            if "Nombre" in item and not isinstance(item["Nombre"], str):
                return "el nombre de cada comida debe ser un texto"
    return None


def validate_country(payload: Any, *, partial: bool = False) -> list[FieldError]:
    """
    Check a create/update payload and return every field-level problem.

    ``partial`` is used for updates: missing fields are fine, but the ones
    present must still have the right type.
    """
    if not isinstance(payload, Mapping):
        return [FieldError("", "el cuerpo debe ser un objeto JSON")]
    errors: list[FieldError] = []
    for key in payload:
        if key not in COUNTRY_FIELDS:
            errors.append(FieldError(str(key), "campo no permitido"))
    if not partial:
        for name in REQUIRED_FIELDS:
            if name not in payload:
                errors.append(FieldError(name, "es obligatorio"))
    for name in COUNTRY_FIELDS:
        if name not in payload:
            continue
        problem = _check_field(name, payload[name])
        if problem:
            errors.append(FieldError(name, problem))
    return errors


def normalize_country(payload: Mapping[str, Any]) -> dict:
    """Return a copy with integral ``Edad`` floats stored as ``int``."""
    data = dict(payload)
    edad = data.get("Edad")
    if isinstance(edad, float) and edad.is_integer():
        data["Edad"] = int(edad)
    if isinstance(data.get("ComidasTipicas"), list):
        data["ComidasTipicas"] = [dict(item) for item in data["ComidasTipicas"]]
    return data


def _parse_number(raw: str) -> Any:
    text = raw.strip().replace(" ", "")
    if not text:
        return raw
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return raw


def coerce_form(form: Mapping[str, Any], *, partial: bool = False) -> dict:
    """
    Convert HTML form strings to typed values.

    Blank inputs are dropped in ``partial`` mode so an edit form keeps the
    stored value. The independence checkbox is only sent when checked, so a
    missing value means False unless the form is partial.
    """
    data: dict = {}
    for name in STRING_FIELDS:
        raw = form.get(name)
        if raw is None:
            continue
        value = str(raw).strip()
        if value or not partial:
            data[name] = value
    for name in ("Edad", "Poblacion"):
        raw = form.get(name)
        if raw is None:
            continue
        value = str(raw)
        if value.strip() or not partial:
            data[name] = _parse_number(value)
    raw_flag = form.get("EsIndependiente")
    if raw_flag is not None:
        flag = str(raw_flag).strip().lower()
        if flag in _TRUE_VALUES:
            data["EsIndependiente"] = True
        elif flag in _FALSE_VALUES:
            data["EsIndependiente"] = False
        else:
            data["EsIndependiente"] = raw_flag
    elif not partial:
        data["EsIndependiente"] = False
    raw_foods = form.get("ComidasTipicas")
    if raw_foods is not None:
        names = [part.strip() for part in str(raw_foods).split(",")]
        data["ComidasTipicas"] = [{"Nombre": name} for name in names if name]
    return data


def field_matches(stored: Any, wanted: Any) -> bool:
    """
    Compare a stored value with a filter value.

    Filter values usually arrive as query strings, so a string is coerced to
    the stored value's type before comparing.
    """
    if stored == wanted and type(stored) is type(wanted):
        return True
    if not isinstance(wanted, str):
        return stored == wanted and not isinstance(stored, bool) and not isinstance(wanted, bool)
    if isinstance(stored, bool):
        flag = wanted.strip().lower()
        if flag in {"true", "1"}:
            return stored is True
        if flag in {"false", "0"}:
            return stored is False
        return False
    if _is_number(stored):
        try:
            return float(wanted.strip()) == float(stored)
        except ValueError:
            return False
    if isinstance(stored, str):
        return stored == wanted
    return False
