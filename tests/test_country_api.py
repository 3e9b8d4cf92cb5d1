"""
JSON API over a temporary data file.
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Garantiza que el paquete sea importable en pruebas locales
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from country_api.app import create_app  # noqa: E402
from country_api.core import config as core_config  # noqa: E402

CHILE = {
    "Nombre": "Chile",
    "Capital": "Santiago",
    "Edad": 200,
    "EsIndependiente": True,
    "Poblacion": 19000000,
    "Presidente": "X",
    "Continente": "South America",
    "ComidasTipicas": [{"Nombre": "Empanada"}],
}


@pytest.fixture()
def data_file(tmp_path, monkeypatch):
    """Apunta el almacenamiento y el access log a archivos temporales."""
    path = tmp_path / "DB" / "Country.txt"
    monkeypatch.setenv("COUNTRY_DATA_FILE", str(path))
    monkeypatch.setenv("COUNTRY_STORAGE", "file")
    monkeypatch.setenv("ACCESS_LOG_PATH", str(tmp_path / "access_log.txt"))
    core_config.get_settings.cache_clear()
    yield path
    core_config.get_settings.cache_clear()


@pytest.fixture()
def client(data_file):
    with TestClient(create_app()) as test_client:
        yield test_client


def _create(client, payload=None) -> dict:
    resp = client.post("/Country", json=payload or CHILE)
    assert resp.status_code == 200
    return resp.json()["country"]


def test_create_then_list_scenario(client, data_file):
    assert client.get("/Country").json() == []

    resp = client.post("/Country", json=CHILE)
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["message"] == "El país fue creado exitosamente"

    listed = client.get("/Country").json()
    assert len(listed) == 1
    record = listed[0]
    assert record["id"]
    assert {k: v for k, v in record.items() if k != "id"} == CHILE
    assert json.loads(data_file.read_text(encoding="utf-8")) == listed


def test_create_invalid_payload_returns_field_errors(client, data_file):
    resp = client.post("/Country", json={"Nombre": "Chile", "Edad": "viejo"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["ok"] is False
    fields = {e["field"] for e in body["errors"]}
    assert {"Edad", "Capital", "Continente"} <= fields
    assert not data_file.exists()


def test_create_with_malformed_json_is_bad_request(client):
    resp = client.post("/Country", content=b"{nope", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["ok"] is False


def test_get_by_id(client):
    created = _create(client)
    resp = client.get(f"/Country/{created['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "country": created}


def test_get_unknown_id_is_404(client):
    resp = client.get("/Country/does-not-exist")
    assert resp.status_code == 404
    body = resp.json()
    assert body["ok"] is False
    assert body["message"] == "Country not found"


def test_put_merges_fields(client):
    created = _create(client)
    resp = client.put(f"/Country/{created['id']}", json={"Presidente": "Y"})
    assert resp.status_code == 200
    country = resp.json()["country"]
    assert country["Presidente"] == "Y"
    assert country["Capital"] == "Santiago"
    assert client.get(f"/Country/{created['id']}").json()["country"] == country


def test_put_rejects_bad_types(client):
    created = _create(client)
    resp = client.put(f"/Country/{created['id']}", json={"EsIndependiente": "quizas"})
    assert resp.status_code == 400
    assert client.get(f"/Country/{created['id']}").json()["country"]["EsIndependiente"] is True


def test_put_unknown_id_is_404(client):
    resp = client.put("/Country/missing", json={"Presidente": "Y"})
    assert resp.status_code == 404


def test_delete_then_get_is_404(client):
    created = _create(client)
    resp = client.delete(f"/Country/{created['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert client.get(f"/Country/{created['id']}").status_code == 404
    assert client.delete(f"/Country/{created['id']}").status_code == 404


def test_filter_endpoint(client):
    _create(client)
    _create(client, {**CHILE, "Nombre": "Francia", "Continente": "Europe", "Edad": 1000})

    europe = client.get("/CountryFilter", params={"filterKey": "Continente", "filterValue": "Europe"})
    assert [c["Nombre"] for c in europe.json()] == ["Francia"]

    by_age = client.get("/CountryFilter", params={"filterKey": "Edad", "filterValue": "200"})
    assert [c["Nombre"] for c in by_age.json()] == ["Chile"]

    unknown = client.get("/CountryFilter", params={"filterKey": "Moneda", "filterValue": "Euro"})
    assert unknown.status_code == 200
    assert unknown.json() == []

    everything = client.get("/CountryFilter", params={"filterKey": "Continente"})
    assert len(everything.json()) == 2


def test_malformed_store_is_server_error(client, data_file):
    data_file.parent.mkdir(parents=True, exist_ok=True)
    data_file.write_text("[{broken", encoding="utf-8")

    resp = client.get("/Country")
    assert resp.status_code == 500
    assert resp.json()["ok"] is False

    resp = client.post("/Country", json=CHILE)
    assert resp.status_code == 500
    assert resp.json()["message"] == "Error al almacenar país"
    assert data_file.read_text(encoding="utf-8") == "[{broken"


def test_undecodable_store_is_json_server_error(client, data_file):
    data_file.parent.mkdir(parents=True, exist_ok=True)
    data_file.write_bytes(b'[{"Nombre": "\xff\xfe"}]')

    resp = client.get("/Country")
    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json() == {"ok": False, "error": "storage", "message": "Error al leer los países"}

    resp = client.delete("/Country/any-id")
    assert resp.status_code == 500
    assert resp.json()["message"] == "Error al almacenar país"


def test_empty_store_file_lists_nothing(client, data_file):
    data_file.parent.mkdir(parents=True, exist_ok=True)
    data_file.write_text("", encoding="utf-8")
    assert client.get("/Country").json() == []


def test_export_returns_pdf(client):
    created = _create(client)
    resp = client.get(f"/Country/{created['id']}/export")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert f"country-{created['id']}.pdf" in resp.headers["content-disposition"]
    assert resp.content.startswith(b"%PDF")


def test_export_unknown_id_is_404(client):
    assert client.get("/Country/missing/export").status_code == 404


def test_security_headers_present(client):
    resp = client.get("/Country")
    assert resp.headers["x-frame-options"] == "DENY"
    assert resp.headers["x-content-type-options"] == "nosniff"
