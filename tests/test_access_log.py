from __future__ import annotations

import re
import sys
from pathlib import Path

from fastapi.testclient import TestClient

# Garantiza que el paquete sea importable en pruebas locales
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from country_api.app import create_app  # noqa: E402
from country_api.core import config as core_config  # noqa: E402
from country_api.core.access_log import AccessLog  # noqa: E402

LINE_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} \[(\w+)\] \[(.+)\]$")


def test_requests_are_appended_to_access_log(tmp_path, monkeypatch):
    log_file = tmp_path / "access_log.txt"
    log_file.write_text("previous line\n", encoding="utf-8")
    monkeypatch.setenv("COUNTRY_STORAGE", "memory")
    monkeypatch.setenv("ACCESS_LOG_PATH", str(log_file))
    core_config.get_settings.cache_clear()
    try:
        with TestClient(create_app()) as client:
            client.get("/Country")
            client.delete("/Country/missing")
    finally:
        core_config.get_settings.cache_clear()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "previous line"
    entries = [LINE_RE.match(line).groups() for line in lines[1:]]
    assert entries == [("GET", "/Country"), ("DELETE", "/Country/missing")]


def test_disabled_access_log_is_a_no_op(tmp_path):
    sink = AccessLog("")
    assert sink.enabled is False
    sink.record("GET", "/Country")
    sink.stop()


def test_unwritable_access_log_does_not_raise(tmp_path):
    sink = AccessLog(str(tmp_path / "missing-dir" / "access_log.txt"))
    sink.record("GET", "/Country")
    sink.stop()
    assert not (tmp_path / "missing-dir").exists()


def _read_entries(log_file: Path) -> list[tuple[str, str]]:
    return [LINE_RE.match(line).groups() for line in log_file.read_text(encoding="utf-8").splitlines()]


def test_failed_requests_are_logged(tmp_path, monkeypatch):
    data_file = tmp_path / "DB" / "Country.txt"
    data_file.parent.mkdir()
    data_file.write_bytes(b'[{"Nombre": "\xff\xfe"}]')
    log_file = tmp_path / "access_log.txt"
    monkeypatch.setenv("COUNTRY_STORAGE", "file")
    monkeypatch.setenv("COUNTRY_DATA_FILE", str(data_file))
    monkeypatch.setenv("ACCESS_LOG_PATH", str(log_file))
    core_config.get_settings.cache_clear()
    try:
        with TestClient(create_app()) as client:
            assert client.get("/Country").status_code == 500
    finally:
        core_config.get_settings.cache_clear()

    assert _read_entries(log_file) == [("GET", "/Country")]


def test_requests_whose_handler_raises_are_logged(tmp_path, monkeypatch):
    log_file = tmp_path / "access_log.txt"
    monkeypatch.setenv("COUNTRY_STORAGE", "memory")
    monkeypatch.setenv("ACCESS_LOG_PATH", str(log_file))
    core_config.get_settings.cache_clear()

    def _boom():
        raise RuntimeError("fallo inesperado")

    try:
        app = create_app()
        monkeypatch.setattr(app.state.country_service, "list_countries", _boom)
        with TestClient(app, raise_server_exceptions=False) as client:
            assert client.get("/Country").status_code == 500
    finally:
        core_config.get_settings.cache_clear()

    assert _read_entries(log_file) == [("GET", "/Country")]
