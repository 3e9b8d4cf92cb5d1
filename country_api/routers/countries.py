from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse, Response

from country_api.domain.countries import Country
from country_api.services.country_service import (
    CREATED_MESSAGE,
    CountryError,
    CountryService,
    CountryValidationError,
)
from country_api.services.export_service import export_filename, render_country_pdf

router = APIRouter(tags=["countries"])


def _get_service(request: Request) -> CountryService:
    svc = getattr(getattr(request.app, "state", None), "country_service", None)
    if not svc:
        raise RuntimeError("CountryService no configurado")
    return svc


def _error_response(err: CountryError) -> JSONResponse:
    body: dict[str, Any] = {"ok": False, "error": err.code, "message": err.message}
    if isinstance(err, CountryValidationError):
        body["errors"] = [e.as_dict() for e in err.errors]
    return JSONResponse(body, status_code=err.status_code)


@router.get("/Country")
def list_countries(request: Request):
    try:
        return _get_service(request).list_countries()
    except CountryError as exc:
        return _error_response(exc)


@router.post("/Country")
def create_country(request: Request, payload: Any = Body(None)):
    try:
        country = _get_service(request).create_country(payload)
    except CountryError as exc:
        return _error_response(exc)
    return {"ok": True, "message": CREATED_MESSAGE, "country": country}


@router.get("/Country/{country_id}")
def get_country(country_id: str, request: Request):
    try:
        country = _get_service(request).get_country(country_id)
    except CountryError as exc:
        return _error_response(exc)
    return {"ok": True, "country": country}


@router.put("/Country/{country_id}")
def update_country(country_id: str, request: Request, payload: Any = Body(None)):
    try:
        country = _get_service(request).update_country(country_id, payload)
    except CountryError as exc:
        return _error_response(exc)
    return {"ok": True, "country": country}


@router.delete("/Country/{country_id}")
def delete_country(country_id: str, request: Request):
    try:
        _get_service(request).delete_country(country_id)
    except CountryError as exc:
        return _error_response(exc)
    return {"ok": True}


@router.get("/CountryFilter")
def filter_countries(request: Request, filterKey: str = "", filterValue: str = ""):
    try:
        return _get_service(request).filter_countries(filterKey, filterValue)
    except CountryError as exc:
        return _error_response(exc)


@router.get("/Country/{country_id}/export")
def export_country(country_id: str, request: Request):
    try:
        record = _get_service(request).get_country(country_id)
    except CountryError as exc:
        return _error_response(exc)
    country = Country.from_record(record)
    pdf = render_country_pdf(country)
    return Response(pdf, media_type="application/pdf", headers={
        "Content-Disposition": f"attachment; filename=\"{export_filename(country)}\""
    })
