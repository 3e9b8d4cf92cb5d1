from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool

from country_api.domain.countries import COUNTRY_FIELDS, FIELD_LABELS, Country, coerce_form
from country_api.services.country_service import (
    CountryError,
    CountryService,
    CountryValidationError,
)

router = APIRouter(prefix="", tags=["pages"])


def _get_service(request: Request) -> CountryService:
    svc = getattr(getattr(request.app, "state", None), "country_service", None)
    if not svc:
        raise RuntimeError("CountryService no configurado")
    return svc


def _templates(request: Request):
    tpl = getattr(getattr(request.app, "state", None), "templates", None)
    if tpl:
        return tpl
    raise RuntimeError("Templates no configurados")


def _json_error(err: CountryError) -> JSONResponse:
    return JSONResponse({"ok": False, "message": err.message}, status_code=err.status_code)


def _form_values(source: dict) -> dict:
    """Flatten a record or a submitted form into the strings the form inputs expect."""
    values = {name: "" for name in COUNTRY_FIELDS}
    for name in COUNTRY_FIELDS:
        value = source.get(name)
        if value is None:
            continue
        if name == "ComidasTipicas":
            if isinstance(value, list):
                value = ", ".join(str(item.get("Nombre", "")) for item in value if isinstance(item, dict))
        elif name == "EsIndependiente" and isinstance(value, bool):
            value = "true" if value else "false"
        values[name] = str(value)
    return values


def _render_form(request: Request, *, country_id: str = "", values: dict | None = None,
                 errors: dict | None = None, status_code: int = 200):
    template = "country/edit.html" if country_id else "country/create.html"
    return _templates(request).TemplateResponse(
        request,
        template,
        {
            "country_id": country_id,
            "values": values or _form_values({}),
            "errors": errors or {},
            "labels": FIELD_LABELS,
        },
        status_code=status_code,
    )


def _render_list(request: Request, filter_key: str, filter_value: str):
    try:
        records = _get_service(request).filter_countries(filter_key, filter_value)
    except CountryError as exc:
        return _json_error(exc)
    return _templates(request).TemplateResponse(
        request,
        "country/index.html",
        {
            "countries": [Country.from_record(record) for record in records],
            "filter_key": filter_key,
            "filter_value": filter_value,
            "fields": COUNTRY_FIELDS,
            "labels": FIELD_LABELS,
        },
    )


@router.get("/countries", response_class=HTMLResponse)
def countries_index(request: Request, filterKey: str = "", filterValue: str = ""):
    return _render_list(request, filterKey, filterValue)


# Ruta antigua del listado filtrado; se mantiene para enlaces existentes.
@router.get("/countriess", response_class=HTMLResponse)
def countries_filtered(request: Request, filterKey: str = "", filterValue: str = ""):
    return _render_list(request, filterKey, filterValue)


@router.get("/countries/create", response_class=HTMLResponse)
def countries_create_form(request: Request):
    return _render_form(request)


@router.post("/countries")
async def countries_create(request: Request):
    form = await request.form()
    payload = coerce_form(form)
    try:
        await run_in_threadpool(_get_service(request).create_country, payload)
    except CountryValidationError as exc:
        errors = {e.field: e.message for e in exc.errors}
        return _render_form(request, values=_form_values(dict(form)), errors=errors, status_code=400)
    except CountryError as exc:
        return _json_error(exc)
    return RedirectResponse("/countries", status_code=303)


@router.get("/countries/edit/{country_id}", response_class=HTMLResponse)
def countries_edit_form(country_id: str, request: Request):
    try:
        record = _get_service(request).get_country(country_id)
    except CountryError as exc:
        return _json_error(exc)
    return _render_form(request, country_id=country_id, values=_form_values(record))


@router.post("/countries/edit/{country_id}")
async def countries_edit(country_id: str, request: Request):
    form = await request.form()
    payload = coerce_form(form, partial=True)
    try:
        await run_in_threadpool(_get_service(request).update_country, country_id, payload)
    except CountryValidationError as exc:
        errors = {e.field: e.message for e in exc.errors}
        return _render_form(
            request, country_id=country_id, values=_form_values(dict(form)), errors=errors, status_code=400
        )
    except CountryError as exc:
        return _json_error(exc)
    return RedirectResponse("/countries", status_code=303)


@router.post("/countries/delete/{country_id}")
def countries_delete(country_id: str, request: Request):
    try:
        _get_service(request).delete_country(country_id)
    except CountryError as exc:
        return _json_error(exc)
    return RedirectResponse("/countries", status_code=303)
