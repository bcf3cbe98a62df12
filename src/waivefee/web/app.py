from __future__ import annotations

import json
import tempfile
from dataclasses import asdict, is_dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from jinja2 import pass_context

from ..aggregation import key_metrics
from ..config import ReferenceContext, WaiverConfig, roster_path
from ..errors import UnknownAcademicYearError, WaiverError
from ..export import export_records, roster_template
from ..family_details import filter_family_details, summarize_family_details
from ..logging_config import configure_logging, get_logger
from ..models import DiscountStatus, Role, SummaryMatrix, WaiverStatus
from ..query import WaiverQuery, group_by_term
from ..roster import load_roster, parse_roster_csv, sample_roster
from ..rotation import beneficiary_for
from ..snapshot import WaiverSnapshot
from ..utils import format_amount, parse_iso_date


BASE_DIR = Path(__file__).parent
TEMPLATES = Jinja2Templates(directory=str((BASE_DIR / "templates").resolve()))

DEFAULT_LANG = "en_US"
SUPPORTED_LANGS = {"en_US", "th_TH"}
TRANSLATIONS: Dict[str, Dict[str, str]] = {}

logger = get_logger("web")

app = FastAPI(title="Sibling Fee Waiver Dashboard")


def _load_translations() -> None:
    for code in SUPPORTED_LANGS:
        path = BASE_DIR / "i18n" / f"{code}.json"
        with path.open("r", encoding="utf-8") as handle:
            TRANSLATIONS[code] = json.load(handle)


def _normalize_lang(lang: Optional[str]) -> str:
    if lang in SUPPORTED_LANGS:
        return lang
    return DEFAULT_LANG


def translate(lang: str, key: str, **kwargs: str) -> str:
    if not TRANSLATIONS:
        _load_translations()
    lang = _normalize_lang(lang)
    value = TRANSLATIONS.get(lang, {}).get(key)
    if value is None:
        value = TRANSLATIONS.get(DEFAULT_LANG, {}).get(key, key)
    if kwargs:
        try:
            return value.format(**kwargs)
        except (KeyError, IndexError):
            return value
    return value


@pass_context
def t(context, key: str, **kwargs: str) -> str:
    request = context.get("request")
    lang = getattr(getattr(request, "state", None), "lang", DEFAULT_LANG)
    return translate(lang, key, **kwargs)


TEMPLATES.env.globals["t"] = t
TEMPLATES.env.filters["money"] = format_amount


def _lang_from_request(request: Request) -> str:
    return _normalize_lang(request.cookies.get("lang"))


def _build_snapshot(config: WaiverConfig) -> WaiverSnapshot:
    path = roster_path()
    roster = load_roster(path) if path else sample_roster(config.family_count)
    return WaiverSnapshot.build(roster, None, config)


def _snapshot() -> WaiverSnapshot:
    snapshot = getattr(app.state, "snapshot", None)
    if snapshot is None:
        snapshot = _build_snapshot(WaiverConfig.from_env())
        app.state.snapshot = snapshot
    return snapshot


def _context(snapshot: WaiverSnapshot, as_of: str, lang: str) -> ReferenceContext:
    try:
        reference_date = parse_iso_date(as_of)
    except ValueError:
        raise HTTPException(status_code=400, detail=translate(lang, "errors.invalid_date", value=as_of))
    return snapshot.context(reference_date)


def _require_year(snapshot: WaiverSnapshot, academic_year: str, lang: str) -> str:
    try:
        snapshot.calendar.year_index(academic_year)
    except UnknownAcademicYearError:
        raise HTTPException(status_code=404, detail=translate(lang, "errors.unknown_year", year=academic_year))
    return academic_year


def _default_year(snapshot: WaiverSnapshot, context: ReferenceContext) -> str:
    years = snapshot.calendar.years
    index = min(max(context.current_year_index, 0), len(years) - 1)
    return years[index]


def _younger_years(cycle_length: int) -> int:
    return sum(1 for index in range(cycle_length) if beneficiary_for(index, cycle_length) == Role.YOUNGER)


def _record_query(academic_year: str, status: str, q: str, lang: str) -> WaiverQuery:
    query = WaiverQuery(academic_year=academic_year or None, status=status or None, search_text=q or None)
    try:
        query.status_filter
    except ValueError:
        raise HTTPException(status_code=400, detail=translate(lang, "errors.invalid_status", value=status))
    return query


def _jsonable(value: Any) -> Any:
    if isinstance(value, SummaryMatrix):
        return {
            "years": value.years,
            "terms": value.terms,
            "cells": [_jsonable(cell) for cell in value.cells.values()],
            "year_totals": {year: _jsonable(cell) for year, cell in value.year_totals.items()},
            "warnings": value.warnings,
        }
    if is_dataclass(value):
        return _jsonable(asdict(value))
    if isinstance(value, dict):
        return {str(_jsonable(k)): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def _record_json(record) -> Dict[str, Any]:
    data = _jsonable(record)
    data["record_id"] = record.record_id
    return data


@app.on_event("startup")
def _startup() -> None:
    configure_logging()
    _load_translations()
    snapshot = _snapshot()
    logger.info("Serving %d families, %d records", len(snapshot.roster), len(snapshot.records))


@app.middleware("http")
async def _language_middleware(request: Request, call_next):
    request.state.lang = _lang_from_request(request)
    response = await call_next(request)
    return response


@app.exception_handler(WaiverError)
async def _waiver_error_handler(request: Request, exc: WaiverError) -> JSONResponse:
    status_code = 404 if isinstance(exc, UnknownAcademicYearError) else 400
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.get("/health")
def health() -> Dict[str, Any]:
    snapshot = _snapshot()
    return {"status": "ok", "families": len(snapshot.roster), "records": len(snapshot.records)}


@app.get("/", response_class=HTMLResponse)
def dashboard(request: Request, year: str = "", status: str = "all", q: str = "", as_of: str = "") -> HTMLResponse:
    lang = _lang_from_request(request)
    snapshot = _snapshot()
    context = _context(snapshot, as_of, lang)
    academic_year = _require_year(snapshot, year, lang) if year else _default_year(snapshot, context)
    query = _record_query(academic_year, status, q, lang)

    records = snapshot.query(context, query)
    summary = snapshot.summary(academic_year)
    return TEMPLATES.TemplateResponse(
        request,
        "dashboard.html",
        {
            "lang": lang,
            "years": list(snapshot.calendar.years),
            "selected_year": academic_year,
            "status": status or "all",
            "statuses": [s.value for s in WaiverStatus],
            "q": q,
            "as_of": context.reference_date.isoformat(),
            "records_by_term": group_by_term(records),
            "record_count": len(records),
            "summary": summary,
            "metrics": key_metrics(summary, snapshot.config.rounding_mode),
            "matrix": snapshot.matrix(),
            "cycle_length": snapshot.config.cycle_length,
            "younger_years": _younger_years(snapshot.config.cycle_length),
        },
    )


@app.get("/years/{academic_year}", response_class=HTMLResponse)
def year_details(request: Request, academic_year: str, status: str = "all", q: str = "", as_of: str = "") -> HTMLResponse:
    lang = _lang_from_request(request)
    snapshot = _snapshot()
    _require_year(snapshot, academic_year, lang)
    context = _context(snapshot, as_of, lang)
    details = _family_details(snapshot, context, academic_year, status, q, lang)
    return TEMPLATES.TemplateResponse(
        request,
        "year_details.html",
        {
            "lang": lang,
            "selected_year": academic_year,
            "status": status or "all",
            "statuses": [s.value for s in DiscountStatus],
            "q": q,
            "as_of": context.reference_date.isoformat(),
            "families": details,
            "totals": summarize_family_details(details),
        },
    )


@app.get("/api/records")
def api_records(request: Request, year: str = "", status: str = "all", q: str = "", as_of: str = "") -> Dict[str, Any]:
    lang = _lang_from_request(request)
    snapshot = _snapshot()
    if year:
        _require_year(snapshot, year, lang)
    context = _context(snapshot, as_of, lang)
    records = snapshot.query(context, _record_query(year, status, q, lang))
    return {
        "as_of": context.reference_date.isoformat(),
        "count": len(records),
        "records": [_record_json(record) for record in records],
    }


@app.get("/api/summary/{academic_year}")
def api_summary(request: Request, academic_year: str) -> Dict[str, Any]:
    snapshot = _snapshot()
    _require_year(snapshot, academic_year, _lang_from_request(request))
    summary = snapshot.summary(academic_year)
    return {
        "summary": _jsonable(summary),
        "metrics": _jsonable(key_metrics(summary, snapshot.config.rounding_mode)),
    }


@app.get("/api/matrix")
def api_matrix() -> Dict[str, Any]:
    return _jsonable(_snapshot().matrix())


@app.get("/api/families/{academic_year}")
def api_families(request: Request, academic_year: str, status: str = "all", q: str = "", as_of: str = "") -> Dict[str, Any]:
    lang = _lang_from_request(request)
    snapshot = _snapshot()
    _require_year(snapshot, academic_year, lang)
    context = _context(snapshot, as_of, lang)
    details = _family_details(snapshot, context, academic_year, status, q, lang)
    return {
        "academic_year": academic_year,
        "totals": _jsonable(summarize_family_details(details)),
        "families": _jsonable(details),
    }


@app.get("/export")
def export(request: Request, year: str = "", status: str = "all", q: str = "", as_of: str = "") -> FileResponse:
    lang = _lang_from_request(request)
    snapshot = _snapshot()
    if year:
        _require_year(snapshot, year, lang)
    context = _context(snapshot, as_of, lang)
    records = snapshot.query(context, _record_query(year, status, q, lang))
    if not records:
        raise HTTPException(status_code=400, detail=translate(lang, "errors.no_records"))
    temp = tempfile.NamedTemporaryFile(delete=False, suffix=".csv")
    temp.close()
    export_records(temp.name, records)
    return FileResponse(temp.name, filename=f"waivers_{year or 'all'}.csv", media_type="text/csv")


@app.get("/exports/template")
def export_template() -> FileResponse:
    temp = tempfile.NamedTemporaryFile(delete=False, suffix=".csv", mode="w", encoding="utf-8", newline="")
    temp.write(roster_template())
    temp.close()
    return FileResponse(temp.name, filename="roster_template.csv", media_type="text/csv")


@app.post("/roster/import")
def roster_import(request: Request, file: UploadFile = File(...)) -> JSONResponse:
    lang = _lang_from_request(request)
    try:
        content = file.file.read().decode("utf-8-sig")
    except UnicodeDecodeError:
        return JSONResponse(status_code=400, content={"errors": [translate(lang, "errors.invalid_encoding")]})
    errors, families = parse_roster_csv(content)
    if not errors and not families:
        errors = [translate(lang, "errors.empty_roster")]
    if errors:
        return JSONResponse(status_code=400, content={"errors": errors})
    current = _snapshot()
    app.state.snapshot = WaiverSnapshot.build(families, current.calendar, current.config)
    logger.info("Roster replaced: %d families", len(families))
    return JSONResponse(
        content={"families": len(app.state.snapshot.roster), "records": len(app.state.snapshot.records)}
    )


@app.get("/lang/{lang_code}")
def set_language(lang_code: str, request: Request) -> RedirectResponse:
    lang = _normalize_lang(lang_code)
    redirect_to = request.headers.get("referer") or "/"
    response = RedirectResponse(url=redirect_to, status_code=303)
    response.set_cookie("lang", lang, max_age=60 * 60 * 24 * 365)
    return response


def _family_details(
    snapshot: WaiverSnapshot,
    context: ReferenceContext,
    academic_year: str,
    status: str,
    q: str,
    lang: str,
) -> List:
    try:
        return filter_family_details(snapshot.family_details(context, academic_year), q, status)
    except WaiverError:
        raise
    except ValueError:
        raise HTTPException(status_code=400, detail=translate(lang, "errors.invalid_status", value=status))
