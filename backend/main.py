import logging
import time
from typing import List

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .analysis import run_analysis
from .audit import (
    get_activity_timeline,
    log_activity,
    log_case_event,
    log_evidence_event,
    log_witness_event,
)
from .config import CORS_ORIGINS, LOG_LEVEL, SEED_ON_STARTUP, STORAGE_BACKEND
from .db import init_db
from .metrics import metrics
from .pdf_exporter import generate_pdf
from .schemas import (
    ANALYSIS_TYPES,
    AiAnalysisCreate,
    AnalyzeRequest,
    CaseCreate,
    CaseUpdate,
    EvidenceCreate,
    EvidenceUpdate,
    WitnessCreate,
    WitnessUpdate,
)
from .seed import seed_storage
from .storage import DatabaseStorage, MemStorage, Storage, StorageError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Case Management API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

_storage = None


def build_storage() -> Storage:
    if STORAGE_BACKEND == "memory":
        return MemStorage()
    init_db()
    return DatabaseStorage()


def get_storage() -> Storage:
    global _storage
    if _storage is None:
        _storage = build_storage()
    return _storage


@app.on_event("startup")
def startup():
    storage = get_storage()
    logger.info("Using %s storage", type(storage).__name__)
    if SEED_ON_STARTUP and storage.is_empty():
        logger.info("Storage is empty, seeding with initial data...")
        seed_storage(storage)


# ---------------------------------------------------------------- logging & errors

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    metrics.record_request()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        duration_ms = (time.time() - start) * 1000
        level = logging.INFO
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        logger.log(level, "%s %s %s in %.0fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


def _format_errors(errors) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    body = exc.detail if isinstance(exc.detail, dict) else {"message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"message": "Invalid request", "error": _format_errors(exc.errors())})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal Server Error"})


def _parse_id(raw: str, label: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"Invalid {label} ID")


def _validate(schema, payload, label):
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=400,
            detail={"message": f"Invalid {label} data", "error": _format_errors(exc.errors())},
        )


def _rejected(label: str, exc: StorageError) -> HTTPException:
    return HTTPException(status_code=400, detail={"message": f"Invalid {label} data", "error": str(exc)})


def _require_case(storage: Storage, raw_id: str):
    case_id = _parse_id(raw_id, "case")
    case_obj = storage.get_case(case_id)
    if not case_obj:
        raise HTTPException(status_code=404, detail="Case not found")
    return case_obj


def _dump(records) -> List[dict]:
    return [r.to_json() for r in records]


# ---------------------------------------------------------------- cases

@app.get("/api/cases")
def list_cases(storage: Storage = Depends(get_storage)):
    return _dump(storage.get_all_cases())


@app.get("/api/cases/{case_id}")
def get_case(case_id: str, storage: Storage = Depends(get_storage)):
    return _require_case(storage, case_id).to_json()


@app.post("/api/cases", status_code=201)
def create_case(payload: dict, storage: Storage = Depends(get_storage)):
    data = _validate(CaseCreate, payload, "case")
    try:
        case_obj = storage.create_case(data)
    except StorageError as exc:
        raise _rejected("case", exc)
    log_case_event(storage, case_obj, "created")
    return case_obj.to_json()


@app.put("/api/cases/{case_id}")
def update_case(case_id: str, payload: dict, storage: Storage = Depends(get_storage)):
    cid = _parse_id(case_id, "case")
    data = _validate(CaseUpdate, payload, "case")
    try:
        case_obj = storage.update_case(cid, data)
    except StorageError as exc:
        raise _rejected("case", exc)
    if not case_obj:
        raise HTTPException(status_code=404, detail="Case not found")
    log_case_event(storage, case_obj, "updated")
    return case_obj.to_json()


# ---------------------------------------------------------------- evidence

@app.get("/api/cases/{case_id}/evidence")
def list_case_evidence(case_id: str, storage: Storage = Depends(get_storage)):
    return _dump(storage.get_case_evidence(_parse_id(case_id, "case")))


@app.post("/api/evidence", status_code=201)
def create_evidence(payload: dict, storage: Storage = Depends(get_storage)):
    data = _validate(EvidenceCreate, payload, "evidence")
    try:
        item = storage.create_evidence(data)
    except StorageError as exc:
        raise _rejected("evidence", exc)
    log_evidence_event(storage, item, "evidence_added", "added to the case")
    return item.to_json()


@app.put("/api/evidence/{evidence_id}")
def update_evidence(evidence_id: str, payload: dict, storage: Storage = Depends(get_storage)):
    eid = _parse_id(evidence_id, "evidence")
    data = _validate(EvidenceUpdate, payload, "evidence")
    try:
        item = storage.update_evidence(eid, data)
    except StorageError as exc:
        raise _rejected("evidence", exc)
    if not item:
        raise HTTPException(status_code=404, detail="Evidence not found")
    log_evidence_event(storage, item, "evidence_updated", "updated")
    return item.to_json()


# ---------------------------------------------------------------- witnesses

@app.get("/api/cases/{case_id}/witnesses")
def list_case_witnesses(case_id: str, storage: Storage = Depends(get_storage)):
    return _dump(storage.get_case_witnesses(_parse_id(case_id, "case")))


@app.post("/api/witnesses", status_code=201)
def create_witness(payload: dict, storage: Storage = Depends(get_storage)):
    data = _validate(WitnessCreate, payload, "witness")
    try:
        witness = storage.create_witness(data)
    except StorageError as exc:
        raise _rejected("witness", exc)
    log_witness_event(storage, witness, "witness_added", "added to the case")
    return witness.to_json()


@app.put("/api/witnesses/{witness_id}")
def update_witness(witness_id: str, payload: dict, storage: Storage = Depends(get_storage)):
    wid = _parse_id(witness_id, "witness")
    data = _validate(WitnessUpdate, payload, "witness")
    try:
        witness = storage.update_witness(wid, data)
    except StorageError as exc:
        raise _rejected("witness", exc)
    if not witness:
        raise HTTPException(status_code=404, detail="Witness not found")
    log_witness_event(storage, witness, "witness_updated", "updated")
    return witness.to_json()


# ---------------------------------------------------------------- activity & users

@app.get("/api/cases/{case_id}/activities")
def list_case_activities(case_id: str, storage: Storage = Depends(get_storage)):
    return get_activity_timeline(storage, _parse_id(case_id, "case"))


@app.get("/api/activities/recent")
def recent_activities(limit: int = Query(10, ge=1, le=100), storage: Storage = Depends(get_storage)):
    return _dump(storage.get_recent_activities(limit))


@app.get("/api/users/{user_id}")
def get_user(user_id: str, storage: Storage = Depends(get_storage)):
    user = storage.get_user(_parse_id(user_id, "user"))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user.to_json()


# ---------------------------------------------------------------- AI analysis

@app.get("/api/cases/{case_id}/analysis")
def list_case_analyses(case_id: str, storage: Storage = Depends(get_storage)):
    return _dump(storage.get_case_analyses(_parse_id(case_id, "case")))


@app.post("/api/cases/{case_id}/analyze")
def analyze_case(case_id: str, payload: dict = None, storage: Storage = Depends(get_storage)):
    case_obj = _require_case(storage, case_id)
    request = _validate(AnalyzeRequest, payload or {}, "analysis")
    analysis_type = request.analysis_type
    types = ANALYSIS_TYPES if analysis_type == "all" else [analysis_type]

    evidence = storage.get_case_evidence(case_obj.id)
    witnesses = storage.get_case_witnesses(case_obj.id)

    try:
        for t in types:
            content = run_analysis(t, case_obj, evidence, witnesses)
            storage.save_analysis(AiAnalysisCreate(case_id=case_obj.id, analysis_type=t, content=content))

        log_activity(
            storage,
            case_obj.id,
            "ai_analysis",
            f"AI analysis ({analysis_type}) was generated for the case.",
            user_id=case_obj.lead_detective_id,
        )
        analyses = storage.get_case_analyses(case_obj.id)
    except Exception as exc:
        logger.exception("Analysis for case %s failed", case_obj.id)
        raise HTTPException(status_code=500, detail={"message": "Failed to generate analysis", "error": str(exc)})

    return _dump(analyses)


# ---------------------------------------------------------------- exports

def _case_bundle(storage: Storage, case_obj) -> dict:
    return {
        "case": case_obj.to_json(),
        "evidence": _dump(storage.get_case_evidence(case_obj.id)),
        "witnesses": _dump(storage.get_case_witnesses(case_obj.id)),
        "activities": get_activity_timeline(storage, case_obj.id),
        "analyses": _dump(storage.get_case_analyses(case_obj.id)),
    }


@app.get("/api/cases/{case_id}/export/json")
def export_json(case_id: str, storage: Storage = Depends(get_storage)):
    return _case_bundle(storage, _require_case(storage, case_id))


@app.get("/api/cases/{case_id}/export/pdf")
def export_pdf(case_id: str, storage: Storage = Depends(get_storage)):
    case_obj = _require_case(storage, case_id)
    pdf_bytes = generate_pdf(_case_bundle(storage, case_obj))
    filename = f"{case_obj.case_number}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@app.get("/api/metrics")
def get_metrics():
    return metrics.snapshot()
