#=======================================================================================
# catalog_import/routes.py
# Admin API for catalog imports and category maintenance.
#
# Every job runs in the background: POST returns { job_id, status } (202) and
# GET /api/jobs/{job_id} is polled until "done" or "error".
#=======================================================================================

import json
import secrets
import asyncio
import uuid
import time
from typing import Any, Awaitable, Callable, Dict, Set
import logging

from fastapi import APIRouter, Query, Request, Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)

from catalog_import.config import settings
from catalog_import.sync import runs

router = APIRouter(prefix="/api", tags=["Catalog Import"])

# ---------------------------
# HTTP Basic (admin)
# ---------------------------
security = HTTPBasic()

def verify_admin(credentials: HTTPBasicCredentials = Depends(security)):
    ok_user = secrets.compare_digest(credentials.username or "", settings.ADMIN_USER or "")
    ok_pass = secrets.compare_digest(credentials.password or "", settings.ADMIN_PASS or "")
    if not (ok_user and ok_pass):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Basic"},
        )

# ---------------------------
# Helpers
# ---------------------------
async def _safe_json(req: Request) -> Dict[str, Any]:
    """Best-effort JSON body parsing; an empty or broken body means no options."""
    try:
        data = await req.json()
        return data if isinstance(data, dict) else {}
    except Exception:
        try:
            raw = (await req.body()).decode("utf-8", "ignore")
            data = json.loads(raw) if raw.strip() else {}
            return data if isinstance(data, dict) else {}
        except Exception:
            return {}

def _get_bool(payload: Dict[str, Any], *keys: str, default: bool = False) -> bool:
    for k in keys:
        if k in payload:
            return bool(payload.get(k))
    return default

def _now_ts() -> int:
    return int(time.time())

# ---------------------------
# Background job store (in-memory)
# ---------------------------
_JOBS: Dict[str, Dict[str, Any]] = {}
_JOBS_LOCK = asyncio.Lock()
_JOBS_TTL_SECONDS = 60 * 60  # keep finished jobs 1 hour
_TASKS: Set[asyncio.Task] = set()  # running job tasks, dropped when done

async def _cleanup_jobs_now():
    """Remove finished jobs older than TTL."""
    cutoff = _now_ts() - _JOBS_TTL_SECONDS
    async with _JOBS_LOCK:
        to_del = [jid for jid, rec in _JOBS.items()
                  if rec.get("finished") and rec.get("finished") < cutoff]
        for jid in to_del:
            _JOBS.pop(jid, None)

async def _run_job(job_id: str, job: Callable[[], Awaitable[Any]]):
    logger.info(f"[JOB][RUN] Job {job_id} starting")
    async with _JOBS_LOCK:
        _JOBS[job_id].update({"status": "running", "started": _now_ts()})

    try:
        result = await job()
        async with _JOBS_LOCK:
            _JOBS[job_id].update({"status": "done", "finished": _now_ts(), "result": result})
        logger.info(f"[JOB][COMPLETE] Job {job_id} finished successfully")
    except Exception as e:
        async with _JOBS_LOCK:
            _JOBS[job_id].update({"status": "error", "finished": _now_ts(), "error": str(e)})
        logger.error(f"[JOB][ERROR] Job {job_id} failed: {e}")

    await _cleanup_jobs_now()

async def _start_job(kind: str, request_info: Dict[str, Any], job: Callable[[], Awaitable[Any]]) -> JSONResponse:
    job_id = uuid.uuid4().hex
    logger.info(f"[JOB][REGISTER] {kind} job {job_id} ({request_info})")
    async with _JOBS_LOCK:
        _JOBS[job_id] = {
            "id": job_id,
            "kind": kind,
            "status": "queued",
            "started": None,
            "finished": None,
            "request": request_info,
        }
    task = asyncio.create_task(_run_job(job_id, job))
    _TASKS.add(task)
    task.add_done_callback(_TASKS.discard)
    return JSONResponse(
        status_code=202,
        content={"job_id": job_id, "status": "queued"},
        headers={"Location": f"/api/jobs/{job_id}"},
    )

# ----------------------------------------------------------------------
# Imports
# ----------------------------------------------------------------------

@router.post("/import/pos", dependencies=[Depends(verify_admin)])
async def api_import_pos(request: Request):
    """
    POS (KiotViet) import. Body: { "with_media" | "withMedia": bool (default True) }
    """
    payload = await _safe_json(request)
    with_media = _get_bool(payload, "with_media", "withMedia", default=True)
    return await _start_job("import_pos", {"with_media": with_media},
                            lambda: runs.import_pos(with_media=with_media))

@router.post("/import/marketplace", dependencies=[Depends(verify_admin)])
async def api_import_marketplace(request: Request):
    """
    Marketplace (Shopee) import.
    Body: { "with_pos_categories" | "withPosCategories": bool (default True) }
    """
    payload = await _safe_json(request)
    with_pos = _get_bool(payload, "with_pos_categories", "withPosCategories", default=True)
    return await _start_job("import_marketplace", {"with_pos_categories": with_pos},
                            lambda: runs.import_marketplace(with_pos_categories=with_pos))

# ----------------------------------------------------------------------
# Maintenance
# ----------------------------------------------------------------------

@router.post("/categories/migrate", dependencies=[Depends(verify_admin)])
async def api_categories_migrate(request: Request):
    payload = await _safe_json(request)
    translate = _get_bool(payload, "translate", default=False)
    return await _start_job("migrate_categories", {"translate": translate},
                            lambda: runs.migrate_categories(translate=translate))

@router.post("/categories/cleanup", dependencies=[Depends(verify_admin)])
async def api_categories_cleanup(request: Request):
    payload = await _safe_json(request)
    dry_run = _get_bool(payload, "dry_run", "dryRun", default=False)
    return await _start_job("cleanup_categories", {"dry_run": dry_run},
                            lambda: runs.cleanup_categories(dry_run=dry_run))

@router.post("/variants/images", dependencies=[Depends(verify_admin)])
async def api_variant_images():
    return await _start_job("map_variant_images", {}, runs.map_variant_images)

# ----------------------------------------------------------------------
# Job status + bookkeeping
# ----------------------------------------------------------------------

@router.get("/jobs", dependencies=[Depends(verify_admin)])
async def api_jobs():
    async with _JOBS_LOCK:
        jobs = list(_JOBS.values())
    jobs.sort(key=lambda j: j.get("started") or 0, reverse=True)
    return JSONResponse(content={"jobs": jobs})

@router.get("/jobs/{job_id}", dependencies=[Depends(verify_admin)])
async def api_job_status(job_id: str):
    """Poll a background job (result is present once status == done)."""
    async with _JOBS_LOCK:
        rec = _JOBS.get(job_id)
    if not rec:
        raise HTTPException(status_code=404, detail="job not found")
    return JSONResponse(content=rec)

@router.get("/source-keys", dependencies=[Depends(verify_admin)])
async def api_source_keys(source: str | None = Query(None, description="pos | marketplace")):
    keys = await runs.list_source_keys(source)
    return JSONResponse(content={"count": len(keys), "source_keys": keys})

class SourceKeyUpsert(BaseModel):
    source: str
    source_key: str
    internal_id: str

@router.post("/source-keys", dependencies=[Depends(verify_admin)])
async def api_source_key_upsert(payload: SourceKeyUpsert):
    """Point a source key at an existing storefront product (next import updates it)."""
    if payload.source not in ("pos", "marketplace"):
        raise HTTPException(status_code=400, detail="source must be 'pos' or 'marketplace'")
    await runs.pin_source_key(payload.source, payload.source_key, payload.internal_id)
    return {"ok": True, "entry": payload.model_dump()}

@router.delete("/source-keys/{source}/{source_key}", dependencies=[Depends(verify_admin)])
async def api_source_key_delete(source: str, source_key: str):
    """Forget a source key; the next import inserts the product again."""
    ok = await runs.forget_source_key(source, source_key)
    return {"ok": ok}
