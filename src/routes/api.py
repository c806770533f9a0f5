"""
FNF Chart Info - JSON API Routes

Provides the REST endpoints around the chart session:
- Chart upload (one chart, a chart + metadata/event file, or a metadata
  file for the chart already loaded)
- Score multiplier and key count updates (recomputed from the cached chart)
- Current session inspection and reset
- Health check

The router holds the current :class:`Session`.  Each request computes a new
session from it and swaps it in on success; concurrent uploads are
last-writer-wins.
"""

import asyncio
import time
from typing import Any, Dict, List

from fastapi import APIRouter, File, HTTPException, UploadFile
from loguru import logger
from pydantic import BaseModel

from src.config import (
    ALLOWED_CONTENT_TYPES,
    APP_VERSION,
    MAX_FILE_SIZE_BYTES,
    MAX_FILE_SIZE_MB,
    MAX_UPLOAD_FILES,
)
from src.services.chart_render import (
    build_display_model,
    render_text,
    render_wiki_template,
)
from src.services.chart_session import (
    Session,
    SessionUpdate,
    load_files,
    reset_session,
    summarize,
    update_key_count,
    update_multiplier,
)
from src.services.errors import ChartInfoError, InvalidFileCount, MalformedInput
from src.utils import decode_json_text

router = APIRouter(prefix="/api", tags=["API"])

# Track startup time for health check
_START_TIME = time.time()
# The one live session (single-user tool, last writer wins)
_session: Session = reset_session()


def get_session() -> Session:
    return _session


def set_session(session: Session) -> None:
    global _session
    _session = session


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------
class MultiplierUpdate(BaseModel):
    value: Any


class KeyCountUpdate(BaseModel):
    value: Any


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _error(exc: ChartInfoError, status_code: int = 400) -> HTTPException:
    logger.warning("⚠️ {}", exc)
    return HTTPException(status_code=status_code, detail=exc.to_dict())


def _payload(update: SessionUpdate) -> Dict[str, Any]:
    """Serialise a session update for the client."""
    result: Dict[str, Any] = {
        "message": update.message,
        "session": update.session.to_dict(),
        "summary": None,
        "display": None,
        "text": None,
        "wiki": None,
    }
    if update.summary is not None:
        model = build_display_model(update.summary)
        result["summary"] = update.summary.to_dict()
        result["display"] = model.to_dict()
        result["text"] = render_text(model)
        result["wiki"] = render_wiki_template(update.summary)
    return result


async def _read_json_upload(upload: UploadFile) -> tuple[str, Any]:
    """Read and decode one uploaded file."""
    name = upload.filename or "<unnamed>"
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise MalformedInput(f"Invalid file type for {name}", filename=name)

    raw = await upload.read()
    if len(raw) > MAX_FILE_SIZE_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"{name} is larger than the {MAX_FILE_SIZE_MB} MB limit",
        )
    return name, decode_json_text(raw, name)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@router.get("/health")
async def health_check():
    """Health check endpoint for the service."""
    return {
        "status": "ok",
        "uptime_seconds": round(time.time() - _START_TIME, 2),
        "version": APP_VERSION,
    }


# ---------------------------------------------------------------------------
# Charts
# ---------------------------------------------------------------------------
@router.post("/charts")
async def api_upload_charts(files: List[UploadFile] = File(...)):
    """
    Upload one or two JSON files.

    Both files of a pair are read concurrently; if either one fails to read
    or decode, the whole batch is rejected before anything is classified.
    """
    if not 1 <= len(files) <= MAX_UPLOAD_FILES:
        raise _error(InvalidFileCount("Please upload one or two valid JSON files."))

    try:
        decoded = await asyncio.gather(*(_read_json_upload(f) for f in files))
    except ChartInfoError as e:
        raise _error(e)

    logger.info("📥 Received {}", ", ".join(name for name, _ in decoded))

    try:
        update = load_files(get_session(), list(decoded))
    except ChartInfoError as e:
        raise _error(e)

    set_session(update.session)
    return _payload(update)


@router.put("/multiplier")
async def api_update_multiplier(body: MultiplierUpdate):
    """Change the score multiplier and recompute from the cached chart."""
    try:
        update = update_multiplier(get_session(), body.value)
    except ChartInfoError as e:
        raise _error(e)

    set_session(update.session)
    return _payload(update)


@router.put("/keys")
async def api_update_key_count(body: KeyCountUpdate):
    """Switch between 4-key and 8-key lane counting."""
    try:
        update = update_key_count(get_session(), body.value)
    except ChartInfoError as e:
        raise _error(e)

    set_session(update.session)
    return _payload(update)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------
@router.get("/session")
async def api_get_session():
    """Current session state, with the recomputed summary if a chart is loaded."""
    session = get_session()
    try:
        summary = summarize(session)
    except ChartInfoError as e:
        raise _error(e)
    return _payload(SessionUpdate(session, summary, session.state.value))


@router.delete("/session")
async def api_reset_session():
    """Forget the loaded chart and metadata."""
    session = reset_session(get_session().key_count)
    set_session(session)
    logger.info("🧹 Session reset")
    return _payload(SessionUpdate(session, None, "Session reset."))
