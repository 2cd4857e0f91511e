import asyncio
import json
import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from screenflow.api.auth import require_api_key
from screenflow.api.schemas import RunRequest, RunStarted, RunStatus
from screenflow.core.run_config import RunOptions
from screenflow.errors import ConfigurationError, RunAlreadyActiveError
from screenflow.observability.metrics import get_run_stats
from screenflow.queue.jobs import run_onboarding_job
from screenflow.store.redis_conn import get_queue
from screenflow.settings import settings
from screenflow.store.run_log import is_complete, read_entries
from screenflow.utils.lock import acquire_run_lock, current_run_id, release_run_lock

router = APIRouter(prefix="/api")

SSE_POLL_INTERVAL_SEC = 1.0
STREAM_END_EVENT = "log_stream_end"


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def _sse(entry: dict) -> str:
    return f"data: {json.dumps(entry, ensure_ascii=False, default=str)}\n\n"


@router.get("/config", dependencies=[Depends(require_api_key)])
def get_config():
    """Defaults a run starts from before any overrides."""
    return RunOptions.from_settings().public_dict()


@router.get("/status", response_model=RunStatus, dependencies=[Depends(require_api_key)])
def get_status():
    run_id = current_run_id()
    return RunStatus(running=bool(run_id), runId=run_id, stats=get_run_stats())


@router.post("/run", dependencies=[Depends(require_api_key)])
def start_run(payload: Any = Body(None)):
    if not isinstance(payload, dict):
        payload = {}
    try:
        req = RunRequest.model_validate(payload)
    except ValidationError as e:
        return _error(400, f"Invalid request: {e.errors()[0].get('msg', 'bad payload')}")
    if not req.magicLink or not req.magicLink.strip():
        return _error(400, "magicLink is required")

    # Reject bad overrides here rather than inside the worker
    try:
        RunOptions.from_settings(req.overrides)
    except ConfigurationError as e:
        return _error(400, str(e))

    run_id = uuid.uuid4().hex
    try:
        acquire_run_lock(run_id)
    except RunAlreadyActiveError as e:
        return _error(409, "A run is already in progress", runId=e.run_id)

    try:
        get_queue().enqueue(
            run_onboarding_job,
            run_id,
            req.magicLink.strip(),
            req.overrides,
            job_id=f"run-{run_id}",
            job_timeout=settings.RQ_JOB_TIMEOUT_SEC,
        )
    except Exception:
        release_run_lock(run_id)
        raise
    return RunStarted(runId=run_id)


@router.get("/logs/{run_id}", dependencies=[Depends(require_api_key)])
async def stream_logs(run_id: str):
    """
    Replay the run's log so far, then tail it until the run_complete entry.
    The stream also ends once the run no longer holds the run lock and no
    new entries arrive (unknown id, or a worker killed before cleanup).
    """

    async def agen():
        cursor = 0
        while True:
            entries = await run_in_threadpool(read_entries, run_id, cursor)
            cursor += len(entries)
            for entry in entries:
                yield _sse(entry)
                if is_complete(entry):
                    return
            if not entries and await run_in_threadpool(current_run_id) != run_id:
                # entries written between the read and the lock check
                for entry in await run_in_threadpool(read_entries, run_id, cursor):
                    yield _sse(entry)
                    if is_complete(entry):
                        return
                yield _sse({"event": STREAM_END_EVENT, "runId": run_id, "reason": "run_not_active"})
                return
            await asyncio.sleep(SSE_POLL_INTERVAL_SEC)

    return StreamingResponse(agen(), media_type="text/event-stream",
                             headers={"Cache-Control": "no-cache"})
