from typing import Any, Dict, Optional

from screenflow.core import runner
from screenflow.core.run_config import RunOptions
from screenflow.observability import metrics
from screenflow.observability.logging import LogHub
from screenflow.store.run_log import RUN_COMPLETE_EVENT, RedisRunLog
from screenflow.utils.lock import release_run_lock
from screenflow.utils.time import now_ms


def run_onboarding_job(run_id: str, magic_link: str, overrides: Optional[Dict[str, Any]] = None):
    """
    Worker entry point for POST /api/run. The API took the run lock under
    `run_id`; this job always gives it back, whatever the outcome.
    """
    started = now_ms()
    hub = None
    log = None
    ok = False
    try:
        options = RunOptions.from_settings(overrides)
        hub = LogHub(log_dir=options.log_dir)
        hub.subscribe(RedisRunLog(run_id))
        log = hub.logger("run-job")
        log.info("run_job_start", runId=run_id)
        _safe_metric(log, metrics.increment_run_started)

        state = runner.run(magic_link, options, hub)
        ok = True
        return {"runId": run_id, "applicationId": state.id, "stage": state.stage}
    except Exception as e:
        if log is None:
            hub = LogHub()
            hub.subscribe(RedisRunLog(run_id))
            log = hub.logger("run-job")
        log.error("run_failed", runId=run_id, errorType=type(e).__name__, error=str(e))
        _safe_metric(log, metrics.increment_run_failed)
        raise
    finally:
        duration = now_ms() - started
        try:
            if ok:
                _safe_metric(log, metrics.increment_run_succeeded)
            _safe_metric(log, metrics.record_run_duration, duration)
            if log is not None:
                log.info(RUN_COMPLETE_EVENT, runId=run_id, success=ok, durationMs=duration)
        finally:
            release_run_lock(run_id)


def _safe_metric(log, call, *args) -> None:
    try:
        call(*args)
    except Exception as e:
        if log is not None:
            log.warning("run_metrics_failed", metric=getattr(call, "__name__", str(call)),
                        errorType=type(e).__name__, error=str(e))
