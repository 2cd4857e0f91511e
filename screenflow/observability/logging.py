import json
import os
import sys
import time
from typing import Callable, Dict, List, Optional

from screenflow.settings import settings

# Fields that carry credentials; redacted before any sink sees them
SENSITIVE_KEYS = {
    "access_token", "refresh_token", "bearer_token", "accessToken",
    "refreshToken", "bearerToken", "otp", "token", "authorization",
}

Observer = Callable[[dict], None]

def _redact_value(v):
    if isinstance(v, str) and len(v) > 0:
        return f"[REDACTED:{len(v)}chars]"
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return "[REDACTED]"
    if isinstance(v, dict):
        return {k: _redact_value(val) for k, val in v.items()}
    return v

def _sink_failed(sink: str, event: str, error: Exception) -> None:
    # Sinks are emit-only; a broken one never fails the caller
    print(
        json.dumps({"ts": int(time.time()), "level": "error", "event": "log_sink_failed",
                    "sink": sink, "droppedEvent": event, "errorType": type(error).__name__,
                    "error": str(error)}),
        file=sys.stderr,
    )

def _redact_fields(fields: dict) -> dict:
    clean = {}
    for k, v in fields.items():
        if k in SENSITIVE_KEYS:
            clean[k] = _redact_value(v)
        elif isinstance(v, dict):
            clean[k] = _redact_fields(v)
        else:
            clean[k] = v
    return clean


class LogHub:
    """
    Fan-out point for structured log entries.

    One hub is created per run and handed to every component; each component
    asks it for a named EventLogger. Entries go to stdout as JSON lines, to
    <log_dir>/<logger>.log, and to any subscribed observers (SSE streams,
    Redis run log).
    """

    def __init__(self, log_dir: Optional[str] = None, stdout: Optional[bool] = None,
                 redact: Optional[bool] = None):
        self.log_dir = log_dir
        self.stdout = settings.LOG_TO_STDOUT if stdout is None else stdout
        self.redact = settings.ENABLE_SECRET_REDACTION if redact is None else redact
        self._observers: List[Observer] = []
        self._loggers: Dict[str, "EventLogger"] = {}

    def logger(self, name: str) -> "EventLogger":
        if name not in self._loggers:
            self._loggers[name] = EventLogger(name, self)
        return self._loggers[name]

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def _unsubscribe():
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def emit(self, level: str, name: str, event: str, fields: dict) -> dict:
        payload = {"ts": int(time.time()), "level": level, "logger": name, "event": event}
        payload.update(_redact_fields(fields) if self.redact else fields)

        line = json.dumps(payload, ensure_ascii=False, default=str)
        if self.stdout:
            print(line)
        if self.log_dir:
            try:
                os.makedirs(self.log_dir, exist_ok=True)
                with open(os.path.join(self.log_dir, f"{name}.log"), "a", encoding="utf-8") as f:
                    f.write(line + "\n")
            except OSError as e:
                _sink_failed("file", event, e)
        for observer in list(self._observers):
            try:
                observer(payload)
            except Exception as e:
                _sink_failed(getattr(observer, "__name__", type(observer).__name__), event, e)
        return payload


class EventLogger:
    def __init__(self, name: str, hub: LogHub):
        self.name = name
        self.hub = hub

    def info(self, event: str, **fields) -> dict:
        return self.hub.emit("info", self.name, event, fields)

    def warning(self, event: str, **fields) -> dict:
        return self.hub.emit("warning", self.name, event, fields)

    def error(self, event: str, **fields) -> dict:
        return self.hub.emit("error", self.name, event, fields)


def clear_log_files(log_dir: str, logger: Optional[EventLogger] = None) -> int:
    """
    Delete *.log files left by a previous run. Best-effort: failures are
    logged as a warning and the run continues.
    """
    if not os.path.isdir(log_dir):
        return 0
    removed = 0
    try:
        for name in os.listdir(log_dir):
            if name.endswith(".log"):
                os.remove(os.path.join(log_dir, name))
                removed += 1
    except OSError as e:
        if logger is not None:
            logger.warning("log_clear_failed", logDir=log_dir, error=str(e))
    return removed
