"""
One onboarding run, end to end: magic link in, submitted application out.

Shared by the CLI and the RQ worker job. Every run builds its own
RunOptions, LogHub, credentials and client; nothing leaks between runs.
"""
import time
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlsplit

import httpx

from screenflow.core.run_config import RunOptions
from screenflow.core.workflow import WorkflowSequencer
from screenflow.data.generators import RandomDataSource
from screenflow.errors import ConfigurationError
from screenflow.observability.logging import LogHub, clear_log_files
from screenflow.screening.auth import AuthTokenProvider, validate_credentials
from screenflow.screening.client import ScreeningClient
from screenflow.store.models import ApplicationState
from screenflow.store.snapshots import SnapshotSink


def extract_base_url(link: str) -> str:
    """https://screen.staging.example.app/a/TOKEN -> https://api.staging.example.app"""
    try:
        parts = urlsplit((link or "").strip())
    except ValueError:
        raise ConfigurationError(f"Invalid magic link URL: {link}") from None
    if not parts.scheme or not parts.hostname:
        raise ConfigurationError(f"Invalid magic link URL: {link}")
    host = parts.hostname
    if host.startswith("screen."):
        host = "api." + host[len("screen."):]
    if parts.port:
        host = f"{host}:{parts.port}"
    return f"{parts.scheme}://{host}"


def extract_application_token(link: str) -> str:
    token = (link or "").rstrip("/").split("/")[-1] if link else ""
    if not token.strip():
        raise ConfigurationError("Application token is required")
    return token.strip()


def run(
    magic_link: str,
    options: Optional[RunOptions] = None,
    hub: Optional[LogHub] = None,
    *,
    overrides: Optional[Dict[str, Any]] = None,
    data_source: Optional[RandomDataSource] = None,
    transport: Optional[httpx.BaseTransport] = None,
    storage_transport: Optional[httpx.BaseTransport] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> ApplicationState:
    options = options or RunOptions.from_settings(overrides)
    hub = hub or LogHub(log_dir=options.log_dir)
    log = hub.logger("application-runner")

    clear_log_files(options.log_dir, log)

    base_url = options.base_url or extract_base_url(magic_link)
    log.info("run_started", baseUrl=base_url, options=options.public_dict())
    token = extract_application_token(magic_link)

    data = data_source or RandomDataSource()
    provider = AuthTokenProvider(
        base_url, data, hub.logger("auth-token-provider"),
        transport=transport,
        timeout_sec=options.timeouts.api_request_ms / 1000.0,
    )
    state, credentials = provider.authenticate(token)
    validate_credentials(credentials)

    snapshots = SnapshotSink(options.snapshot_dir)
    snapshots.write_state(state)

    with ScreeningClient(
        base_url,
        credentials,
        hub.logger("api-client"),
        transport=transport,
        retry_options=options.retry_options(),
        request_timeout_ms=options.timeouts.api_request_ms,
        long_request_timeout_ms=options.timeouts.api_long_request_ms,
        sleep=sleep,
    ) as client:
        sequencer = WorkflowSequencer(
            client, data, snapshots, hub.logger("application-workflow"), options,
            sleep=sleep, clock=clock, storage_transport=storage_transport,
        )
        return sequencer.run(state)
