"""
Error taxonomy for onboarding runs.

Configuration, authorization and remote business errors are fatal. Transient
network failures surface as the transport's own exceptions (httpx) and are
retried by message in `screenflow.utils.retry`.
"""
from typing import Optional


class ScreenflowError(Exception):
    """Base class for onboarding errors"""
    pass


class ConfigurationError(ScreenflowError):
    """Missing environment, credentials or verification category"""
    pass


class AuthorizationError(ScreenflowError):
    """Credentials rejected even after a refresh, or the refresh itself failed"""
    pass


class RemoteServiceError(ScreenflowError):
    """Non-401 4xx/5xx from the screening API, or a body that fails its schema"""

    def __init__(self, message: str, status: Optional[int] = None, body: str = "", endpoint: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body
        self.endpoint = endpoint


class UploadError(ScreenflowError):
    """Direct transfer to a presigned upload target failed"""
    pass


class WorkflowStateError(ScreenflowError):
    """Illegal stage transition"""
    pass


class RunAlreadyActiveError(ScreenflowError):
    """Another onboarding run holds the run lock"""

    def __init__(self, run_id: Optional[str] = None):
        msg = "A run is already in progress"
        if run_id:
            msg = f"{msg} (runId={run_id})"
        super().__init__(msg)
        self.run_id = run_id


class WaitTimeoutError(ScreenflowError, TimeoutError):
    def __init__(self, timeout_ms: int):
        super().__init__(f"Timeout of {timeout_ms}ms exceeded while waiting for condition")
        self.timeout_ms = timeout_ms
