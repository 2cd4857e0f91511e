import time
from typing import Any, Callable, Dict, Optional

import httpx

from screenflow.errors import AuthorizationError, RemoteServiceError
from screenflow.observability.logging import EventLogger
from screenflow.screening.schemas import (
    ApplicationDetailsResponse,
    ApplicationSummary,
    AssetResponse,
    CreatedResource,
    DocumentsResponse,
    EnrollResponse,
    MagicLinksResponse,
    PresignResponse,
    RefreshResponse,
    VerificationDetailsResponse,
    decode,
)
from screenflow.settings import settings
from screenflow.store.models import CredentialPair
from screenflow.utils.retry import RetryOptions, with_retry

UNAUTHORIZED = 401


def _sec(ms: int) -> float:
    return float(ms) / 1000.0


class ScreeningClient:
    """
    Authenticated client for the screening API.

    Every call carries the current bearer token. A 401 triggers exactly one
    token refresh followed by one reissue of the same call; a second 401 is
    fatal. Any other 4xx/5xx raises RemoteServiceError with status and body.
    The credential pair is owned here and only changed by a refresh.
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialPair,
        logger: EventLogger,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        retry_options: Optional[RetryOptions] = None,
        request_timeout_ms: Optional[int] = None,
        long_request_timeout_ms: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.log = logger
        self.retry_options = retry_options
        self.request_timeout_ms = int(request_timeout_ms or settings.API_REQUEST_TIMEOUT_MS)
        self.long_request_timeout_ms = int(long_request_timeout_ms or settings.API_LONG_REQUEST_TIMEOUT_MS)
        self._sleep = sleep
        self._http = httpx.Client(
            base_url=self.base_url,
            transport=transport,
            timeout=_sec(self.request_timeout_ms),
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ------------------------------------------------------------------
    # Core request path
    # ------------------------------------------------------------------

    def _send(self, method: str, endpoint: str, **options: Any) -> httpx.Response:
        headers = dict(options.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {self.credentials.access_token}"
        return self._http.request(method.upper(), endpoint, headers=headers, **options)

    def _refresh_tokens(self) -> None:
        resp = self._send("post", "/auth/refresh", json={"refreshToken": self.credentials.refresh_token})
        if not resp.is_success:
            raise AuthorizationError(f"Failed to refresh tokens: {resp.status_code} {resp.text}")
        data = decode(RefreshResponse, resp, "/auth/refresh")
        self.credentials.access_token = data.bearer_token
        self.credentials.refresh_token = data.refresh_token
        self.log.info("tokens_refreshed")

    def _check(self, method: str, endpoint: str, resp: httpx.Response) -> httpx.Response:
        if 400 <= resp.status_code < 600:
            raise RemoteServiceError(
                f"Request failed with status {resp.status_code} for {method.upper()} {endpoint}\n{resp.text}",
                status=resp.status_code,
                body=resp.text or "",
                endpoint=endpoint,
            )
        return resp

    def _execute(self, method: str, endpoint: str, **options: Any) -> httpx.Response:
        resp = self._send(method, endpoint, **dict(options))
        if resp.status_code != UNAUTHORIZED:
            return self._check(method, endpoint, resp)

        self.log.warning("auth_unauthorized_refreshing", method=method.upper(), endpoint=endpoint)
        self._refresh_tokens()

        resp = self._send(method, endpoint, **dict(options))
        if resp.status_code == UNAUTHORIZED:
            self.log.error("auth_unauthorized_after_refresh", method=method.upper(), endpoint=endpoint)
            raise AuthorizationError(
                f"Request to {method.upper()} {endpoint} failed with 401 Unauthorized even after token refresh."
            )
        return self._check(method, endpoint, resp)

    def get(self, endpoint: str, **options: Any) -> httpx.Response:
        return self._execute("get", endpoint, **options)

    def post(self, endpoint: str, **options: Any) -> httpx.Response:
        return self._execute("post", endpoint, **options)

    def put(self, endpoint: str, **options: Any) -> httpx.Response:
        return self._execute("put", endpoint, **options)

    def patch(self, endpoint: str, **options: Any) -> httpx.Response:
        return self._execute("patch", endpoint, **options)

    def delete(self, endpoint: str, **options: Any) -> httpx.Response:
        return self._execute("delete", endpoint, **options)

    # ------------------------------------------------------------------
    # Application lifecycle
    # ------------------------------------------------------------------

    def get_application_details(self, application_id: str) -> Dict[str, Any]:
        """Full remote view of the application (used for snapshots)."""
        endpoint = f"/screen/applications/{application_id}"
        resp = self.get(endpoint, timeout=_sec(self.request_timeout_ms))
        decode(ApplicationDetailsResponse, resp, endpoint)
        return resp.json()

    def get_application_summary(self, application_id: str) -> ApplicationSummary:
        endpoint = f"/screen/applications/{application_id}"
        resp = self.get(endpoint, timeout=_sec(self.request_timeout_ms))
        return decode(ApplicationDetailsResponse, resp, endpoint).application

    def patch_application(self, application_id: str, payload: Dict[str, Any]) -> httpx.Response:
        return self.patch(
            f"/screen/applications/{application_id}",
            json=payload,
            timeout=_sec(self.request_timeout_ms),
        )

    def submit_desired_move_in_date(self, application_id: str, payload: Dict[str, Any]) -> httpx.Response:
        return self.patch_application(application_id, payload)

    def enroll_with_magic_link(self, payload: Dict[str, Any]) -> EnrollResponse:
        endpoint = "/screen/applications/enroll_with_magic_link"
        resp = self.post(endpoint, json=payload, timeout=_sec(self.long_request_timeout_ms))
        return decode(EnrollResponse, resp, endpoint)

    def start_application(self, application_id: str) -> Dict[str, Any]:
        resp = self.post(
            f"/screen/applications/{application_id}/start_application",
            timeout=_sec(self.request_timeout_ms),
        )
        return resp.json()

    def pass_invite_flow(self, applicant_id: str) -> Dict[str, Any]:
        resp = self.patch(
            f"/screen/applicants/{applicant_id}/pass_invite_flow",
            timeout=_sec(self.request_timeout_ms),
        )
        return resp.json()

    def submit_application(self, application_id: str, payload: Dict[str, Any]) -> httpx.Response:
        return self.post(
            f"/screen/applications/{application_id}/submit_application",
            json=payload,
            timeout=30.0,
        )

    # ------------------------------------------------------------------
    # Verifications
    # ------------------------------------------------------------------

    def get_verification_details(self, application_id: str, verification_id: str) -> VerificationDetailsResponse:
        endpoint = f"/screen/applications/{application_id}/verifications/{verification_id}"
        resp = self.get(endpoint, timeout=_sec(self.request_timeout_ms))
        return decode(VerificationDetailsResponse, resp, endpoint)

    def provide_verification_step(
        self,
        application_id: str,
        verification_id: str,
        step_name: str,
        payload: Dict[str, Any],
        timeout_ms: int = 40000,
    ) -> httpx.Response:
        return self.patch(
            f"/screen/applications/{application_id}/verifications/{verification_id}/steps/{step_name}",
            json=payload,
            timeout=_sec(timeout_ms),
        )

    def post_income_verification(
        self,
        application_id: str,
        verification_id: str,
        step_name: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        options: Dict[str, Any] = {"timeout": _sec(self.request_timeout_ms)}
        if payload is not None:
            options["json"] = payload
        return self.post(
            f"/screen/applications/{application_id}/verifications/{verification_id}/{step_name}",
            **options,
        )

    def create_income_resource(
        self, application_id: str, verification_id: str, step_name: str, payload: Dict[str, Any]
    ) -> CreatedResource:
        endpoint = f"/screen/applications/{application_id}/verifications/{verification_id}/{step_name}"
        resp = self.post_income_verification(application_id, verification_id, step_name, payload)
        return decode(CreatedResource, resp, endpoint)

    def create_test_identity_verification(self, payload: Dict[str, Any]) -> httpx.Response:
        return self.post(
            "/screen/plaid/create_test_identity_verification",
            json=payload,
            timeout=30.0,
        )

    # ------------------------------------------------------------------
    # Invitations
    # ------------------------------------------------------------------

    def invite_applicant(self, payload: Dict[str, Any]) -> httpx.Response:
        return self.post("/screen/applicants/invite", json=payload, timeout=_sec(self.request_timeout_ms))

    def get_magic_links(self, application_id: str) -> MagicLinksResponse:
        endpoint = f"/screen/applications/{application_id}/magic_links"
        resp = self.get(endpoint, timeout=_sec(self.request_timeout_ms))
        return decode(MagicLinksResponse, resp, endpoint)

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def get_presigned_url(self, filename: str, content_type: str) -> PresignResponse:
        endpoint = "/screen/assets/presign"
        resp = self.get(
            endpoint,
            params={"filename": filename, "type": content_type},
            timeout=30.0,
        )
        return decode(PresignResponse, resp, endpoint)

    def upload_documents_to_income_source(
        self,
        application_id: str,
        verification_id: str,
        income_source_id: str,
        payload: Dict[str, Any],
    ) -> DocumentsResponse:
        endpoint = (
            f"/screen/applications/{application_id}/verifications/{verification_id}"
            f"/income_sources/{income_source_id}/bulk_create_documents"
        )

        def _register():
            self.log.info("documents_register", incomeSourceId=income_source_id)
            return self.post(endpoint, json=payload, timeout=30.0)

        resp = with_retry(_register, self._asset_retry_options("documents"), logger=self.log, sleep=self._sleep)
        return decode(DocumentsResponse, resp, endpoint)

    def create_asset(self, application_id: str, payload: Dict[str, Any]) -> AssetResponse:
        """Register an uploaded file as an asset of the application. Retried on transient failures."""
        endpoint = "/screen/assets"
        body = dict(payload)
        body["application_id"] = application_id

        def _create():
            self.log.info("asset_create")
            return self.post(endpoint, json=body, timeout=_sec(self.long_request_timeout_ms))

        resp = with_retry(_create, self._asset_retry_options("asset"), logger=self.log, sleep=self._sleep)
        return decode(AssetResponse, resp, endpoint)

    def _asset_retry_options(self, kind: str) -> RetryOptions:
        base = self.retry_options or RetryOptions()
        return RetryOptions(
            max_attempts=base.max_attempts,
            backoff_base_ms=base.backoff_base_ms,
            backoff_max_ms=base.backoff_max_ms,
            retryable_errors=list(base.retryable_errors),
            on_retry=lambda attempt, err: self.log.info(f"{kind}_register_retry", attempt=attempt),
            never_retry=base.never_retry,
        )
