import httpx
import pytest

from screenflow.errors import AuthorizationError, RemoteServiceError
from screenflow.screening.client import ScreeningClient
from screenflow.store.models import CredentialPair
from screenflow.utils.retry import RetryOptions


def _client(handler, hub, **kw):
    return ScreeningClient(
        "https://api.test",
        CredentialPair(access_token="old-access", refresh_token="old-refresh"),
        hub.logger("api-client"),
        transport=httpx.MockTransport(handler),
        sleep=lambda s: None,
        **kw,
    )


def test_bearer_token_is_sent(hub):
    seen = []

    def handler(request):
        seen.append(request.headers.get("authorization"))
        return httpx.Response(200, json={"ok": True})

    client = _client(handler, hub)
    assert client.get("/screen/anything").json() == {"ok": True}
    assert seen == ["Bearer old-access"]


def test_401_refreshes_once_and_reissues(hub, log_entries):
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path, request.headers.get("authorization")))
        if request.url.path == "/auth/refresh":
            return httpx.Response(200, json={"bearerToken": "new-access", "refreshToken": "new-refresh"})
        if request.headers.get("authorization") == "Bearer old-access":
            return httpx.Response(401, json={"error": "expired"})
        return httpx.Response(200, json={"data": 1})

    client = _client(handler, hub)
    resp = client.post("/screen/things", json={"a": 1})

    assert resp.json() == {"data": 1}
    assert [c[1] for c in calls] == ["/screen/things", "/auth/refresh", "/screen/things"]
    assert calls[-1][2] == "Bearer new-access"
    assert client.credentials.access_token == "new-access"
    assert client.credentials.refresh_token == "new-refresh"
    assert any(e["event"] == "tokens_refreshed" for e in log_entries)


def test_refresh_accepts_snake_case_tokens(hub):
    def handler(request):
        if request.url.path == "/auth/refresh":
            return httpx.Response(200, json={"access_token": "a2", "refresh_token": "r2"})
        if request.headers.get("authorization") == "Bearer old-access":
            return httpx.Response(401)
        return httpx.Response(200, json={})

    client = _client(handler, hub)
    client.get("/screen/x")
    assert client.credentials.access_token == "a2"


def test_second_401_is_fatal_without_another_refresh(hub, log_entries):
    paths = []

    def handler(request):
        paths.append(request.url.path)
        if request.url.path == "/auth/refresh":
            return httpx.Response(200, json={"bearerToken": "new-access", "refreshToken": "new-refresh"})
        return httpx.Response(401)

    client = _client(handler, hub)
    with pytest.raises(AuthorizationError) as exc:
        client.get("/screen/applications/1")

    assert "even after token refresh" in str(exc.value)
    assert "GET /screen/applications/1" in str(exc.value)
    assert paths.count("/auth/refresh") == 1
    assert paths.count("/screen/applications/1") == 2
    assert any(e["event"] == "auth_unauthorized_after_refresh" and e["level"] == "error" for e in log_entries)


def test_failed_refresh_raises_authorization_error(hub):
    def handler(request):
        if request.url.path == "/auth/refresh":
            return httpx.Response(400, text="invalid refresh token")
        return httpx.Response(401)

    client = _client(handler, hub)
    with pytest.raises(AuthorizationError, match="Failed to refresh tokens"):
        client.get("/screen/x")


def test_error_status_raises_remote_service_error(hub):
    def handler(request):
        return httpx.Response(422, text='{"error":"invalid step"}')

    client = _client(handler, hub)
    with pytest.raises(RemoteServiceError) as exc:
        client.patch("/screen/applications/1/verifications/2/steps/pets", json={})

    err = exc.value
    assert err.status == 422
    assert err.endpoint == "/screen/applications/1/verifications/2/steps/pets"
    assert "invalid step" in err.body
    assert str(err).startswith("Request failed with status 422 for PATCH /screen/applications/1/verifications/2/steps/pets")


def test_reissued_call_is_status_checked(hub):
    def handler(request):
        if request.url.path == "/auth/refresh":
            return httpx.Response(200, json={"bearerToken": "n", "refreshToken": "r"})
        if request.headers.get("authorization") == "Bearer old-access":
            return httpx.Response(401)
        return httpx.Response(500, text="boom")

    client = _client(handler, hub)
    with pytest.raises(RemoteServiceError) as exc:
        client.get("/screen/x")
    assert exc.value.status == 500


def test_schema_mismatch_is_remote_service_error(hub):
    def handler(request):
        return httpx.Response(200, json={"unexpected": True})

    client = _client(handler, hub)
    with pytest.raises(RemoteServiceError, match="Unexpected response"):
        client.enroll_with_magic_link({"magic_link_token": "t"})


def test_create_asset_retries_transient_failures(hub, log_entries):
    attempts = []

    def handler(request):
        attempts.append(request.url.path)
        if len(attempts) < 3:
            raise httpx.ConnectError("Connection reset by peer")
        return httpx.Response(200, json={"asset": {"global_id": "g-1"}})

    client = _client(handler, hub, retry_options=RetryOptions(max_attempts=3, backoff_base_ms=1, backoff_max_ms=2))
    asset = client.create_asset("app-1", {"url": "https://storage.test/x"})

    assert asset.asset.global_id == "g-1"
    assert len(attempts) == 3
    assert sum(1 for e in log_entries if e["event"] == "asset_register_retry") == 2


def test_create_asset_does_not_retry_remote_errors(hub):
    attempts = []

    def handler(request):
        attempts.append(1)
        return httpx.Response(504, text="Gateway timeout")

    client = _client(handler, hub, retry_options=RetryOptions(max_attempts=3, backoff_base_ms=1, backoff_max_ms=2))
    with pytest.raises(RemoteServiceError):
        client.create_asset("app-1", {"url": "u"})
    assert len(attempts) == 1


def test_presign_sends_filename_and_type(hub):
    seen = {}

    def handler(request):
        seen.update(dict(request.url.params))
        return httpx.Response(200, json={"url": "https://storage.test/put"})

    client = _client(handler, hub)
    presign = client.get_presigned_url("Paystub.pdf", "application/pdf")
    assert presign.url == "https://storage.test/put"
    assert seen == {"filename": "Paystub.pdf", "type": "application/pdf"}
