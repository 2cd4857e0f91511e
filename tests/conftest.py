import json
import random
import re

import httpx
import pytest

from screenflow.data.generators import RandomDataSource
from screenflow.observability.logging import LogHub

APP_ID = "app-1"
APPLICANT_ID = "applicant-1"
IDV_ID = "v-identity"

ENROLL_VERIFICATIONS = [
    {"name": "rental_application_personal", "id": 11},
    {"name": "housing_history", "id": 12},
    {"name": "identity", "id": IDV_ID},
    {"name": "combined_income", "id": 14},
    {"name": "submission_disclosure", "id": 15},
]


class FakeScreeningApi:
    """
    In-memory stand-in for the screening API and the storage bucket,
    served through httpx.MockTransport. Records every request it sees.
    """

    def __init__(self):
        self.requests = []
        self.uploads = []
        self.invited = []
        self.idv_statuses = ["pending", "verified"]
        self.summary = {"has_multiple_applicants": False, "has_multiple_guarantors": False}
        self.overrides = {}

    # (method, path regex) -> (status, body)
    def respond(self, method: str, pattern: str, status: int, body=None):
        self.overrides[(method, pattern)] = (status, body)

    def count(self, method: str, pattern: str) -> int:
        return sum(1 for m, p, _ in self.requests if m == method and re.fullmatch(pattern, p))

    def bodies(self, method: str, pattern: str):
        return [b for m, p, b in self.requests if m == method and re.fullmatch(pattern, p)]

    def _body(self, request: httpx.Request):
        if not request.content:
            return None
        try:
            return json.loads(request.content)
        except ValueError:
            return None

    def api_handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        body = self._body(request)
        self.requests.append((method, path, body))

        for (m, pattern), (status, payload) in self.overrides.items():
            if m == method and re.fullmatch(pattern, path):
                return httpx.Response(status, json=payload)

        if method == "GET" and path == "/screen/magic_links/check":
            return httpx.Response(200, json={"magic_link": {"unit_id": 42}})
        if method == "POST" and path == "/screen/auth/send_otp":
            return httpx.Response(200, json={"success": True})
        if method == "POST" and path == "/screen/auth/jwt/sign_in":
            return httpx.Response(200, json={"access_token": "access-1", "refresh_token": "refresh-1"})
        if method == "POST" and path == "/screen/applications/enroll_with_magic_link":
            return httpx.Response(200, json={"application": {
                "id": APP_ID,
                "current_applicant": {"id": APPLICANT_ID, "verifications": ENROLL_VERIFICATIONS},
            }})
        if method == "POST" and path == f"/screen/applications/{APP_ID}/start_application":
            return httpx.Response(200, json={"application": {"id": APP_ID, "status": "started"}})
        if method == "PATCH" and path == f"/screen/applicants/{APPLICANT_ID}/pass_invite_flow":
            return httpx.Response(200, json={"applicant": {"id": APPLICANT_ID}})
        if method == "POST" and path == "/screen/plaid/create_test_identity_verification":
            return httpx.Response(200, json={})
        if method == "PATCH" and "/steps/" in path:
            return httpx.Response(200, json={})
        if method == "POST" and path.endswith("/income"):
            return httpx.Response(200, json={"id": 7})
        if method == "POST" and path.endswith("/income_sources"):
            return httpx.Response(200, json={"id": 8})
        if method == "POST" and path.endswith("/bulk_create_documents"):
            return httpx.Response(200, json={"assets": {"items": [{"global_id": "doc-1"}]}})
        if method == "POST" and path.endswith("/finish"):
            return httpx.Response(200, json={})
        if method == "GET" and path == "/screen/assets/presign":
            name = request.url.params.get("filename")
            return httpx.Response(200, json={"url": f"https://storage.test/uploads/{name}"})
        if method == "POST" and path == "/screen/assets":
            return httpx.Response(200, json={"asset": {"global_id": "sig-1"}})
        if method == "GET" and path == f"/screen/applications/{APP_ID}/verifications/{IDV_ID}":
            status = self.idv_statuses.pop(0) if len(self.idv_statuses) > 1 else self.idv_statuses[0]
            return httpx.Response(200, json={"verification": {"status": status}})
        if method == "POST" and path == "/screen/applicants/invite":
            self.invited.append(body)
            return httpx.Response(200, json={})
        if method == "GET" and path == f"/screen/applications/{APP_ID}/magic_links":
            return httpx.Response(200, json={"magic_links": [
                {"email": inv["email"], "application_link": f"https://screen.test/a/invite-{i}"}
                for i, inv in enumerate(self.invited)
            ]})
        if method == "PATCH" and path == f"/screen/applications/{APP_ID}":
            self.summary.update(body or {})
            return httpx.Response(200, json={})
        if method == "GET" and path == f"/screen/applications/{APP_ID}":
            return httpx.Response(200, json={"application": {
                "id": APP_ID,
                "status": "started",
                "application_status": "finished",
                "applicants": [{"id": APPLICANT_ID, "status": "started"}],
                **self.summary,
            }})
        if method == "POST" and path == f"/screen/applications/{APP_ID}/submit_application":
            return httpx.Response(200, json={"application": {"id": APP_ID, "status": "submitted"}})
        if method == "POST" and path == "/auth/refresh":
            return httpx.Response(200, json={"bearerToken": "access-2", "refreshToken": "refresh-2"})
        return httpx.Response(404, json={"error": f"no route for {method} {path}"})

    def storage_handler(self, request: httpx.Request) -> httpx.Response:
        self.uploads.append((request.url.path, request.headers.get("content-type"), len(request.content)))
        return httpx.Response(200)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.api_handler)

    @property
    def storage_transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.storage_handler)


@pytest.fixture
def fake_api():
    return FakeScreeningApi()


@pytest.fixture
def hub():
    return LogHub(stdout=False, redact=True)


@pytest.fixture
def log_entries(hub):
    entries = []
    hub.subscribe(entries.append)
    return entries


@pytest.fixture
def data_source():
    return RandomDataSource(rng=random.Random(1234), email_domain="example.test")
