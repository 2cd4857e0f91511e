from typing import Optional, Tuple

import httpx

from screenflow.core.state_machine import AUTHENTICATED
from screenflow.data.generators import RandomDataSource
from screenflow.errors import ConfigurationError, RemoteServiceError
from screenflow.observability.logging import EventLogger
from screenflow.screening.schemas import MagicLinkCheckResponse, SendOtpResponse, SignInResponse, decode
from screenflow.store.models import Applicant, ApplicationState, CredentialPair


class AuthTokenProvider:
    """
    Exchanges a magic-link token for API credentials:
    check link -> send OTP to a fresh phone number -> sign in with the OTP.
    """

    def __init__(
        self,
        base_url: str,
        data_source: RandomDataSource,
        logger: EventLogger,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        timeout_sec: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.data = data_source
        self.log = logger
        self.transport = transport
        self.timeout_sec = timeout_sec

    def authenticate(self, application_token: str) -> Tuple[ApplicationState, CredentialPair]:
        phone = self.data.phone("national")
        otp = self.data.otp()
        self.log.info("auth_requested", token=application_token)

        with httpx.Client(
            base_url=self.base_url,
            transport=self.transport,
            timeout=self.timeout_sec,
            headers={"Content-Type": "application/json"},
        ) as client:
            endpoint = "/screen/magic_links/check"
            resp = client.get(endpoint, params={"token": application_token})
            if not resp.is_success:
                self.log.error("magic_link_check_failed", statusCode=resp.status_code, responseText=resp.text[:500])
                raise RemoteServiceError(
                    f"Failed to check magic link: {resp.status_code} {resp.text}",
                    status=resp.status_code, body=resp.text, endpoint=endpoint,
                )
            try:
                unit_id = decode(MagicLinkCheckResponse, resp, endpoint).magic_link.unit_id
            except RemoteServiceError as e:
                raise ConfigurationError("Invalid magic link response: missing magic_link or unit_id") from e

            endpoint = "/screen/auth/send_otp"
            resp = client.post(endpoint, json={"phone": phone, "unit_id": unit_id, "token": application_token})
            if not resp.is_success or not decode(SendOtpResponse, resp, endpoint).success:
                self.log.error("send_otp_failed", statusCode=resp.status_code, responseText=resp.text[:500])
                raise RemoteServiceError(
                    "Failed to send OTP", status=resp.status_code, body=resp.text, endpoint=endpoint,
                )

            endpoint = "/screen/auth/jwt/sign_in"
            resp = client.post(endpoint, json={"phone": phone, "otp": str(otp)})
            if not resp.is_success:
                raise RemoteServiceError(
                    f"Sign-in failed: {resp.status_code} {resp.text}",
                    status=resp.status_code, body=resp.text, endpoint=endpoint,
                )
            signed_in = decode(SignInResponse, resp, endpoint)

        credentials = CredentialPair(access_token=signed_in.access_token, refresh_token=signed_in.refresh_token)
        validate_credentials(credentials)

        state = ApplicationState(
            unit_id=str(unit_id),
            app_token=application_token,
            stage=AUTHENTICATED,
            applicant=Applicant(phone=phone, otp=otp),
        )
        self.log.info("auth_succeeded", unitId=state.unit_id, access_token=credentials.access_token)
        return state, credentials


def validate_credentials(credentials: CredentialPair) -> None:
    if not credentials.access_token:
        raise ConfigurationError("App info missing bearer_token")
    if not credentials.refresh_token:
        raise ConfigurationError("App info missing refresh_token")
