import pytest

from screenflow.core.state_machine import AUTHENTICATED
from screenflow.errors import ConfigurationError, RemoteServiceError
from screenflow.screening.auth import AuthTokenProvider, validate_credentials
from screenflow.store.models import CredentialPair


def _provider(fake_api, data_source, hub):
    return AuthTokenProvider("https://api.test", data_source, hub.logger("auth"), transport=fake_api.transport)


def test_authenticate_produces_state_and_credentials(fake_api, data_source, hub):
    state, creds = _provider(fake_api, data_source, hub).authenticate("TOKEN123")

    assert creds == CredentialPair(access_token="access-1", refresh_token="refresh-1")
    assert state.stage == AUTHENTICATED
    assert state.unit_id == "42"
    assert state.app_token == "TOKEN123"
    assert state.applicant.phone.startswith("(")

    otp_body = fake_api.bodies("POST", "/screen/auth/send_otp")[0]
    assert otp_body == {"phone": state.applicant.phone, "unit_id": "42", "token": "TOKEN123"}
    sign_in = fake_api.bodies("POST", "/screen/auth/jwt/sign_in")[0]
    assert sign_in == {"phone": state.applicant.phone, "otp": str(state.applicant.otp)}


def test_missing_unit_id_is_configuration_error(fake_api, data_source, hub):
    fake_api.respond("GET", "/screen/magic_links/check", 200, {"magic_link": {}})
    with pytest.raises(ConfigurationError, match="unit_id"):
        _provider(fake_api, data_source, hub).authenticate("T")


def test_unsuccessful_otp_is_remote_error(fake_api, data_source, hub):
    fake_api.respond("POST", "/screen/auth/send_otp", 200, {"success": False})
    with pytest.raises(RemoteServiceError, match="Failed to send OTP"):
        _provider(fake_api, data_source, hub).authenticate("T")
    assert fake_api.count("POST", "/screen/auth/jwt/sign_in") == 0


def test_validate_credentials():
    with pytest.raises(ConfigurationError, match="bearer_token"):
        validate_credentials(CredentialPair(access_token="", refresh_token="r"))
    with pytest.raises(ConfigurationError, match="refresh_token"):
        validate_credentials(CredentialPair(access_token="a", refresh_token=""))
    validate_credentials(CredentialPair(access_token="a", refresh_token="r"))
