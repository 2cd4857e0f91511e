"""
Response schemas for the screening API.

Every JSON body the workflow reads goes through `decode()`; a body that is not
JSON or does not match its schema is reported as a RemoteServiceError rather
than surfacing later as a KeyError deep inside a step.
"""
from typing import List, Optional, Type, TypeVar, Union

import httpx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from screenflow.errors import RemoteServiceError

Identifier = Union[str, int]

M = TypeVar("M", bound=BaseModel)


class _Remote(BaseModel):
    model_config = ConfigDict(extra="allow")


# --- auth ---

class MagicLink(_Remote):
    unit_id: Identifier

    @field_validator("unit_id")
    @classmethod
    def _unit_str(cls, v):
        return str(v)

class MagicLinkCheckResponse(_Remote):
    magic_link: MagicLink

class SendOtpResponse(_Remote):
    success: bool = False

class SignInResponse(_Remote):
    access_token: str
    refresh_token: str

class RefreshResponse(_Remote):
    bearer_token: str = Field(validation_alias=AliasChoices("bearerToken", "access_token", "bearer_token"))
    refresh_token: str = Field(validation_alias=AliasChoices("refreshToken", "refresh_token"))


# --- enrollment ---

class VerificationRecord(_Remote):
    name: str
    id: Optional[Identifier] = None

class CurrentApplicant(_Remote):
    id: Identifier
    verifications: List[VerificationRecord] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def _id_str(cls, v):
        return str(v)

class EnrolledApplication(_Remote):
    id: Identifier
    current_applicant: CurrentApplicant

    @field_validator("id")
    @classmethod
    def _id_str(cls, v):
        return str(v)

class EnrollResponse(_Remote):
    application: EnrolledApplication


# --- application lifecycle ---

class ApplicationSummary(_Remote):
    id: Optional[Identifier] = None
    has_multiple_applicants: bool = False
    has_multiple_guarantors: bool = False

class ApplicationDetailsResponse(_Remote):
    application: ApplicationSummary

class VerificationStatus(_Remote):
    status: Optional[str] = None

class VerificationDetailsResponse(_Remote):
    verification: VerificationStatus

class CreatedResource(_Remote):
    id: Identifier

    @field_validator("id")
    @classmethod
    def _id_str(cls, v):
        return str(v)


# --- invitations ---

class MagicLinkEntry(_Remote):
    email: Optional[str] = None
    application_link: Optional[str] = None

class MagicLinksResponse(_Remote):
    magic_links: List[MagicLinkEntry] = Field(default_factory=list)


# --- assets ---

class PresignResponse(_Remote):
    url: str
    method: Optional[str] = None
    headers: dict = Field(default_factory=dict)

class Asset(_Remote):
    global_id: Optional[str] = None

class AssetResponse(_Remote):
    asset: Optional[Asset] = None

class AssetItems(_Remote):
    items: List[Asset] = Field(default_factory=list)

class DocumentsResponse(_Remote):
    assets: Optional[AssetItems] = None


def decode(model: Type[M], response: httpx.Response, endpoint: str = "") -> M:
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as e:
        raise RemoteServiceError(
            f"Unexpected response from {endpoint or 'screening API'}: {e}",
            status=response.status_code,
            body=(response.text or "")[:2000],
            endpoint=endpoint,
        ) from e
