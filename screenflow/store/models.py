from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from screenflow.errors import WorkflowStateError

@dataclass
class CredentialPair:
    access_token: str = ""
    refresh_token: str = ""

@dataclass
class AddressComponents:
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = "US"
    county: Optional[str] = None

@dataclass
class Address:
    full_address: str = ""
    address_components: AddressComponents = field(default_factory=AddressComponents)

@dataclass
class Applicant:
    id: Optional[str] = None
    role: str = "applicant"  # applicant / co_signer
    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    otp: Optional[int] = None
    address: Optional[Address] = None
    # Set for invited co-parties only
    invite_magic_link: Optional[str] = None

    @property
    def display_name(self) -> str:
        """First name, middle initial, last name: "Jane Q. Doe"."""
        if self.middle_name:
            return f"{self.first_name} {self.middle_name[0]}. {self.last_name}"
        return f"{self.first_name} {self.last_name}"

# Logical verification categories used by later steps
PERSONAL_DETAILS = "personal_details"
HOUSING_HISTORY = "housing_history"
IDENTITY = "identity"
COMBINED_INCOME = "combined_income"
SUBMISSION_DISCLOSURE = "submission_disclosure"

VERIFICATION_KEYS = (
    PERSONAL_DETAILS,
    HOUSING_HISTORY,
    IDENTITY,
    COMBINED_INCOME,
    SUBMISSION_DISCLOSURE,
)

@dataclass
class ApplicationState:
    # Identifiers
    unit_id: str = ""
    app_token: str = ""
    id: Optional[str] = None

    # Workflow progress
    stage: str = "UNAUTHENTICATED"
    steps_submitted: List[str] = field(default_factory=list)
    identity_verification_requested: bool = False
    last_verification_status: Optional[str] = None

    # Primary applicant plus invited co-applicants / guarantors
    applicant: Applicant = field(default_factory=Applicant)
    applicants: List[Applicant] = field(default_factory=list)

    # logical verification name -> remote id
    verifications: Dict[str, str] = field(default_factory=dict)

    # Combined income sub-resources
    income_id: Optional[str] = None
    income_source_id: Optional[str] = None
    signature_asset_id: Optional[str] = None

    def require_id(self) -> str:
        if not self.id:
            raise WorkflowStateError("Application ID is required")
        return self.id

    def require_applicant_id(self) -> str:
        if not self.applicant.id:
            raise WorkflowStateError("Applicant ID is required")
        return self.applicant.id

    def verification_id(self, key: str) -> str:
        vid = self.verifications.get(key)
        if not vid:
            raise WorkflowStateError(f"Verification '{key}' has not been resolved")
        return vid

    def to_dict(self) -> dict:
        return asdict(self)
