from typing import Dict, Iterable, List, Tuple, Union

from screenflow.errors import ConfigurationError
from screenflow.screening.schemas import VerificationRecord
from screenflow.store import models

# (state key, remote name fragment, display label)
REQUIRED_VERIFICATIONS: List[Tuple[str, str, str]] = [
    (models.PERSONAL_DETAILS, "rental_application", "Personal details"),
    (models.HOUSING_HISTORY, "housing_history", "Housing history"),
    (models.IDENTITY, "identity", "Identity"),
    (models.COMBINED_INCOME, "combined_income", "Combined income"),
    (models.SUBMISSION_DISCLOSURE, "submission_disclosure", "Submission disclosure"),
]


def _as_records(records: Iterable[Union[VerificationRecord, dict]]) -> List[VerificationRecord]:
    return [r if isinstance(r, VerificationRecord) else VerificationRecord.model_validate(r) for r in records]


def resolve_verification_id(
    records: Iterable[Union[VerificationRecord, dict]], required_name: str, display_label: str
) -> str:
    """First record whose name contains `required_name`; its id as a string."""
    match = next((r for r in _as_records(records) if required_name in r.name), None)
    if match is None or match.id is None:
        raise ConfigurationError(
            f"{display_label} verification ({required_name}) not found in enroll response"
        )
    return str(match.id)


def resolve_verification_map(records: Iterable[Union[VerificationRecord, dict]]) -> Dict[str, str]:
    """
    Resolve every required category up front. Nothing is returned unless all
    five resolve, so step submission never starts against a partial map.
    """
    records = _as_records(records)
    return {
        key: resolve_verification_id(records, name, label)
        for key, name, label in REQUIRED_VERIFICATIONS
    }
