import pytest

from screenflow.core.verifications import resolve_verification_id, resolve_verification_map
from screenflow.errors import ConfigurationError
from screenflow.screening.schemas import VerificationRecord


def test_first_substring_match_wins():
    records = [
        {"name": "identity_check", "id": 1},
        {"name": "combined_income", "id": 2},
        {"name": "combined_income_v2", "id": 3},
    ]
    assert resolve_verification_id(records, "combined_income", "Combined income") == "2"


def test_missing_category_names_label_and_category():
    records = [{"name": "identity", "id": 1}]
    with pytest.raises(ConfigurationError) as exc:
        resolve_verification_id(records, "combined_income", "Combined income")
    assert str(exc.value) == "Combined income verification (combined_income) not found in enroll response"


def test_match_with_null_id_is_missing():
    with pytest.raises(ConfigurationError, match="Identity verification"):
        resolve_verification_id([{"name": "identity", "id": None}], "identity", "Identity")


def test_map_from_enrollment_has_five_string_entries():
    records = [
        VerificationRecord(name="rental_application", id=1),
        VerificationRecord(name="housing_history", id=2),
        VerificationRecord(name="identity", id="abc"),
        VerificationRecord(name="combined_income", id=4),
        VerificationRecord(name="submission_disclosure", id=5),
    ]
    out = resolve_verification_map(records)
    assert out == {
        "personal_details": "1",
        "housing_history": "2",
        "identity": "abc",
        "combined_income": "4",
        "submission_disclosure": "5",
    }


def test_map_fails_on_any_missing_category():
    records = [{"name": "rental_application", "id": 1}, {"name": "identity", "id": 2}]
    with pytest.raises(ConfigurationError, match="Housing history"):
        resolve_verification_map(records)
