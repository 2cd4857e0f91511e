"""Payload builders for the data-collection steps."""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple

from screenflow.core.run_config import DefaultValues
from screenflow.data.generators import RandomDataSource
from screenflow.store.models import Address, AddressComponents, Applicant

# Remote step names
STEP_PERSONAL_DETAILS = "personal_details"
STEP_DEPENDENTS = "dependents"
STEP_EMERGENCY_CONTACTS = "emergency_contacts"
STEP_PETS = "pets"
STEP_VEHICLES = "vehicles"
STEP_MILITARY_FIRST_RESPONDER_TEACHER = "military_first_responder_teacher"
STEP_LEAD_SOURCE = "lead_source"
STEP_HOUSING_HISTORY = "address"
STEP_SUBMISSION_DISCLOSURE = "submission_disclosure_step"

# Income sub-resources
INCOME_STEP = "income"
INCOME_SOURCES_STEP = "income_sources"
INCOME_FINISH_STEP = "finish"


@dataclass
class StepConfig:
    step_name: str
    get_payload: Callable[[], Dict[str, Any]]


def personal_details_steps(
    applicant: Applicant, defaults: DefaultValues, data: RandomDataSource
) -> List[StepConfig]:
    def _emergency_contacts():
        contact = data.full_name()
        return {
            "data": {
                "emergency_contacts": [
                    {
                        "first_name": contact.first,
                        "last_name": contact.last,
                        "phone_number": data.phone("digits"),
                        "relationship": defaults.emergency_contact_relationship,
                    }
                ]
            }
        }

    return [
        StepConfig(STEP_PERSONAL_DETAILS, lambda: {
            "data": {
                "contact_first_name": applicant.first_name,
                "contact_last_name": applicant.last_name,
                "contact_middle_name": applicant.middle_name,
                "contact_email": applicant.email,
                "contact_phone_number": applicant.phone,
            }
        }),
        StepConfig(STEP_DEPENDENTS, lambda: {"data": {"dependents": defaults.dependents}}),
        StepConfig(STEP_EMERGENCY_CONTACTS, _emergency_contacts),
        StepConfig(STEP_PETS, lambda: {"data": {"do_you_have_pets": defaults.pets}}),
        StepConfig(STEP_VEHICLES, lambda: {"data": {"do_you_have_vehicles": defaults.vehicles}}),
        StepConfig(STEP_MILITARY_FIRST_RESPONDER_TEACHER, lambda: {
            "data": {"are_you_military_first_responder_teacher": defaults.military_first_responder_teacher}
        }),
        StepConfig(STEP_LEAD_SOURCE, lambda: {"data": {"lead_source": defaults.lead_source}}),
    ]


def housing_history_payload(defaults: DefaultValues, data: RandomDataSource) -> Tuple[Dict[str, Any], Address]:
    """Current-residence payload; also returns the address recorded for the applicant."""
    addr = data.address()
    apartment = str(data.random_int(1, 100))
    components = AddressComponents(
        address1=f"{addr.housenumber} {addr.street}",
        address2=apartment,
        city=addr.city,
        state=addr.state,
        zip=addr.postcode,
        country=(addr.country_code or "us").upper(),
        county=addr.county,
    )
    full = f"{addr.housenumber} {addr.street},{apartment}, {addr.city}, {addr.state} {addr.postcode}"
    payload = {
        "data": {
            "address": [
                {
                    "housing_type": defaults.housing_type,
                    "own_home": {
                        "address": full,
                        "address_components": {
                            "address1": components.address1,
                            "address2": components.address2,
                            "city": components.city,
                            "state": components.state,
                            "zip": components.zip,
                            "country": components.country,
                            "county": components.county,
                        },
                        "current_residence": True,
                        "move_in_date": "2020-01-01",
                        "monthly_mortgage_payment": data.random_int(1000, 3000),
                        "reason_for_leaving": "Just because",
                    },
                }
            ]
        }
    }
    return payload, Address(full_address=full, address_components=components)


def employment_payload(data: RandomDataSource) -> Dict[str, Any]:
    job = data.employment()
    return {
        "type": "self_employment",
        "start_date": job.start_date,
        "additional_data": {"company": job.company, "job_title": job.job_title},
        "amount": {"cents": job.monthly_salary * 100, "currency": "USD"},
        "pay_period": "monthly",
    }
