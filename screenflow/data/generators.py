"""
Randomized applicant data.

The workflow treats these values as opaque: it only threads them into step
payloads. Tests substitute a fixed data source with the same methods.
"""
import random
import string
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from faker import Faker

from screenflow.settings import settings

US_AREA_CODES = [
    201, 202, 203, 205, 206, 212, 213, 214, 215, 303, 305, 310, 312, 404, 415,
    512, 602, 617, 702, 713, 718, 805, 818, 917, 972,
]
EMPLOYMENT_YEARS_BACK = 15


@dataclass
class FullName:
    first: str
    middle: str
    last: str

    @property
    def full(self) -> str:
        return f"{self.first} {self.middle} {self.last}"


@dataclass
class FakeAddress:
    housenumber: str
    street: str
    city: str
    state: str
    postcode: str
    country_code: str = "us"
    county: Optional[str] = None


@dataclass
class Employment:
    company: str
    job_title: str
    start_date: str
    monthly_salary: int


class RandomDataSource:
    def __init__(self, rng: Optional[random.Random] = None, email_domain: Optional[str] = None):
        self.rng = rng or random.Random()
        self.email_domain = email_domain or settings.TEST_EMAIL_DOMAIN
        self.fake = Faker("en_US")
        self.fake.seed_instance(self.rng.getrandbits(32))

    def random_int(self, lo: int, hi: int) -> int:
        return self.rng.randint(lo, hi)

    def full_name(self) -> FullName:
        return FullName(
            first=self.fake.first_name(),
            # en_US has no middle-name provider
            middle=self.fake.first_name(),
            last=self.fake.last_name(),
        )

    def email(self) -> str:
        local = "".join(self.rng.choice(string.ascii_lowercase + string.digits) for _ in range(12))
        return f"{local}@{self.email_domain}"

    def _nanp_code(self) -> str:
        # NXX, never N11
        while True:
            first, second, third = self.rng.randint(2, 9), self.rng.randint(0, 9), self.rng.randint(0, 9)
            if not (second == 1 and third == 1):
                return f"{first}{second}{third}"

    def phone(self, fmt: str = "e164") -> str:
        area = str(self.rng.choice(US_AREA_CODES))
        office = self._nanp_code()
        line = f"{self.rng.randint(0, 9999):04d}"
        if fmt == "e164":
            return f"+1{area}{office}{line}"
        if fmt == "digits":
            return f"1{area}{office}{line}"
        return f"({area}) {office}-{line}"

    def otp(self) -> int:
        return self.rng.randint(100000, 999999)

    def address(self) -> FakeAddress:
        state = self.fake.state_abbr(include_territories=False)
        return FakeAddress(
            housenumber=self.fake.building_number(),
            street=self.fake.street_name(),
            city=self.fake.city(),
            state=state,
            postcode=self.fake.zipcode_in_state(state),
            country_code="us",
            county=f"{self.fake.last_name()} County",
        )

    def employment(self, today: Optional[date] = None) -> Employment:
        today = today or date.today()
        start = self.fake.date_between(
            start_date=today - timedelta(days=365 * EMPLOYMENT_YEARS_BACK),
            end_date=today - timedelta(days=1),
        )
        return Employment(
            company=self.fake.company(),
            job_title=self.fake.job(),
            start_date=start.isoformat(),
            monthly_salary=self.fake.random_int(2000, 8000),
        )
