"""
Per-run options.

Built fresh from settings for every run, then patched with the optional
overrides a caller posts to /api/run (or passes on the CLI). Nothing here is
shared between runs.
"""
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional

from screenflow.errors import ConfigurationError
from screenflow.settings import settings
from screenflow.utils.retry import RetryOptions


@dataclass
class Actors:
    co_applicants: int = 0
    guarantors: int = 0


@dataclass
class DefaultValues:
    dependents: str = "No"
    pets: str = "No"
    vehicles: str = "No"
    military_first_responder_teacher: str = "No"
    lead_source: str = "Google"
    housing_type: str = "Own my home"
    emergency_contact_relationship: str = "Other"


@dataclass
class Timeouts:
    api_request_ms: int = 10000
    api_long_request_ms: int = 60000
    identity_verification_wait_ms: int = 15000
    identity_verification_check_ms: int = 50000
    identity_verification_interval_ms: int = 5000


@dataclass
class Retry:
    max_attempts: int = 3
    backoff_base_ms: int = 1000
    backoff_max_ms: int = 10000


# Smallest accepted value per overridable numeric field
MINIMUMS = {
    "actors": {"co_applicants": 0, "guarantors": 0},
    "timeouts": {
        "api_request_ms": 1,
        "api_long_request_ms": 1,
        "identity_verification_wait_ms": 0,
        "identity_verification_check_ms": 1,
        "identity_verification_interval_ms": 1,
    },
    "retry": {"max_attempts": 1, "backoff_base_ms": 0, "backoff_max_ms": 0},
}


@dataclass
class RunOptions:
    actors: Actors = field(default_factory=Actors)
    default_values: DefaultValues = field(default_factory=DefaultValues)
    timeouts: Timeouts = field(default_factory=Timeouts)
    retry: Retry = field(default_factory=Retry)
    base_url: Optional[str] = None
    snapshot_dir: str = "./test-data"
    log_dir: str = "./logs"
    paystub_path: str = "./test-data/Paystub.pdf"
    signature_path: str = "./test-data/signature.svg"

    @classmethod
    def from_settings(cls, overrides: Optional[Dict[str, Any]] = None) -> "RunOptions":
        opts = cls(
            actors=Actors(co_applicants=settings.CO_APPLICANTS, guarantors=settings.GUARANTORS),
            timeouts=Timeouts(
                api_request_ms=settings.API_REQUEST_TIMEOUT_MS,
                api_long_request_ms=settings.API_LONG_REQUEST_TIMEOUT_MS,
                identity_verification_wait_ms=settings.IDENTITY_VERIFICATION_WAIT_MS,
                identity_verification_check_ms=settings.IDENTITY_VERIFICATION_CHECK_MS,
                identity_verification_interval_ms=settings.IDENTITY_VERIFICATION_INTERVAL_MS,
            ),
            retry=Retry(
                max_attempts=settings.RETRY_MAX_ATTEMPTS,
                backoff_base_ms=settings.RETRY_BACKOFF_BASE_MS,
                backoff_max_ms=settings.RETRY_BACKOFF_MAX_MS,
            ),
            base_url=settings.BASE_URL or None,
            snapshot_dir=settings.SNAPSHOT_DIR,
            log_dir=settings.LOG_DIR,
            paystub_path=settings.PAYSTUB_PATH,
            signature_path=settings.SIGNATURE_PATH,
        )
        if overrides:
            opts.apply_overrides(overrides)
        return opts

    def apply_overrides(self, overrides: Dict[str, Any]) -> None:
        sections = {
            "actors": self.actors,
            "default_values": self.default_values,
            "timeouts": self.timeouts,
            "retry": self.retry,
        }
        for section, values in overrides.items():
            if values is None:
                continue
            target = sections.get(section)
            if target is None:
                raise ConfigurationError(f"Unknown override section: {section}")
            if not isinstance(values, dict):
                raise ConfigurationError(f"Override section {section} must be an object")
            allowed = {f.name for f in fields(target)}
            for key, value in values.items():
                if key not in allowed:
                    raise ConfigurationError(f"Unknown override {section}.{key}")
                current = getattr(target, key)
                try:
                    coerced = type(current)(value)
                except (TypeError, ValueError) as e:
                    raise ConfigurationError(f"Invalid value for {section}.{key}: {value!r}") from e
                minimum = MINIMUMS.get(section, {}).get(key)
                if minimum is not None and coerced < minimum:
                    raise ConfigurationError(
                        f"Invalid value for {section}.{key}: {value!r} (must be >= {minimum})"
                    )
                setattr(target, key, coerced)

    def retry_options(self) -> RetryOptions:
        return RetryOptions(
            max_attempts=self.retry.max_attempts,
            backoff_base_ms=self.retry.backoff_base_ms,
            backoff_max_ms=self.retry.backoff_max_ms,
        )

    def public_dict(self) -> Dict[str, Any]:
        """The overridable sections, as served by GET /api/config."""
        return {
            "actors": asdict(self.actors),
            "default_values": asdict(self.default_values),
            "timeouts": asdict(self.timeouts),
            "retry": asdict(self.retry),
        }
