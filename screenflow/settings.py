import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    # Optional override of the API host derived from the magic link.
    BASE_URL: str = os.getenv("BASE_URL", "")

    API_KEY: str = os.getenv("API_KEY", "")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    RQ_QUEUE_NAME: str = os.getenv("RQ_QUEUE_NAME", "onboarding")
    # Worker-side limit; a run must finish (or be killed) inside it.
    RQ_JOB_TIMEOUT_SEC: int = int(os.getenv("RQ_JOB_TIMEOUT_SEC", "900"))

    # Run lock: only one onboarding run may be active at a time.
    RUN_LOCK_TTL_MS: int = int(os.getenv("RUN_LOCK_TTL_MS", "900000"))

    # Per-request timeouts against the screening API
    API_REQUEST_TIMEOUT_MS: int = int(os.getenv("API_REQUEST_TIMEOUT_MS", "10000"))
    API_LONG_REQUEST_TIMEOUT_MS: int = int(os.getenv("API_LONG_REQUEST_TIMEOUT_MS", "60000"))

    # Identity verification: initial grace period, then poll until verified
    IDENTITY_VERIFICATION_WAIT_MS: int = int(os.getenv("IDENTITY_VERIFICATION_WAIT_MS", "15000"))
    IDENTITY_VERIFICATION_CHECK_MS: int = int(os.getenv("IDENTITY_VERIFICATION_CHECK_MS", "50000"))
    IDENTITY_VERIFICATION_INTERVAL_MS: int = int(os.getenv("IDENTITY_VERIFICATION_INTERVAL_MS", "5000"))

    RETRY_MAX_ATTEMPTS: int = int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
    RETRY_BACKOFF_BASE_MS: int = int(os.getenv("RETRY_BACKOFF_BASE_MS", "1000"))
    RETRY_BACKOFF_MAX_MS: int = int(os.getenv("RETRY_BACKOFF_MAX_MS", "10000"))

    # Extra invitations sent after the application is started
    CO_APPLICANTS: int = int(os.getenv("CO_APPLICANTS", "0"))
    GUARANTORS: int = int(os.getenv("GUARANTORS", "0"))

    SNAPSHOT_DIR: str = os.getenv("SNAPSHOT_DIR", "./test-data")
    LOG_DIR: str = os.getenv("LOG_DIR", "./logs")
    PAYSTUB_PATH: str = os.getenv("PAYSTUB_PATH", "./test-data/Paystub.pdf")
    SIGNATURE_PATH: str = os.getenv("SIGNATURE_PATH", "./test-data/signature.svg")

    LOG_TO_STDOUT: bool = os.getenv("LOG_TO_STDOUT", "true").lower() == "true"
    ENABLE_SECRET_REDACTION: bool = os.getenv("ENABLE_SECRET_REDACTION", "true").lower() == "true"

    TEST_EMAIL_DOMAIN: str = os.getenv("TEST_EMAIL_DOMAIN", "mail.tm")

settings = Settings()
