import hmac

from fastapi import Header, HTTPException
from screenflow.settings import settings


def require_api_key(x_api_key: str = Header(default="", alias="x-api-key")):
    """Guard for the run and log endpoints. Open when API_KEY is unset."""
    expected = settings.API_KEY
    if not expected:
        return
    if not hmac.compare_digest(x_api_key.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid API key")
