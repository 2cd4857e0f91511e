from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel


class RunRequest(BaseModel):
    magicLink: Optional[str] = None
    overrides: Optional[Dict[str, Any]] = None


class RunStarted(BaseModel):
    status: Literal["started"] = "started"
    runId: str


class RunStatus(BaseModel):
    running: bool
    runId: Optional[str] = None
    stats: Dict[str, Any] = {}
