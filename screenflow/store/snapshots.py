import json
import os
from typing import Any

from screenflow.store.models import ApplicationState

APPLICATION_SNAPSHOT = "application.json"
APPLICANT_SNAPSHOT = "applicant.json"
CURRENT_APP = "current-app.json"


def _json_safe(obj):
    if isinstance(obj, set):
        return list(obj)
    if isinstance(obj, dict):
        return {k: _json_safe(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_json_safe(v) for v in obj]
    return obj


class SnapshotSink:
    """
    Point-in-time JSON captures for diagnosing a failed run. Files are
    overwritten on every write and are never read back to resume a run.
    """

    def __init__(self, directory: str):
        self.directory = directory

    def path(self, name: str) -> str:
        return os.path.join(self.directory, name)

    def write(self, name: str, value: Any) -> str:
        os.makedirs(self.directory, exist_ok=True)
        target = self.path(name)
        tmp = f"{target}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(_json_safe(value), f, indent=2, ensure_ascii=False)
        os.replace(tmp, target)
        return target

    def write_state(self, state: ApplicationState) -> str:
        return self.write(CURRENT_APP, state.to_dict())
