from typing import Any

STATUS_STARTED = "started"
STATUS_SUBMITTED = "submitted"
STATUS_FINISHED = "finished"
STATUS_VERIFIED = "verified"
STATUS_PENDING = "pending"
STATUS_FAILED = "failed"


def transform_status_fields(obj: Any) -> Any:
    """
    Recursively rewrite an application document for final submission:
    - "status": "started"              -> "submitted"
    - "application_status": "finished" -> "submitted"
    Returns a new structure; the input is not modified.
    """
    if isinstance(obj, list):
        return [transform_status_fields(item) for item in obj]
    if isinstance(obj, dict):
        out = {}
        for key, value in obj.items():
            if key == "status" and value == STATUS_STARTED:
                out[key] = STATUS_SUBMITTED
            elif key == "application_status" and value == STATUS_FINISHED:
                out[key] = STATUS_SUBMITTED
            else:
                out[key] = transform_status_fields(value)
        return out
    return obj
