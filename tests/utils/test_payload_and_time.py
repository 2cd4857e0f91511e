from datetime import date

from screenflow.utils.payload import transform_status_fields
from screenflow.utils.time import last_day_of_current_month


def test_transform_rewrites_status_fields_recursively():
    doc = {
        "application": {
            "status": "started",
            "application_status": "finished",
            "applicants": [{"status": "started"}, {"status": "verified"}],
            "note": "started",
        }
    }
    out = transform_status_fields(doc)
    app = out["application"]
    assert app["status"] == "submitted"
    assert app["application_status"] == "submitted"
    assert [a["status"] for a in app["applicants"]] == ["submitted", "verified"]
    assert app["note"] == "started"
    # input untouched
    assert doc["application"]["status"] == "started"


def test_transform_leaves_other_values_alone():
    assert transform_status_fields({"application_status": "started"}) == {"application_status": "started"}
    assert transform_status_fields([1, "x", None]) == [1, "x", None]


def test_last_day_of_month():
    assert last_day_of_current_month(date(2024, 2, 10)) == "2024-02-29"
    assert last_day_of_current_month(date(2023, 2, 1)) == "2023-02-28"
    assert last_day_of_current_month(date(2025, 12, 31)) == "2025-12-31"
