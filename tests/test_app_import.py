def test_app_importable_by_uvicorn_string():
    """`uvicorn screenflow.main:app` loads the app object."""
    from screenflow.main import app
    paths = {getattr(route, "path", None) for route in app.routes}
    assert {"/", "/health", "/api/run", "/api/status", "/api/config", "/api/logs/{run_id}"} <= paths


def test_worker_job_is_importable_by_rq_path():
    from screenflow.queue.jobs import run_onboarding_job
    assert callable(run_onboarding_job)
