import json
import os

from screenflow.observability.logging import LogHub, clear_log_files


def test_entries_reach_observers_and_files(tmp_path, capsys):
    hub = LogHub(log_dir=str(tmp_path), stdout=True, redact=True)
    seen = []
    unsubscribe = hub.subscribe(seen.append)

    log = hub.logger("api-client")
    log.info("tokens_refreshed", access_token="secret-value", endpoint="/auth/refresh")

    assert seen[0]["event"] == "tokens_refreshed"
    assert seen[0]["level"] == "info"
    assert seen[0]["logger"] == "api-client"
    assert seen[0]["access_token"].startswith("[REDACTED")
    assert seen[0]["endpoint"] == "/auth/refresh"

    line = (tmp_path / "api-client.log").read_text(encoding="utf-8").strip()
    assert json.loads(line)["event"] == "tokens_refreshed"
    assert "secret-value" not in capsys.readouterr().out

    unsubscribe()
    log.warning("after_unsubscribe")
    assert len(seen) == 1


def test_loggers_are_per_hub():
    a, b = LogHub(stdout=False), LogHub(stdout=False)
    assert a.logger("x") is a.logger("x")
    assert a.logger("x") is not b.logger("x")


def test_redaction_can_be_disabled():
    hub = LogHub(stdout=False, redact=False)
    entry = hub.logger("auth").info("auth_succeeded", otp=123456)
    assert entry["otp"] == 123456


def test_clear_log_files_removes_only_logs(tmp_path):
    (tmp_path / "a.log").write_text("x")
    (tmp_path / "b.log").write_text("y")
    (tmp_path / "keep.json").write_text("{}")

    assert clear_log_files(str(tmp_path)) == 2
    assert sorted(os.listdir(tmp_path)) == ["keep.json"]


def test_clear_log_files_missing_dir_is_noop(tmp_path):
    assert clear_log_files(str(tmp_path / "nope")) == 0


def test_failing_observer_does_not_break_emit(capsys):
    hub = LogHub(stdout=False, redact=True)
    seen = []

    def broken(entry):
        raise ConnectionError("redis down")

    hub.subscribe(broken)
    hub.subscribe(seen.append)

    entry = hub.logger("workflow").info("stage_changed", stage="ENROLLED")

    assert entry["event"] == "stage_changed"
    assert [e["event"] for e in seen] == ["stage_changed"]
    err = json.loads(capsys.readouterr().err.strip())
    assert err["event"] == "log_sink_failed"
    assert err["sink"] == "broken"
    assert err["droppedEvent"] == "stage_changed"
    assert err["errorType"] == "ConnectionError"


def test_unwritable_log_dir_is_reported_not_raised(tmp_path, capsys):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    hub = LogHub(log_dir=str(blocker), stdout=False, redact=False)

    hub.logger("runner").info("run_started")

    err = json.loads(capsys.readouterr().err.strip())
    assert err["sink"] == "file"
    assert err["droppedEvent"] == "run_started"
