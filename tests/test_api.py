from datetime import date

import pytest

from omiewatch.api import create_app
from omiewatch.models import Period, RunOutcome, RunStage, RunStatus
from omiewatch.state import WatchState


class FakeTrigger:
    def __init__(self, status=RunStatus.DONE):
        self.calls = 0
        self.status = status

    def __call__(self):
        self.calls += 1
        return RunOutcome(
            status=self.status,
            stage=RunStage.DONE,
            period=Period.containing(date(2023, 5, 20)),
            parsed=3,
            inserted=1,
        )


@pytest.fixture
def state():
    return WatchState(130.0)


@pytest.fixture
def trigger():
    return FakeTrigger()


@pytest.fixture
def client(state, store, trigger):
    app = create_app(state, store, trigger)
    app.config["TESTING"] = True
    return app.test_client()


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_get_config(client):
    assert client.get("/config").get_json() == {"config": {"max_value": 130.0}}


def test_post_config_updates_state_and_store(client, state, store):
    resp = client.post("/config", json={"max_value": 142.5})

    assert resp.status_code == 200
    assert state.max_value == 142.5
    assert store.load_threshold(130.0) == 142.5
    assert client.get("/config").get_json()["config"]["max_value"] == 142.5


@pytest.mark.parametrize("body", [{"max_value": "high"}, {"other": 1}, {"max_value": True}, {"max_value": 10**400}, [1, 2]])
def test_post_config_rejects_bad_values(client, state, body):
    resp = client.post("/config", json=body)
    assert resp.status_code == 400
    assert state.max_value == 130.0


def test_post_config_rejects_invalid_json(client):
    resp = client.post("/config", data="{not json", content_type="application/json")
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Invalid JSON"}


def test_last_value(client, state):
    assert client.get("/last").get_json() == {"last_avg_value": None, "max_value": 130.0}
    state.last_trend = 118.25
    assert client.get("/last").get_json() == {"last_avg_value": 118.25, "max_value": 130.0}


def test_update_runs_pipeline(client, trigger):
    resp = client.get("/update")
    body = resp.get_json()

    assert resp.status_code == 200
    assert trigger.calls == 1
    assert body["message"] == "updated"
    assert body["run"]["status"] == "done"
    assert body["run"]["period"] == {"first_day": "2023-05-01", "last_day": "2023-05-31"}


def test_update_failure_status(state, store):
    app = create_app(state, store, FakeTrigger(RunStatus.FETCH_FAILED))
    resp = app.test_client().get("/update")
    assert resp.status_code == 502
    assert resp.get_json()["run"]["status"] == "fetch_failed"
