"""
Tests for EarthEngineManager: initialization and retry-aware getInfo().
"""

# pylint: disable=W0621,W0613

import json

import ee
import pytest
from ee import EEException
from google.oauth2.credentials import Credentials

from denudmap.ingestion.eemanager import EarthEngineManager


class FlakyObject:
    """Object whose getInfo() fails a fixed number of times."""

    def __init__(self, failures, message="Computation timed out.", value=42):
        self.failures = failures
        self.message = message
        self.value = value
        self.calls = 0

    def getInfo(self):  # pylint: disable=invalid-name
        self.calls += 1
        if self.calls <= self.failures:
            raise EEException(self.message)
        return self.value


@pytest.fixture
def no_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr(
        "denudmap.ingestion.eemanager.time.sleep", lambda s: sleeps.append(s)
    )
    return sleeps


def test_initialize_uses_project(monkeypatch):
    """initialize() forwards the configured project to ee.Initialize()."""
    monkeypatch.delenv("EARTHENGINE_TOKEN", raising=False)
    captured = {}

    def fake_initialize(creds=None, project=None):
        captured["project"] = project

    monkeypatch.setattr(ee, "Initialize", fake_initialize)
    EarthEngineManager(project="my-project").initialize()

    assert captured["project"] == "my-project"


def test_initialize_project_from_env(monkeypatch):
    monkeypatch.delenv("EARTHENGINE_TOKEN", raising=False)
    monkeypatch.setenv("DENUDMAP_EE_PROJECT", "env-project")

    assert EarthEngineManager().project == "env-project"


def test_initialize_runs_once(monkeypatch):
    monkeypatch.delenv("EARTHENGINE_TOKEN", raising=False)
    calls = []
    monkeypatch.setattr(ee, "Initialize", lambda *a, **k: calls.append(k))

    mgr = EarthEngineManager()
    mgr.initialize()
    mgr.initialize()
    assert len(calls) == 1

    mgr.initialize(force=True)
    assert len(calls) == 2


def test_initialize_with_env_token(monkeypatch):
    """initialize() should use EARTHENGINE_TOKEN without prompting."""
    token_info = {
        "refresh_token": "abc",
        "client_id": "id",
        "client_secret": "secret",
    }
    monkeypatch.setenv("EARTHENGINE_TOKEN", json.dumps(token_info))

    captured = {}

    def fake_initialize(creds=None, project=None):
        captured["creds"] = creds
        captured["project"] = project

    monkeypatch.setattr(ee, "Initialize", fake_initialize)
    mgr = EarthEngineManager()
    mgr.initialize()

    assert isinstance(captured.get("creds"), Credentials)


def test_initialize_authenticates_on_failure(monkeypatch):
    monkeypatch.delenv("EARTHENGINE_TOKEN", raising=False)
    state = {"init": 0, "auth": 0}

    def fake_initialize(*args, **kwargs):
        state["init"] += 1
        if state["init"] == 1:
            raise EEException("not authenticated")

    def fake_authenticate(*args, **kwargs):
        state["auth"] += 1

    monkeypatch.setattr(ee, "Initialize", fake_initialize)
    monkeypatch.setattr(ee, "Authenticate", fake_authenticate)

    EarthEngineManager().initialize()

    assert state == {"init": 2, "auth": 1}


def test_safe_get_info_retries_transient_errors(no_sleep):
    obj = FlakyObject(failures=2)

    assert EarthEngineManager().safe_get_info(obj) == 42
    assert obj.calls == 3
    assert no_sleep == [1, 2]


def test_safe_get_info_raises_after_max_retries(no_sleep):
    obj = FlakyObject(failures=5)

    with pytest.raises(EEException):
        EarthEngineManager().safe_get_info(obj, max_retries=3)
    assert obj.calls == 3


def test_safe_get_info_reauthenticates_on_permission_denied(monkeypatch, no_sleep):
    monkeypatch.delenv("EARTHENGINE_TOKEN", raising=False)
    auth_calls = []
    monkeypatch.setattr(ee, "Authenticate", lambda *a, **k: auth_calls.append(1))
    obj = FlakyObject(failures=1, message="PERMISSION_DENIED: no access")

    assert EarthEngineManager().safe_get_info(obj) == 42
    assert auth_calls == [1]
    assert no_sleep == []
