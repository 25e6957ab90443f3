# pylint: disable=missing-module-docstring,missing-function-docstring,invalid-name,unused-argument,redefined-outer-name
from collections import deque
from unittest.mock import MagicMock

import pytest
import ee

from denudmap.core.config import ConfigManager
from denudmap.core.logger import Logger


PREDICTORS = list(ConfigManager.PREDICTORS)


class FakeManager:
    """Stand-in for EarthEngineManager that serves canned getInfo() results."""

    def __init__(self, *responses):
        self.responses = deque(responses)
        self.initialized = 0
        self.queried = []

    def initialize(self, force=False):
        self.initialized += 1

    def safe_get_info(self, obj, max_retries=3):
        self.queried.append(obj)
        return self.responses.popleft()


@pytest.fixture(autouse=True)
def mock_ee(monkeypatch):
    """
    Monkeypatch ee.Initialize and ee.Authenticate so that nothing reaches
    the network during tests.
    """
    monkeypatch.setattr(ee, "Initialize", lambda *args, **kwargs: None)
    monkeypatch.setattr(ee, "Authenticate", lambda *args, **kwargs: None)
    monkeypatch.setattr(ee, "ServiceAccountCredentials", lambda a, b: MagicMock())
    yield


@pytest.fixture
def fake_ee():
    """MagicMock replacing the ``ee`` module inside a denudmap module."""
    return MagicMock(name="ee")


@pytest.fixture
def predictors():
    return list(PREDICTORS)


@pytest.fixture
def fake_manager_cls():
    return FakeManager


@pytest.fixture(autouse=True)
def configured_logging():
    """Configure logging during setup so later calls leave caplog's handler alone."""
    Logger.setup()
    yield
