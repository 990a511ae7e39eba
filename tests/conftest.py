"""Pytest configuration to make the project root importable.

Also provides environments wired to in-memory streams and storage, so tests
never touch ~/.scriptkit or the network.
"""

import io
import os
import sys

import pytest

# Project root = parent directory of this tests/ folder
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from scriptkit.environment import ExecutionEnvironment  # noqa: E402
from scriptkit.engine.storage import InMemoryStorage  # noqa: E402


@pytest.fixture
def streams():
    """(stdin, stdout, stderr) as StringIO objects."""
    return io.StringIO(), io.StringIO(), io.StringIO()


@pytest.fixture
def make_env(tmp_path, streams):
    stdin, stdout, stderr = streams

    def _make(**overrides):
        values = dict(
            storage=InMemoryStorage(),
            wd=tmp_path,
            welcome_banner=None,
            input_stream=stdin,
            output_stream=stdout,
            info_stream=stderr,
            error_stream=stderr,
            remote_logging=False,
        )
        values.update(overrides)
        return ExecutionEnvironment(**values)

    return _make


class FakeRemoteLogger:
    """Records events and close() calls instead of posting anything."""

    instances = []

    def __init__(self, session_id):
        self.session_id = session_id
        self.events = []
        self.close_calls = 0
        FakeRemoteLogger.instances.append(self)

    def apply(self, event):
        self.events.append(event)

    def close(self):
        self.close_calls += 1


@pytest.fixture
def fake_logger(monkeypatch):
    FakeRemoteLogger.instances = []
    monkeypatch.setattr("scriptkit.remote_logger.RemoteLogger", FakeRemoteLogger)
    return FakeRemoteLogger
