import json

import httpx
import pytest

from scriptkit.engine.storage import InMemoryStorage
from scriptkit.remote_logger import RemoteLogger, remote_logging


def _recording_transport(status_code=200):
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(json.loads(request.content))
        return httpx.Response(status_code)

    return httpx.MockTransport(handler), received


def test_apply_posts_event_with_session_id():
    transport, received = _recording_transport()
    logger = RemoteLogger("session-1", url="http://logs.test/events", transport=transport)

    logger.apply("Boot")

    assert len(received) == 1
    assert received[0]["session_id"] == "session-1"
    assert received[0]["event"] == "Boot"
    assert "timestamp" in received[0]


def test_http_errors_are_not_raised():
    transport, received = _recording_transport(status_code=500)
    logger = RemoteLogger("s", url="http://logs.test/events", transport=transport)

    logger.apply("Boot")

    assert len(received) == 1


def test_connection_errors_are_not_raised():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    logger = RemoteLogger("s", url="http://logs.test/events", transport=httpx.MockTransport(handler))
    logger.apply("Boot")


def test_no_url_means_no_request():
    transport, received = _recording_transport()
    logger = RemoteLogger("s", url="", transport=transport)

    logger.apply("Boot")

    assert received == []


def test_closed_logger_drops_events_and_close_is_idempotent():
    transport, received = _recording_transport()
    logger = RemoteLogger("s", url="http://logs.test/events", transport=transport)

    logger.close()
    logger.close()
    logger.apply("Exit")

    assert logger.closed
    assert received == []


def test_remote_logging_disabled_creates_nothing(fake_logger):
    with remote_logging(False, InMemoryStorage()) as logger:
        assert logger is None
    assert fake_logger.instances == []


def test_remote_logging_boots_and_closes_once(fake_logger):
    with remote_logging(True, InMemoryStorage(session_id="abc")) as logger:
        assert logger.session_id == "abc"
        assert logger.events == ["Boot"]

    assert logger.close_calls == 1


def test_remote_logging_closes_once_on_error(fake_logger):
    with pytest.raises(RuntimeError):
        with remote_logging(True, InMemoryStorage()):
            raise RuntimeError("session blew up")

    assert [instance.close_calls for instance in fake_logger.instances] == [1]
