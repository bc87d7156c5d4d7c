import json

import httplib2
import pytest
from googleapiclient.errors import HttpError

from gwsm.access import gws
from gwsm.pager import Stream
from gwsm.settings import settings

@pytest.fixture(autouse=True)
def fast_settings(monkeypatch):
    """No pacing delays and a clean registry for every test"""
    monkeypatch.setattr(settings, "standard_delay", 0)
    monkeypatch.setattr(settings, "jitter", (0, 0))
    monkeypatch.setattr(settings, "threads", 0)
    monkeypatch.setattr(settings, "retry_on", [])
    gws.reset()
    yield
    gws.reset()

@pytest.fixture
def http_error():
    def _make(status: int, message: str = "") -> HttpError:
        content = json.dumps({"error": {"code": status, "message": message}}).encode("utf-8")
        return HttpError(httplib2.Response({"status": status}), content)
    return _make

@pytest.fixture
def make_stream():
    """A finished Stream holding items (and optionally an error)"""
    def _make(items, error=None) -> Stream:
        s = Stream(max(1, len(items)))
        for i in items:
            s.put(i)
        if error is not None:
            s.fail(error)
        s.close()
        return s
    return _make

@pytest.fixture
def sleeps(monkeypatch):
    """Record the backoff sleeps of the retrier instead of sleeping"""
    slept = []
    def _sleep(seconds):
        if seconds:
            slept.append(seconds)
    monkeypatch.setattr("gwsm.retry.time.sleep", _sleep)
    return slept
