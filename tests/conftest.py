"""Shared fixtures: fake HTTP sessions fed with real requests.Response objects."""

import json
from pathlib import Path

import pytest
import requests

FIXTURES = Path(__file__).parent / "fixtures"


def make_response(status_code=200, body="", url="http://example.test/"):
    """Build a real requests.Response without any network."""
    if not isinstance(body, (str, bytes)):
        body = json.dumps(body)
    if isinstance(body, str):
        body = body.encode("utf-8")

    response = requests.Response()
    response.status_code = status_code
    response._content = body
    response.url = url
    response.reason = "OK" if status_code < 400 else "Error"
    response.encoding = "utf-8"
    return response


class FakeSession:
    """Stands in for requests.Session, answering from a queue.

    Queue items are Response objects or exceptions to raise.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        item.url = url
        return item

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)


class FakeScheduler:
    """Records scheduled callbacks instead of starting timers."""

    def __init__(self):
        self.scheduled = []

    def call_later(self, delay, callback):
        self.scheduled.append((delay, callback))

    @property
    def delays(self):
        return [delay for delay, _ in self.scheduled]


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def fixture_text():
    def _read(name):
        return (FIXTURES / name).read_text(encoding="utf-8")
    return _read


@pytest.fixture(name="make_response")
def make_response_fixture():
    return make_response
