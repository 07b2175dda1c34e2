"""Test configuration and fixtures."""

import json
from typing import Any, Dict, Optional
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict
from urllib3.exceptions import ProtocolError

from smartcar_api import SmartcarClient, SmartcarConfig

REQUEST_ID = "2eaf6dbe-5f1b-4a23-9b5a-2a1d4b3c7e10"


def make_response(
    status_code: int = 200,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    request_id: Optional[str] = REQUEST_ID,
) -> requests.Response:
    """Build a real requests.Response without touching the network.

    Dict and list bodies are JSON encoded and get a JSON content type.
    """
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"

    all_headers = {}
    if isinstance(body, (dict, list)):
        body = json.dumps(body)
        all_headers["Content-Type"] = "application/json; charset=utf-8"
    if request_id is not None:
        all_headers["SC-Request-Id"] = request_id
    all_headers.update(headers or {})
    response.headers = CaseInsensitiveDict(all_headers)

    response._content = (body or "").encode("utf-8")
    response._content_consumed = True
    return response


def sent_request(session) -> requests.PreparedRequest:
    """Return the prepared request passed to the mocked send."""
    return session.send.call_args.args[0]


def query_of(prepared: requests.PreparedRequest) -> Dict[str, list]:
    return parse_qs(urlparse(prepared.url).query)


@pytest.fixture
def config():
    return SmartcarConfig(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="https://example.com/callback",
    )


@pytest.fixture
def session():
    """A real session whose transport is replaced by a mock."""
    session = requests.Session()
    session.send = MagicMock(return_value=make_response(body={}))
    return session


@pytest.fixture
def client(config, session):
    return SmartcarClient(config, session=session)


class StubRaw:
    """Raw stream that yields a body, or fails part way through it."""

    def __init__(self, body: bytes = b"", fail: bool = False):
        self.body = body
        self.fail = fail
        self.closed = False

    def stream(self, chunk_size, decode_content=True):
        if self.body:
            yield self.body
        if self.fail:
            raise ProtocolError("connection reset mid-body")

    def close(self):
        self.closed = True


class StubAdapter(BaseAdapter):
    """Transport adapter answering every request with one canned response."""

    def __init__(
        self,
        status_code: int = 200,
        body: bytes = b"{}",
        headers: Optional[Dict[str, str]] = None,
        fail: bool = False,
    ):
        super().__init__()
        self.status_code = status_code
        self.headers = headers or {}
        self.raw = StubRaw(body, fail=fail)
        self.requests = []

    def send(
        self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None
    ):
        self.requests.append(request)
        response = requests.Response()
        response.status_code = self.status_code
        response.headers = CaseInsensitiveDict(self.headers)
        response.encoding = "utf-8"
        response.raw = self.raw
        response.url = request.url
        response.request = request
        response.connection = self
        return response

    def close(self):
        pass


def mounted_client(config, adapter: StubAdapter) -> SmartcarClient:
    session = requests.Session()
    session.mount("https://", adapter)
    return SmartcarClient(config, session=session)
