import asyncio
import threading

import pytest
import requests

from chain.api import RemoteAPI, RemoteCspAPI, error_from_response
from utils.errors import (
    ElectionNotStartedError,
    KeyNotFoundInCensusError,
    RemoteError,
    SikNotFoundError,
    TransactionNotFoundError,
)


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body
        self.text = "" if body is None else str(body)
        self.content = b"" if body is None else b"{}"

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(body={})
        self.error = error
        self.requests = []

    def request(self, method, url, json=None, timeout=None):
        self.requests.append((method, url, json))
        if self.error is not None:
            raise self.error
        return self.response


def test_error_codes_map_to_typed_errors():
    error = error_from_response(400, {"code": 4049, "error": "key not found in census"})
    assert isinstance(error, KeyNotFoundInCensusError)
    assert error.code == 4049
    assert str(error) == "key not found in census"

    assert isinstance(error_from_response(404, {"code": 4007, "error": "x"}), TransactionNotFoundError)
    assert isinstance(error_from_response(404, {"code": 4054, "error": "x"}), SikNotFoundError)


def test_error_messages_map_without_code():
    error = error_from_response(400, {"error": "election not started yet"})
    assert isinstance(error, ElectionNotStartedError)

    error = error_from_response(500, None, "gateway exploded")
    assert type(error) is RemoteError
    assert str(error) == "gateway exploded"


def test_remote_api_raises_mapped_errors():
    session = FakeSession(FakeResponse(400, {"code": 4049, "error": "key not found in census"}))
    api = RemoteAPI("https://api.test/v2/", session=session)

    with pytest.raises(KeyNotFoundInCensusError):
        asyncio.run(api.census_proof("root", "0xabc"))
    assert session.requests == [("GET", "https://api.test/v2/censuses/root/proof/0xabc", None)]


def test_remote_api_wraps_transport_errors():
    session = FakeSession(error=requests.ConnectionError("refused"))
    api = RemoteAPI("https://api.test/v2", session=session)

    with pytest.raises(RemoteError, match="refused"):
        asyncio.run(api.info())


def test_submit_tx_posts_payload():
    session = FakeSession(FakeResponse(200, {"hash": "ab" * 32}))
    api = RemoteAPI("https://api.test/v2", session=session)

    assert asyncio.run(api.submit_tx("cGF5bG9hZA==")) == "ab" * 32
    assert session.requests == [
        ("POST", "https://api.test/v2/chain/transactions", {"payload": "cGF5bG9hZA=="})]


def test_csp_step_forwards_auth_token():
    session = FakeSession(FakeResponse(200, {"authToken": "t2"}))
    api = RemoteCspAPI("https://csp.test/v1", session=session)

    asyncio.run(api.step("e1", "blind", "auth", 1, ["code"], auth_token="t1"))
    assert session.requests == [(
        "POST", "https://csp.test/v1/auth/elections/e1/blind/auth/1",
        {"authData": ["code"], "authToken": "t1"},
    )]


def test_default_sessions_are_per_thread():
    api = RemoteAPI("https://api.test/v2")
    sessions = []

    def grab():
        sessions.append(api.session)

    threads = [threading.Thread(target=grab) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert api.session is api.session
    assert len({id(s) for s in sessions + [api.session]}) == 3

    shared = FakeSession()
    assert RemoteAPI("https://api.test/v2", session=shared).session is shared
