"""
Remote service interfaces consumed by the pipeline and their REST adapters.

The pipeline only depends on the Protocols below; `RemoteAPI` and
`RemoteCspAPI` implement them over HTTP with requests. Blocking calls are run
in the event loop's default executor.
"""

import asyncio
import functools
import logging
import threading
from typing import Any, Dict, List, Optional, Protocol

import requests

from utils.errors import (
    RemoteError,
    KeyNotFoundInCensusError,
    TransactionNotFoundError,
    AccountNotFoundError,
    ElectionNotFoundError,
    ElectionNotStartedError,
    NoElectionKeysError,
    CensusNotFoundError,
    SikNotFoundError,
)

logger = logging.getLogger(__name__)

# ============================================================================
# CONSUMED INTERFACES
# ============================================================================


class ChainAPI(Protocol):
    async def info(self) -> Dict[str, Any]: ...
    async def tx_info(self, tx_hash: str) -> Dict[str, Any]: ...
    async def submit_tx(self, payload: str) -> str: ...
    async def account(self, address: str) -> Dict[str, Any]: ...
    async def circuits(self) -> Dict[str, Any]: ...
    async def fetch_file(self, url: str) -> bytes: ...


class CensusAPI(Protocol):
    async def census_proof(self, census_root: str, key: str) -> Dict[str, Any]: ...


class ElectionAPI(Protocol):
    async def election(self, election_id: str) -> Dict[str, Any]: ...
    async def election_keys(self, election_id: str) -> List[Dict[str, Any]]: ...


class VoteAPI(Protocol):
    async def submit_vote(self, payload: str) -> Dict[str, Any]: ...


class ZkAPI(Protocol):
    async def sik(self, address: str) -> Dict[str, Any]: ...
    async def sik_proof(self, address: str) -> Dict[str, Any]: ...


class CspAPI(Protocol):
    async def info(self) -> Dict[str, Any]: ...

    async def step(self, election_id: str, signature_type: str, auth_type: str,
                   step: int, data: List[Any], auth_token: Optional[str] = None) -> Dict[str, Any]: ...

    async def sign(self, election_id: str, signature_type: str,
                   payload: str, token: str) -> Dict[str, Any]: ...


# ============================================================================
# ERROR MAPPING
# ============================================================================

ERROR_CODES = {
    4003: AccountNotFoundError,
    4007: TransactionNotFoundError,
    4045: ElectionNotFoundError,
    4046: CensusNotFoundError,
    4047: NoElectionKeysError,
    4049: KeyNotFoundInCensusError,
    4054: SikNotFoundError,
}

ERROR_MESSAGES = {
    "key not found in census": KeyNotFoundInCensusError,
    "not started": ElectionNotStartedError,
}


def error_from_response(status_code: int, body: Any, text: str = "") -> RemoteError:
    """Typed error for a failed API response. The service message is kept verbatim."""
    code = None
    message = text or f"HTTP {status_code}"
    if isinstance(body, dict):
        code = body.get("code")
        message = body.get("error") or body.get("message") or message

    error_class = ERROR_CODES.get(code)
    if error_class is None:
        lowered = message.lower()
        error_class = next(
            (cls for fragment, cls in ERROR_MESSAGES.items() if fragment in lowered),
            RemoteError
        )
    return error_class(message, code)


# ============================================================================
# REST ADAPTERS
# ============================================================================


class _JsonClient:
    def __init__(self, url: str, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.url = url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """The injected session, otherwise one session per executor thread"""
        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    async def _request(self, method: str, path: str,
                       body: Optional[Dict[str, Any]] = None) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(self._request_sync, method, path, body))

    def _request_sync(self, method: str, path: str, body: Optional[Dict[str, Any]]) -> Any:
        url = path if path.startswith("http") else f"{self.url}{path}"
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method, url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteError(f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            raise error_from_response(response.status_code, payload, response.text)

        if not response.content:
            return {}
        return response.json()


class RemoteAPI(_JsonClient):
    """Chain, census, election, vote and SIK endpoints of the API service"""

    async def info(self) -> Dict[str, Any]:
        return await self._request("GET", "/chain/info")

    async def tx_info(self, tx_hash: str) -> Dict[str, Any]:
        return await self._request("GET", f"/chain/transactions/reference/{tx_hash}")

    async def submit_tx(self, payload: str) -> str:
        response = await self._request("POST", "/chain/transactions", {"payload": payload})
        return response["hash"]

    async def account(self, address: str) -> Dict[str, Any]:
        return await self._request("GET", f"/accounts/{address}")

    async def circuits(self) -> Dict[str, Any]:
        return await self._request("GET", "/chain/info/circuit")

    async def fetch_file(self, url: str) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._fetch_file_sync, url)

    def _fetch_file_sync(self, url: str) -> bytes:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise RemoteError(f"Could not download {url}: {e}") from e
        return response.content

    async def census_proof(self, census_root: str, key: str) -> Dict[str, Any]:
        return await self._request("GET", f"/censuses/{census_root}/proof/{key}")

    async def election(self, election_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/elections/{election_id}")

    async def election_keys(self, election_id: str) -> List[Dict[str, Any]]:
        response = await self._request("GET", f"/elections/{election_id}/keys")
        return response.get("publicKeys") or []

    async def submit_vote(self, payload: str) -> Dict[str, Any]:
        return await self._request("POST", "/votes", {"txPayload": payload})

    async def sik(self, address: str) -> Dict[str, Any]:
        return await self._request("GET", f"/siks/{address}")

    async def sik_proof(self, address: str) -> Dict[str, Any]:
        return await self._request("GET", f"/siks/proof/{address}")


class RemoteCspAPI(_JsonClient):
    """Credential service provider (blind signature) endpoints"""

    async def info(self) -> Dict[str, Any]:
        return await self._request("GET", "/auth/elections/info")

    async def step(self, election_id: str, signature_type: str, auth_type: str,
                   step: int, data: List[Any], auth_token: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"authData": data}
        if auth_token:
            body["authToken"] = auth_token
        return await self._request(
            "POST", f"/auth/elections/{election_id}/{signature_type}/{auth_type}/{step}", body)

    async def sign(self, election_id: str, signature_type: str,
                   payload: str, token: str) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/auth/elections/{election_id}/{signature_type}/sign",
            {"payload": payload, "token": token})
