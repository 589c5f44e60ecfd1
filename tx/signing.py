"""
Transaction signing.

A transaction is signed by personal-signing (EIP-191) a chain-bound text
payload; the signature and the raw transaction are then wrapped in a
SignedTx envelope and base64 encoded for submission.
"""

import asyncio
import functools
import itertools
import logging
from typing import Any, List, Optional, Protocol, Union

import requests
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys import keys

from utils.codec import bytes_to_hex, hex_to_bytes, keccak256_hex, strip0x
from utils.errors import RemoteError

from .wire import decode_signed_tx, encode_signed_tx

logger = logging.getLogger(__name__)

SIGNED_TX_PREFIX = "Vocdoni signed transaction:\n"


class SignerCapability(Protocol):
    async def get_address(self) -> str: ...

    async def personal_sign(self, message: bytes) -> str: ...

    def compressed_public_key(self) -> Optional[str]: ...


class LocalKeySigner:
    """Signs with an in-process secp256k1 private key"""

    def __init__(self, private_key: Union[str, bytes]):
        self._account = Account.from_key(private_key)

    @classmethod
    def generate(cls) -> 'LocalKeySigner':
        return cls(Account.create().key)

    @property
    def address(self) -> str:
        return self._account.address

    async def get_address(self) -> str:
        return self._account.address

    def compressed_public_key(self) -> str:
        public_key = keys.PrivateKey(bytes(self._account.key)).public_key
        return bytes_to_hex(public_key.to_compressed_bytes())

    async def personal_sign(self, message: bytes) -> str:
        signed = self._account.sign_message(encode_defunct(primitive=message))
        return bytes_to_hex(bytes(signed.signature))


class RemoteSigner:
    """Delegates personal_sign to a JSON-RPC wallet endpoint"""

    def __init__(self, rpc_url: str, address: Optional[str] = None,
                 timeout: float = 60.0, session: Optional[requests.Session] = None):
        self.rpc_url = rpc_url
        self._address = address
        self.timeout = timeout
        self.session = session or requests.Session()
        self._ids = itertools.count(1)

    async def get_address(self) -> str:
        if self._address is None:
            accounts = await self._call("eth_accounts", [])
            if not accounts:
                raise RemoteError("Remote signer exposes no accounts")
            self._address = accounts[0]
        return self._address

    def compressed_public_key(self) -> Optional[str]:
        return None

    async def personal_sign(self, message: bytes) -> str:
        address = await self.get_address()
        return await self._call("personal_sign", [bytes_to_hex(message), address.lower()])

    async def _call(self, method: str, params: List[Any]) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(self._call_sync, method, params))

    def _call_sync(self, method: str, params: List[Any]) -> Any:
        request = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = self.session.post(self.rpc_url, json=request, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            raise RemoteError(f"Signer call {method} failed: {e}") from e

        if body.get("error"):
            error = body["error"]
            raise RemoteError(error.get("message", str(error)), error.get("code"))
        return body.get("result")


def hash_transaction(tx: bytes) -> str:
    return strip0x(keccak256_hex(tx))


def build_signing_payload(tx: bytes, chain_id: str) -> bytes:
    """Text the signer personal-signs for `tx` on chain `chain_id`"""
    return (SIGNED_TX_PREFIX + chain_id + "\n" + hash_transaction(tx)).encode("utf-8")


async def sign_transaction(tx: bytes, chain_id: str,
                           signer: Optional[SignerCapability]) -> str:
    """Sign `tx` for `chain_id` and return the base64 SignedTx payload"""
    if signer is None:
        raise ValueError("No signer provided")

    signature = await signer.personal_sign(build_signing_payload(tx, chain_id))
    logger.debug(f"Signed transaction {hash_transaction(tx)[:16]}... for chain {chain_id}")
    return encode_signed_tx(tx, hex_to_bytes(signature))


def recover_transaction_signer(payload: str, chain_id: str) -> str:
    """Address that produced a base64 SignedTx payload"""
    tx, signature = decode_signed_tx(payload)
    message = encode_defunct(primitive=build_signing_payload(tx, chain_id))
    return Account.recover_message(message, signature=signature)
