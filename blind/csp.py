import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from census.proof import CspProof, CspProofType
from chain.api import CspAPI
from utils.codec import strip0x
from utils.errors import CspProtocolError, RemoteError

from .blind_signature import get_blinded_payload, signature_to_hex, unblind, verify

logger = logging.getLogger(__name__)

DEFAULT_SIGNATURE_TYPE = "blind"


class CspState(Enum):
    INFO = "info"
    STEP = "step"
    SIGN = "sign"
    DONE = "done"


@dataclass(frozen=True)
class CspInfo:
    signature_types: List[str]
    auth_type: str
    auth_steps: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'CspInfo':
        return cls(
            signature_types=list(data.get("signatureType") or []),
            auth_type=data.get("authType", ""),
            auth_steps=list(data.get("authSteps") or []),
        )


class BlindSignatureProtocol:
    """
    Authentication and blind signing session with a credential service provider.

    INFO -> STEP(0) -> ... -> STEP(n) -> SIGN -> DONE. Each intermediate step
    must answer with an authToken that is forwarded to the next step; the last
    one answers with the signing token (the signer's R point). Any failure
    drops the session back to STEP(0); there is no resume.
    """

    def __init__(self, api: CspAPI, election_id: str,
                 signature_type: str = DEFAULT_SIGNATURE_TYPE):
        self.api = api
        self.election_id = election_id
        self.signature_type = signature_type
        self.state = CspState.INFO
        self.step_number = 0
        self.auth_token: Optional[str] = None
        self.token: Optional[str] = None
        self.csp_info: Optional[CspInfo] = None

    def _restart(self):
        self.state = CspState.STEP if self.csp_info else CspState.INFO
        self.step_number = 0
        self.auth_token = None
        self.token = None

    async def info(self) -> CspInfo:
        self.csp_info = CspInfo.from_api(await self.api.info())
        if self.csp_info.signature_types and self.signature_type not in self.csp_info.signature_types:
            raise CspProtocolError(
                f"CSP does not support signature type '{self.signature_type}'")
        self.state = CspState.STEP
        logger.info(
            f"CSP uses {self.csp_info.auth_type} auth with {len(self.csp_info.auth_steps)} steps")
        return self.csp_info

    async def step(self, data: List[Any]) -> Dict[str, Any]:
        """Run the next authentication step with the voter's `data`"""
        if self.state is CspState.INFO:
            await self.info()
        if self.state is not CspState.STEP:
            raise CspProtocolError(f"Cannot run an auth step in state {self.state.value}")

        try:
            response = await self.api.step(
                self.election_id, self.signature_type, self.csp_info.auth_type,
                self.step_number, data, self.auth_token)
        except RemoteError:
            self._restart()
            raise

        if response.get("token"):
            self.token = response["token"]
            self.state = CspState.SIGN
        elif response.get("authToken"):
            self.auth_token = response["authToken"]
            self.step_number += 1
        else:
            failed_step = self.step_number
            self._restart()
            raise CspProtocolError(
                f"CSP step {failed_step} returned neither authToken nor token")
        return response

    async def authenticate(self, steps_data: List[List[Any]]) -> str:
        """Run every auth step and return the signing token"""
        for data in steps_data:
            await self.step(data)
            if self.state is CspState.SIGN:
                return self.token

        self._restart()
        raise CspProtocolError("CSP authentication finished without a signing token")

    async def sign(self, address: str, token: Optional[str] = None) -> str:
        """Blind, have the CSP sign and unblind the CA bundle of `address`"""
        token = token or self.token
        if not token:
            raise CspProtocolError("No CSP signing token, authenticate first")

        blinded_payload, secret = get_blinded_payload(self.election_id, token, address)
        try:
            response = await self.api.sign(
                self.election_id, self.signature_type, blinded_payload, token)
        except RemoteError:
            self._restart()
            raise

        blinded_signature = response.get("signature")
        if not blinded_signature:
            self._restart()
            raise CspProtocolError("CSP sign response carries no signature")

        signature = signature_to_hex(unblind(int(strip0x(blinded_signature), 16), secret))
        self.state = CspState.DONE
        logger.info(f"Obtained CSP signature for {address}")
        return signature

    async def run(self, address: str, steps_data: List[List[Any]],
                  proof_type: CspProofType = CspProofType.ECDSA_BLIND_PIDSALTED,
                  weight: int = 1) -> CspProof:
        await self.authenticate(steps_data)
        signature = await self.sign(address)
        return CspProof(address=address, signature=signature,
                        proof_type=proof_type, weight=weight)

    @staticmethod
    def verify(message_hex: str, signature_hex: str, public_key_hex: str) -> bool:
        return verify(message_hex, signature_hex, public_key_hex)
