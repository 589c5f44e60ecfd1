"""
Tests for blind signatures and the CSP authentication flow
"""

import asyncio

import pytest
from eth_keys.backends.native.jacobian import fast_multiply
from eth_keys.constants import SECPK1_G

from blind.blind_signature import (
    BlindSignature,
    blind,
    blind_sign,
    ca_bundle_hash,
    decode_point,
    encode_point,
    new_request_parameters,
    signature_from_hex,
    signature_to_hex,
    unblind,
    verify,
)
from blind.csp import BlindSignatureProtocol, CspState
from census.proof import CspProofType
from utils.errors import CspProtocolError, ValidationError

SIGNER_KEY = 0x1f2e3d4c5b6a79880123456789abcdef0123456789abcdef0123456789abcdef
SIGNER_PUBLIC = fast_multiply(SECPK1_G, SIGNER_KEY)
ADDRESS = "0x" + "12" * 20


class FakeCsp:
    """Two-step CSP: an email step answering an authToken, then a code step answering R"""

    def __init__(self, steps=None):
        self.steps = steps
        self.step_calls = []
        self.k = None

    async def info(self):
        return {"signatureType": ["blind"], "authType": "email",
                "authSteps": [{"title": "Email"}, {"title": "Code"}]}

    async def step(self, election_id, signature_type, auth_type, step, data, auth_token=None):
        self.step_calls.append((step, list(data), auth_token))
        if self.steps is not None:
            return self.steps[step]
        if step == 0:
            return {"authToken": "token-0"}
        self.k, signer_r = new_request_parameters()
        return {"token": encode_point(signer_r)}

    async def sign(self, election_id, signature_type, payload, token):
        assert len(payload) == 64
        blinded_signature = blind_sign(SIGNER_KEY, int(payload, 16), self.k)
        return {"signature": format(blinded_signature, "064x")}


def _sign_blind(message: int) -> BlindSignature:
    k, signer_r = new_request_parameters()
    blinded, secret = blind(message, signer_r)
    return unblind(blind_sign(SIGNER_KEY, blinded, k), secret)


def test_unblinded_signature_verifies(election_id):
    message = ca_bundle_hash(election_id, ADDRESS)
    signature = signature_to_hex(_sign_blind(int(message, 16)))

    assert len(signature) == 192
    assert verify(message, signature, encode_point(SIGNER_PUBLIC))


def test_tampered_signature_or_message_fails(election_id):
    message = ca_bundle_hash(election_id, ADDRESS)
    signature = _sign_blind(int(message, 16))
    public_key = encode_point(SIGNER_PUBLIC)

    tampered = BlindSignature(s=(signature.s + 1), f=signature.f)
    assert not verify(message, signature_to_hex(tampered), public_key)
    assert not verify(ca_bundle_hash(election_id, "0x" + "34" * 20),
                      signature_to_hex(signature), public_key)


def test_malformed_signature_does_not_verify(election_id):
    assert not verify(ca_bundle_hash(election_id, ADDRESS), "00" * 10, encode_point(SIGNER_PUBLIC))
    assert not verify("zz" * 32, signature_to_hex(_sign_blind(1)), encode_point(SIGNER_PUBLIC))


def test_altered_blinded_message_fails(election_id):
    message = ca_bundle_hash(election_id, ADDRESS)
    k, signer_r = new_request_parameters()
    blinded, secret = blind(int(message, 16), signer_r)

    signature = unblind(blind_sign(SIGNER_KEY, blinded ^ 1, k), secret)

    assert not verify(message, signature_to_hex(signature), encode_point(SIGNER_PUBLIC))


def test_point_encodings():
    raw = encode_point(SIGNER_PUBLIC)
    x, y = SIGNER_PUBLIC
    compressed = bytes([2 + (y & 1)]) + x.to_bytes(32, "big")

    assert decode_point(raw) == SIGNER_PUBLIC
    assert decode_point("04" + raw) == SIGNER_PUBLIC
    assert decode_point(compressed.hex()) == SIGNER_PUBLIC
    with pytest.raises(ValidationError):
        decode_point("00" * 64)


def test_signature_hex_round_trip():
    signature = _sign_blind(12345)
    assert signature_from_hex(signature_to_hex(signature)) == signature


def test_csp_flow_yields_verifiable_signature(election_id):
    csp = FakeCsp()
    protocol = BlindSignatureProtocol(csp, election_id)

    proof = asyncio.run(protocol.run(ADDRESS, [["voter@example.com"], ["123456"]]))

    assert protocol.state is CspState.DONE
    assert csp.step_calls == [(0, ["voter@example.com"], None), (1, ["123456"], "token-0")]
    assert proof.address == ADDRESS
    assert proof.proof_type is CspProofType.ECDSA_BLIND_PIDSALTED
    assert BlindSignatureProtocol.verify(
        ca_bundle_hash(election_id, ADDRESS), proof.signature, encode_point(SIGNER_PUBLIC))


def test_step_without_token_restarts_flow(election_id):
    csp = FakeCsp(steps=[{"authToken": "token-0"}, {}])
    protocol = BlindSignatureProtocol(csp, election_id)

    asyncio.run(protocol.step(["voter@example.com"]))
    assert protocol.step_number == 1

    with pytest.raises(CspProtocolError):
        asyncio.run(protocol.step(["123456"]))
    assert protocol.state is CspState.STEP
    assert protocol.step_number == 0
    assert protocol.auth_token is None


def test_sign_requires_token(election_id):
    protocol = BlindSignatureProtocol(FakeCsp(), election_id)
    with pytest.raises(CspProtocolError):
        asyncio.run(protocol.sign(ADDRESS))
