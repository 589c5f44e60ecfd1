"""Blind signatures and the credential service provider flow."""

from .blind_signature import (
    BlindSignature,
    UserSecretData,
    decode_point,
    encode_point,
    blind,
    unblind,
    blind_sign,
    new_request_parameters,
    verify,
    verify_signature,
    signature_to_hex,
    signature_from_hex,
    ca_bundle_hash,
    get_blinded_payload,
)
from .csp import BlindSignatureProtocol, CspInfo, CspState

__all__ = [
    'BlindSignature',
    'UserSecretData',
    'decode_point',
    'encode_point',
    'blind',
    'unblind',
    'blind_sign',
    'new_request_parameters',
    'verify',
    'verify_signature',
    'signature_to_hex',
    'signature_from_hex',
    'ca_bundle_hash',
    'get_blinded_payload',
    'BlindSignatureProtocol',
    'CspInfo',
    'CspState',
]
