"""
Protobuf messages of the vote transaction.

The message set is declared at import time from a FileDescriptorProto so the
package ships no generated code. Field numbers follow the chain's
`vochain.proto`; only the messages needed to cast votes are declared.
"""

import base64
from typing import List, Tuple

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_Field = descriptor_pb2.FieldDescriptorProto

_PACKAGE = "vochain"

# (name, number, type, label, type_name, oneof_index)
_MESSAGES = {
    "CAbundle": [
        ("processId", 1, _Field.TYPE_BYTES, _Field.LABEL_OPTIONAL, None, None),
        ("address", 2, _Field.TYPE_BYTES, _Field.LABEL_OPTIONAL, None, None),
    ],
    "ProofCA": [
        ("type", 1, _Field.TYPE_ENUM, _Field.LABEL_OPTIONAL, ".vochain.ProofCA.Type", None),
        ("bundle", 2, _Field.TYPE_MESSAGE, _Field.LABEL_OPTIONAL, ".vochain.CAbundle", None),
        ("signature", 3, _Field.TYPE_BYTES, _Field.LABEL_OPTIONAL, None, None),
    ],
    "ProofArbo": [
        ("type", 1, _Field.TYPE_ENUM, _Field.LABEL_OPTIONAL, ".vochain.ProofArbo.Type", None),
        ("siblings", 2, _Field.TYPE_BYTES, _Field.LABEL_OPTIONAL, None, None),
        ("availableWeight", 3, _Field.TYPE_BYTES, _Field.LABEL_OPTIONAL, None, None),
        ("keyType", 4, _Field.TYPE_ENUM, _Field.LABEL_OPTIONAL, ".vochain.ProofArbo.KeyType", None),
        ("voteWeight", 5, _Field.TYPE_BYTES, _Field.LABEL_OPTIONAL, None, None),
    ],
    "ProofZkSNARK": [
        ("circuitParametersIndex", 1, _Field.TYPE_INT32, _Field.LABEL_OPTIONAL, None, None),
        ("a", 2, _Field.TYPE_STRING, _Field.LABEL_REPEATED, None, None),
        ("b", 3, _Field.TYPE_STRING, _Field.LABEL_REPEATED, None, None),
        ("c", 4, _Field.TYPE_STRING, _Field.LABEL_REPEATED, None, None),
        ("publicInputs", 5, _Field.TYPE_STRING, _Field.LABEL_REPEATED, None, None),
    ],
    "Proof": [
        ("ca", 5, _Field.TYPE_MESSAGE, _Field.LABEL_OPTIONAL, ".vochain.ProofCA", 0),
        ("arbo", 6, _Field.TYPE_MESSAGE, _Field.LABEL_OPTIONAL, ".vochain.ProofArbo", 0),
        ("zkSnark", 7, _Field.TYPE_MESSAGE, _Field.LABEL_OPTIONAL, ".vochain.ProofZkSNARK", 0),
    ],
    "VoteEnvelope": [
        ("nonce", 1, _Field.TYPE_BYTES, _Field.LABEL_OPTIONAL, None, None),
        ("processId", 2, _Field.TYPE_BYTES, _Field.LABEL_OPTIONAL, None, None),
        ("proof", 3, _Field.TYPE_MESSAGE, _Field.LABEL_OPTIONAL, ".vochain.Proof", None),
        ("votePackage", 4, _Field.TYPE_BYTES, _Field.LABEL_OPTIONAL, None, None),
        ("nullifier", 5, _Field.TYPE_BYTES, _Field.LABEL_OPTIONAL, None, None),
        ("encryptionKeyIndexes", 6, _Field.TYPE_UINT32, _Field.LABEL_REPEATED, None, None),
    ],
    "Tx": [
        ("vote", 1, _Field.TYPE_MESSAGE, _Field.LABEL_OPTIONAL, ".vochain.VoteEnvelope", 0),
    ],
    "SignedTx": [
        ("tx", 1, _Field.TYPE_BYTES, _Field.LABEL_OPTIONAL, None, None),
        ("signature", 2, _Field.TYPE_BYTES, _Field.LABEL_OPTIONAL, None, None),
    ],
}

_ONEOFS = {"Proof": "payload", "Tx": "payload"}

ARBO_TYPE_BLAKE2B = 0
ARBO_TYPE_POSEIDON = 1

_ENUMS = {
    "ProofCA": {
        "Type": [("UNKNOWN", 0), ("ECDSA", 1), ("ECDSA_PIDSALTED", 2),
                 ("ECDSA_BLIND", 3), ("ECDSA_BLIND_PIDSALTED", 4)],
    },
    "ProofArbo": {
        "Type": [("BLAKE2B", 0), ("POSEIDON", 1)],
        "KeyType": [("PUBKEY", 0), ("ADDRESS", 1)],
    },
}


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="vochain/vote_tx.proto", package=_PACKAGE, syntax="proto3")

    for message_name, fields in _MESSAGES.items():
        message = file_proto.message_type.add(name=message_name)

        for enum_name, values in _ENUMS.get(message_name, {}).items():
            enum = message.enum_type.add(name=enum_name)
            for value_name, number in values:
                enum.value.add(name=value_name, number=number)

        if message_name in _ONEOFS:
            message.oneof_decl.add(name=_ONEOFS[message_name])

        for name, number, field_type, label, type_name, oneof_index in fields:
            field = message.field.add(
                name=name, json_name=name, number=number, type=field_type, label=label)
            if type_name:
                field.type_name = type_name
            if oneof_index is not None:
                field.oneof_index = oneof_index

    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{_PACKAGE}.{name}"))


CAbundle = _message_class("CAbundle")
ProofCA = _message_class("ProofCA")
ProofArbo = _message_class("ProofArbo")
ProofZkSNARK = _message_class("ProofZkSNARK")
Proof = _message_class("Proof")
VoteEnvelope = _message_class("VoteEnvelope")
Tx = _message_class("Tx")
SignedTx = _message_class("SignedTx")


def encode_ca_bundle(process_id: bytes, address: bytes) -> bytes:
    return CAbundle(processId=process_id, address=address).SerializeToString()


def encode_vote_tx(envelope) -> bytes:
    tx = Tx()
    tx.vote.CopyFrom(envelope)
    return tx.SerializeToString()


def decode_tx(data: bytes):
    tx = Tx()
    tx.ParseFromString(data)
    return tx


def encode_signed_tx(tx: bytes, signature: bytes) -> str:
    """Base64 of the SignedTx envelope, as submitted to the chain"""
    return base64.b64encode(SignedTx(tx=tx, signature=signature).SerializeToString()).decode("ascii")


def decode_signed_tx(payload: str) -> Tuple[bytes, bytes]:
    signed = SignedTx()
    signed.ParseFromString(base64.b64decode(payload))
    return signed.tx, signed.signature


def flatten_g2_point(point: List[List[str]]) -> List[str]:
    return [coordinate for pair in point for coordinate in pair]
