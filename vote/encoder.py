"""
Vote transaction encoding.

Turns a validated vote and its census proof into the serialized `Tx` carrying
a `VoteEnvelope`. Pure: no network access.
"""

import json
import logging
import secrets
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from census.proof import (
    ArboProof,
    CensusProof,
    CspProof,
    ZkProof,
    check_proof_matches_census,
)
from tx import wire
from utils.codec import hex_to_bytes, random_hex
from utils.errors import InvalidVoteError, UnsupportedProcessTypeError, ValidationError
from zk.zk_proofs import NULLIFIER_SIGNAL_INDEX

from .encryption import EncryptionKey, encrypt_sequential
from .vote import Election, Vote

logger = logging.getLogger(__name__)

VOTE_NONCE_BYTES = 8
NULLIFIER_BYTES = 32


@dataclass(frozen=True)
class VotePackage:
    content: bytes  # plaintext JSON
    payload: bytes  # what goes in the envelope, sealed when keys were given
    key_indexes: Tuple[int, ...] = ()


def validate_vote(election: Election, vote: Vote, available_weight: Optional[int] = None) -> None:
    """Reject votes that do not fit the election, before anything else happens"""
    max_count = election.vote_type.max_count
    if len(vote.votes) != max_count:
        raise InvalidVoteError(
            f"Vote has {len(vote.votes)} values, election expects {max_count}")
    election.check_vote(vote, available_weight)


def package_vote(vote: Vote, process_keys: Optional[Sequence[EncryptionKey]] = None) -> VotePackage:
    nonce = secrets.token_hex(VOTE_NONCE_BYTES)
    content = json.dumps(
        {"nonce": nonce, "votes": list(vote.votes)}, separators=(",", ":")).encode("utf-8")

    if not process_keys:
        return VotePackage(content=content, payload=content)

    payload, indexes = encrypt_sequential(content, process_keys)
    return VotePackage(content=content, payload=payload, key_indexes=tuple(indexes))


def _integer_bytes(value: int) -> bytes:
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")


def encode_proof(election: Election, census_proof: CensusProof, vote: Vote):
    proof = wire.Proof()

    if isinstance(census_proof, ArboProof):
        arbo = wire.ProofArbo(
            type=wire.ARBO_TYPE_BLAKE2B,
            siblings=hex_to_bytes(census_proof.siblings),
            availableWeight=hex_to_bytes(census_proof.value),
            keyType=int(census_proof.key_type),
        )
        if vote.weight is not None:
            arbo.voteWeight = _integer_bytes(vote.weight)
        proof.arbo.CopyFrom(arbo)
    elif isinstance(census_proof, CspProof):
        proof.ca.CopyFrom(wire.ProofCA(
            type=int(census_proof.proof_type),
            bundle=wire.CAbundle(
                processId=hex_to_bytes(election.election_id),
                address=hex_to_bytes(census_proof.address),
            ),
            signature=hex_to_bytes(census_proof.signature),
        ))
    elif isinstance(census_proof, ZkProof):
        proof.zkSnark.CopyFrom(wire.ProofZkSNARK(
            a=census_proof.proof["pi_a"],
            b=wire.flatten_g2_point(census_proof.proof["pi_b"]),
            c=census_proof.proof["pi_c"],
            publicInputs=census_proof.public_signals,
        ))
    else:
        raise UnsupportedProcessTypeError("process type not supported")
    return proof


def nullifier_for(census_proof: CensusProof) -> bytes:
    """Arbo (little-endian) nullifier of an anonymous proof, empty otherwise"""
    if not isinstance(census_proof, ZkProof):
        return b""
    nullifier = int(census_proof.public_signals[NULLIFIER_SIGNAL_INDEX])
    return nullifier.to_bytes(NULLIFIER_BYTES, "little")


def build_vote_transaction(election: Election, census_proof: CensusProof, vote: Vote,
                           process_keys: Optional[List[EncryptionKey]] = None,
                           vote_package: Optional[VotePackage] = None,
                           available_weight: Optional[int] = None) -> bytes:
    """
    Serialized `Tx{vote}` for `vote` in `election`.

    A prebuilt `vote_package` is used as is (anonymous votes hash it into
    the proof before the envelope exists).
    """
    validate_vote(election, vote, available_weight)
    check_proof_matches_census(election.census.census_type, census_proof)

    if vote_package is None:
        if election.encrypted_votes and not process_keys:
            raise ValidationError("Election encrypts votes but no process keys were given")
        vote_package = package_vote(vote, process_keys)

    envelope = wire.VoteEnvelope(
        nonce=hex_to_bytes(random_hex(32)),
        processId=hex_to_bytes(election.election_id),
        votePackage=vote_package.payload,
        nullifier=nullifier_for(census_proof),
        encryptionKeyIndexes=list(vote_package.key_indexes),
    )
    envelope.proof.CopyFrom(encode_proof(election, census_proof, vote))

    logger.debug(
        f"Encoded vote for {election.election_id} with "
        f"{len(vote_package.key_indexes)} encryption layers")
    return wire.encode_vote_tx(envelope)
