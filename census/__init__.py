"""Census types, proof variants and the census proof provider."""

from .proof import (
    CensusType,
    CensusProofKeyType,
    CspProofType,
    ArboProof,
    CspProof,
    ZkProof,
    CensusMembership,
    CensusProof,
    check_proof_matches_census,
)
from .provider import CensusProofProvider

__all__ = [
    'CensusType',
    'CensusProofKeyType',
    'CspProofType',
    'ArboProof',
    'CspProof',
    'ZkProof',
    'CensusMembership',
    'CensusProof',
    'check_proof_matches_census',
    'CensusProofProvider',
]
