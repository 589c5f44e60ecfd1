"""
Zero-knowledge proofs for anonymous votes
"""

from .zk_proofs import (
    # Core classes
    AnonymousProofBuilder,
    CircuitArtifacts,
    CircuitInputs,
    SnarkjsProver,
    Groth16Prover,
    FieldHasher,
    fetch_circuits,
    NULLIFIER_SIGNAL_INDEX,

    # Exceptions
    ZKError,
    ProofGenerationError,
    CircuitIntegrityError,
)
from .field import BN254_SCALAR_FIELD, SIK_PAYLOAD

__all__ = [
    # Classes
    'AnonymousProofBuilder',
    'CircuitArtifacts',
    'CircuitInputs',
    'SnarkjsProver',
    'Groth16Prover',
    'FieldHasher',
    'fetch_circuits',
    'NULLIFIER_SIGNAL_INDEX',
    'BN254_SCALAR_FIELD',
    'SIK_PAYLOAD',

    # Exceptions
    'ZKError',
    'ProofGenerationError',
    'CircuitIntegrityError',
]
