"""
Census types and the proof variants each one produces.

Exactly one proof variant is valid per census type:
WEIGHTED (alias PLAIN) -> ArboProof, CSP -> CspProof, ANONYMOUS -> ZkProof.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Union

from utils.errors import CensusTypeMismatchError, UnsupportedProcessTypeError


class CensusType(str, Enum):
    WEIGHTED = "weighted"
    PLAIN = "weighted"
    ANONYMOUS = "zkweighted"
    CSP = "csp"


class CensusProofKeyType(IntEnum):
    """Which voter key a merkle census was built with"""
    PUBKEY = 0
    ADDRESS = 1


class CspProofType(IntEnum):
    ECDSA = 1
    ECDSA_PIDSALTED = 2
    ECDSA_BLIND = 3
    ECDSA_BLIND_PIDSALTED = 4


@dataclass(frozen=True)
class ArboProof:
    """Merkle membership proof from an offchain census tree"""
    siblings: str  # hex, packed siblings
    value: str  # hex, arbo-encoded leaf value (available weight)
    key_type: CensusProofKeyType = CensusProofKeyType.ADDRESS
    weight: int = 1
    root: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any],
                 key_type: CensusProofKeyType = CensusProofKeyType.ADDRESS) -> 'ArboProof':
        return cls(
            siblings=data["censusProof"],
            value=data["value"],
            key_type=key_type,
            weight=int(data.get("weight", 1)),
            root=data.get("censusRoot"),
        )


@dataclass(frozen=True)
class CspProof:
    """Unblinded CSP signature over the voter's CA bundle"""
    address: str
    signature: str  # hex
    proof_type: CspProofType = CspProofType.ECDSA_BLIND_PIDSALTED
    weight: int = 1


@dataclass(frozen=True)
class ZkProof:
    """groth16 proof with the circuit's public signals"""
    proof: Dict[str, Any]  # pi_a, pi_b, pi_c, protocol, curve
    public_signals: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CensusMembership:
    """Raw census tree material consumed by the anonymous circuit"""
    root: str
    value: str
    weight: int
    siblings: List[str]

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'CensusMembership':
        return cls(
            root=data["censusRoot"],
            value=data["value"],
            weight=int(data.get("weight", 1)),
            siblings=list(data.get("censusSiblings") or []),
        )


CensusProof = Union[ArboProof, CspProof, ZkProof]

_PROOF_FOR_CENSUS = {
    CensusType.WEIGHTED: ArboProof,
    CensusType.CSP: CspProof,
    CensusType.ANONYMOUS: ZkProof,
}


def check_proof_matches_census(census_type: CensusType, proof: CensusProof) -> None:
    """Raise if `proof` is not the variant `census_type` accepts"""
    try:
        census_type = CensusType(census_type)
    except ValueError:
        raise UnsupportedProcessTypeError("process type not supported") from None
    expected = _PROOF_FOR_CENSUS[census_type]
    if not isinstance(proof, expected):
        raise CensusTypeMismatchError(
            f"Census type {census_type.name} requires {expected.__name__}, "
            f"got {type(proof).__name__}")
