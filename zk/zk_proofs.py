"""
Anonymous voting proofs.

Derives the voter's secret identity key (SIK) and per-election nullifier,
assembles the anonymous circuit's inputs and runs a groth16 prover over
integrity-checked circuit artifacts. The Poseidon hash and the prover are
injected; `SnarkjsProver` drives the snarkjs CLI.
"""

import asyncio
import json
import logging
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from census.proof import ZkProof
from chain.api import ChainAPI, ZkAPI
from utils.codec import hex_to_bytes, sha256_hex, strip0x
from utils.errors import IntegrityError, SikNotFoundError, VotingError
from utils.utils import PerformanceMonitor

from .field import (
    arbo_from_big_int,
    arbo_split_hash,
    arbo_to_big_int,
    password_to_ff,
    signature_to_ff,
)

logger = logging.getLogger(__name__)

# electionId[0], electionId[1], nullifier, availableWeight, voteHash[0], voteHash[1], sikRoot, censusRoot
NULLIFIER_SIGNAL_INDEX = 2

# ============================================================================
# EXCEPTIONS
# ============================================================================


class ZKError(VotingError):
    """Base exception for ZK operations"""
    pass


class ProofGenerationError(ZKError):
    """Proof generation failed"""
    pass


class CircuitIntegrityError(IntegrityError, ZKError):
    """Circuit artifact hash mismatch"""
    pass


# ============================================================================
# CAPABILITIES
# ============================================================================

FieldHasher = Callable[[Sequence[int]], int]


class Groth16Prover(Protocol):
    def full_prove(self, inputs: Dict[str, Any], wasm: bytes, zkey: bytes) -> Dict[str, Any]: ...


class SnarkjsProver:
    """groth16 fullprove through the snarkjs CLI"""

    def __init__(self, snarkjs_bin: str = "snarkjs", timeout: int = 120,
                 work_dir: Optional[Path] = None):
        self.snarkjs_bin = snarkjs_bin
        self.timeout = timeout
        self.work_dir = work_dir

    def full_prove(self, inputs: Dict[str, Any], wasm: bytes, zkey: bytes) -> Dict[str, Any]:
        with tempfile.TemporaryDirectory(dir=self.work_dir) as temp_dir:
            temp_path = Path(temp_dir)

            input_file = temp_path / "input.json"
            input_file.write_text(json.dumps(inputs))
            wasm_file = temp_path / "circuit.wasm"
            wasm_file.write_bytes(wasm)
            zkey_file = temp_path / "circuit.zkey"
            zkey_file.write_bytes(zkey)
            proof_file = temp_path / "proof.json"
            public_file = temp_path / "public.json"

            cmd = [
                self.snarkjs_bin, 'groth16', 'fullprove',
                str(input_file),
                str(wasm_file),
                str(zkey_file),
                str(proof_file),
                str(public_file)
            ]

            try:
                result = subprocess.run(
                    cmd, capture_output=True, text=True, timeout=self.timeout)
            except FileNotFoundError as e:
                raise ProofGenerationError(f"snarkjs not available: {e}") from e
            except subprocess.TimeoutExpired as e:
                raise ProofGenerationError(
                    f"Proof generation timed out after {self.timeout}s") from e

            if result.returncode != 0:
                raise ProofGenerationError(
                    f"Proof generation failed: {result.stderr}")

            return {
                "proof": json.loads(proof_file.read_text()),
                "publicSignals": json.loads(public_file.read_text()),
            }


# ============================================================================
# CIRCUIT ARTIFACTS
# ============================================================================


@dataclass
class CircuitArtifacts:
    zkey: bytes = field(repr=False)
    zkey_hash: str
    vkey: bytes = field(repr=False)
    vkey_hash: str
    wasm: bytes = field(repr=False)
    wasm_hash: str

    def check_hashes(self):
        for name, data, expected in (
            ("zKey", self.zkey, self.zkey_hash),
            ("vKey", self.vkey, self.vkey_hash),
            ("WASM", self.wasm, self.wasm_hash),
        ):
            if sha256_hex(data) != strip0x(expected).lower():
                raise CircuitIntegrityError(f"invalid hash check for {name}")


async def fetch_circuits(api: ChainAPI) -> CircuitArtifacts:
    """Download the chain's current anonymous circuit and verify it"""
    info = await api.circuits()
    base = f"{info['uri'].rstrip('/')}/{info['circuitPath'].strip('/')}"

    zkey, vkey, wasm = await asyncio.gather(
        api.fetch_file(f"{base}/{info['zKeyFilename']}"),
        api.fetch_file(f"{base}/{info['vKeyFilename']}"),
        api.fetch_file(f"{base}/{info['wasmFilename']}"),
    )

    artifacts = CircuitArtifacts(
        zkey=zkey, zkey_hash=info["zKeyHash"],
        vkey=vkey, vkey_hash=info["vKeyHash"],
        wasm=wasm, wasm_hash=info["wasmHash"],
    )
    artifacts.check_hashes()
    logger.info(f"Fetched circuit artifacts from {base}")
    return artifacts


# ============================================================================
# CIRCUIT INPUTS
# ============================================================================


@dataclass
class CircuitInputs:
    # public
    election_id: List[str]
    nullifier: str
    available_weight: str
    vote_hash: List[str]
    sik_root: str
    census_root: str
    # private
    address: str = field(repr=False)
    password: str = field(repr=False)
    signature: str = field(repr=False)
    vote_weight: str = field(repr=False)
    sik_siblings: List[str] = field(repr=False)
    census_siblings: List[str] = field(repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "electionId": self.election_id,
            "nullifier": self.nullifier,
            "availableWeight": self.available_weight,
            "voteHash": self.vote_hash,
            "sikRoot": self.sik_root,
            "censusRoot": self.census_root,
            "address": self.address,
            "password": self.password,
            "signature": self.signature,
            "voteWeight": self.vote_weight,
            "sikSiblings": self.sik_siblings,
            "censusSiblings": self.census_siblings,
        }


class AnonymousProofBuilder:
    """Builds zk census proofs for anonymous elections"""

    def __init__(self, poseidon: FieldHasher, prover: Optional[Groth16Prover] = None,
                 zk_api: Optional[ZkAPI] = None,
                 monitor: Optional[PerformanceMonitor] = None):
        self.poseidon = poseidon
        self.prover = prover
        self.zk_api = zk_api
        self.monitor = monitor or PerformanceMonitor()

    def _sik_value(self, address: str, signature: str, password: Optional[str]) -> int:
        return self.poseidon([
            arbo_to_big_int(strip0x(address)),
            password_to_ff(password),
            signature_to_ff(signature),
        ])

    def calc_sik(self, address: str, signature: str, password: Optional[str] = None) -> str:
        """Secret identity key of `address`, arbo hex encoded"""
        return arbo_from_big_int(self._sik_value(address, signature, password))

    async def is_sik_registered(self, address: str, signature: str,
                                password: Optional[str] = None) -> bool:
        """Whether the chain holds the SIK derived from `signature` and `password`"""
        if self.zk_api is None:
            raise ZKError("No ZK API configured")
        try:
            data = await self.zk_api.sik(address)
        except SikNotFoundError:
            return False
        return arbo_to_big_int(strip0x(data["sik"])) == self._sik_value(address, signature, password)

    def calc_nullifier(self, signature_ff: int, password_ff: int,
                       election_id_hash: Sequence[str]) -> int:
        return self.poseidon([
            signature_ff,
            password_ff,
            int(election_id_hash[0]),
            int(election_id_hash[1]),
        ])

    def prepare_circuit_inputs(self, election_id: str, address: str, password: Optional[str],
                               signature: str, available_weight: str,
                               sik_root: str, sik_siblings: List[str],
                               census_root: str, census_siblings: List[str],
                               vote_package: bytes,
                               vote_weight: Optional[str] = None) -> CircuitInputs:
        election_id_hash = arbo_split_hash(hex_to_bytes(election_id))
        signature_ff = signature_to_ff(signature)
        password_ff = password_to_ff(password)

        return CircuitInputs(
            election_id=election_id_hash,
            nullifier=str(self.calc_nullifier(signature_ff, password_ff, election_id_hash)),
            available_weight=str(arbo_to_big_int(available_weight)),
            vote_hash=arbo_split_hash(vote_package),
            sik_root=str(arbo_to_big_int(sik_root)),
            census_root=str(arbo_to_big_int(census_root)),
            address=str(arbo_to_big_int(strip0x(address))),
            password=str(password_ff),
            signature=str(signature_ff),
            vote_weight=str(arbo_to_big_int(vote_weight or available_weight)),
            sik_siblings=list(sik_siblings),
            census_siblings=list(census_siblings),
        )

    async def generate_proof(self, inputs: CircuitInputs, artifacts: CircuitArtifacts) -> ZkProof:
        """Check the circuit artifacts, then prove off the event loop"""
        artifacts.check_hashes()
        if self.prover is None:
            raise ZKError("No groth16 prover configured")

        loop = asyncio.get_running_loop()
        with self.monitor.start_operation("zk_proof_generation"):
            result = await loop.run_in_executor(
                None, self.prover.full_prove, inputs.to_dict(), artifacts.wasm, artifacts.zkey)

        try:
            proof = ZkProof(proof=result["proof"],
                            public_signals=[str(s) for s in result["publicSignals"]])
        except (KeyError, TypeError) as e:
            raise ProofGenerationError(f"Malformed prover output: {e}") from e

        logger.info(f"Generated anonymous vote proof with nullifier {inputs.nullifier[:12]}...")
        return proof
