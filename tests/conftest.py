"""
Shared fixtures: in-memory stand-ins for the remote services, a deterministic
field hasher and a stub groth16 prover.
"""

import hashlib
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.errors import (  # noqa: E402
    ElectionNotFoundError,
    KeyNotFoundInCensusError,
    SikNotFoundError,
    TransactionNotFoundError,
)
from zk.field import BN254_SCALAR_FIELD, arbo_from_big_int  # noqa: E402

logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)

ELECTION_ID = "c5d2460186f7" + "a1" * 26
PRIVATE_KEY = "0x" + "4c" * 32
CHAIN_ID = "vocdoni/TEST/1"
CENSUS_ROOT = "0x" + "cd" * 32


def fake_poseidon(inputs) -> int:
    data = ",".join(str(int(i)) for i in inputs).encode("utf-8")
    return int.from_bytes(hashlib.sha256(data).digest(), "big") % BN254_SCALAR_FIELD


class StubProver:
    """Echoes the public circuit inputs back as public signals"""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []

    def full_prove(self, inputs: Dict[str, Any], wasm: bytes, zkey: bytes) -> Dict[str, Any]:
        self.calls.append(inputs)
        return {
            "proof": {
                "pi_a": ["1", "2", "1"],
                "pi_b": [["3", "4"], ["5", "6"], ["1", "0"]],
                "pi_c": ["7", "8", "1"],
                "protocol": "groth16",
                "curve": "bn128",
            },
            "publicSignals": [
                inputs["electionId"][0],
                inputs["electionId"][1],
                inputs["nullifier"],
                inputs["availableWeight"],
                inputs["voteHash"][0],
                inputs["voteHash"][1],
                inputs["sikRoot"],
                inputs["censusRoot"],
            ],
        }


class RecordingSleep:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float):
        self.calls.append(seconds)


CIRCUIT_FILES = {
    "proving_key.zkey": b"zkey bytes",
    "verification_key.json": b"vkey bytes",
    "circuit.wasm": b"wasm bytes",
}
CIRCUIT_BASE = "https://circuits.test/zkcensus/v1"


def circuit_info() -> Dict[str, Any]:
    return {
        "uri": "https://circuits.test/",
        "circuitPath": "zkcensus/v1",
        "zKeyFilename": "proving_key.zkey",
        "zKeyHash": hashlib.sha256(CIRCUIT_FILES["proving_key.zkey"]).hexdigest(),
        "vKeyFilename": "verification_key.json",
        "vKeyHash": hashlib.sha256(CIRCUIT_FILES["verification_key.json"]).hexdigest(),
        "wasmFilename": "circuit.wasm",
        "wasmHash": hashlib.sha256(CIRCUIT_FILES["circuit.wasm"]).hexdigest(),
    }


class FakeAPI:
    """
    In-memory chain/census/election/vote/SIK service.

    `census` maps voter keys to proof payloads (or exceptions to raise);
    `confirm_after` is the number of transaction probes that fail before
    the transaction shows up.
    """

    def __init__(self, chain_info: Optional[Dict[str, Any]] = None,
                 census: Optional[Dict[str, Any]] = None,
                 elections: Optional[Dict[str, Dict[str, Any]]] = None,
                 keys: Optional[Dict[str, List[Dict[str, Any]]]] = None,
                 siks: Optional[Dict[str, Dict[str, Any]]] = None,
                 confirm_after: int = 0):
        self.chain_info = chain_info or {
            "chainId": CHAIN_ID,
            "height": 1000,
            "blockTimestamp": 1_700_000_000,
            "blockTime": [0, 0, 0, 0, 0],
            "maxCensusSize": 1000,
        }
        self.census = census or {}
        self.elections = elections or {}
        self.keys = keys or {}
        self.siks = siks or {}
        self.confirm_after = confirm_after

        self.calls: List[tuple] = []
        self.submitted: List[str] = []
        self.tx_probes = 0

    async def info(self):
        self.calls.append(("info",))
        return self.chain_info

    async def tx_info(self, tx_hash):
        self.calls.append(("tx_info", tx_hash))
        self.tx_probes += 1
        if self.tx_probes <= self.confirm_after:
            raise TransactionNotFoundError("transaction not found", 4007)
        return {"transactionHash": tx_hash, "blockHeight": 1001}

    async def submit_tx(self, payload):
        self.calls.append(("submit_tx",))
        self.submitted.append(payload)
        return "ab" * 32

    async def submit_vote(self, payload):
        self.calls.append(("submit_vote",))
        self.submitted.append(payload)
        return {"txHash": "ab" * 32, "voteID": "ef" * 32}

    async def account(self, address):
        self.calls.append(("account", address))
        return {"address": address, "balance": 100, "nonce": 3}

    async def circuits(self):
        self.calls.append(("circuits",))
        return circuit_info()

    async def fetch_file(self, url):
        self.calls.append(("fetch_file", url))
        return CIRCUIT_FILES[url.rsplit("/", 1)[-1]]

    async def census_proof(self, census_root, key):
        self.calls.append(("census_proof", key))
        entry = self.census.get(key)
        if entry is None:
            raise KeyNotFoundInCensusError("key not found in census", 4049)
        if isinstance(entry, Exception):
            raise entry
        return entry

    async def election(self, election_id):
        self.calls.append(("election", election_id))
        if election_id not in self.elections:
            raise ElectionNotFoundError("election not found", 4045)
        return self.elections[election_id]

    async def election_keys(self, election_id):
        self.calls.append(("election_keys", election_id))
        return self.keys.get(election_id, [])

    async def sik(self, address):
        self.calls.append(("sik", address))
        if address not in self.siks:
            raise SikNotFoundError("sik not found", 4054)
        return self.siks[address]

    async def sik_proof(self, address):
        self.calls.append(("sik_proof", address))
        return {"censusRoot": "11" * 32, "censusSiblings": ["0", "0", "0"]}


def election_data(census_origin: str = "OFF_CHAIN_TREE_WEIGHTED", anonymous: bool = False,
                  encrypted: bool = False, max_count: int = 3, max_value: int = 4,
                  result_type: str = "single-choice-multiquestion",
                  properties: Optional[Dict[str, Any]] = None,
                  census_url: Optional[str] = None,
                  election_id: str = ELECTION_ID, **tally) -> Dict[str, Any]:
    return {
        "electionId": election_id,
        "status": "READY",
        "census": {
            "censusOrigin": census_origin,
            "censusRoot": CENSUS_ROOT,
            "censusURL": census_url,
            "maxCensusSize": 1000,
        },
        "voteMode": {
            "anonymous": anonymous,
            "encryptedVotes": encrypted,
            "uniqueValues": False,
            "costFromWeight": False,
        },
        "tallyMode": {"maxCount": max_count, "maxValue": max_value, **tally},
        "metadata": {"type": {"name": result_type, "properties": properties or {}}},
    }


def arbo_proof_data(weight: int = 1) -> Dict[str, Any]:
    return {
        "censusProof": "0a0b0c0d",
        "value": arbo_from_big_int(weight),
        "weight": str(weight),
        "censusRoot": CENSUS_ROOT,
        "censusSiblings": ["1", "2", "0"],
    }


@pytest.fixture
def signer():
    from tx.signing import LocalKeySigner
    return LocalKeySigner(PRIVATE_KEY)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def stub_prover():
    return StubProver()


@pytest.fixture
def poseidon():
    return fake_poseidon


@pytest.fixture
def fake_api_factory():
    return FakeAPI


@pytest.fixture
def make_election_data():
    return election_data


@pytest.fixture
def make_arbo_proof_data():
    return arbo_proof_data


@pytest.fixture
def election_id():
    return ELECTION_ID


@pytest.fixture
def chain_id():
    return CHAIN_ID


@pytest.fixture
def census_root():
    return CENSUS_ROOT
