#!/usr/bin/env python3
"""
Vote Casting Client
===================
Turns a voter's choices into a signed vote transaction and waits for the
chain to include it.

    census proof (merkle / CSP blind signature / zk)
        -> vote envelope encoding (optionally sealed)
        -> transaction signing
        -> submission and bounded confirmation polling
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from blind.csp import BlindSignatureProtocol
from census.proof import (
    CensusProof,
    CensusType,
    CspProof,
)
from census.provider import CensusProofProvider
from chain.api import CspAPI, RemoteAPI, RemoteCspAPI
from chain.block_time import ChainData, estimate_block_at_date, estimate_date_at_block
from chain.submitter import ChainSubmitter
from config.config import SystemConfig
from tx.signing import SignerCapability, sign_transaction
from utils.errors import CensusTypeMismatchError, ValidationError
from utils.utils import PerformanceMonitor
from vote.encoder import build_vote_transaction, package_vote, validate_vote
from vote.encryption import EncryptionKey
from vote.vote import AnonymousVote, CspVote, Election, Vote
from zk.field import SIK_PAYLOAD, arbo_from_big_int
from zk.zk_proofs import (
    AnonymousProofBuilder,
    CircuitArtifacts,
    FieldHasher,
    SnarkjsProver,
    fetch_circuits,
)

logger = logging.getLogger(__name__)

# ============================================================================
# CLIENT STATE
# ============================================================================


@dataclass(frozen=True)
class AccountData:
    address: str
    balance: int = 0
    nonce: int = 0
    sik: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'AccountData':
        return cls(
            address=data["address"],
            balance=int(data.get("balance", 0)),
            nonce=int(data.get("nonce", 0)),
            sik=data.get("sik"),
        )


@dataclass(frozen=True)
class VoteReceipt:
    vote_id: str
    tx_hash: str
    election_id: str


class VotingClient:
    """
    One voter's session against the chain.

    Chain and account snapshots are fetched lazily and replaced wholesale on
    refresh. Secrets produced while voting (blinding factors, circuit inputs)
    never outlive the call that produced them.
    """

    def __init__(self, api: RemoteAPI, signer: Optional[SignerCapability],
                 config: Optional[SystemConfig] = None,
                 proof_builder: Optional[AnonymousProofBuilder] = None,
                 csp_api: Optional[CspAPI] = None,
                 submitter: Optional[ChainSubmitter] = None,
                 monitor: Optional[PerformanceMonitor] = None):
        self.config = config or SystemConfig()
        self.api = api
        self.signer = signer
        self.census_provider = CensusProofProvider(api)
        self.proof_builder = proof_builder
        self.csp_api = csp_api
        self.submitter = submitter or ChainSubmitter(
            api, vote_api=api,
            retry_time_ms=self.config.tx_wait.retry_time_ms,
            attempts=self.config.tx_wait.attempts,
        )
        self.monitor = monitor or PerformanceMonitor()

        self._chain_data: Optional[ChainData] = None
        self._account_data: Optional[AccountData] = None
        self._circuits: Optional[CircuitArtifacts] = None

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    async def fetch_chain_data(self, refresh: bool = False) -> ChainData:
        if self._chain_data is None or refresh:
            self._chain_data = ChainData.from_api(await self.api.info())
            logger.debug(f"Chain {self._chain_data.chain_id} at height {self._chain_data.height}")
        return self._chain_data

    async def fetch_account_data(self, refresh: bool = False) -> AccountData:
        if self._account_data is None or refresh:
            address = await self._require_signer().get_address()
            self._account_data = AccountData.from_api(await self.api.account(address))
        return self._account_data

    async def fetch_election(self, election_id: str) -> Election:
        return Election.from_api(await self.api.election(election_id))

    async def fetch_process_keys(self, election: Election) -> Optional[List[EncryptionKey]]:
        if not election.encrypted_votes:
            return None
        keys = await self.api.election_keys(election.election_id)
        return [EncryptionKey.from_api(k) for k in keys]

    async def estimate_block_at_date(self, date: datetime) -> int:
        return estimate_block_at_date(date, await self.fetch_chain_data())

    async def estimate_date_at_block(self, block: int) -> datetime:
        return estimate_date_at_block(block, await self.fetch_chain_data())

    def _require_signer(self) -> SignerCapability:
        if self.signer is None:
            raise ValueError("No signer provided")
        return self.signer

    # ------------------------------------------------------------------
    # Census proofs
    # ------------------------------------------------------------------

    async def csp_vote(self, election: Election, votes: List[int],
                       auth_steps: List[List[Any]]) -> CspVote:
        """Authenticate with the election's CSP and return a vote carrying its signature"""
        if election.census.census_type is not CensusType.CSP:
            raise CensusTypeMismatchError("Election census is not a CSP census")

        if self.csp_api is None and not election.census.census_url:
            raise ValidationError("CSP election has no census URL")
        csp_api = self.csp_api or RemoteCspAPI(
            election.census.census_url, timeout=self.config.api.request_timeout)
        protocol = BlindSignatureProtocol(csp_api, election.election_id)
        address = await self._require_signer().get_address()
        proof = await protocol.run(address, auth_steps)
        return CspVote(votes=tuple(votes), signature=proof.signature, proof_type=proof.proof_type)

    async def _circuit_artifacts(self) -> CircuitArtifacts:
        if self._circuits is None:
            self._circuits = await fetch_circuits(self.api)
        return self._circuits

    async def _anonymous_transaction(self, election: Election, vote: AnonymousVote,
                                     process_keys: Optional[List[EncryptionKey]]) -> bytes:
        if self.proof_builder is None:
            raise ValidationError("Anonymous elections need a zk proof builder")

        signer = self._require_signer()
        address = await signer.get_address()
        signature = vote.signature or await signer.personal_sign(SIK_PAYLOAD.encode("utf-8"))

        membership = await self.census_provider.fetch_membership(
            election.census.census_root, address)
        sik_proof = await self.api.sik_proof(address)

        vote_package = package_vote(vote, process_keys)
        inputs = self.proof_builder.prepare_circuit_inputs(
            election_id=election.election_id,
            address=address,
            password=vote.password,
            signature=signature,
            available_weight=membership.value,
            sik_root=sik_proof["censusRoot"],
            sik_siblings=sik_proof.get("censusSiblings") or [],
            census_root=membership.root,
            census_siblings=membership.siblings,
            vote_package=vote_package.payload,
            vote_weight=arbo_from_big_int(vote.weight) if vote.weight else None,
        )
        zk_proof = await self.proof_builder.generate_proof(inputs, await self._circuit_artifacts())
        return build_vote_transaction(
            election, zk_proof, vote, process_keys,
            vote_package=vote_package, available_weight=membership.weight)

    async def _census_proof(self, election: Election, vote: Vote) -> CensusProof:
        census_type = election.census.census_type
        if census_type is CensusType.CSP:
            if not isinstance(vote, CspVote):
                raise CensusTypeMismatchError("CSP elections require a CspVote")
            address = await self._require_signer().get_address()
            return CspProof(address=address, signature=vote.signature,
                            proof_type=vote.proof_type)
        return await self.census_provider.fetch_proof_for_signer(
            election.census.census_root, self._require_signer())

    # ------------------------------------------------------------------
    # Voting
    # ------------------------------------------------------------------

    async def build_vote(self, election: Union[str, Election], vote: Vote) -> bytes:
        """Validated, encoded vote transaction for `election` (not yet signed)"""
        if isinstance(election, str):
            election = await self.fetch_election(election)

        validate_vote(election, vote)

        process_keys = await self.fetch_process_keys(election)

        if election.census.census_type is CensusType.ANONYMOUS:
            if not isinstance(vote, AnonymousVote):
                vote = AnonymousVote(votes=vote.votes, weight=vote.weight)
            return await self._anonymous_transaction(election, vote, process_keys)

        census_proof = await self._census_proof(election, vote)
        return build_vote_transaction(
            election, census_proof, vote, process_keys,
            available_weight=getattr(census_proof, "weight", None))

    async def submit_vote(self, election: Union[str, Election], vote: Vote,
                          wait: bool = True) -> VoteReceipt:
        """Build, sign, submit and (by default) wait for a vote"""
        if isinstance(election, str):
            election = await self.fetch_election(election)

        with self.monitor.start_operation("submit_vote"):
            tx = await self.build_vote(election, vote)
            chain = await self.fetch_chain_data()
            payload = await sign_transaction(tx, chain.chain_id, self.signer)
            tx_hash, vote_id = await self.submitter.submit_vote(payload)
            if wait:
                await self.submitter.await_confirmation(tx_hash)

        logger.info(f"Vote {vote_id} cast in election {election.election_id}")
        return VoteReceipt(vote_id=vote_id, tx_hash=tx_hash, election_id=election.election_id)


def create_client(config: SystemConfig, signer: Optional[SignerCapability],
                  poseidon: Optional[FieldHasher] = None) -> VotingClient:
    """
    Client talking to the configured API endpoint.

    Anonymous elections are only supported when a Poseidon hasher is given;
    proofs are then produced by snarkjs as configured under `zk_proofs`.
    """
    api = RemoteAPI(config.api.url, timeout=config.api.request_timeout)
    monitor = PerformanceMonitor()

    proof_builder = None
    if poseidon is not None:
        prover = SnarkjsProver(
            snarkjs_bin=config.zk_config.snarkjs_bin,
            timeout=config.zk_config.proof_timeout,
            work_dir=config.zk_config.work_dir,
        )
        proof_builder = AnonymousProofBuilder(poseidon, prover=prover, zk_api=api, monitor=monitor)

    return VotingClient(api, signer, config=config, proof_builder=proof_builder, monitor=monitor)
