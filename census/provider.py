import asyncio
import logging
from typing import Awaitable, List

from chain.api import CensusAPI
from tx.signing import SignerCapability
from utils.errors import CensusTypeMismatchError

from .proof import ArboProof, CensusMembership, CensusProofKeyType, CensusType

logger = logging.getLogger(__name__)


def _discard_loser(task: asyncio.Task):
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Discarded census lookup failure: {error}")
    else:
        logger.debug("Discarded slower census lookup result")


class CensusProofProvider:
    """Fetches merkle membership proofs from the census service"""

    def __init__(self, api: CensusAPI):
        self.api = api

    async def fetch_proof(self, census_root: str, voter_key: str,
                          census_type: CensusType = CensusType.WEIGHTED,
                          key_type: CensusProofKeyType = CensusProofKeyType.ADDRESS) -> ArboProof:
        census_type = CensusType(census_type)
        if census_type is CensusType.CSP:
            raise CensusTypeMismatchError(
                "CSP census proofs are issued through the blind signature flow")
        if census_type is CensusType.ANONYMOUS:
            raise CensusTypeMismatchError(
                "Anonymous census proofs are generated by the zk proof builder")

        data = await self.api.census_proof(census_root, voter_key)
        return ArboProof.from_api(data, key_type)

    async def fetch_membership(self, census_root: str, voter_key: str) -> CensusMembership:
        """Leaf value and siblings of `voter_key`, as fed to the anonymous circuit"""
        data = await self.api.census_proof(census_root, voter_key)
        return CensusMembership.from_api(data)

    async def fetch_proof_for_signer(self, census_root: str,
                                     signer: SignerCapability) -> ArboProof:
        """
        Proof for whichever key the census was built with.

        Signers exposing a compressed public key are looked up by address and by
        compressed public key concurrently; the first lookup to succeed
        wins and the other is left to finish unobserved. When both fail the
        address lookup's error is raised.
        """
        address = await signer.get_address()
        public_key = signer.compressed_public_key()
        if public_key is None:
            return await self.fetch_proof(census_root, address)

        return await self._first_success([
            self.fetch_proof(census_root, address,
                             key_type=CensusProofKeyType.ADDRESS),
            self.fetch_proof(census_root, public_key,
                             key_type=CensusProofKeyType.PUBKEY),
        ])

    @staticmethod
    async def _first_success(lookups: List[Awaitable[ArboProof]]) -> ArboProof:
        tasks = [asyncio.ensure_future(lookup) for lookup in lookups]
        pending = set(tasks)

        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in tasks:
                if task in done and task.exception() is None:
                    for loser in pending:
                        loser.add_done_callback(_discard_loser)
                    return task.result()

        raise tasks[0].exception()
