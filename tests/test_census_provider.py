"""
Tests for census proof lookups, including the address/public key race
"""

import asyncio

import pytest

from census.proof import CensusProofKeyType, CensusType
from census.provider import CensusProofProvider
from tx.signing import RemoteSigner
from utils.errors import CensusTypeMismatchError, KeyNotFoundInCensusError, RemoteError


class SlowAPI:
    """Answers each key after its own delay"""

    def __init__(self, entries, delays):
        self.entries = entries
        self.delays = delays
        self.lookups = []

    async def census_proof(self, census_root, key):
        self.lookups.append(key)
        await asyncio.sleep(self.delays.get(key, 0))
        entry = self.entries[key]
        if isinstance(entry, Exception):
            raise entry
        return entry


class AddressOnlySigner:
    def __init__(self, address):
        self.address = address

    async def get_address(self):
        return self.address

    def compressed_public_key(self):
        return None


def test_fetch_proof(fake_api_factory, make_arbo_proof_data, census_root):
    api = fake_api_factory(census={"0xabc": make_arbo_proof_data(weight=7)})

    proof = asyncio.run(CensusProofProvider(api).fetch_proof(census_root, "0xabc"))

    assert proof.weight == 7
    assert proof.key_type is CensusProofKeyType.ADDRESS
    assert proof.siblings == "0a0b0c0d"


def test_fetch_proof_rejects_non_merkle_census(fake_api_factory, census_root):
    provider = CensusProofProvider(fake_api_factory())

    for census_type in (CensusType.CSP, CensusType.ANONYMOUS):
        with pytest.raises(CensusTypeMismatchError):
            asyncio.run(provider.fetch_proof(census_root, "0xabc", census_type=census_type))


def test_public_key_census_wins_race(signer, fake_api_factory, make_arbo_proof_data, census_root):
    api = fake_api_factory(census={signer.compressed_public_key(): make_arbo_proof_data()})

    proof = asyncio.run(CensusProofProvider(api).fetch_proof_for_signer(census_root, signer))

    assert proof.key_type is CensusProofKeyType.PUBKEY


def test_first_successful_lookup_wins(signer, make_arbo_proof_data, census_root):
    public_key = signer.compressed_public_key()
    api = SlowAPI(
        entries={signer.address: make_arbo_proof_data(weight=1),
                 public_key: make_arbo_proof_data(weight=2)},
        delays={signer.address: 0.05},
    )

    proof = asyncio.run(CensusProofProvider(api).fetch_proof_for_signer(census_root, signer))

    assert proof.key_type is CensusProofKeyType.PUBKEY
    assert proof.weight == 2
    assert set(api.lookups) == {signer.address, public_key}


def test_both_lookups_failing_raises_address_error(signer, census_root):
    api = SlowAPI(
        entries={signer.address: KeyNotFoundInCensusError("key not found in census", 4049),
                 signer.compressed_public_key(): RemoteError("census unavailable")},
        delays={signer.address: 0.02},
    )

    with pytest.raises(KeyNotFoundInCensusError, match="key not found in census"):
        asyncio.run(CensusProofProvider(api).fetch_proof_for_signer(census_root, signer))


def test_signer_without_public_key_uses_address(fake_api_factory, make_arbo_proof_data, census_root):
    api = fake_api_factory(census={"0xabc": make_arbo_proof_data()})

    proof = asyncio.run(
        CensusProofProvider(api).fetch_proof_for_signer(census_root, AddressOnlySigner("0xabc")))

    assert proof.key_type is CensusProofKeyType.ADDRESS
    assert api.calls == [("census_proof", "0xabc")]


def test_remote_signer_is_looked_up_by_address(fake_api_factory, make_arbo_proof_data, census_root):
    address = "0x" + "ab" * 20
    api = fake_api_factory(census={address: make_arbo_proof_data()})
    remote = RemoteSigner("http://wallet.test", address=address)

    assert remote.compressed_public_key() is None
    proof = asyncio.run(CensusProofProvider(api).fetch_proof_for_signer(census_root, remote))

    assert proof.key_type is CensusProofKeyType.ADDRESS
    assert api.calls == [("census_proof", address)]
