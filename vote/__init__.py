"""Votes, elections, vote package encoding and tallying."""

from .vote import (
    Vote,
    CspVote,
    AnonymousVote,
    Election,
    CensusInfo,
    VoteType,
    SINGLE_CHOICE_MULTIQUESTION,
    MULTIPLE_CHOICE,
    APPROVAL,
    BUDGET,
    QUADRATIC,
)
from .encryption import EncryptionKey, encrypt_sequential, decrypt_sequential
from .encoder import (
    VotePackage,
    validate_vote,
    package_vote,
    build_vote_transaction,
)
from .tally import tally_votes

__all__ = [
    'Vote',
    'CspVote',
    'AnonymousVote',
    'Election',
    'CensusInfo',
    'VoteType',
    'SINGLE_CHOICE_MULTIQUESTION',
    'MULTIPLE_CHOICE',
    'APPROVAL',
    'BUDGET',
    'QUADRATIC',
    'EncryptionKey',
    'encrypt_sequential',
    'decrypt_sequential',
    'VotePackage',
    'validate_vote',
    'package_vote',
    'build_vote_transaction',
    'tally_votes',
]
