"""Chain access: block time estimation, remote APIs and transaction submission."""

from .block_time import (
    ChainData,
    VOCHAIN_BLOCK_TIME_IN_SECONDS,
    estimate_block_at_date,
    estimate_date_at_block,
)
from .api import (
    ChainAPI,
    CensusAPI,
    ElectionAPI,
    VoteAPI,
    ZkAPI,
    CspAPI,
    RemoteAPI,
    RemoteCspAPI,
    error_from_response,
)
from .submitter import ChainSubmitter

__all__ = [
    'ChainData',
    'VOCHAIN_BLOCK_TIME_IN_SECONDS',
    'estimate_block_at_date',
    'estimate_date_at_block',
    'ChainAPI',
    'CensusAPI',
    'ElectionAPI',
    'VoteAPI',
    'ZkAPI',
    'CspAPI',
    'RemoteAPI',
    'RemoteCspAPI',
    'error_from_response',
    'ChainSubmitter',
]
