import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Tuple

from utils.errors import RemoteError, TransactionTimeoutError

from .api import ChainAPI, VoteAPI

logger = logging.getLogger(__name__)

DEFAULT_RETRY_TIME_MS = 5000
DEFAULT_ATTEMPTS = 6

Sleep = Callable[[float], Awaitable[None]]


class ChainSubmitter:
    """Posts signed transactions and polls the chain until they are included"""

    def __init__(self, api: ChainAPI, vote_api: Optional[VoteAPI] = None,
                 retry_time_ms: int = DEFAULT_RETRY_TIME_MS,
                 attempts: int = DEFAULT_ATTEMPTS,
                 sleep: Sleep = asyncio.sleep):
        self.api = api
        self.vote_api = vote_api
        self.retry_time_ms = retry_time_ms
        self.attempts = attempts
        self._sleep = sleep

    async def submit(self, payload: str) -> str:
        """Submit a base64 signed transaction, returning its hash"""
        tx_hash = await self.api.submit_tx(payload)
        logger.info(f"Submitted transaction {tx_hash}")
        return tx_hash

    async def submit_vote(self, payload: str) -> Tuple[str, str]:
        """Submit a signed vote transaction, returning (tx hash, vote id)"""
        if self.vote_api is None:
            tx_hash = await self.submit(payload)
            return tx_hash, tx_hash
        response: Dict[str, str] = await self.vote_api.submit_vote(payload)
        tx_hash = response.get("txHash") or response["voteID"]
        logger.info(f"Submitted vote {response.get('voteID')} in transaction {tx_hash}")
        return tx_hash, response.get("voteID", tx_hash)

    async def await_confirmation(self, tx_hash: str,
                                 retry_interval_ms: Optional[int] = None,
                                 max_attempts: Optional[int] = None) -> None:
        """
        Poll the transaction until it is found on chain.

        Every failed probe consumes one attempt and waits a constant
        interval before the next one. With no attempts left the wait fails
        with TransactionTimeoutError; zero attempts fails without probing.
        """
        interval = self.retry_time_ms if retry_interval_ms is None else retry_interval_ms
        remaining = self.attempts if max_attempts is None else max_attempts

        while remaining > 0:
            try:
                await self.api.tx_info(tx_hash)
                logger.info(f"Transaction {tx_hash} confirmed")
                return
            except RemoteError as e:
                remaining -= 1
                logger.debug(
                    f"Transaction {tx_hash} not available yet ({e}), {remaining} attempts left")
                await self._sleep(interval / 1000)

        raise TransactionTimeoutError(tx_hash)
