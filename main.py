import asyncio
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
import argparse

from config.config import SystemConfig, load_config
from tx.signing import LocalKeySigner
from utils.errors import VotingError
from utils.utils import setup_logging, format_duration, PerformanceMonitor
from vote.vote import Vote
from vote_pipeline import create_client

logger = logging.getLogger(__name__)

PRIVATE_KEY_ENV = "VOTER_PRIVATE_KEY"


def parse_votes(raw: str) -> List[int]:
    return [int(v) for v in raw.split(",") if v.strip()]


def parse_date(raw: str) -> datetime:
    """ISO date for --date; naive dates are taken as UTC"""
    try:
        date = datetime.fromisoformat(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid ISO date: '{raw}'")
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return date


def save_performance_report(monitor: PerformanceMonitor, path: Optional[Path]):
    if path is None:
        return
    monitor.save_metrics(path)
    summary = monitor.get_summary()
    print(f"Performance report ({summary['total_operations']} operations, "
          f"{format_duration(summary['total_duration'])}): {path}")


async def cast_vote(config: SystemConfig, election_id: str, votes: List[int], wait: bool,
                    metrics_path: Optional[Path] = None) -> int:
    private_key = os.environ.get(PRIVATE_KEY_ENV)
    if not private_key:
        print(f"Set {PRIVATE_KEY_ENV} to the voter's private key")
        return 1

    signer = LocalKeySigner(private_key)
    client = create_client(config, signer)
    started = datetime.now(timezone.utc)

    try:
        receipt = await client.submit_vote(election_id, Vote(votes=tuple(votes)), wait=wait)
    finally:
        save_performance_report(client.monitor, metrics_path)
    elapsed = (datetime.now(timezone.utc) - started).total_seconds()
    print(f"Vote {receipt.vote_id} submitted in {format_duration(elapsed)} (tx {receipt.tx_hash})")
    return 0


async def estimate(config: SystemConfig, date: Optional[datetime] = None,
                   block: Optional[int] = None) -> int:
    client = create_client(config, None)
    chain = await client.fetch_chain_data()
    print(f"Chain {chain.chain_id} at height {chain.height}")

    if date is not None:
        print(f"Block at {date.isoformat()}: {await client.estimate_block_at_date(date)}")
    if block is not None:
        print(f"Date at block {block}: {(await client.estimate_date_at_block(block)).isoformat()}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Vote transaction client')
    parser.add_argument('--config', type=str,
                        default='config.yaml', help='Config file path')
    subparsers = parser.add_subparsers(dest='mode', required=True)

    vote_parser = subparsers.add_parser('vote', help='Cast a vote')
    vote_parser.add_argument('election_id', help='Election id (hex)')
    vote_parser.add_argument('votes', help='Comma separated vote values, e.g. 1,0,2')
    vote_parser.add_argument('--no-wait', action='store_true',
                             help='Do not wait for the transaction to be mined')
    vote_parser.add_argument('--metrics', type=Path,
                             help='Write a JSON performance report to this path')

    estimate_parser = subparsers.add_parser('estimate', help='Block/date estimation')
    estimate_parser.add_argument('--date', type=parse_date, help='ISO date to convert to a block')
    estimate_parser.add_argument('--block', type=int, help='Block to convert to a date')
    return parser


def main():
    args = build_parser().parse_args()

    config = load_config(Path(args.config))
    setup_logging(config.log_level, config.log_dir / "vote_client.log")

    try:
        if args.mode == 'vote':
            code = asyncio.run(cast_vote(
                config, args.election_id, parse_votes(args.votes), not args.no_wait,
                metrics_path=args.metrics))
        else:
            code = asyncio.run(estimate(config, args.date, args.block))
    except VotingError as e:
        logger.error(f"{type(e).__name__}: {e}")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
