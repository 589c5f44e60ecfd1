"""
Block height / wall-clock date estimation from the chain's rolling block-time samples.

The chain reports average block times (milliseconds) measured over the last
1m, 10m, 1h, 6h and 24h. An estimate for a given distance picks the two
windows bracketing that distance and interpolates linearly between their
samples; unset (zero) samples fall back to the closest finer window and
finally to the nominal 12s block time.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

VOCHAIN_BLOCK_TIME_IN_SECONDS = 12
DEFAULT_BLOCK_TIME_MS = VOCHAIN_BLOCK_TIME_IN_SECONDS * 1000

# 1m, 10m, 1h, 6h, 24h
BLOCK_TIME_WINDOWS_MS: Tuple[int, ...] = (
    60 * 1000,
    10 * 60 * 1000,
    60 * 60 * 1000,
    6 * 60 * 60 * 1000,
    24 * 60 * 60 * 1000,
)

_BLOCKS_PER_MINUTE = 60 // VOCHAIN_BLOCK_TIME_IN_SECONDS
BLOCK_COUNT_WINDOWS: Tuple[int, ...] = (
    _BLOCKS_PER_MINUTE,
    10 * _BLOCKS_PER_MINUTE,
    60 * _BLOCKS_PER_MINUTE,
    6 * 60 * _BLOCKS_PER_MINUTE,
    24 * 60 * _BLOCKS_PER_MINUTE,
)


@dataclass(frozen=True)
class ChainData:
    """Snapshot of chain status. Replaced wholesale on refresh, never mutated."""
    chain_id: str
    height: int
    block_timestamp: int  # seconds
    block_time: Tuple[int, ...] = field(default_factory=tuple)  # ms per window
    max_census_size: int = 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'ChainData':
        return cls(
            chain_id=data["chainId"],
            height=int(data["height"]),
            block_timestamp=int(data["blockTimestamp"]),
            block_time=tuple(int(t) for t in data.get("blockTime") or ()),
            max_census_size=int(data.get("maxCensusSize", 0)),
        )


def _sample(samples: Sequence[int], index: int) -> int:
    return samples[index] if index < len(samples) and samples[index] else 0


def _first_set_sample(samples: Sequence[int], indexes) -> Optional[float]:
    for i in indexes:
        if _sample(samples, i) > 0:
            return samples[i]
    return None


def _average_block_time(distance: float, windows: Sequence[int],
                        samples: Sequence[int], inclusive: bool) -> float:
    def reaches(bound: int) -> bool:
        return distance >= bound if inclusive else distance > bound

    average = None
    last = len(windows) - 1

    if reaches(windows[last]):
        average = _first_set_sample(samples, range(last, -1, -1))
    else:
        for lower in range(last - 1, -1, -1):
            if not reaches(windows[lower]):
                continue
            upper = lower + 1
            if _sample(samples, lower) > 0 and _sample(samples, upper) > 0:
                weight_b = (distance - windows[lower]) / \
                    (windows[upper] - windows[lower])
                weight_a = 1 - weight_b
                average = weight_a * samples[lower] + weight_b * samples[upper]
            else:
                average = _first_set_sample(samples, range(lower, -1, -1))
            break
        else:
            average = _first_set_sample(samples, [0])

    return average if average is not None else DEFAULT_BLOCK_TIME_MS


def average_block_time_for_date(date_diff_ms: float, samples: Sequence[int]) -> float:
    """Average block time (ms) to use across a time distance"""
    return _average_block_time(date_diff_ms, BLOCK_TIME_WINDOWS_MS, samples, inclusive=True)


def average_block_time_for_blocks(block_diff: int, samples: Sequence[int]) -> float:
    """Average block time (ms) to use across a block-count distance"""
    return _average_block_time(block_diff, BLOCK_COUNT_WINDOWS, samples, inclusive=False)


def _to_millis(date: datetime) -> float:
    return date.timestamp() * 1000


def estimate_block_at_date(date: datetime, chain: ChainData) -> int:
    """
    Block number expected to be current at `date`.

    Dates before the last mined block round the block count up (further into
    the past), later dates round it down. The result is never negative.
    """
    target_ms = _to_millis(date)
    reference_ms = chain.block_timestamp * 1000
    date_diff = abs(target_ms - reference_ms)

    average = average_block_time_for_date(date_diff, chain.block_time)
    block_diff = date_diff / average

    if target_ms < reference_ms:
        estimated = chain.height - math.ceil(block_diff)
    else:
        estimated = chain.height + math.floor(block_diff)

    return max(estimated, 0)


def estimate_date_at_block(block: int, chain: ChainData) -> datetime:
    """Date at which `block` is expected to be (or was) mined"""
    block_diff = abs(block - chain.height)
    average = average_block_time_for_blocks(block_diff, chain.block_time)

    target_ms = chain.block_timestamp * 1000 + (block - chain.height) * average
    return datetime.fromtimestamp(target_ms / 1000, tz=timezone.utc)
