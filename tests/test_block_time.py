"""
Tests for block <-> date estimation
"""

from datetime import datetime, timedelta, timezone

import pytest

from chain.block_time import (
    DEFAULT_BLOCK_TIME_MS,
    ChainData,
    average_block_time_for_blocks,
    average_block_time_for_date,
    estimate_block_at_date,
    estimate_date_at_block,
)

TIMESTAMP = 1_700_000_000
REFERENCE = datetime.fromtimestamp(TIMESTAMP, tz=timezone.utc)


def make_chain(samples=(0, 0, 0, 0, 0), height=1000) -> ChainData:
    return ChainData(chain_id="test", height=height, block_timestamp=TIMESTAMP,
                     block_time=tuple(samples))


def test_from_api():
    chain = ChainData.from_api({
        "chainId": "vocdoni/TEST/1",
        "height": "42",
        "blockTimestamp": TIMESTAMP,
        "blockTime": [10000, 11000, 0, 0, 0],
        "maxCensusSize": 10,
    })
    assert chain.height == 42
    assert chain.block_time == (10000, 11000, 0, 0, 0)
    assert chain.max_census_size == 10


def test_defaults_to_twelve_seconds_without_samples():
    chain = make_chain()
    assert average_block_time_for_date(120_000, chain.block_time) == DEFAULT_BLOCK_TIME_MS
    assert estimate_block_at_date(REFERENCE + timedelta(seconds=120), chain) == 1010
    assert estimate_date_at_block(1010, chain) == REFERENCE + timedelta(seconds=120)


def test_past_dates_round_up_and_future_dates_round_down():
    chain = make_chain()
    # 2.5 blocks either way
    assert estimate_block_at_date(REFERENCE - timedelta(seconds=30), chain) == 997
    assert estimate_block_at_date(REFERENCE + timedelta(seconds=30), chain) == 1002


def test_block_estimate_is_never_negative():
    chain = make_chain(height=10)
    assert estimate_block_at_date(REFERENCE - timedelta(days=365), chain) == 0


def test_interpolates_between_bracketing_windows():
    samples = (10000, 12000, 0, 0, 0)
    # 5.5 minutes is halfway between the 1m and 10m windows
    assert average_block_time_for_date(330_000, samples) == 11000
    chain = make_chain(samples)
    assert estimate_block_at_date(REFERENCE + timedelta(seconds=330), chain) == 1030


def test_missing_sample_falls_back_to_finer_window():
    samples = (10000, 0, 0, 0, 0)
    assert average_block_time_for_date(30 * 60 * 1000, samples) == 10000
    assert average_block_time_for_date(2 * 24 * 60 * 60 * 1000, samples) == 10000


def test_window_boundaries():
    samples = (10000, 0, 12000, 13000, 0)
    # dates compare inclusively, block counts strictly
    assert average_block_time_for_date(60 * 60 * 1000, samples) == 12000
    assert average_block_time_for_date(60 * 60 * 1000 - 1, samples) == 10000
    assert average_block_time_for_blocks(300, samples) == 10000
    assert average_block_time_for_blocks(301, samples) == pytest.approx(12000 + 1000 / 1500)
    assert average_block_time_for_date(1000, samples) == 10000


def test_date_at_block_inverts_block_at_date():
    chain = make_chain()
    for offset in (-500, -1, 0, 1, 250, 9000):
        date = estimate_date_at_block(chain.height + offset, chain)
        assert estimate_block_at_date(date, chain) == chain.height + offset


def test_date_at_block_roughly_inverts_with_varying_samples():
    chain = make_chain((10000, 11000, 12000, 13000, 14000))
    for offset in (100, 2000, 20000):
        date = estimate_date_at_block(chain.height + offset, chain)
        back = estimate_block_at_date(date, chain)
        assert abs(back - (chain.height + offset)) <= offset * 0.1 + 1
