import numpy as np
import pytest

from utils.errors import InvalidVoteError
from vote.tally import tally_votes


def test_identical_votes_accumulate():
    results = tally_votes([[2, 3, 0, 1, 4]] * 10, max_count=5, max_value=4)

    expected = np.zeros((5, 5), dtype=np.int64)
    for question, value in enumerate([2, 3, 0, 1, 4]):
        expected[question, value] = 10
    assert results.shape == (5, 5)
    assert np.array_equal(results, expected)


def test_weights_scale_each_vote():
    results = tally_votes([[0, 1], [1, 1]], max_count=2, max_value=1, weights=[3, 5])
    assert results.tolist() == [[3, 5], [0, 8]]


def test_out_of_range_votes_are_rejected():
    with pytest.raises(InvalidVoteError):
        tally_votes([[0, 2]], max_count=2, max_value=1)
    with pytest.raises(InvalidVoteError):
        tally_votes([[0]], max_count=2, max_value=1)
