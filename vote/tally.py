from typing import Iterable, Optional, Sequence

import numpy as np

from utils.errors import InvalidVoteError


def tally_votes(votes: Iterable[Sequence[int]], max_count: int, max_value: int,
                weights: Optional[Sequence[int]] = None) -> np.ndarray:
    """
    Results matrix of shape (max_count, max_value + 1).

    results[question][value] accumulates the weight (1 by default) of every
    vote that gave `value` to `question`.
    """
    results = np.zeros((max_count, max_value + 1), dtype=np.int64)

    for i, vote in enumerate(votes):
        if len(vote) != max_count:
            raise InvalidVoteError(f"Vote {i} has {len(vote)} values, expected {max_count}")
        weight = 1 if weights is None else weights[i]
        for question, value in enumerate(vote):
            if not 0 <= value <= max_value:
                raise InvalidVoteError(f"Vote {i} value {value} out of range")
            results[question, value] += weight

    return results
