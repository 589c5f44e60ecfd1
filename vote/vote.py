"""
Votes, elections and the per-kind vote rules
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from census.proof import CensusType, CspProofType
from utils.errors import InvalidVoteError

logger = logging.getLogger(__name__)

# ============================================================================
# VOTES
# ============================================================================


@dataclass(frozen=True)
class Vote:
    """One value per question/option. Values are unbounded integers."""
    votes: Tuple[int, ...]
    weight: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "votes", tuple(int(v) for v in self.votes))


@dataclass(frozen=True)
class CspVote(Vote):
    signature: str = ""
    proof_type: CspProofType = CspProofType.ECDSA_BLIND_PIDSALTED


@dataclass(frozen=True)
class AnonymousVote(Vote):
    password: str = "0"
    signature: Optional[str] = None


# ============================================================================
# ELECTIONS
# ============================================================================

SINGLE_CHOICE_MULTIQUESTION = "single-choice-multiquestion"
MULTIPLE_CHOICE = "multiple-choice"
APPROVAL = "approval"
BUDGET = "budget-based"
QUADRATIC = "quadratic"

CSP_CENSUS_ORIGIN = "OFF_CHAIN_CA"


@dataclass(frozen=True)
class VoteType:
    max_count: int
    max_value: int
    unique_choices: bool = False
    max_total_cost: int = 0
    cost_exponent: int = 1
    cost_from_weight: bool = False
    max_vote_overwrites: int = 0


@dataclass(frozen=True)
class CensusInfo:
    census_type: CensusType
    census_root: str
    census_url: Optional[str] = None
    max_census_size: int = 0


@dataclass(frozen=True)
class Election:
    election_id: str
    census: CensusInfo
    vote_type: VoteType
    results_type: str = SINGLE_CHOICE_MULTIQUESTION
    results_properties: Dict[str, Any] = field(default_factory=dict)
    encrypted_votes: bool = False
    anonymous: bool = False
    status: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Election':
        census = data.get("census") or {}
        vote_mode = data.get("voteMode") or {}
        tally_mode = data.get("tallyMode") or {}
        result_type = ((data.get("metadata") or {}).get("type")) or {}

        anonymous = bool(vote_mode.get("anonymous"))
        if census.get("censusOrigin") == CSP_CENSUS_ORIGIN:
            census_type = CensusType.CSP
        elif anonymous:
            census_type = CensusType.ANONYMOUS
        else:
            census_type = CensusType.WEIGHTED

        return cls(
            election_id=data["electionId"],
            census=CensusInfo(
                census_type=census_type,
                census_root=census.get("censusRoot", ""),
                census_url=census.get("censusURL"),
                max_census_size=int(census.get("maxCensusSize") or 0),
            ),
            vote_type=VoteType(
                max_count=int(tally_mode.get("maxCount", 0)),
                max_value=int(tally_mode.get("maxValue", 0)),
                unique_choices=bool(vote_mode.get("uniqueValues")),
                max_total_cost=int(tally_mode.get("maxTotalCost") or 0),
                cost_exponent=int(tally_mode.get("costExponent") or 1),
                cost_from_weight=bool(vote_mode.get("costFromWeight")),
                max_vote_overwrites=int(tally_mode.get("maxVoteOverwrites") or 0),
            ),
            results_type=result_type.get("name", SINGLE_CHOICE_MULTIQUESTION),
            results_properties=result_type.get("properties") or {},
            encrypted_votes=bool(vote_mode.get("encryptedVotes")),
            anonymous=anonymous,
            status=data.get("status"),
        )

    def check_vote(self, vote: Vote, available_weight: Optional[int] = None) -> None:
        """Apply the rules of this election's kind. Vote length is checked by the encoder."""
        check = _VOTE_CHECKS.get(self.results_type, _check_single_choice)
        check(self, vote.votes, available_weight)


# ============================================================================
# VOTE RULES
# ============================================================================


def _check_values_in_range(election: Election, votes: Tuple[int, ...]):
    for value in votes:
        if value < 0:
            raise InvalidVoteError(f"Negative vote value {value}")
        if value > election.vote_type.max_value:
            raise InvalidVoteError(
                f"Vote value {value} exceeds maximum {election.vote_type.max_value}")


def _check_single_choice(election: Election, votes: Tuple[int, ...], available_weight: Optional[int]):
    if election.vote_type.unique_choices and len(set(votes)) != len(votes):
        raise InvalidVoteError("Choices are not unique")
    _check_values_in_range(election, votes)


def _check_multiple_choice(election: Election, votes: Tuple[int, ...], available_weight: Optional[int]):
    _check_values_in_range(election, votes)
    properties = election.results_properties
    abstain_values = set(int(v) for v in properties.get("abstainValues") or [])
    chosen = [v for v in votes if v not in abstain_values]

    if not properties.get("repeatChoice", False):
        repeated = [value for value, count in Counter(chosen).items() if count > 1]
        if repeated:
            raise InvalidVoteError(f"Choices {repeated} selected more than once")

    num_choices = properties.get("numChoices") or {}
    minimum = int(num_choices.get("min", 0))
    maximum = int(num_choices.get("max", election.vote_type.max_count))
    if not properties.get("canAbstain", False) and len(chosen) < minimum:
        raise InvalidVoteError(f"At least {minimum} choices required, got {len(chosen)}")
    if len(chosen) > maximum:
        raise InvalidVoteError(f"At most {maximum} choices allowed, got {len(chosen)}")


def _check_approval(election: Election, votes: Tuple[int, ...], available_weight: Optional[int]):
    for value in votes:
        if value not in (0, 1):
            raise InvalidVoteError(f"Approval votes must be 0 or 1, got {value}")


def _check_budget(election: Election, votes: Tuple[int, ...], available_weight: Optional[int]):
    if any(value < 0 for value in votes):
        raise InvalidVoteError("Negative budget allocation")

    exponent = election.vote_type.cost_exponent
    cost = sum(value ** exponent for value in votes)
    if election.vote_type.cost_from_weight:
        budget = available_weight
    else:
        budget = election.vote_type.max_total_cost

    if budget is None:
        logger.debug("No budget known for vote cost check, skipping")
        return
    if cost > budget:
        raise InvalidVoteError(f"Vote cost {cost} exceeds budget {budget}")
    if election.results_properties.get("forceFullBudget") and cost != budget:
        raise InvalidVoteError(f"Vote cost {cost} must use the full budget {budget}")


_VOTE_CHECKS = {
    SINGLE_CHOICE_MULTIQUESTION: _check_single_choice,
    MULTIPLE_CHOICE: _check_multiple_choice,
    APPROVAL: _check_approval,
    BUDGET: _check_budget,
    QUADRATIC: _check_budget,
}
