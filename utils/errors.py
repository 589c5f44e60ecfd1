"""
Error taxonomy for the vote transaction pipeline
"""

from typing import Optional


class VotingError(Exception):
    """Base exception for vote pipeline operations"""
    pass


# ============================================================================
# LOCAL VALIDATION
# ============================================================================


class ValidationError(VotingError):
    """Input rejected before any network activity"""
    pass


class CensusTypeMismatchError(ValidationError):
    """Proof variant does not belong to the election's census type"""
    pass


class UnsupportedProcessTypeError(ValidationError):
    """Census type has no proof encoding"""
    pass


class InvalidVoteError(ValidationError):
    """Vote values break the election's vote rules"""
    pass


# ============================================================================
# REMOTE SERVICES
# ============================================================================


class RemoteError(VotingError):
    """Error reported by the chain, census, CSP or signer service"""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class KeyNotFoundInCensusError(RemoteError):
    pass


class TransactionNotFoundError(RemoteError):
    pass


class AccountNotFoundError(RemoteError):
    pass


class ElectionNotFoundError(RemoteError):
    pass


class ElectionNotStartedError(RemoteError):
    pass


class NoElectionKeysError(RemoteError):
    pass


class CensusNotFoundError(RemoteError):
    pass


class SikNotFoundError(RemoteError):
    pass


class CspProtocolError(RemoteError):
    """CSP answered a step with neither an authToken nor a final token"""
    pass


# ============================================================================
# CONFIRMATION AND INTEGRITY
# ============================================================================


class TransactionTimeoutError(VotingError):
    """Retry budget exhausted while waiting for a transaction"""

    def __init__(self, tx_hash: str):
        super().__init__(f"Time out waiting for transaction: {tx_hash}")
        self.tx_hash = tx_hash


class IntegrityError(VotingError):
    """Downloaded artifact does not match its published hash"""
    pass
