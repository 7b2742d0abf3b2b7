"""
Exception handling utilities.

Defines the ledger error taxonomy and categorizes store exceptions for
proper error handling.
"""

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
)


class LedgerError(Exception):
    """
    Base class for all business errors.

    Attributes:
        code: Stable machine-readable error code
        kind: Error family (validation, state, not_found, concurrency)
    """

    code = "ledger_error"
    kind = "ledger"

    def __init__(self, message: str | None = None, **details: object) -> None:
        self.message = message or self.__class__.__doc__.strip().splitlines()[0]
        self.details = details
        super().__init__(self.message)


# Validation errors: the request itself is malformed

class ValidationError(LedgerError):
    """Invalid request."""

    code = "validation_error"
    kind = "validation"


class InvalidAmount(ValidationError):
    """Amount must be greater than zero."""

    code = "invalid_amount"


class UnknownActivityType(ValidationError):
    """Unknown activity type."""

    code = "unknown_activity_type"


class SameWallet(ValidationError):
    """Source and destination wallets must differ."""

    code = "same_wallet"


class InvalidWallet(ValidationError):
    """Unknown wallet."""

    code = "invalid_wallet"


class InvalidDestination(ValidationError):
    """Withdrawal destination is incomplete."""

    code = "invalid_destination"


# State errors: the request is well-formed but not allowed right now

class StateError(LedgerError):
    """Operation not allowed in the current state."""

    code = "state_error"
    kind = "state"


class InsufficientFunds(StateError):
    """Insufficient wallet balance."""

    code = "insufficient_funds"


class GatingUnmet(StateError):
    """Prerequisites for this activity are not met."""

    code = "gating_unmet"


class NoActivePackage(StateError):
    """An active package is required."""

    code = "no_active_package"


class DailyLimitReached(StateError):
    """Daily limit reached for this activity."""

    code = "daily_limit_reached"


class DailyCapExceeded(StateError):
    """Daily withdrawal cap exceeded."""

    code = "daily_cap_exceeded"


class BelowMinimum(StateError):
    """Amount is below the minimum."""

    code = "below_minimum"


class AboveMaximum(StateError):
    """Amount is above the maximum."""

    code = "above_maximum"


class IncompleteWatch(StateError):
    """Video was not watched long enough."""

    code = "incomplete_watch"


class AlreadyClaimed(StateError):
    """Reward already claimed."""

    code = "already_claimed"


class DurationTooShort(StateError):
    """Activity duration is too short."""

    code = "duration_too_short"


class InvalidState(StateError):
    """Invalid state transition."""

    code = "invalid_state"


class ReferralCodeUnavailable(StateError):
    """Could not generate a unique referral code."""

    code = "referral_code_unavailable"


# Not found errors

class NotFoundError(LedgerError):
    """Entity not found."""

    code = "not_found"
    kind = "not_found"


class AccountNotFound(NotFoundError):
    """Account not found."""

    code = "account_not_found"


class UnknownReferralCode(NotFoundError):
    """Unknown referral code."""

    code = "unknown_referral_code"


class PackageNotFound(NotFoundError):
    """Package not found."""

    code = "package_not_found"


class WithdrawalRequestNotFound(NotFoundError):
    """Withdrawal request not found."""

    code = "withdrawal_request_not_found"


class InvestmentNotFound(NotFoundError):
    """Investment not found."""

    code = "investment_not_found"


class ConcurrencyError(LedgerError):
    """Concurrent modification conflict, retry later."""

    code = "concurrency_conflict"
    kind = "concurrency"


# Exception categories based on handling strategy

# Retry - transient write conflicts
CONFLICT_MARKERS = (
    "database is locked",
    "database table is locked",
    "could not serialize access",
    "deadlock detected",
    "could not obtain lock",
    "lock not available",
)

# PostgreSQL SQLSTATE: serialization_failure, deadlock_detected,
# lock_not_available
CONFLICT_SQLSTATES = ("40001", "40P01", "55P03")

# Must raise - the store is unavailable
STORE_UNAVAILABLE = (
    OperationalError,
    InterfaceError,
)

# Must roll back - constraint violations (duplicates, check constraints)
CONSTRAINT_VIOLATION = (
    IntegrityError,
)


def is_conflict_error(exc: BaseException) -> bool:
    """
    Check if a store exception is a transient write conflict.

    Args:
        exc: Exception to check

    Returns:
        True if the operation may succeed when retried
    """
    if isinstance(exc, ConcurrencyError):
        return True
    if not isinstance(exc, DBAPIError):
        return False

    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in CONFLICT_SQLSTATES:
        return True

    text = str(orig if orig is not None else exc).lower()
    return any(marker in text for marker in CONFLICT_MARKERS)


def is_store_unavailable(exc: BaseException) -> bool:
    """
    Check if exception means the store cannot be reached.

    Args:
        exc: Exception to check

    Returns:
        True for connection-level failures that must propagate
    """
    return isinstance(exc, STORE_UNAVAILABLE) and not is_conflict_error(exc)


def is_constraint_violation(exc: BaseException) -> bool:
    """Check if exception is a constraint violation."""
    return isinstance(exc, CONSTRAINT_VIOLATION)
