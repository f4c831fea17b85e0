"""Typed failures raised by the staking ledger.

Every error carries a stable ``code`` used for metrics labels and replay
results. Errors are raised before any state is committed or any transfer is
requested, so a caught ``LedgerError`` always means "nothing happened".
"""
from __future__ import annotations


class LedgerError(Exception):
    code = "ledger_error"


class InputValidationError(LedgerError):
    code = "invalid_input"


class StatePreconditionError(LedgerError):
    code = "bad_state"


class ResourceAvailabilityError(LedgerError):
    code = "unavailable"


# ---- input validation ----

class AmountZero(InputValidationError):
    code = "amount_zero"


class InvalidAmount(InputValidationError):
    code = "invalid_amount"


class LockTooLong(InputValidationError):
    code = "lock_too_long"


class LockTooShort(InputValidationError):
    code = "lock_too_short"


class ArraysMismatch(InputValidationError):
    code = "arrays_mismatch"


# ---- state preconditions ----

class AlreadyStaked(StatePreconditionError):
    code = "already_staked"


class NotStaked(StatePreconditionError):
    code = "not_staked"


class NothingToWithdraw(StatePreconditionError):
    code = "nothing_to_withdraw"


class CannotWithdrawYet(StatePreconditionError):
    code = "cannot_withdraw_yet"


class NothingToClaim(StatePreconditionError):
    code = "nothing_to_claim"


# ---- reward pool ----

class NoRewardsAvailable(ResourceAvailabilityError):
    code = "no_rewards_available"


class NotEnoughRewardsAvailable(ResourceAvailabilityError):
    code = "not_enough_rewards_available"


# ---- collaborators ----

class NotOperator(LedgerError):
    code = "not_operator"


class ReentrantCall(LedgerError):
    code = "reentrant_call"


class TransferFailed(LedgerError):
    code = "transfer_failed"


class InsufficientBalance(TransferFailed):
    code = "insufficient_balance"


class TransferRejected(TransferFailed):
    code = "transfer_rejected"
