import pytest

from stakeledger.errors import CannotWithdrawYet, NothingToClaim, NothingToWithdraw, TransferRejected
from stakeledger.events.schema import Claim, Withdraw

from conftest import DAY


def test_withdraw_after_lock_returns_principal(h):
    h.ledger.stake("alice", 100, 30 * DAY)
    h.advance_days(30)
    assert h.ledger.withdraw("alice") == 100
    pos = h.ledger.get_position("alice")
    assert pos.staked_amount == 0 and pos.locked_until == 0
    assert h.custody.balance_of("alice") == 1_000
    assert h.ledger.total_staked() == 0
    evt = h.published[-1].event
    assert isinstance(evt, Withdraw) and evt.amount == 100


def test_withdraw_before_lock_expiry_fails(h):
    h.ledger.stake("alice", 100, 30 * DAY)
    h.advance_days(29)
    with pytest.raises(CannotWithdrawYet):
        h.ledger.withdraw("alice")
    assert h.ledger.get_position("alice").staked_amount == 100


def test_withdraw_without_stake_fails(h):
    with pytest.raises(NothingToWithdraw):
        h.ledger.withdraw("alice")


def test_withdraw_keeps_yield_fields(h):
    h.ledger.stake("alice", 100, 21 * DAY)
    h.assign(alice=5)
    h.advance_days(10)
    h.assign(alice=8)
    h.advance_days(11)
    before = h.ledger.get_position("alice")
    h.ledger.withdraw("alice")
    after = h.ledger.get_position("alice")
    assert (after.yield_available, after.yield_locked, after.last_yield_update) == (
        before.yield_available, before.yield_locked, before.last_yield_update,
    )
    # staking again is allowed once the previous stake is withdrawn
    h.ledger.stake("alice", 10, 21 * DAY)


def test_withdraw_and_claim_locked_stake_fails_without_claiming(h):
    h.fund(100)
    h.ledger.stake("alice", 100, 90 * DAY)
    h.assign(alice=10)
    h.advance_days(28)
    with pytest.raises(CannotWithdrawYet):
        h.ledger.withdraw_and_claim("alice")
    assert h.ledger.available_rewards == 100
    assert h.ledger.claimable("alice") == 10
    assert h.custody.balance_of("alice") == 900


def test_withdraw_and_claim_single_transfer(h):
    h.fund(100)
    h.ledger.stake("alice", 100, 30 * DAY)
    h.assign(alice=10)
    h.advance_days(30)
    assert h.ledger.withdraw_and_claim("alice") == (100, 10)
    assert h.custody.balance_of("alice") == 1_010
    assert h.ledger.available_rewards == 90
    withdraw_evt, claim_evt = [env.event for env in h.published[-2:]]
    assert isinstance(withdraw_evt, Withdraw) and withdraw_evt.amount == 100
    assert isinstance(claim_evt, Claim) and claim_evt.amount == 10
    assert h.published[-1].sequence == h.published[-2].sequence + 1


def test_withdraw_and_claim_is_all_or_nothing(h):
    h.ledger.stake("alice", 100, 30 * DAY)
    h.advance_days(30)
    with pytest.raises(NothingToClaim):
        h.ledger.withdraw_and_claim("alice")
    pos = h.ledger.get_position("alice")
    assert pos.staked_amount == 100 and pos.locked_until != 0
    assert h.event_types() == ["deposit"]


def test_rejected_transfer_rolls_back_withdraw_and_claim(h):
    h.fund(100)
    h.ledger.stake("alice", 100, 30 * DAY)
    h.assign(alice=10)
    h.advance_days(30)
    h.custody.rejecting.add("alice")
    with pytest.raises(TransferRejected):
        h.ledger.withdraw_and_claim("alice")
    pos = h.ledger.get_position("alice")
    assert pos.staked_amount == 100
    assert pos.yield_locked == 10
    assert h.ledger.available_rewards == 100
    assert "withdraw" not in h.event_types()
