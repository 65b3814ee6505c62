# tests/test_transactions.py
"""
All-or-nothing behaviour of facade calls: rollback, nested calls from
receipt hooks, event publication on commit only, serialized voting.
"""

import threading

import pytest

from civic_node.civic_runtime.errors import AlreadyExecuted, TransferFailed

from conftest import ADMIN, BOB, CAROL, EVE


def _funded_donation(facade, amount=1000):
    facade.create_proposal(ADMIN, "Fund park")
    facade.donate_to_proposal(EVE, 0, amount, amount)


def test_reentrant_payout_pays_once(facade):
    """
    The beneficiary's receipt hook tries to execute the same donation
    again. The flag is already set, so the nested call fails and the
    beneficiary is paid exactly once.
    """
    _funded_donation(facade)
    nested_errors = []

    def reenter(to, amount):
        try:
            facade.execute_donation(ADMIN, 0)
        except AlreadyExecuted as e:
            nested_errors.append(e)

    facade.funds.on_receive(ADMIN, reenter)
    facade.execute_donation(ADMIN, 0)

    assert len(nested_errors) == 1
    assert facade.funds.balance_of(ADMIN) == 1000
    assert facade.escrow_balance() == 0
    assert facade.get_donation(0).executed is True
    assert [e["event"] for e in facade.events_since(0)].count("DonationExecuted") == 1


def test_hook_sees_executed_flag_during_transfer(facade):
    _funded_donation(facade)
    seen = []
    facade.funds.on_receive(ADMIN, lambda to, amount: seen.append(facade.get_donation(0).executed))

    facade.execute_donation(ADMIN, 0)
    assert seen == [True]


def test_failed_transfer_rolls_back_and_can_retry(facade):
    _funded_donation(facade)
    facade.funds.refuse(ADMIN)

    with pytest.raises(TransferFailed):
        facade.execute_donation(ADMIN, 0)

    assert facade.get_donation(0).executed is False
    assert facade.escrow_balance() == 1000
    assert facade.funds.balance_of(ADMIN) == 0

    facade.funds.refuse(ADMIN, False)
    assert facade.execute_donation(ADMIN, 0).executed is True
    assert facade.funds.balance_of(ADMIN) == 1000


def test_hook_raising_fails_the_payout(facade):
    _funded_donation(facade)

    def reject(to, amount):
        raise RuntimeError("cannot receive")

    facade.funds.on_receive(ADMIN, reject)
    with pytest.raises(TransferFailed):
        facade.execute_donation(ADMIN, 0)
    assert facade.get_donation(0).executed is False


def test_unexpected_transfer_error_is_wrapped(facade):
    _funded_donation(facade)

    class Broken:
        def send(self, to, amount):
            raise OSError("link down")

    facade.funds = Broken()
    with pytest.raises(TransferFailed):
        facade.execute_donation(ADMIN, 0)
    assert facade.escrow_balance() == 1000


def test_events_only_for_committed_calls(facade):
    facade.create_proposal(ADMIN, "Fund park")
    facade.vote(BOB, 0)
    with pytest.raises(Exception):
        facade.vote(BOB, 0)
    with pytest.raises(Exception):
        facade.create_proposal(BOB, "nope")
    facade.donate_to_proposal(EVE, 0, 1000, 1000)
    facade.funds.refuse(ADMIN)
    with pytest.raises(TransferFailed):
        facade.execute_donation(ADMIN, 0)
    facade.execute_proposal(ADMIN, 0)

    events = facade.events_since(0)
    assert [e["event"] for e in events] == ["ProposalCreated", "Voted", "DonationReceived", "Executed"]
    assert [e["seq"] for e in events] == [0, 1, 2, 3]
    assert events[2] == {
        "seq": 2,
        "event": "DonationReceived",
        "donation_id": 0,
        "proposal_id": 0,
        "sender": EVE,
        "amount": 1000,
    }


def test_subscriber_sees_events_after_commit(facade):
    seen = []
    facade.events.subscribe(lambda seq, ev: seen.append((ev.name, facade.proposal_count())))
    facade.create_proposal(ADMIN, "p")
    assert seen == [("ProposalCreated", 1)]


def test_concurrent_double_vote_only_one_succeeds(facade):
    facade.create_proposal(ADMIN, "p")
    results = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        try:
            facade.vote(CAROL, 0)
            results.append("ok")
        except Exception as e:
            results.append(type(e).__name__)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("ok") == 1
    assert results.count("AlreadyVoted") == 7
    assert facade.get_proposal(0).vote_count == 1


def _two_donations(facade):
    facade.create_proposal(ADMIN, "Fund park")
    facade.donate_to_proposal(EVE, 0, 1000, 1000)
    facade.donate_to_proposal(EVE, 0, 500, 500)


def test_nested_payout_commits_with_outer(facade):
    _two_donations(facade)

    def pay_other(to, amount):
        if amount == 1000:
            facade.execute_donation(ADMIN, 1)

    facade.funds.on_receive(ADMIN, pay_other)
    facade.execute_donation(ADMIN, 0)

    assert facade.funds.balance_of(ADMIN) == 1500
    assert facade.escrow_balance() == 0
    executed = [e["donation_id"] for e in facade.events_since(0) if e["event"] == "DonationExecuted"]
    assert executed == [1, 0]


def test_nested_payout_reversed_when_outer_fails(facade):
    """
    The receipt hook pays a second donation in a nested call that
    commits, then rejects its own payout. The nested payout is taken
    back along with everything else.
    """
    _two_donations(facade)

    def pay_other_then_fail(to, amount):
        if amount == 1000:
            facade.execute_donation(ADMIN, 1)
            raise RuntimeError("cannot receive")

    facade.funds.on_receive(ADMIN, pay_other_then_fail)
    with pytest.raises(TransferFailed):
        facade.execute_donation(ADMIN, 0)

    assert facade.funds.balance_of(ADMIN) == 0
    assert facade.escrow_balance() == 1500
    assert facade.get_donation(0).executed is False
    assert facade.get_donation(1).executed is False
    assert "DonationExecuted" not in [e["event"] for e in facade.events_since(0)]

    facade.funds.hooks.clear()
    facade.execute_donation(ADMIN, 1)
    facade.execute_donation(ADMIN, 0)
    assert facade.funds.balance_of(ADMIN) == 1500
    assert facade.escrow_balance() == 0


class _FailingStore:
    def save(self, state):
        raise OSError("disk full")


def test_failed_save_reverses_payout(facade):
    _funded_donation(facade)
    facade.store = _FailingStore()

    with pytest.raises(OSError):
        facade.execute_donation(ADMIN, 0)

    assert facade.funds.balance_of(ADMIN) == 0
    assert facade.get_donation(0).executed is False
    assert facade.escrow_balance() == 1000
    assert facade.events_since(0)[-1]["event"] == "DonationReceived"

    facade.store = None
    facade.execute_donation(ADMIN, 0)
    assert facade.funds.balance_of(ADMIN) == 1000
    assert facade.escrow_balance() == 0


def test_failed_save_rolls_back_plain_call(facade):
    facade.store = _FailingStore()
    with pytest.raises(OSError):
        facade.create_proposal(ADMIN, "p")
    assert facade.proposal_count() == 0
    assert facade.events_since(0) == []
