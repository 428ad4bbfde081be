"""Property-based tests for the account state machine.

Random sequences of deposits, withdrawals, disputes, resolves and
chargebacks over a handful of clients and transaction ids, checked
against the ledger invariants after every step.
"""

import sys
import os

from hypothesis import given, settings
from hypothesis import strategies as st

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import ProcessingResult, Transaction, TransactionType
from state_manager import StateManager
from transaction_processor import TransactionProcessor


@st.composite
def transaction_strategy(draw):
    transaction_type = draw(st.sampled_from(list(TransactionType)))
    amount = None
    if transaction_type.carries_amount:
        amount = draw(st.integers(min_value=-1000, max_value=100000))
    return Transaction(
        transaction_type=transaction_type,
        client_id=draw(st.integers(min_value=1, max_value=3)),
        transaction_id=draw(st.integers(min_value=1, max_value=12)),
        amount=amount,
    )


transaction_sequences = st.lists(transaction_strategy(), max_size=60)


def snapshot(state):
    return {
        client_id: (account.available, account.held, account.locked)
        for client_id, account in state.get_all_accounts().items()
    }


class TestLedgerProperties:
    @settings(max_examples=200, deadline=None)
    @given(transaction_sequences)
    def test_balances_never_negative_and_total_consistent(self, transactions):
        state = StateManager()
        processor = TransactionProcessor(state)

        for transaction in transactions:
            processor.process_transaction(transaction)
            for account in state.get_all_accounts().values():
                assert account.available >= 0
                assert account.held >= 0
                assert account.total == account.available + account.held

    @settings(max_examples=200, deadline=None)
    @given(transaction_sequences)
    def test_rejections_do_not_mutate(self, transactions):
        state = StateManager()
        processor = TransactionProcessor(state)

        for transaction in transactions:
            known_client = state.get_account(transaction.client_id) is not None
            before = snapshot(state)
            result = processor.process_transaction(transaction)
            if result.is_success:
                continue
            after = snapshot(state)
            if not known_client:
                # The account is created, with nothing applied to it
                assert after.pop(transaction.client_id) == (0, 0, False)
            assert after == before

    @settings(max_examples=200, deadline=None)
    @given(transaction_sequences)
    def test_withdrawal_never_exceeds_available(self, transactions):
        state = StateManager()
        processor = TransactionProcessor(state)

        for transaction in transactions:
            account = state.get_or_create_account(transaction.client_id)
            available = account.available
            result = processor.process_transaction(transaction)
            if transaction.transaction_type == TransactionType.WITHDRAWAL and transaction.amount > available:
                assert result != ProcessingResult.SUCCESS

    @settings(max_examples=200, deadline=None)
    @given(transaction_sequences)
    def test_only_chargeback_locks_and_lock_is_final(self, transactions):
        state = StateManager()
        processor = TransactionProcessor(state)

        for transaction in transactions:
            account = state.get_or_create_account(transaction.client_id)
            was_locked = account.locked
            result = processor.process_transaction(transaction)

            if was_locked:
                assert result == ProcessingResult.ACCOUNT_LOCKED
                assert account.locked
            elif account.locked:
                assert transaction.transaction_type == TransactionType.CHARGEBACK
                assert result == ProcessingResult.SUCCESS

    @settings(max_examples=200, deadline=None)
    @given(transaction_sequences)
    def test_dispute_succeeds_at_most_once_per_transaction(self, transactions):
        state = StateManager()
        processor = TransactionProcessor(state)
        disputed = set()

        for transaction in transactions:
            result = processor.process_transaction(transaction)
            if transaction.transaction_type == TransactionType.DISPUTE and result.is_success:
                assert transaction.transaction_id not in disputed
                disputed.add(transaction.transaction_id)
