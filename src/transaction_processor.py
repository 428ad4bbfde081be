import logging
from typing import Optional, Tuple

from models import (
    ClientAccount,
    DisputableTransaction,
    DisputeStatus,
    ProcessingResult,
    Transaction,
    TransactionType,
)
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to state, one at a time, in arrival order.

    Every precondition is checked before anything is mutated, so a rejected
    transaction leaves accounts and history exactly as they were. Rejections
    are returned as ProcessingResult values, never raised.
    """

    def __init__(self, state: StateManager):
        self._state = state

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: Applied
            anything else: Rejected for that reason, state unchanged
        """
        account = self._state.get_or_create_account(transaction.client_id)

        if account.locked:
            logger.warning(f"{transaction}: account {account.client_id} is locked")
            return ProcessingResult.ACCOUNT_LOCKED

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejection = self._check_new_transaction(transaction)
        if rejection is not None:
            return rejection

        account.credit(transaction.amount)
        self._state.mark_transaction_applied(transaction.transaction_id)
        self._state.store_disputable_transaction(
            DisputableTransaction(
                transaction_id=transaction.transaction_id,
                client_id=transaction.client_id,
                amount=transaction.amount,
            )
        )
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejection = self._check_new_transaction(transaction)
        if rejection is not None:
            return rejection

        if not account.debit(transaction.amount):
            logger.warning(f"Withdrawal tx {transaction.transaction_id}: insufficient funds (available {account.available}, requested {transaction.amount})")
            return ProcessingResult.INSUFFICIENT_FUNDS

        self._state.mark_transaction_applied(transaction.transaction_id)
        return ProcessingResult.SUCCESS

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, rejection = self._find_referenced(transaction, DisputeStatus.ACTIVE)
        if rejection is not None:
            return rejection

        if not account.hold(original.amount):
            logger.warning(f"Dispute for tx {transaction.transaction_id}: available {account.available} does not cover disputed amount {original.amount}")
            return ProcessingResult.INSUFFICIENT_FUNDS

        original.status = DisputeStatus.DISPUTED
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, rejection = self._find_referenced(transaction, DisputeStatus.DISPUTED)
        if rejection is not None:
            return rejection

        if not account.release_hold(original.amount):
            logger.error(f"Resolve for tx {transaction.transaction_id}: held {account.held} is less than disputed amount {original.amount}")
            return ProcessingResult.INSUFFICIENT_FUNDS

        original.status = DisputeStatus.RESOLVED
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, rejection = self._find_referenced(transaction, DisputeStatus.DISPUTED)
        if rejection is not None:
            return rejection

        if not account.remove_held(original.amount):
            logger.error(f"Chargeback for tx {transaction.transaction_id}: held {account.held} is less than disputed amount {original.amount}")
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.locked = True
        original.status = DisputeStatus.CHARGED_BACK
        return ProcessingResult.SUCCESS

    def _check_new_transaction(self, transaction: Transaction) -> Optional[ProcessingResult]:
        """Shared checks for deposits and withdrawals."""
        kind = transaction.transaction_type.value.capitalize()

        if transaction.amount is None:
            logger.warning(f"{kind} tx {transaction.transaction_id}: missing amount")
            return ProcessingResult.MISSING_AMOUNT

        if transaction.amount < 0:
            logger.warning(f"{kind} tx {transaction.transaction_id}: invalid amount {transaction.amount}")
            return ProcessingResult.INVALID_AMOUNT

        if self._state.is_transaction_applied(transaction.transaction_id):
            logger.warning(f"{kind} tx {transaction.transaction_id}: duplicate transaction id, rejecting")
            return ProcessingResult.DUPLICATE_TRANSACTION

        return None

    def _find_referenced(
        self, transaction: Transaction, required_status: DisputeStatus
    ) -> Tuple[Optional[DisputableTransaction], Optional[ProcessingResult]]:
        """Look up the deposit a dispute/resolve/chargeback refers to and check its state."""
        kind = transaction.transaction_type.value.capitalize()
        original = self._state.get_disputable_transaction(transaction.transaction_id)

        if original is None:
            logger.warning(f"{kind} for tx {transaction.transaction_id}: no disputable deposit with this id")
            return None, ProcessingResult.TRANSACTION_NOT_FOUND

        if original.client_id != transaction.client_id:
            logger.error(f"{kind} for tx {transaction.transaction_id}: client mismatch (expected {original.client_id}, got {transaction.client_id})")
            return None, ProcessingResult.CLIENT_MISMATCH

        if original.status is not required_status:
            logger.warning(f"{kind} for tx {transaction.transaction_id}: transaction is {original.status.value}, expected {required_status.value}")
            return None, ProcessingResult.INVALID_TRANSACTION_STATE

        return original, None
