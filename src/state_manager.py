import dataclasses
from typing import Dict, Optional, Set

from models import ClientAccount, DisputableTransaction


class StateManager:
    """
    Owns client accounts and the deposit history used for dispute lookups.
    Single-threaded: only the TransactionProcessor mutates it.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._disputable_transactions: Dict[int, DisputableTransaction] = {}
        self._applied_transaction_ids: Set[int] = set()

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def is_transaction_applied(self, transaction_id: int) -> bool:
        """Check if a deposit or withdrawal with this id was already applied."""
        return transaction_id in self._applied_transaction_ids

    def mark_transaction_applied(self, transaction_id: int) -> None:
        self._applied_transaction_ids.add(transaction_id)

    def store_disputable_transaction(self, transaction: DisputableTransaction) -> None:
        """Store deposit for future dispute lookups."""
        self._disputable_transactions[transaction.transaction_id] = transaction

    def get_disputable_transaction(self, transaction_id: int) -> Optional[DisputableTransaction]:
        """Retrieve stored deposit by ID."""
        return self._disputable_transactions.get(transaction_id)

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return copies of all accounts (for final output)."""
        return {
            client_id: dataclasses.replace(account)
            for client_id, account in self._accounts.items()
        }
