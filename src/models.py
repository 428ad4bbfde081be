from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from money import checked_sub

MAX_CLIENT_ID = 2 ** 16 - 1
MAX_TRANSACTION_ID = 2 ** 32 - 1


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    SUCCESS = "success"
    ACCOUNT_LOCKED = "account_locked"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    CLIENT_MISMATCH = "client_mismatch"
    INVALID_TRANSACTION_STATE = "invalid_transaction_state"
    MISSING_AMOUNT = "missing_amount"
    INVALID_AMOUNT = "invalid_amount"

    @property
    def is_success(self) -> bool:
        return self is ProcessingResult.SUCCESS


class DisputeStatus(Enum):
    ACTIVE = "active"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[int] = None  # minor units

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class DisputableTransaction:
    """A deposit kept in history so it can be disputed later."""

    transaction_id: int
    client_id: int
    amount: int
    status: DisputeStatus = DisputeStatus.ACTIVE


@dataclass
class ClientAccount:
    """
    Balances of one client in minor units.
    Mutators return False and leave the account untouched if a balance would go negative.
    """

    client_id: int
    available: int = 0
    held: int = 0
    locked: bool = False

    @property
    def total(self) -> int:
        return self.available + self.held

    def credit(self, amount: int) -> bool:
        if amount < 0:
            return False
        self.available += amount
        return True

    def debit(self, amount: int) -> bool:
        available = checked_sub(self.available, amount)
        if available is None:
            return False
        self.available = available
        return True

    def hold(self, amount: int) -> bool:
        available = checked_sub(self.available, amount)
        if available is None:
            return False
        self.available = available
        self.held += amount
        return True

    def release_hold(self, amount: int) -> bool:
        held = checked_sub(self.held, amount)
        if held is None:
            return False
        self.held = held
        self.available += amount
        return True

    def remove_held(self, amount: int) -> bool:
        held = checked_sub(self.held, amount)
        if held is None:
            return False
        self.held = held
        return True


class ProcessingStats:
    """Counters for tracking processing statistics."""

    def __init__(self):
        self.processed = 0
        self.rejected = 0
        self.parse_failures = 0
        self.rejections_by_reason: Counter = Counter()

    def record_success(self):
        self.processed += 1

    def record_rejection(self, result: ProcessingResult):
        self.rejected += 1
        self.rejections_by_reason[result] += 1

    def record_parse_failure(self):
        self.parse_failures += 1

    def summary(self) -> str:
        line = f"Processed: {self.processed}, Rejected: {self.rejected}, Parse failures: {self.parse_failures}"
        if self.rejections_by_reason:
            reasons = ", ".join(
                f"{result.value}={count}"
                for result, count in sorted(self.rejections_by_reason.items(), key=lambda item: item[0].value)
            )
            line += f" ({reasons})"
        return line
