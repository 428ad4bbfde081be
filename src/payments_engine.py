import csv
import logging
from typing import Dict, Iterable, Iterator

from errors import FatalError, ParseError
from models import (
    MAX_CLIENT_ID,
    MAX_TRANSACTION_ID,
    ClientAccount,
    ProcessingResult,
    ProcessingStats,
    Transaction,
    TransactionType,
)
from money import parse_amount
from state_manager import StateManager
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


def parse_csv_row(row: Dict[str, str]) -> Transaction:
    """Parse CSV row into Transaction. Raises ParseError on any malformed field."""
    # csv.DictReader files surplus values under None and pads short rows with None
    normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

    try:
        transaction_type = TransactionType(normalized["type"].lower())
    except KeyError:
        raise ParseError("missing field 'type'")
    except ValueError:
        raise ParseError(f"unknown transaction type {normalized['type']!r}")

    client_id = _parse_id(normalized, "client", MAX_CLIENT_ID)
    transaction_id = _parse_id(normalized, "tx", MAX_TRANSACTION_ID)

    amount = None
    if transaction_type.carries_amount:
        amount_str = normalized.get("amount", "")
        if not amount_str:
            raise ParseError(f"{transaction_type.value} tx {transaction_id} has no amount")
        try:
            amount = parse_amount(amount_str)
        except ValueError as e:
            raise ParseError(f"{transaction_type.value} tx {transaction_id}: {e}") from e

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_id(normalized: Dict[str, str], field: str, maximum: int) -> int:
    if field not in normalized:
        raise ParseError(f"missing field {field!r}")
    text = normalized[field]
    if not (text.isascii() and text.isdigit()):
        raise ParseError(f"invalid {field} id {text!r}")
    value = int(text)
    if value > maximum:
        raise ParseError(f"{field} id {value} out of range 0..{maximum}")
    return value


class PaymentsEngine:
    """
    Feeds transactions, in input order, through a TransactionProcessor.
    Owns its state; build a new engine for every run.
    """

    def __init__(self):
        self._state = StateManager()
        self._processor = TransactionProcessor(self._state)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")
        accounts = self.process_transactions(self.read_transactions(filepath))
        logger.info(f"Finished {filepath}: {self._stats.summary()}")
        return accounts

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Apply transactions sequentially and return final account states."""
        for transaction in transactions:
            self.process_transaction(transaction)
        return self.get_accounts()

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        result = self._processor.process_transaction(transaction)
        if result.is_success:
            self._stats.record_success()
        else:
            self._stats.record_rejection(result)
        return result

    def get_accounts(self) -> Dict[int, ClientAccount]:
        return self._state.get_all_accounts()

    def read_transactions(self, filepath: str) -> Iterator[Transaction]:
        """Read CSV and yield parsed transactions, skipping malformed rows."""
        try:
            with open(filepath, "r", newline="", encoding="utf-8") as f:
                reader = csv.DictReader(f)
                while True:
                    try:
                        row = next(reader)
                    except StopIteration:
                        break
                    except csv.Error as e:
                        # The reader drops the offending line and resumes at the next one
                        self._stats.record_parse_failure()
                        logger.warning(f"Skipping line {reader.line_num}: {e}")
                        continue

                    try:
                        transaction = parse_csv_row(row)
                    except ParseError as e:
                        self._stats.record_parse_failure()
                        logger.warning(f"Skipping line {reader.line_num}: {e}")
                        continue
                    yield transaction
        except (OSError, UnicodeDecodeError) as e:
            raise FatalError(f"Cannot read transactions from {filepath}: {e}") from e
