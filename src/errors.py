class PaymentsError(Exception):
    """Base error for the payments ledger."""


class ParseError(PaymentsError):
    """A CSV row could not be turned into a Transaction. The row is skipped."""


class FatalError(PaymentsError):
    """The input could not be read at all. Aborts the run."""
