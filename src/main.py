import argparse
import csv
import logging
import sys
from typing import Dict, List, Optional, TextIO

from errors import FatalError
from models import ClientAccount
from money import format_amount
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)

REPORT_FIELDS = ["client", "available", "held", "total", "locked"]
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def write_report(accounts: Dict[int, ClientAccount], stream: TextIO) -> None:
    """Write one CSV row per account, ordered by client id."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(REPORT_FIELDS)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        writer.writerow([
            client_id,
            format_amount(account.available),
            format_amount(account.held),
            format_amount(account.total),
            str(account.locked).lower(),
        ])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payments-ledger",
        description="Apply a CSV of transactions and print the final state of every client account.",
    )
    parser.add_argument("input", help="path to the transactions CSV")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        help="diagnostics written to stderr (default: WARNING)",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="print processed/rejected counts to stderr when done",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    engine = PaymentsEngine()
    try:
        accounts = engine.process_file(args.input)
    except FatalError as e:
        logger.error(str(e))
        return 1

    write_report(accounts, sys.stdout)

    if args.summary:
        print(engine.stats.summary(), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
