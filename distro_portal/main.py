"""Main entry point with CLI."""
import argparse
import asyncio
import logging
import sys
from datetime import date

from distro_portal.config import config, Config
from distro_portal.logging_conf import setup_logging
from distro_portal.exceptions import PortalError
from distro_portal.fetch.client import PortalClient
from distro_portal.fetch.endpoints import COLLECTIONS
from distro_portal.paging.controller import PaginationController
from distro_portal.paging.state import PAGE_SIZE_OPTIONS, PageState, page_window
from distro_portal.recovery.models import RecoveryType
from distro_portal.recovery.receipt import money, receipt_number
from distro_portal.recovery.reconcile import reconcile

logger = logging.getLogger(__name__)


def parse_key_value(text: str) -> tuple[str, str]:
    """Parse a key=value filter argument."""
    key, sep, value = text.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected key=value, got '{text}'")
    return key, value


def parse_item(text: str) -> dict:
    """Parse a quantity:unit_price recovery line."""
    quantity, sep, price = text.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"Expected quantity:price, got '{text}'")
    try:
        return {"quantity": int(quantity), "unit_price": price}
    except ValueError:
        raise argparse.ArgumentTypeError(f"Quantity must be an integer, got '{quantity}'") from None


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Distribution portal client")
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Log level (default: {config.LOG_LEVEL})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # list
    list_parser = subparsers.add_parser("list", help="Fetch one page of a collection")
    list_parser.add_argument("collection", choices=sorted(COLLECTIONS))
    list_parser.add_argument("--page", type=int, default=1, help="Page to show (default: 1)")
    list_parser.add_argument(
        "--limit",
        type=int,
        default=config.DEFAULT_PAGE_SIZE,
        help=f"Rows per page, usually one of {PAGE_SIZE_OPTIONS} (default: {config.DEFAULT_PAGE_SIZE})",
    )
    list_parser.add_argument(
        "--filter",
        dest="filters",
        type=parse_key_value,
        action="append",
        default=[],
        help="Filter as key=value, repeatable (e.g. --filter status=pending)",
    )

    # reconcile
    reconcile_parser = subparsers.add_parser("reconcile", help="Compute a recovery's effect on the balance")
    reconcile_parser.add_argument("--pending", required=True, help="Previous pending amount")
    reconcile_parser.add_argument("--collected", required=True, help="Amount collected")
    reconcile_parser.add_argument(
        "--item",
        dest="items",
        type=parse_item,
        action="append",
        default=[],
        help="Delivered item as quantity:unit_price, repeatable",
    )

    # receipt-number
    number_parser = subparsers.add_parser("receipt-number", help="Format a receipt number")
    number_parser.add_argument("--kind", choices=["order", "recovery"], default="recovery")
    number_parser.add_argument("--sequence", type=int, required=True)
    number_parser.add_argument("--date", type=date.fromisoformat, default=None, help="YYYY-MM-DD (default: today)")

    return parser.parse_args(argv)


def format_page(state: PageState) -> str:
    """Rows plus the pagination footer."""
    lines = [str(row) for row in state.items]
    pages = " ".join("..." if n is None else (f"[{n}]" if n == state.current_page else str(n))
                     for n in page_window(state.current_page, state.total_pages))
    lines.append(state.describe())
    lines.append(f"Pages: {pages}")
    return "\n".join(lines)


async def run_list(args: argparse.Namespace) -> int:
    async with PortalClient() as client:
        controller = PaginationController(
            client.list_fetcher(args.collection),
            initial_filters=dict(args.filters),
            page_size=args.limit,
        )
        controller.state.current_page = args.page
        state = await controller.load()

    if state.error:
        logger.error(f"Could not list {args.collection}: {state.error}")
        return 1
    print(format_page(state))
    return 0


def run_reconcile(args: argparse.Namespace) -> int:
    recovery_type = RecoveryType.PAYMENT_WITH_ITEMS if args.items else RecoveryType.PAYMENT_ONLY
    result = reconcile(args.pending, args.collected, args.items, recovery_type).rounded()
    print(f"Items value:  {money(result.items_value)}")
    print(f"Net payment:  {money(result.net_payment)}")
    print(f"New pending:  {money(result.new_pending)}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        if args.command == "list":
            try:
                Config.validate()
            except ValueError as e:
                logger.error(f"Configuration error: {e}")
                sys.exit(1)
            code = asyncio.run(run_list(args))
        elif args.command == "reconcile":
            code = run_reconcile(args)
        else:
            print(receipt_number(args.kind, args.sequence, args.date))
            code = 0
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)
    except (PortalError, ValueError) as e:
        logger.error(f"{e}")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
