"""Recovery receipts: numbering, plain-text rendering and a local print log."""
import logging
import time
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional
import aiofiles
import orjson

from distro_portal.config import config
from distro_portal.recovery.models import RecoveryRecord, RecoveryType
from distro_portal.recovery.reconcile import Reconciliation, reconcile

logger = logging.getLogger(__name__)

COMPANY_NAME = "Ideal Nimko Ltd."
CURRENCY = "PKR"
RECEIPT_PREFIXES = {"order": "ORD", "recovery": "REC"}
WIDTH = 48


def receipt_number(kind: str, sequence: int, on: Optional[date] = None) -> str:
    """
    Receipt number as <prefix><yymmdd><4-digit sequence>, e.g. REC2410180007.
    The sequence is the count of existing receipts plus one.
    """
    if kind not in RECEIPT_PREFIXES:
        raise ValueError(f"Unknown receipt kind '{kind}', expected order or recovery")
    if sequence < 1:
        raise ValueError("sequence starts at 1")
    on = on or date.today()
    return f"{RECEIPT_PREFIXES[kind]}{on:%y%m%d}{sequence:04d}"


def money(value: Decimal) -> str:
    return f"{CURRENCY} {Decimal(value):,.2f}"


def recompute(record: RecoveryRecord) -> Reconciliation:
    """Run the reconciliation again from a stored recovery's inputs."""
    return reconcile(
        record.previous_pending_amount,
        record.amount_collected,
        record.items,
        record.recovery_type,
    )


def _row(label: str, value: str) -> str:
    return f"{label}{value:>{WIDTH - len(label)}}"


def render_receipt(record: RecoveryRecord, generated_at: Optional[datetime] = None) -> str:
    """Plain-text receipt from the values the backend stored."""
    generated_at = generated_at or datetime.now()
    with_items = record.recovery_type is RecoveryType.PAYMENT_WITH_ITEMS

    lines = [
        COMPANY_NAME.center(WIDTH),
        "Recovery Receipt".center(WIDTH),
        "=" * WIDTH,
    ]
    if record.id:
        lines.append(f"Recovery ID: {record.id}")
    if record.recovery_date:
        lines.append(f"Recovery Date: {record.recovery_date:%Y-%m-%d %H:%M}")
    lines.append(f"Shopkeeper: {record.shopkeeper_name or record.shopkeeper or 'Shopkeeper'}")
    if record.salesman_name or record.salesman:
        lines.append(f"Salesman: {record.salesman_name or record.salesman}")
    lines.append(f"Recovery Type: {record.recovery_type.label}")
    lines.append(f"Payment Method: {record.payment_method}")
    if record.recovery_location:
        lines.append(f"Location: {record.recovery_location}")
    if record.receipt_number:
        lines.append(f"Receipt Number: {record.receipt_number}")
    if record.notes:
        lines.append(f"Notes: {record.notes}")

    if with_items and record.items:
        lines.append("-" * WIDTH)
        lines.append(f"{'Product':<18}{'Qty':>5}{'Unit':>12}{'Total':>13}")
        for item in record.items:
            name = (item.product_name or "Product")[:18]
            lines.append(f"{name:<18}{item.quantity:>5}{item.unit_price:>12,.2f}{item.total_price:>13,.2f}")
        lines.append(_row("Items Total:", money(record.items_value)))

    lines.append("-" * WIDTH)
    lines.append(_row("Amount Collected:", money(record.amount_collected)))
    if with_items:
        lines.append(_row("Items Value:", money(record.items_value)))
    lines.append(_row("Previous Pending Amount:", money(record.previous_pending_amount)))
    lines.append(_row("Net Payment:", money(record.net_payment)))
    lines.append(_row("New Pending Amount:", money(record.new_pending_amount)))
    lines.append("=" * WIDTH)
    lines.append("Thank you for your business!".center(WIDTH))
    lines.append(f"Generated on: {generated_at:%Y-%m-%d %H:%M}".center(WIDTH))
    return "\n".join(lines)


def receipt_payload(record: RecoveryRecord, content: str) -> dict[str, Any]:
    """Body for POST /receipts recording that a receipt was printed."""
    return {
        "receiptType": "recovery",
        "recoveryId": record.id,
        "receiptContent": content,
        "totalAmount": float(record.amount_collected),
        "notes": "Recovery receipt printed by salesman",
    }


class ReceiptLog:
    """Appends printed receipts to a JSONL file for later audit."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or config.RECEIPT_LOG)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    async def append(self, record: RecoveryRecord, content: str) -> None:
        entry = {
            "ts": time.time(),
            "recovery": record.model_dump(mode="json", by_alias=True),
            "content": content,
        }
        async with aiofiles.open(self.path, "ab") as f:
            await f.write(orjson.dumps(entry) + b"\n")
        logger.info(f"Logged receipt for recovery {record.id}")

    async def read_all(self) -> list[dict]:
        """Read logged entries, skipping corrupt lines."""
        if not self.path.exists():
            return []

        entries = []
        async with aiofiles.open(self.path, "rb") as f:
            async for line in f:
                try:
                    entries.append(orjson.loads(line))
                except orjson.JSONDecodeError as e:
                    logger.warning(f"Error reading receipt log line: {e}")
                    continue
        return entries
