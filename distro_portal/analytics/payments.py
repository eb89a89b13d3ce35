"""Aggregation of received payments and recovery totals for the dashboard."""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from distro_portal.recovery.models import RecoveryStatus
from distro_portal.recovery.reconcile import to_decimal

logger = logging.getLogger(__name__)

AMOUNT_FIELDS = ("websiteReceived", "shopkeeperOrderPaid", "recoveriesCollected")


def summarize_recoveries(recoveries: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Totals over recoveries, leaving out cancelled ones."""
    summary = {
        "totalRecoveries": 0,
        "totalAmountCollected": Decimal("0"),
        "totalNetPayment": Decimal("0"),
        "totalItemsValue": Decimal("0"),
    }
    for recovery in recoveries:
        if recovery.get("status") == RecoveryStatus.CANCELLED.value:
            continue
        summary["totalRecoveries"] += 1
        summary["totalAmountCollected"] += to_decimal(recovery.get("amountCollected"))
        summary["totalNetPayment"] += to_decimal(recovery.get("netPayment"))
        summary["totalItemsValue"] += to_decimal(recovery.get("itemsValue"))
    return summary


def _parse_date(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable lastReceivedDate: {value!r}")
        return None


def _later(current: Any, candidate: Any) -> Any:
    """Keep whichever date is later, tolerating missing or junk values."""
    candidate_date = _parse_date(candidate)
    if candidate_date is None:
        return current
    current_date = _parse_date(current)
    if current_date is None:
        return candidate
    try:
        return candidate if candidate_date > current_date else current
    except TypeError:
        # naive vs aware
        return candidate if candidate_date.replace(tzinfo=None) > current_date.replace(tzinfo=None) else current


def merge_payer_rows(*row_groups: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """
    Merge per-source payer rows (website orders, shopkeeper orders, recoveries)
    into one row per payerKey, with totalReceived, sorted by it descending.
    """
    payers: dict[str, dict[str, Any]] = {}

    for rows in row_groups:
        for row in rows:
            key = row.get("payerKey")
            if not key:
                logger.debug(f"Skipping payer row without payerKey: {row}")
                continue
            existing = payers.get(key)
            if existing is None:
                existing = {
                    "payerKey": key,
                    "payerId": row.get("payerId"),
                    "payerName": row.get("payerName") or "Unknown",
                    "payerType": row.get("payerType") or "Unknown",
                    "payerEmail": row.get("payerEmail") or "",
                    "payerPhone": row.get("payerPhone") or "",
                    "websiteReceived": Decimal("0"),
                    "shopkeeperOrderPaid": Decimal("0"),
                    "recoveriesCollected": Decimal("0"),
                    "transactionCount": 0,
                    "lastReceivedDate": None,
                }
                payers[key] = existing

            for field_name in AMOUNT_FIELDS:
                existing[field_name] += to_decimal(row.get(field_name), field_name)
            existing["transactionCount"] += int(row.get("transactionCount") or 0)
            existing["lastReceivedDate"] = _later(existing["lastReceivedDate"], row.get("lastReceivedDate"))

    merged = []
    for payer in payers.values():
        payer["totalReceived"] = sum((payer[name] for name in AMOUNT_FIELDS), Decimal("0"))
        merged.append(payer)
    merged.sort(key=lambda payer: payer["totalReceived"], reverse=True)
    return merged


def payments_summary(payers: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Grand totals across merged payer rows."""
    summary = {name: Decimal("0") for name in AMOUNT_FIELDS}
    summary["totalReceived"] = Decimal("0")
    summary["totalTransactions"] = 0
    for payer in payers:
        for name in AMOUNT_FIELDS:
            summary[name] += to_decimal(payer.get(name), name)
        summary["totalReceived"] += to_decimal(payer.get("totalReceived"), "totalReceived")
        summary["totalTransactions"] += int(payer.get("transactionCount") or 0)
    return summary
