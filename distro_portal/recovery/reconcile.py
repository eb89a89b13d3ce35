"""Balance arithmetic for recoveries against a shopkeeper's pending amount."""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Union

from distro_portal.recovery.models import RecoveryItem, RecoveryType

CENT = Decimal("0.01")
ZERO = Decimal("0")

ItemLike = Union[RecoveryItem, Mapping[str, Any]]


@dataclass(frozen=True)
class Reconciliation:
    """Result shown in the summary panel and again on the printed receipt."""

    items_value: Decimal
    net_payment: Decimal
    new_pending: Decimal

    def rounded(self) -> "Reconciliation":
        return Reconciliation(
            items_value=self.items_value.quantize(CENT),
            net_payment=self.net_payment.quantize(CENT),
            new_pending=self.new_pending.quantize(CENT),
        )


def to_decimal(value: Any, field_name: str = "amount") -> Decimal:
    """Parse money input; blank counts as zero."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"{field_name} must be a number, got {value!r}") from None
    if not number.is_finite():
        raise ValueError(f"{field_name} must be a finite number, got {value!r}")
    return number


def _line(item: ItemLike) -> tuple[Decimal, Decimal]:
    if isinstance(item, RecoveryItem):
        return Decimal(item.quantity), item.unit_price
    quantity = to_decimal(item.get("quantity"), "quantity")
    unit_price = to_decimal(item.get("unit_price", item.get("unitPrice")), "unit_price")
    return quantity, unit_price


def items_value(items: Iterable[ItemLike]) -> Decimal:
    """Sum of quantity x unit price over all lines."""
    total = ZERO
    for index, item in enumerate(items):
        quantity, unit_price = _line(item)
        if quantity <= 0:
            raise ValueError(f"Item {index}: quantity must be greater than 0")
        if unit_price < 0:
            raise ValueError(f"Item {index}: unit price cannot be negative")
        total += quantity * unit_price
    return total


def reconcile(
    previous_pending: Any,
    amount_collected: Any,
    items: Iterable[ItemLike] = (),
    recovery_type: Union[RecoveryType, str] = RecoveryType.PAYMENT_WITH_ITEMS,
) -> Reconciliation:
    """
    Compute (items_value, net_payment, new_pending) for a recovery.

    Items only count for payment_with_items; stray entries on a payment_only
    recovery are ignored. Overpayment beyond the pending balance is not kept
    as credit: new_pending bottoms out at zero.
    """
    pending = to_decimal(previous_pending, "previous_pending")
    collected = to_decimal(amount_collected, "amount_collected")
    if pending < 0:
        raise ValueError("previous_pending cannot be negative")
    if collected < 0:
        raise ValueError("amount_collected cannot be negative")

    if RecoveryType(recovery_type) is RecoveryType.PAYMENT_ONLY:
        value = ZERO
    else:
        value = items_value(items)

    net = collected - value
    new_pending = max(ZERO, pending - net)
    return Reconciliation(items_value=value, net_payment=net, new_pending=new_pending)
