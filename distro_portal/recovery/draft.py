"""In-progress recovery entered by a salesman before submission."""
import logging
from decimal import Decimal
from typing import Any, Iterable, Optional

from distro_portal.exceptions import InsufficientStockError
from distro_portal.recovery.models import (
    BankDetails,
    PaymentMethod,
    Product,
    RecoveryItem,
    RecoveryType,
    Shopkeeper,
)
from distro_portal.recovery.reconcile import Reconciliation, reconcile, to_decimal

logger = logging.getLogger(__name__)


class RecoveryDraft:
    """
    Form state for one recovery.

    Stock is checked against the catalog snapshot given at construction,
    whenever an item is added or its quantity changes. The backend must
    re-check at commit, since other sales can consume the same stock.
    """

    def __init__(
        self,
        shopkeeper: Shopkeeper,
        products: Iterable[Product],
        recovery_type: RecoveryType = RecoveryType.PAYMENT_ONLY,
        payment_method: PaymentMethod = PaymentMethod.CASH,
    ):
        self.shopkeeper = shopkeeper
        self.products = {product.id: product for product in products}
        self.recovery_type = RecoveryType(recovery_type)
        self.payment_method = PaymentMethod(payment_method)
        self.amount_collected: Decimal = Decimal("0")
        self.items: list[RecoveryItem] = []
        self.bank_details = BankDetails()
        self.notes = ""
        self.recovery_location = ""

    def set_amount_collected(self, amount: Any) -> None:
        value = to_decimal(amount, "amount_collected")
        if value < 0:
            raise ValueError("amount_collected cannot be negative")
        self.amount_collected = value

    def _product(self, product_id: str) -> Product:
        product = self.products.get(product_id)
        if product is None:
            raise ValueError(f"Product not found: {product_id}")
        return product

    def _check_stock(self, product: Product, quantity: int) -> None:
        if quantity <= 0:
            raise ValueError("quantity must be greater than 0")
        if product.stock < quantity:
            logger.warning(f"Insufficient stock for {product.name}: {product.stock} < {quantity}")
            raise InsufficientStockError(product.name, quantity, product.stock)

    def add_item(self, product_id: str, quantity: int, unit_price: Any = None) -> RecoveryItem:
        """Add a line; a blank unit price takes the product's catalog price."""
        product = self._product(product_id)
        self._check_stock(product, quantity)

        price = product.price if unit_price is None or unit_price == "" else to_decimal(unit_price, "unit_price")
        if price < 0:
            raise ValueError("unit price cannot be negative")

        item = RecoveryItem(
            product=product.id,
            product_name=product.name,
            quantity=quantity,
            unit_price=price,
        )
        self.items.append(item)
        return item

    def update_quantity(self, index: int, quantity: int) -> RecoveryItem:
        item = self.items[index]
        self._check_stock(self._product(item.product), quantity)
        updated = item.model_copy(update={"quantity": quantity})
        self.items[index] = updated
        return updated

    def remove_item(self, index: int) -> RecoveryItem:
        return self.items.pop(index)

    def effective_items(self) -> list[RecoveryItem]:
        """Lines that count: none for a payment-only recovery."""
        if self.recovery_type is RecoveryType.PAYMENT_ONLY:
            return []
        return list(self.items)

    def summary(self) -> Reconciliation:
        """Numbers for the pre-submission summary panel."""
        return reconcile(
            self.shopkeeper.pending_amount,
            self.amount_collected,
            self.effective_items(),
            self.recovery_type,
        )

    def to_payload(self) -> dict[str, Any]:
        """JSON body for POST /recoveries."""
        payload: dict[str, Any] = {
            "shopkeeperId": self.shopkeeper.id,
            "recoveryType": self.recovery_type.value,
            "amountCollected": float(self.amount_collected),
            "paymentMethod": self.payment_method.value,
            "items": [
                {
                    "product": item.product,
                    "quantity": item.quantity,
                    "unitPrice": float(item.unit_price),
                    "totalPrice": float(item.total_price),
                }
                for item in self.effective_items()
            ],
            "notes": self.notes,
            "recoveryLocation": self.recovery_location,
        }
        if self.payment_method in (PaymentMethod.BANK_TRANSFER, PaymentMethod.CHEQUE):
            payload["bankDetails"] = self.bank_details.model_dump(by_alias=True)
        return payload
