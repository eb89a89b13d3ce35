"""Data models for recoveries and the catalog entries they reference."""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class RecoveryType(str, Enum):
    PAYMENT_ONLY = "payment_only"
    PAYMENT_WITH_ITEMS = "payment_with_items"

    @property
    def label(self) -> str:
        return "Payment Only" if self is RecoveryType.PAYMENT_ONLY else "Payment with Items"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    UPI = "upi"
    OTHER = "other"


class RecoveryStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _flatten_ref(data: Any, field_name: str, name_field: str) -> Any:
    """Populated references arrive as {"_id", "name"}; keep the id and remember the name."""
    if isinstance(data, dict) and isinstance(data.get(field_name), dict):
        ref = data[field_name]
        data = {**data, field_name: ref.get("_id") or ref.get("id")}
        data.setdefault(name_field, ref.get("name"))
    return data


class Product(BaseModel):
    """Catalog product as seen when picking recovery items."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    name: str = ""
    price: Decimal = Field(default=Decimal("0"), ge=0)
    stock: int = 0


class Shopkeeper(BaseModel):
    """Shopkeeper account with its outstanding balance."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    name: str = ""
    pending_amount: Decimal = Field(default=Decimal("0"), alias="pendingAmount")
    credit_limit: Optional[Decimal] = Field(default=None, alias="creditLimit")


class RecoveryItem(BaseModel):
    """One delivered or returned product line on a recovery."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product: str
    product_name: Optional[str] = Field(default=None, alias="productName")
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0, alias="unitPrice")

    @model_validator(mode="before")
    @classmethod
    def _flatten_product(cls, data: Any) -> Any:
        return _flatten_ref(data, "product", "productName")

    @property
    def total_price(self) -> Decimal:
        return self.quantity * self.unit_price


class BankDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bank_name: str = Field(default="", alias="bankName")
    account_number: str = Field(default="", alias="accountNumber")
    transaction_id: str = Field(default="", alias="transactionId")
    cheque_number: str = Field(default="", alias="chequeNumber")


class RecoveryRecord(BaseModel):
    """Recovery as stored and echoed back by the backend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(default=None, alias="_id")
    shopkeeper: Optional[str] = None
    shopkeeper_name: Optional[str] = Field(default=None, alias="shopkeeperName")
    salesman: Optional[str] = None
    salesman_name: Optional[str] = Field(default=None, alias="salesmanName")
    recovery_type: RecoveryType = Field(default=RecoveryType.PAYMENT_ONLY, alias="recoveryType")
    payment_method: str = Field(default=PaymentMethod.CASH.value, alias="paymentMethod")
    amount_collected: Decimal = Field(default=Decimal("0"), alias="amountCollected")
    items: list[RecoveryItem] = Field(default_factory=list)
    items_value: Decimal = Field(default=Decimal("0"), alias="itemsValue")
    net_payment: Decimal = Field(default=Decimal("0"), alias="netPayment")
    previous_pending_amount: Decimal = Field(default=Decimal("0"), alias="previousPendingAmount")
    new_pending_amount: Decimal = Field(default=Decimal("0"), alias="newPendingAmount")
    status: str = RecoveryStatus.COMPLETED.value
    recovery_date: Optional[datetime] = Field(default=None, alias="recoveryDate")
    receipt_number: Optional[str] = Field(default=None, alias="receiptNumber")
    recovery_location: Optional[str] = Field(default=None, alias="recoveryLocation")
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_people(cls, data: Any) -> Any:
        data = _flatten_ref(data, "shopkeeper", "shopkeeperName")
        return _flatten_ref(data, "salesman", "salesmanName")
