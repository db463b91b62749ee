"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class OrderStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PriceList(str, Enum):
    RETAIL = "retail"
    WHOLESALE = "wholesale"


class OperatorRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


@dataclass
class LineItem:
    """Single product line on a quote or order"""

    unit_price: Decimal
    quantity: int
    product_id: Optional[int] = None
    name: str = ""

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class QuoteTotals:
    """Subtotal of line items plus the customer's prior debt"""

    subtotal: Decimal
    total: Decimal


@dataclass
class Settlement:
    """Outcome of settling a pending order against a two-part payment"""

    total_paid: Decimal
    difference: Decimal  # > 0 still owed, < 0 overpaid
    new_debt: Decimal


@dataclass
class SaleAmounts:
    """Amounts recorded on a sale, as read back by the sales report"""

    total: Decimal
    cash_amount: Decimal
    transfer_amount: Decimal


@dataclass
class SalesSummary:
    total_sales: Decimal
    total_collected: Decimal
    total_debt: Decimal


@dataclass
class OperatorContext:
    """Authenticated operator, passed explicitly to handlers that need it"""

    operator_id: int
    name: str
    role: OperatorRole


@dataclass
class DraftQuote:
    """Client-local quote that has not been placed as an order"""

    id: str
    customer: dict
    line_items: List[LineItem]
    subtotal: Decimal
    total: Decimal
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
