"""Input checks run before any write"""

from datetime import date
from decimal import InvalidOperation
from typing import Optional, Sequence
from shop_gateway.domain.models import LineItem, PriceList
from shop_gateway.domain.exceptions import ValidationError
from shop_gateway.utils.money import to_decimal


def validate_customer(name: Optional[str], price_list: str = PriceList.RETAIL.value) -> None:
    if not name or not name.strip():
        raise ValidationError("Customer name is required")
    if price_list not in {p.value for p in PriceList}:
        raise ValidationError(f"Unknown price list: {price_list}")


def _positive_price(label: str, value) -> None:
    try:
        price = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{label} must be a number")
    if not price.is_finite() or price <= 0:
        raise ValidationError(f"{label} must be greater than 0")


def validate_product(name: Optional[str], retail_price, wholesale_price) -> None:
    if not name or not name.strip():
        raise ValidationError("Product name is required")
    _positive_price("Retail price", retail_price)
    _positive_price("Wholesale price", wholesale_price)


def require_customer_and_items(customer_id: Optional[int], items: Sequence) -> None:
    if customer_id is None or not items:
        raise ValidationError("Select a customer and add products")


def validate_quote(customer_id: Optional[int], line_items: Sequence[LineItem]) -> None:
    """A quote needs a customer and at least one valid line"""
    require_customer_and_items(customer_id, line_items)
    for item in line_items:
        if item.quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")
        if item.unit_price < 0:
            raise ValidationError("Unit price must be >= 0")


def validate_date_range(date_from: Optional[date], date_to: Optional[date]) -> None:
    """Filtering sales by date needs both ends of the range"""
    if (date_from is None) != (date_to is None):
        raise ValidationError("Both dates are required to filter sales")
    if date_from and date_to and date_from > date_to:
        raise ValidationError("date_from must not be after date_to")


def validate_order_total(total) -> None:
    """
    An order total can never be negative.

    It goes negative when the customer's stored credit exceeds the quote
    subtotal; such an order could never be settled, so it is refused.
    """
    if to_decimal(total) < 0:
        raise ValidationError(
            f"Customer credit exceeds the order subtotal (total {total}); adjust the customer's balance first"
        )
