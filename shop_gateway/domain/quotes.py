"""Quote building and totals"""

from decimal import Decimal
from typing import List, Sequence
from shop_gateway.domain.models import LineItem, QuoteTotals, PriceList
from shop_gateway.utils.money import to_decimal


def compute_quote_total(line_items: Sequence[LineItem], prior_debt) -> QuoteTotals:
    """
    Sum line items and carry the customer's prior debt onto the total.

    Prior debt can be negative (stored credit), which lowers the total.
    An empty quote has a subtotal of 0.
    """
    subtotal = sum((item.unit_price * item.quantity for item in line_items), Decimal("0"))
    total = subtotal + to_decimal(prior_debt)
    return QuoteTotals(subtotal=subtotal, total=total)


def unit_price_for(retail_price, wholesale_price, price_list: str) -> Decimal:
    """Wholesale customers get the wholesale price, everyone else retail"""
    if price_list == PriceList.WHOLESALE.value:
        return to_decimal(wholesale_price)
    return to_decimal(retail_price)


def add_line_item(
    items: List[LineItem],
    product_id: int,
    unit_price: Decimal,
    quantity: int,
    name: str = "",
) -> List[LineItem]:
    """Add a product to the quote, merging quantities if it is already there"""
    updated = list(items)
    for index, item in enumerate(updated):
        if item.product_id == product_id:
            return set_quantity(updated, index, item.quantity + quantity)

    updated.append(LineItem(unit_price=to_decimal(unit_price), quantity=quantity, product_id=product_id, name=name))
    return updated


def set_quantity(items: List[LineItem], index: int, quantity: int) -> List[LineItem]:
    """Change a line's quantity; zero or less removes the line"""
    updated = list(items)
    if quantity <= 0:
        del updated[index]
        return updated

    item = updated[index]
    updated[index] = LineItem(
        unit_price=item.unit_price,
        quantity=quantity,
        product_id=item.product_id,
        name=item.name,
    )
    return updated
