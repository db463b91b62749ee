"""Order settlement and debt reconciliation - core business logic for deliveries"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable
from shop_gateway.domain.models import Settlement, SaleAmounts, SalesSummary
from shop_gateway.domain.exceptions import InvalidPaymentError, ValidationError
from shop_gateway.utils.money import to_decimal

TRANSFER_SURCHARGE = Decimal("1.03")
DEFAULT_TOLERANCE = Decimal("99")
REPORT_ROUNDING_UNIT = Decimal("100")

ZERO = Decimal("0")


def _non_negative(name: str, value) -> Decimal:
    amount = to_decimal(value)
    if amount < 0:
        raise ValidationError(f"{name} must be >= 0, got {amount}")
    return amount


def normalize_transfer(
    transfer_amount,
    round_to_hundred: bool = False,
    surcharge: Decimal = TRANSFER_SURCHARGE,
    rounding_unit: Decimal = REPORT_ROUNDING_UNIT,
) -> Decimal:
    """
    Value the merchant actually receives from an electronic transfer.

    The transfer channel keeps a fee, so the received value is the raw amount
    divided by the surcharge multiplier (1.03 by default).

    Args:
        transfer_amount: Raw amount the customer transferred (>= 0)
        round_to_hundred: Round the result to the nearest multiple of
            rounding_unit (100 by default). Only the sales report asks for
            this; settlement never does.
        surcharge: Fee multiplier of the transfer channel
        rounding_unit: Currency step used when rounding

    Example:
        1030 → 1000
        1030, round_to_hundred → 1000
        1500, round_to_hundred → 1456.31 → 1500
    """
    amount = _non_negative("transfer_amount", transfer_amount)
    if amount == 0:
        return ZERO

    received = amount / to_decimal(surcharge)

    if round_to_hundred:
        unit = to_decimal(rounding_unit)
        received = (received / unit).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * unit

    return received


def report_transfer_value(
    transfer_amount,
    surcharge: Decimal = TRANSFER_SURCHARGE,
    rounding_unit: Decimal = REPORT_ROUNDING_UNIT,
) -> Decimal:
    """Transfer value as shown on the sales report (rounded to hundreds by default)"""
    return normalize_transfer(
        transfer_amount,
        round_to_hundred=True,
        surcharge=surcharge,
        rounding_unit=rounding_unit,
    )


def settle_order(
    order_total,
    cash_amount,
    transfer_amount,
    tolerance=DEFAULT_TOLERANCE,
    surcharge: Decimal = TRANSFER_SURCHARGE,
) -> Settlement:
    """
    Settle a pending order against a cash + transfer payment.

    Debt policy:
    - difference = order_total - total_paid (> 0 owed, < 0 overpaid)
    - |difference| <= tolerance: the order counts as fully paid, new debt is 0
      and any previously stored debt is wiped
    - otherwise the new debt is the difference itself, so overpayments become
      stored credit (negative debt)

    The returned new_debt replaces the customer's stored debt; it is never
    added onto it.

    Raises:
        ValidationError: Negative amounts or tolerance
        InvalidPaymentError: Nothing was paid
    """
    total = _non_negative("order_total", order_total)
    cash = _non_negative("cash_amount", cash_amount)
    band = _non_negative("tolerance", tolerance)

    total_paid = cash + normalize_transfer(transfer_amount, round_to_hundred=False, surcharge=surcharge)
    if total_paid <= 0:
        raise InvalidPaymentError("Payment amount must be greater than zero")

    difference = total - total_paid
    new_debt = difference if abs(difference) > band else ZERO

    return Settlement(total_paid=total_paid, difference=difference, new_debt=new_debt)


def sale_outstanding(
    sale: SaleAmounts,
    surcharge: Decimal = TRANSFER_SURCHARGE,
    rounding_unit: Decimal = REPORT_ROUNDING_UNIT,
) -> Decimal:
    """
    Balance left on a recorded sale, as the sales report displays it.

    Uses the rounded report transfer value, not the settlement one, so it can
    differ from the debt computed at delivery time.
    """
    total = to_decimal(sale.total)
    if not total:
        return ZERO
    paid = to_decimal(sale.cash_amount) + report_transfer_value(sale.transfer_amount or 0, surcharge, rounding_unit)
    return total - paid


def summarize_sales(sales: Iterable[SaleAmounts]) -> SalesSummary:
    """
    Report totals over a set of sales.

    Collected money counts the raw transfer amount (fee included).
    """
    total_sales = ZERO
    total_collected = ZERO
    for sale in sales:
        total_sales += to_decimal(sale.total)
        total_collected += to_decimal(sale.cash_amount) + to_decimal(sale.transfer_amount)

    return SalesSummary(
        total_sales=total_sales,
        total_collected=total_collected,
        total_debt=total_sales - total_collected,
    )
