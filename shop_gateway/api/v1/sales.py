"""GET /v1/sales - sales report with per-sale outstanding balance"""

from datetime import date, datetime, time, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shop_gateway.api.v1.schemas import SalesReportResponse, SaleItem, SalesSummaryResponse
from shop_gateway.api.dependencies import get_operator
from shop_gateway.api.errors import to_http_exception
from shop_gateway.config import settings
from shop_gateway.infrastructure.database.session import get_db
from shop_gateway.infrastructure.database.repositories import SaleRepository
from shop_gateway.domain.models import OperatorContext, SaleAmounts
from shop_gateway.domain.settlement import report_transfer_value, sale_outstanding, summarize_sales
from shop_gateway.domain.validation import validate_date_range
from shop_gateway.domain.exceptions import DomainException
from shop_gateway.utils.money import to_money

router = APIRouter()


@router.get("/sales", response_model=SalesReportResponse)
def get_sales_report(
    date_from: Optional[date] = Query(None, description="First day, inclusive"),
    date_to: Optional[date] = Query(None, description="Last day, inclusive"),
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    """
    List sales newest first with report totals.

    The transfer column shows the received value rounded to hundreds, and the
    outstanding balance is derived from it. Summary totals count raw
    transfer amounts as collected.
    """
    try:
        validate_date_range(date_from, date_to)
        start = datetime.combine(date_from, time.min, tzinfo=timezone.utc) if date_from else None
        end = datetime.combine(date_to, time.max, tzinfo=timezone.utc) if date_to else None
        sales = SaleRepository(db).list_sales(start=start, end=end)
    except DomainException as e:
        raise to_http_exception(e)

    surcharge = settings.transfer_surcharge
    unit = settings.report_rounding_unit
    amounts = [SaleAmounts(total=s.total, cash_amount=s.cash_amount, transfer_amount=s.transfer_amount) for s in sales]
    summary = summarize_sales(amounts)

    items = [
        SaleItem(
            sale_id=sale.id,
            customer_id=sale.customer_id,
            customer_name=sale.customer.name,
            customer_kind=sale.customer.kind,
            price_list=sale.customer.price_list,
            sold_at=sale.sold_at,
            cash_amount=to_money(sale.cash_amount),
            transfer_amount=to_money(sale.transfer_amount),
            transfer_received=to_money(report_transfer_value(sale.transfer_amount, surcharge, unit)),
            total=to_money(sale.total),
            outstanding=to_money(sale_outstanding(amount, surcharge, unit)),
        )
        for sale, amount in zip(sales, amounts)
    ]

    return SalesReportResponse(
        sales=items,
        summary=SalesSummaryResponse(
            total_sales=to_money(summary.total_sales),
            total_collected=to_money(summary.total_collected),
            total_debt=to_money(summary.total_debt),
        ),
    )
