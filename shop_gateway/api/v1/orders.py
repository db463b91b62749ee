"""/v1/orders - placing, listing, delivering and cancelling orders"""

import time
import logging
from datetime import date, datetime, timezone
from typing import List, Optional, Sequence
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from shop_gateway.api.v1.schemas import (
    PlaceOrderRequest,
    OrderResponse,
    OrderCustomer,
    LineItemRequest,
    LineItemResponse,
    DeliverRequest,
    SettlementResponse,
)
from shop_gateway.api.dependencies import get_operator, get_request_id
from shop_gateway.api.errors import to_http_exception
from shop_gateway.config import settings
from shop_gateway.infrastructure.database.session import get_db
from shop_gateway.infrastructure.database.models import Customer, Order
from shop_gateway.infrastructure.database.repositories import (
    CustomerRepository,
    ProductRepository,
    OrderRepository,
    SaleRepository,
)
from shop_gateway.domain.models import LineItem, OperatorContext, OrderStatus, QuoteTotals
from shop_gateway.domain.quotes import add_line_item, compute_quote_total, unit_price_for
from shop_gateway.domain.settlement import settle_order
from shop_gateway.domain.lifecycle import ensure_transition
from shop_gateway.domain.validation import require_customer_and_items, validate_order_total, validate_quote
from shop_gateway.domain.exceptions import (
    DomainException,
    InvalidPaymentError,
    NotFoundError,
    RemoteOperationError,
)
from shop_gateway.infrastructure.observability.metrics import (
    record_settlement,
    rejected_payment_counter,
    write_step_failure_counter,
    orders_placed_counter,
)
from shop_gateway.infrastructure.observability.logging import log_settlement, log_partial_write
from shop_gateway.utils.money import to_money

router = APIRouter()


def line_response(item: LineItem) -> LineItemResponse:
    return LineItemResponse(
        product_id=item.product_id,
        name=item.name,
        unit_price=to_money(item.unit_price),
        quantity=item.quantity,
        subtotal=to_money(item.subtotal),
    )


def load_customer(db: Session, customer_id: Optional[int]) -> Customer:
    customer = CustomerRepository(db).get_customer(customer_id) if customer_id is not None else None
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def price_quote(db: Session, customer: Customer, items: Sequence[LineItemRequest]) -> tuple[List[LineItem], QuoteTotals]:
    """
    Price request lines from the customer's price list and total the quote.

    Repeated products collapse into one line; the customer's current debt is
    carried onto the total.
    """
    products = {p.id: p for p in ProductRepository(db).get_products([i.product_id for i in items])}

    line_items: List[LineItem] = []
    for item in items:
        product = products.get(item.product_id)
        if product is None:
            raise NotFoundError(f"Product {item.product_id} not found")
        price = unit_price_for(product.retail_price, product.wholesale_price, customer.price_list)
        line_items = add_line_item(line_items, product.id, price, item.quantity, name=product.name)

    return line_items, compute_quote_total(line_items, customer.debt)


def place_order(
    db: Session,
    request_id: str,
    operator: OperatorContext,
    customer: Customer,
    line_items: Sequence[LineItem],
    totals: QuoteTotals,
    delivery_date: Optional[date] = None,
    delivery_window: Optional[str] = None,
) -> Order:
    """
    Promote a quote to a pending order.

    Write sequence (each step commits on its own):
    1. Create the order with the quote total
    2. Create its line items
    3. Take each line's quantity out of stock, allowing negative stock

    A failure stops the sequence; earlier steps stay committed. A quote whose
    total is negative (credit larger than the subtotal) is refused before any
    write.
    """
    validate_quote(customer.id, line_items)
    validate_order_total(totals.total)

    order_repo = OrderRepository(db)
    product_repo = ProductRepository(db)
    committed: List[str] = []
    step = "order_created"
    order_id = None

    try:
        order = order_repo.create_order(
            customer_id=customer.id,
            total=totals.total,
            price_list=customer.price_list,
            operator_id=operator.operator_id,
            delivery_date=delivery_date,
            delivery_window=delivery_window,
        )
        order_id = order.id
        committed.append(step)

        step = "items_created"
        order_repo.add_items(order.id, line_items)
        committed.append(step)

        for item in line_items:
            step = f"stock_updated:{item.product_id}"
            product_repo.decrement_stock(item.product_id, item.quantity)
            committed.append(step)

    except RemoteOperationError:
        write_step_failure_counter.labels(sequence="place_order", step=step.split(":")[0]).inc()
        if committed:
            log_partial_write(request_id, "Order placement", step, committed, order_id=order_id)
        raise

    orders_placed_counter.inc()
    logging.info(
        "Order placed",
        extra={
            "request_id": request_id,
            "order_id": order.id,
            "customer_id": customer.id,
            "operator_id": operator.operator_id,
            "step": "order_placed",
            "total": str(totals.total),
        },
    )
    return order


def order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        status=order.status,
        total=to_money(order.total),
        price_list=order.price_list,
        delivery_date=order.delivery_date,
        delivery_window=order.delivery_window,
        customer=OrderCustomer.model_validate(order.customer),
        items=[
            line_response(
                LineItem(
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                    product_id=item.product_id,
                    name=item.product.name if item.product else "",
                )
            )
            for item in order.items
        ],
    )


@router.post("/orders", response_model=OrderResponse, status_code=201)
def create_order(
    body: PlaceOrderRequest,
    request: Request,
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    """Place a pending order priced from the customer's price list"""
    request_id = get_request_id(request)

    try:
        require_customer_and_items(body.customer_id, body.items)
        customer = load_customer(db, body.customer_id)
        line_items, totals = price_quote(db, customer, body.items)
        order = place_order(
            db,
            request_id,
            operator,
            customer,
            line_items,
            totals,
            delivery_date=body.delivery_date,
            delivery_window=body.delivery_window,
        )
        return order_response(OrderRepository(db).get_order(order.id))

    except DomainException as e:
        logging.warning(f"Order not placed: {e}", extra={"request_id": request_id})
        raise to_http_exception(e)


@router.get("/orders", response_model=List[OrderResponse])
def list_orders(
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    """Pending orders, earliest delivery date first"""
    try:
        return [order_response(o) for o in OrderRepository(db).list_pending()]
    except DomainException as e:
        raise to_http_exception(e)


@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    try:
        order = OrderRepository(db).get_order(order_id)
    except DomainException as e:
        raise to_http_exception(e)

    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    return order_response(order)


@router.post("/orders/{order_id}/deliver", response_model=SettlementResponse)
def deliver_order(
    order_id: int,
    body: DeliverRequest,
    request: Request,
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    """
    Mark a pending order delivered and settle the customer's payment.

    Flow:
    1. Check the order is pending
    2. Compute the settlement (nothing is written if the payment is zero)
    3. Set the order status to delivered
    4. Record the sale
    5. Overwrite the customer's debt with the new balance

    Steps 3-5 are independent commits. If one fails the rest are skipped and
    the committed ones are left as they are.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    order_repo = OrderRepository(db)

    try:
        order = order_repo.get_order(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        ensure_transition(OrderStatus(order.status), OrderStatus.DELIVERED)

        settlement = settle_order(
            order.total,
            body.cash_amount,
            body.transfer_amount,
            tolerance=settings.settlement_tolerance,
            surcharge=settings.transfer_surcharge,
        )
    except InvalidPaymentError as e:
        rejected_payment_counter.inc()
        logging.warning(f"Payment rejected: {e}", extra={"request_id": request_id, "order_id": order_id})
        raise to_http_exception(e)
    except DomainException as e:
        logging.warning(f"Delivery refused: {e}", extra={"request_id": request_id, "order_id": order_id})
        raise to_http_exception(e)

    customer_id = order.customer_id
    committed: List[str] = []
    step = "order_status"

    try:
        order_repo.set_status(order_id, OrderStatus.DELIVERED)
        committed.append(step)

        step = "sale_record"
        sale = SaleRepository(db).create_sale(
            customer_id=customer_id,
            order_id=order_id,
            sold_at=datetime.now(timezone.utc),
            cash_amount=body.cash_amount,
            transfer_amount=body.transfer_amount,
            total=order.total,
            total_paid=settlement.total_paid,
        )
        committed.append(step)

        step = "customer_debt"
        CustomerRepository(db).set_debt(customer_id, settlement.new_debt)
        committed.append(step)

    except DomainException as e:
        write_step_failure_counter.labels(sequence="deliver_order", step=step).inc()
        if committed:
            log_partial_write(request_id, "Delivery", step, committed, order_id=order_id)
        else:
            logging.error(f"Delivery failed: {e}", extra={"request_id": request_id, "order_id": order_id})
        raise to_http_exception(e)

    duration_ms = (time.time() - start_time) * 1000
    record_settlement(settlement.new_debt)
    log_settlement(
        request_id,
        order_id,
        customer_id,
        operator.operator_id,
        settlement.total_paid,
        settlement.new_debt,
        duration_ms,
    )

    return SettlementResponse(
        order_id=order_id,
        status=OrderStatus.DELIVERED.value,
        sale_id=sale.id,
        total_paid=to_money(settlement.total_paid),
        difference=to_money(settlement.difference),
        new_debt=to_money(settlement.new_debt),
    )


@router.post("/orders/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    """Cancel a pending order; stock is not restored"""
    request_id = get_request_id(request)
    order_repo = OrderRepository(db)

    try:
        order = order_repo.get_order(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        ensure_transition(OrderStatus(order.status), OrderStatus.CANCELLED)
        order_repo.set_status(order_id, OrderStatus.CANCELLED)
    except DomainException as e:
        logging.warning(f"Cancel refused: {e}", extra={"request_id": request_id, "order_id": order_id})
        raise to_http_exception(e)

    logging.info(
        "Order cancelled",
        extra={"request_id": request_id, "order_id": order_id, "operator_id": operator.operator_id},
    )
    db.refresh(order)
    return order_response(order)
