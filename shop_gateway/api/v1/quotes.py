"""/v1/quotes - quote preview, local drafts and draft promotion"""

import logging
from typing import List
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from shop_gateway.api.v1.schemas import (
    QuoteRequest,
    QuotePreviewResponse,
    DraftResponse,
    PromoteDraftRequest,
    OrderResponse,
)
from shop_gateway.api.v1.orders import line_response, load_customer, order_response, place_order, price_quote
from shop_gateway.api.dependencies import get_draft_store, get_operator, get_request_id
from shop_gateway.api.errors import to_http_exception
from shop_gateway.infrastructure.database.session import get_db
from shop_gateway.infrastructure.database.repositories import OrderRepository
from shop_gateway.infrastructure.drafts import DraftStore, new_draft_id
from shop_gateway.domain.models import DraftQuote, OperatorContext
from shop_gateway.domain.quotes import compute_quote_total
from shop_gateway.domain.validation import require_customer_and_items
from shop_gateway.domain.exceptions import DomainException, NotFoundError, RemoteOperationError
from shop_gateway.infrastructure.observability.logging import log_partial_write
from shop_gateway.infrastructure.observability.metrics import write_step_failure_counter
from shop_gateway.utils.money import to_money

router = APIRouter()


def draft_response(draft: DraftQuote) -> DraftResponse:
    return DraftResponse(
        id=draft.id,
        customer=draft.customer,
        items=[line_response(item) for item in draft.line_items],
        subtotal=to_money(draft.subtotal),
        total=to_money(draft.total),
        created_at=draft.created_at,
    )


@router.post("/quotes/preview", response_model=QuotePreviewResponse)
def preview_quote(
    body: QuoteRequest,
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    """Price lines for a customer and show subtotal, prior debt and total"""
    try:
        customer = load_customer(db, body.customer_id)
        line_items, totals = price_quote(db, customer, body.items)
    except DomainException as e:
        raise to_http_exception(e)

    return QuotePreviewResponse(
        customer_id=customer.id,
        price_list=customer.price_list,
        items=[line_response(item) for item in line_items],
        subtotal=to_money(totals.subtotal),
        prior_debt=to_money(customer.debt),
        total=to_money(totals.total),
    )


@router.get("/quotes/drafts", response_model=List[DraftResponse])
def list_drafts(
    store: DraftStore = Depends(get_draft_store),
    operator: OperatorContext = Depends(get_operator),
):
    """Saved drafts in the order they were created"""
    try:
        return [draft_response(d) for d in store.list_drafts()]
    except DomainException as e:
        raise to_http_exception(e)


@router.post("/quotes/drafts", response_model=DraftResponse, status_code=201)
def save_draft(
    body: QuoteRequest,
    db: Session = Depends(get_db),
    store: DraftStore = Depends(get_draft_store),
    operator: OperatorContext = Depends(get_operator),
):
    """Price a quote and keep it as a local draft"""
    try:
        require_customer_and_items(body.customer_id, body.items)
        customer = load_customer(db, body.customer_id)
        line_items, totals = price_quote(db, customer, body.items)
        draft = store.save_draft(
            DraftQuote(
                id=new_draft_id(),
                customer={
                    "id": customer.id,
                    "name": customer.name,
                    "price_list": customer.price_list,
                    "debt": str(to_money(customer.debt)),
                },
                line_items=line_items,
                subtotal=totals.subtotal,
                total=totals.total,
            )
        )
    except DomainException as e:
        raise to_http_exception(e)

    return draft_response(draft)


@router.delete("/quotes/drafts/{draft_id}", status_code=204)
def delete_draft(
    draft_id: str,
    store: DraftStore = Depends(get_draft_store),
    operator: OperatorContext = Depends(get_operator),
):
    try:
        store.delete_draft(draft_id)
    except DomainException as e:
        raise to_http_exception(e)

    return Response(status_code=204)


@router.post("/quotes/drafts/{draft_id}/promote", response_model=OrderResponse, status_code=201)
def promote_draft(
    draft_id: str,
    body: PromoteDraftRequest,
    request: Request,
    db: Session = Depends(get_db),
    store: DraftStore = Depends(get_draft_store),
    operator: OperatorContext = Depends(get_operator),
):
    """
    Place a pending order from a draft.

    Lines keep the prices they were quoted at; the total is recomputed
    against the customer's current debt. The draft is removed once the
    order is placed; if that removal fails the order still stands, the
    draft is left behind and the partial write is logged.
    """
    request_id = get_request_id(request)

    try:
        draft = store.get_draft(draft_id)
        if draft is None:
            raise NotFoundError(f"Draft {draft_id} not found")

        customer = load_customer(db, draft.customer.get("id"))
        totals = compute_quote_total(draft.line_items, customer.debt)
        order = place_order(
            db,
            request_id,
            operator,
            customer,
            draft.line_items,
            totals,
            delivery_date=body.delivery_date,
            delivery_window=body.delivery_window,
        )
    except DomainException as e:
        logging.warning(f"Draft not promoted: {e}", extra={"request_id": request_id, "draft_id": draft_id})
        raise to_http_exception(e)

    try:
        store.delete_draft(draft_id)
    except RemoteOperationError:
        write_step_failure_counter.labels(sequence="promote_draft", step="draft_deleted").inc()
        log_partial_write(request_id, "Draft promotion", "draft_deleted", ["order_placed"], order_id=order.id)

    try:
        return order_response(OrderRepository(db).get_order(order.id))
    except DomainException as e:
        raise to_http_exception(e)
