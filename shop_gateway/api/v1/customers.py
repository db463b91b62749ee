"""/v1/customers - customer records and their stored debt"""

import logging
from typing import List
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from shop_gateway.api.v1.schemas import CustomerRequest, CustomerResponse
from shop_gateway.api.dependencies import get_operator, get_request_id
from shop_gateway.api.errors import to_http_exception
from shop_gateway.infrastructure.database.session import get_db
from shop_gateway.infrastructure.database.repositories import CustomerRepository
from shop_gateway.domain.models import OperatorContext
from shop_gateway.domain.validation import validate_customer
from shop_gateway.domain.exceptions import DomainException, NotFoundError
from shop_gateway.utils.money import to_money

router = APIRouter()


def _load(repo: CustomerRepository, customer_id: int):
    customer = repo.get_customer(customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def _fields(body: CustomerRequest) -> dict:
    fields = body.model_dump()
    fields["name"] = body.name.strip()
    fields["debt"] = to_money(body.debt)
    return fields


@router.get("/customers", response_model=List[CustomerResponse])
def list_customers(
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    """List customers alphabetically"""
    try:
        return CustomerRepository(db).list_customers()
    except DomainException as e:
        raise to_http_exception(e)


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    try:
        return _load(CustomerRepository(db), customer_id)
    except DomainException as e:
        raise to_http_exception(e)


@router.post("/customers", response_model=CustomerResponse, status_code=201)
def create_customer(
    body: CustomerRequest,
    request: Request,
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    try:
        validate_customer(body.name, body.price_list)
        customer = CustomerRepository(db).create_customer(**_fields(body))
    except DomainException as e:
        logging.warning(f"Customer not created: {e}", extra={"request_id": get_request_id(request)})
        raise to_http_exception(e)

    logging.info(
        "Customer created",
        extra={"request_id": get_request_id(request), "customer_id": customer.id, "operator_id": operator.operator_id},
    )
    return customer


@router.put("/customers/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    body: CustomerRequest,
    request: Request,
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    try:
        validate_customer(body.name, body.price_list)
        repo = CustomerRepository(db)
        customer = repo.update_customer(_load(repo, customer_id), **_fields(body))
    except DomainException as e:
        logging.warning(f"Customer not updated: {e}", extra={"request_id": get_request_id(request)})
        raise to_http_exception(e)

    logging.info(
        "Customer updated",
        extra={"request_id": get_request_id(request), "customer_id": customer_id, "operator_id": operator.operator_id},
    )
    return customer


@router.delete("/customers/{customer_id}", status_code=204)
def delete_customer(
    customer_id: int,
    request: Request,
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    try:
        repo = CustomerRepository(db)
        repo.delete_customer(_load(repo, customer_id))
    except DomainException as e:
        raise to_http_exception(e)

    logging.info(
        "Customer deleted",
        extra={"request_id": get_request_id(request), "customer_id": customer_id, "operator_id": operator.operator_id},
    )
    return Response(status_code=204)
