"""/v1/products - product catalog"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from shop_gateway.api.v1.schemas import ProductRequest, ProductResponse
from shop_gateway.api.dependencies import get_operator, get_request_id
from shop_gateway.api.errors import to_http_exception
from shop_gateway.infrastructure.database.session import get_db
from shop_gateway.infrastructure.database.repositories import ProductRepository
from shop_gateway.domain.models import OperatorContext
from shop_gateway.domain.validation import validate_product
from shop_gateway.domain.exceptions import DomainException, NotFoundError
from shop_gateway.utils.money import to_money

router = APIRouter()


def _load(repo: ProductRepository, product_id: int):
    product = repo.get_product(product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def _fields(body: ProductRequest) -> dict:
    fields = body.model_dump()
    fields["name"] = body.name.strip()
    fields["retail_price"] = to_money(body.retail_price)
    fields["wholesale_price"] = to_money(body.wholesale_price)
    return fields


@router.get("/products", response_model=List[ProductResponse])
def list_products(
    q: Optional[str] = Query(None, description="Name contains"),
    category: Optional[str] = Query(None, description="Exact category"),
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    """Search the catalog by name and category"""
    try:
        return ProductRepository(db).list_products(query=q, category=category)
    except DomainException as e:
        raise to_http_exception(e)


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    try:
        return _load(ProductRepository(db), product_id)
    except DomainException as e:
        raise to_http_exception(e)


@router.post("/products", response_model=ProductResponse, status_code=201)
def create_product(
    body: ProductRequest,
    request: Request,
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    try:
        validate_product(body.name, body.retail_price, body.wholesale_price)
        product = ProductRepository(db).create_product(**_fields(body))
    except DomainException as e:
        logging.warning(f"Product not created: {e}", extra={"request_id": get_request_id(request)})
        raise to_http_exception(e)

    logging.info(
        "Product created",
        extra={"request_id": get_request_id(request), "product_id": product.id, "operator_id": operator.operator_id},
    )
    return product


@router.put("/products/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    body: ProductRequest,
    request: Request,
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    try:
        validate_product(body.name, body.retail_price, body.wholesale_price)
        repo = ProductRepository(db)
        product = repo.update_product(_load(repo, product_id), **_fields(body))
    except DomainException as e:
        logging.warning(f"Product not updated: {e}", extra={"request_id": get_request_id(request)})
        raise to_http_exception(e)

    return product


@router.delete("/products/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    operator: OperatorContext = Depends(get_operator),
):
    try:
        repo = ProductRepository(db)
        repo.delete_product(_load(repo, product_id))
    except DomainException as e:
        raise to_http_exception(e)

    logging.info(
        "Product deleted",
        extra={"request_id": get_request_id(request), "product_id": product_id, "operator_id": operator.operator_id},
    )
    return Response(status_code=204)
