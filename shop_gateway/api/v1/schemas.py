"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from shop_gateway.utils.money import parse_amount


class OperatorResponse(BaseModel):
    """Response for GET /v1/me"""

    id: int
    name: str
    role: str


class CustomerRequest(BaseModel):
    """Request body for creating or updating a customer"""

    name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    cross_streets: Optional[str] = None
    debt: Decimal = Decimal("0")
    national_id: Optional[int] = None
    kind: str = "retail"
    price_list: str = "retail"
    alias: Optional[str] = None


class CustomerResponse(CustomerRequest):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None


class ProductRequest(BaseModel):
    """Request body for creating or updating a product"""

    name: str = ""
    description: Optional[str] = None
    retail_price: Decimal
    wholesale_price: Decimal
    stock: int = 0
    category: Optional[str] = None
    code: Optional[int] = None


class ProductResponse(ProductRequest):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None


class LineItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)


class QuoteRequest(BaseModel):
    """Customer plus product lines; prices come from the customer's price list"""

    customer_id: Optional[int] = None
    items: List[LineItemRequest] = []


class LineItemResponse(BaseModel):
    product_id: Optional[int]
    name: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal


class QuotePreviewResponse(BaseModel):
    """Response for POST /v1/quotes/preview"""

    customer_id: int
    price_list: str
    items: List[LineItemResponse]
    subtotal: Decimal
    prior_debt: Decimal
    total: Decimal


class DraftResponse(BaseModel):
    id: str
    customer: dict
    items: List[LineItemResponse]
    subtotal: Decimal
    total: Decimal
    created_at: datetime


class PlaceOrderRequest(QuoteRequest):
    """Request body for POST /v1/orders"""

    delivery_date: Optional[date] = None
    delivery_window: Optional[str] = None


class PromoteDraftRequest(BaseModel):
    delivery_date: Optional[date] = None
    delivery_window: Optional[str] = None


class OrderCustomer(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    kind: str
    price_list: str
    debt: Decimal
    phone: Optional[str] = None
    address: Optional[str] = None
    cross_streets: Optional[str] = None


class OrderResponse(BaseModel):
    """Order with its customer and priced lines"""

    id: int
    status: str
    total: Decimal
    price_list: str
    delivery_date: Optional[date] = None
    delivery_window: Optional[str] = None
    customer: OrderCustomer
    items: List[LineItemResponse]


class DeliverRequest(BaseModel):
    """Payment entered at delivery time; blank or unparsable amounts count as 0"""

    cash_amount: Decimal = Decimal("0")
    transfer_amount: Decimal = Decimal("0")

    @field_validator("cash_amount", "transfer_amount", mode="before")
    @classmethod
    def _parse(cls, value):
        return parse_amount(value)


class SettlementResponse(BaseModel):
    """Response for POST /v1/orders/{order_id}/deliver"""

    order_id: int
    status: str
    sale_id: int
    total_paid: Decimal
    difference: Decimal
    new_debt: Decimal


class SaleItem(BaseModel):
    """Single sale on the report"""

    sale_id: int
    customer_id: int
    customer_name: str
    customer_kind: str
    price_list: str
    sold_at: datetime
    cash_amount: Decimal
    transfer_amount: Decimal
    transfer_received: Decimal
    total: Decimal
    outstanding: Decimal


class SalesSummaryResponse(BaseModel):
    total_sales: Decimal
    total_collected: Decimal
    total_debt: Decimal


class SalesReportResponse(BaseModel):
    """Response for GET /v1/sales"""

    sales: List[SaleItem]
    summary: SalesSummaryResponse
