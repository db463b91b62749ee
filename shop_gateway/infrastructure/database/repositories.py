"""Data access layer for shop entities

Every write method is one committed operation against the store. Callers that
chain several writes (placing or delivering an order) get no atomicity across
them: a failed step leaves the earlier commits in place.
"""

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Iterator, List, Optional, Sequence
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from shop_gateway.infrastructure.database.models import Customer, Product, Order, OrderItem, Sale, Operator
from shop_gateway.domain.models import LineItem, OrderStatus
from shop_gateway.domain.exceptions import RemoteOperationError, NotFoundError
from shop_gateway.utils.money import to_money


class BaseRepository:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _operation(self, action: str) -> Iterator[None]:
        """Translate store failures into RemoteOperationError"""
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteOperationError(f"Data store rejected {action}") from e


class CustomerRepository(BaseRepository):
    """Repository for customers and their debt balance"""

    def list_customers(self) -> List[Customer]:
        with self._operation("list customers"):
            return list(self.db.scalars(select(Customer).order_by(Customer.name)))

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        with self._operation("get customer"):
            return self.db.get(Customer, customer_id)

    def create_customer(self, **fields) -> Customer:
        customer = Customer(**fields)
        with self._operation("create customer"):
            self.db.add(customer)
            self.db.commit()
            self.db.refresh(customer)
        return customer

    def update_customer(self, customer: Customer, **fields) -> Customer:
        for key, value in fields.items():
            setattr(customer, key, value)
        with self._operation("update customer"):
            self.db.commit()
            self.db.refresh(customer)
        return customer

    def delete_customer(self, customer: Customer) -> None:
        with self._operation("delete customer"):
            self.db.delete(customer)
            self.db.commit()

    def set_debt(self, customer_id: int, debt: Decimal) -> None:
        """Overwrite the stored debt; it is a balance, not a ledger"""
        with self._operation("update customer debt"):
            customer = self.db.get(Customer, customer_id)
            if customer is None:
                raise NotFoundError(f"Customer {customer_id} not found")
            customer.debt = to_money(debt)
            self.db.commit()


class ProductRepository(BaseRepository):
    """Repository for the product catalog"""

    def list_products(self, query: Optional[str] = None, category: Optional[str] = None) -> List[Product]:
        stmt = select(Product).order_by(Product.name)
        if query and query.strip():
            stmt = stmt.where(Product.name.ilike(f"%{query.strip()}%"))
        if category:
            stmt = stmt.where(Product.category == category)
        with self._operation("list products"):
            return list(self.db.scalars(stmt))

    def get_product(self, product_id: int) -> Optional[Product]:
        with self._operation("get product"):
            return self.db.get(Product, product_id)

    def get_products(self, product_ids: Sequence[int]) -> List[Product]:
        with self._operation("get products"):
            return list(self.db.scalars(select(Product).where(Product.id.in_(product_ids))))

    def create_product(self, **fields) -> Product:
        product = Product(**fields)
        with self._operation("create product"):
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
        return product

    def update_product(self, product: Product, **fields) -> Product:
        for key, value in fields.items():
            setattr(product, key, value)
        with self._operation("update product"):
            self.db.commit()
            self.db.refresh(product)
        return product

    def delete_product(self, product: Product) -> None:
        with self._operation("delete product"):
            self.db.delete(product)
            self.db.commit()

    def decrement_stock(self, product_id: int, quantity: int) -> int:
        """Take quantity out of stock without a floor; returns the new stock"""
        with self._operation("update product stock"):
            product = self.db.get(Product, product_id)
            if product is None:
                raise NotFoundError(f"Product {product_id} not found")
            product.stock = product.stock - quantity
            self.db.commit()
            return product.stock


class OrderRepository(BaseRepository):
    """Repository for orders and their line items"""

    def create_order(
        self,
        customer_id: int,
        total: Decimal,
        price_list: str,
        operator_id: Optional[int] = None,
        delivery_date: Optional[date] = None,
        delivery_window: Optional[str] = None,
    ) -> Order:
        order = Order(
            customer_id=customer_id,
            operator_id=operator_id,
            total=to_money(total),
            price_list=price_list,
            delivery_date=delivery_date,
            delivery_window=delivery_window,
            status=OrderStatus.PENDING.value,
        )
        with self._operation("create order"):
            self.db.add(order)
            self.db.commit()
            self.db.refresh(order)
        return order

    def add_items(self, order_id: int, line_items: Sequence[LineItem]) -> None:
        with self._operation("create order items"):
            for item in line_items:
                self.db.add(
                    OrderItem(
                        order_id=order_id,
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=to_money(item.unit_price),
                    )
                )
            self.db.commit()

    def get_order(self, order_id: int) -> Optional[Order]:
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.customer), selectinload(Order.items).selectinload(OrderItem.product))
        )
        with self._operation("get order"):
            return self.db.scalars(stmt).first()

    def list_pending(self) -> List[Order]:
        """Pending orders, earliest delivery first"""
        stmt = (
            select(Order)
            .where(Order.status == OrderStatus.PENDING.value)
            .order_by(Order.delivery_date.asc(), Order.id.asc())
            .options(selectinload(Order.customer), selectinload(Order.items).selectinload(OrderItem.product))
        )
        with self._operation("list pending orders"):
            return list(self.db.scalars(stmt))

    def set_status(self, order_id: int, status: OrderStatus) -> None:
        with self._operation("update order status"):
            order = self.db.get(Order, order_id)
            if order is None:
                raise NotFoundError(f"Order {order_id} not found")
            order.status = OrderStatus(status).value
            self.db.commit()


class SaleRepository(BaseRepository):
    """Repository for recorded sales"""

    def create_sale(
        self,
        customer_id: int,
        order_id: Optional[int],
        sold_at: datetime,
        cash_amount: Decimal,
        transfer_amount: Decimal,
        total: Decimal,
        total_paid: Decimal,
    ) -> Sale:
        sale = Sale(
            customer_id=customer_id,
            order_id=order_id,
            sold_at=sold_at,
            cash_amount=to_money(cash_amount),
            transfer_amount=to_money(transfer_amount),
            total=to_money(total),
            total_paid=to_money(total_paid),
        )
        with self._operation("create sale"):
            self.db.add(sale)
            self.db.commit()
            self.db.refresh(sale)
        return sale

    def list_sales(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Sale]:
        """Sales newest first, optionally bounded by sold_at (inclusive)"""
        stmt = select(Sale).options(selectinload(Sale.customer)).order_by(Sale.sold_at.desc())
        if start is not None:
            stmt = stmt.where(Sale.sold_at >= start)
        if end is not None:
            stmt = stmt.where(Sale.sold_at <= end)
        with self._operation("list sales"):
            return list(self.db.scalars(stmt))


class OperatorRepository(BaseRepository):
    """Repository for API operators"""

    def get_by_token(self, api_token: str) -> Optional[Operator]:
        with self._operation("get operator"):
            return self.db.scalars(select(Operator).where(Operator.api_token == api_token)).first()

    def create_operator(self, name: str, email: str, api_token: str, role: str = "user") -> Operator:
        operator = Operator(name=name, email=email, api_token=api_token, role=role)
        with self._operation("create operator"):
            self.db.add(operator)
            self.db.commit()
            self.db.refresh(operator)
        return operator
