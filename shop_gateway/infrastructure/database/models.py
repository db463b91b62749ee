"""SQLAlchemy ORM models for customers, products, orders and sales"""

from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, ForeignKey, Text, Numeric, BigInteger
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

MONEY = Numeric(12, 2)


class Customer(Base):
    """Customer with a single point-in-time debt balance"""

    __tablename__ = "customer"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, index=True)
    email = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    cross_streets = Column(Text, nullable=True)
    debt = Column(MONEY, nullable=False, default=0)  # negative = stored credit
    national_id = Column(BigInteger, nullable=True)
    kind = Column(Text, nullable=False, default="retail")
    price_list = Column(String(16), nullable=False, default="retail")
    alias = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    orders = relationship("Order", back_populates="customer")


class Product(Base):
    """Catalog product; stock may go negative"""

    __tablename__ = "product"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, index=True)
    description = Column(Text, nullable=True)
    retail_price = Column(MONEY, nullable=False)
    wholesale_price = Column(MONEY, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    category = Column(Text, nullable=True, index=True)
    code = Column(BigInteger, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Order(Base):
    """Order placed from a quote, settled on delivery"""

    __tablename__ = "customer_order"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customer.id"), nullable=False, index=True)
    operator_id = Column(Integer, ForeignKey("operator.id"), nullable=True)
    delivery_date = Column(Date, nullable=True)
    delivery_window = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default="pending", index=True)
    price_list = Column(String(16), nullable=False, default="retail")
    total = Column(MONEY, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    customer = relationship("Customer", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    """Product line within an order, priced when the order was placed"""

    __tablename__ = "order_item"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("customer_order.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("product.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(MONEY, nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")


class Sale(Base):
    """Payment recorded when an order is delivered"""

    __tablename__ = "sale"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customer.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("customer_order.id"), nullable=True)
    sold_at = Column(DateTime(timezone=True), nullable=False, index=True)
    cash_amount = Column(MONEY, nullable=False, default=0)
    transfer_amount = Column(MONEY, nullable=False, default=0)  # raw, fee included
    total = Column(MONEY, nullable=False)
    total_paid = Column(MONEY, nullable=False)

    customer = relationship("Customer")


class Operator(Base):
    """Staff member allowed to use the API"""

    __tablename__ = "operator"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True)
    role = Column(String(16), nullable=False, default="user")
    active = Column(Boolean, nullable=False, default=True)
    api_token = Column(String(128), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
