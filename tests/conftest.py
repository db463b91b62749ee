"""Pytest fixtures for testing"""

import os

# Keep the module-level engine off PostgreSQL during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_app.db")

import pytest
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from shop_gateway.api.main import create_app
from shop_gateway.api.dependencies import get_draft_store
from shop_gateway.infrastructure.database.models import Base, Customer, Product
from shop_gateway.infrastructure.database.repositories import OperatorRepository
from shop_gateway.infrastructure.database.session import get_db
from shop_gateway.infrastructure.drafts import DraftStore


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def draft_store(tmp_path) -> DraftStore:
    return DraftStore(str(tmp_path / "drafts.json"))


@pytest.fixture
def client(db: Session, draft_store: DraftStore) -> TestClient:
    """Create FastAPI test client with test database and draft file"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_draft_store] = lambda: draft_store
    return TestClient(app)


@pytest.fixture
def auth_headers(db: Session) -> dict:
    """Bearer header for an active operator"""
    OperatorRepository(db).create_operator(
        name="Ana",
        email="ana@example.com",
        api_token="test-token",
        role="admin",
    )
    return {"Authorization": "Bearer test-token"}


@pytest.fixture
def retail_customer(db: Session) -> Customer:
    customer = Customer(name="Almacen Don Jose", kind="retail", price_list="retail", debt=Decimal("0"))
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def wholesale_customer(db: Session) -> Customer:
    customer = Customer(name="Distribuidora Sur", kind="wholesale", price_list="wholesale", debt=Decimal("150"))
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def products(db: Session) -> dict:
    """Flour at 500/400 with stock 5, sugar at 10/8 with stock 1"""
    flour = Product(name="Flour 25kg", retail_price=Decimal("500"), wholesale_price=Decimal("400"), stock=5, category="dry")
    sugar = Product(name="Sugar 1kg", retail_price=Decimal("10"), wholesale_price=Decimal("8"), stock=1, category="dry")
    db.add_all([flour, sugar])
    db.commit()
    db.refresh(flour)
    db.refresh(sugar)
    return {"flour": flour, "sugar": sugar}
