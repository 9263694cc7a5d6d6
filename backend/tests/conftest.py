"""
테스트 공용 픽스처
- 메모리 SQLite (StaticPool)로 테스트마다 새 스키마를 만든다.
- API 테스트는 get_db 의존성을 테스트 세션으로 바꿔 끼운다.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from yuandi.database import Base, get_db
from yuandi.main import app
from yuandi.models import Product
from yuandi.schemas.orders import OrderCreate, OrderItemCreate
from yuandi.services.order_number import InMemorySequenceStore
from yuandi.services.sku import generate_sku
from yuandi.services.stock_ledger import StockLedger


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_product(db):
    """입고 원장까지 기록된 상품을 만든다."""

    def _make(on_hand=10, category="BAG", model="Lindy26", color="BLK", brand="Hermes",
              price=1000, threshold=5):
        product = Product(
            sku=generate_sku(category, model, color, brand),
            name=f"{brand} {model}",
            category=category,
            model=model,
            color=color,
            brand=brand,
            cost_cny=Decimal("100.00"),
            sale_price_krw=price,
            on_hand=0,
            low_stock_threshold=threshold,
        )
        db.add(product)
        db.flush()
        if on_hand:
            StockLedger(db).record_inbound(product, on_hand, Decimal("100.00"))
        db.commit()
        return product

    return _make


@pytest.fixture
def sequence_store():
    return InMemorySequenceStore()


@pytest.fixture
def order_payload():
    def _payload(*items, pccc_code="P123456789012", **overrides):
        data = {
            "customer_name": "김민지",
            "customer_phone": "010-1234-5678",
            "pccc_code": pccc_code,
            "shipping_address": "서울특별시 강남구 테헤란로 152",
            "items": [OrderItemCreate(product_id=pid, quantity=qty) for pid, qty in items],
        }
        data.update(overrides)
        return OrderCreate(**data)

    return _payload


@pytest.fixture
def client(db):
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    # with 블록 없이 생성하면 lifespan(운영 DB create_all)이 실행되지 않는다
    yield TestClient(app)
    app.dependency_overrides.clear()
