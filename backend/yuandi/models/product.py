"""
products 테이블 — 상품 카탈로그 및 현재고(on_hand)
- on_hand는 StockLedger를 통해서만 변경한다.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, CheckConstraint

from yuandi.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sku = Column(String(40), unique=True, nullable=False, index=True)  # 예: "BAG-LINDY2-BLK-HER-7K2QZ"
    name = Column(String(200), nullable=False)
    category = Column(String(50), nullable=False, default="")
    model = Column(String(100), nullable=False, default="")
    color = Column(String(50), nullable=False, default="")
    brand = Column(String(100), nullable=False, default="")
    cost_cny = Column(Numeric(12, 2), nullable=False, default=0)  # 매입 원가 (위안)
    sale_price_krw = Column(Integer, nullable=False, default=0)  # 판매가 (원)
    on_hand = Column(Integer, nullable=False, default=0)  # 현재고
    low_stock_threshold = Column(Integer, nullable=False, default=5)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("on_hand >= 0", name="ck_products_on_hand_non_negative"),
    )
