"""
orders / order_items 테이블 — 판매 주문 및 상세 품목
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Enum, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from yuandi.database import Base


class OrderStatus(str, enum.Enum):
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DONE = "DONE"
    REFUNDED = "REFUNDED"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_no = Column(String(20), unique=True, nullable=False, index=True)  # "ORD-240823-001"
    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(20), nullable=False)
    customer_email = Column(String(200), nullable=True)
    pccc_code = Column(String(13), nullable=False, index=True)
    shipping_address = Column(String(300), nullable=False)
    shipping_address_detail = Column(String(200), nullable=True)
    zip_code = Column(String(10), nullable=True)
    status = Column(Enum(OrderStatus), default=OrderStatus.PAID, nullable=False)
    total_amount = Column(Integer, nullable=False, default=0)  # 원화 합계 = Σ 품목 소계
    courier = Column(String(50), nullable=True)
    tracking_no = Column(String(50), nullable=True)
    shipped_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    refunded_at = Column(DateTime, nullable=True)  # 설정되어 있으면 재고 복구 완료
    refund_reason = Column(Text, nullable=True)
    memo = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    items = relationship(
        "OrderItem", back_populates="order", lazy="selectin", cascade="all, delete-orphan",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    sku = Column(String(40), nullable=False)  # 주문 시점 스냅샷
    product_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Integer, nullable=False)
    subtotal = Column(Integer, nullable=False)  # quantity × unit_price

    order = relationship("Order", back_populates="items")
