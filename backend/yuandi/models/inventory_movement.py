"""
inventory_movements 테이블 — 재고 이동 원장 (추가 전용)
- balance_after = balance_before + quantity (quantity는 부호 포함)
- 상품별 마지막 이동의 balance_after는 products.on_hand와 같아야 한다.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Numeric, Enum, DateTime, ForeignKey, Text

from yuandi.database import Base


class MovementType(str, enum.Enum):
    INBOUND = "inbound"  # 입고
    SALE = "sale"  # 판매 (주문 차감)
    ADJUSTMENT = "adjustment"  # 재고 실사 조정
    DISPOSAL = "disposal"  # 폐기
    REFUND = "refund"  # 환불 복구


class InventoryMovement(Base):
    __tablename__ = "inventory_movements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    movement_type = Column(Enum(MovementType), nullable=False)
    quantity = Column(Integer, nullable=False)  # 부호 포함 변동량 (판매/폐기는 음수)
    balance_before = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    ref_type = Column(String(20), nullable=True)  # "order", "refund", ...
    ref_id = Column(String(40), nullable=True)  # 주문번호 등
    unit_cost_cny = Column(Numeric(12, 2), nullable=True)  # 입고 단가
    note = Column(Text, nullable=True)
    created_by = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
