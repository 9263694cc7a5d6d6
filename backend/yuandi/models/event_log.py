"""
event_logs 테이블 — 주문/재고 변경 감사 로그
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, JSON

from yuandi.database import Base


class EventLog(Base):
    __tablename__ = "event_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(36), unique=True, nullable=False)  # UUID
    table_name = Column(String(50), nullable=False)  # "orders", "products"
    record_id = Column(String(40), nullable=False)
    action = Column(String(30), nullable=False)  # "create", "ship", "refund", ...
    actor = Column(String(50), nullable=False, default="system")
    new_values = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
