"""
order_sequence_counters 테이블 — 일자별 주문번호 시퀀스
- date_key(YYMMDD)당 한 행, 원자적 UPDATE로만 증가시킨다.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime

from yuandi.database import Base


class OrderSequenceCounter(Base):
    __tablename__ = "order_sequence_counters"

    date_key = Column(String(6), primary_key=True)  # "240823"
    last_sequence = Column(Integer, nullable=False, default=0)  # 마지막으로 발급한 NNN
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
