"""
업무 이벤트 로거 — 주문/재고 변경 이력을 event_logs 테이블에 기록한다.
- 호출자의 세션/트랜잭션에 함께 기록되므로 본 작업이 롤백되면 로그도 남지 않는다.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from yuandi.models import EventLog

logger = logging.getLogger(__name__)


class EventLogger:
    """event_logs 기록기"""

    def __init__(self, db: Session, actor: str = "system"):
        self.db = db
        self.actor = actor

    def log(
        self,
        table_name: str,
        record_id: str | int,
        action: str,
        new_values: dict | None = None,
        actor: str | None = None,
    ) -> EventLog:
        event = EventLog(
            event_id=str(uuid.uuid4()),
            table_name=table_name,
            record_id=str(record_id),
            action=action,
            actor=actor or self.actor,
            new_values=new_values,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(event)

        logger.info(f"[EventLog] {table_name}/{record_id} | {action} | {event.actor}")
        return event

    def history(self, table_name: str, record_id: str | int) -> list[EventLog]:
        return (
            self.db.query(EventLog)
            .filter(EventLog.table_name == table_name, EventLog.record_id == str(record_id))
            .order_by(EventLog.id.asc())
            .all()
        )
