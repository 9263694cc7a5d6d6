"""
주문번호 생성
- 패턴: ORD-YYMMDD-NNN (예: ORD-240823-001)
- 날짜 키는 업무 시간대(기본 Asia/Seoul) 기준, 날짜가 바뀌면 NNN은 001부터 다시 시작
- 시퀀스 저장소(SequenceStore)가 일자별 카운터를 소유한다.
  - InMemorySequenceStore: 단일 프로세스 전용 (멀티 인스턴스에서는 중복 발급 위험)
  - DatabaseSequenceStore: order_sequence_counters 행을 원자적 UPDATE로 증가
  - RedisSequenceStore: INCR 기반
- 저장소에 접근할 수 없으면 PersistenceUnavailable. 번호 없는 주문은 만들지 않는다.
"""

import logging
import re
import threading
from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

import redis
from redis.exceptions import RedisError
from sqlalchemy import case
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from yuandi.config import settings
from yuandi.errors import (
    DailyOrderLimitExceeded, DuplicateIdentifier, InvalidArgument, PersistenceUnavailable,
)
from yuandi.models import Order, OrderSequenceCounter

logger = logging.getLogger(__name__)

PREFIX = "ORD"
SEQUENCE_DIGITS = 3
ORDER_NO_PATTERN = re.compile(r"^ORD-(\d{2})(\d{2})(\d{2})-(\d{3})$")
_DATE_KEY_PATTERN = re.compile(r"^\d{6}$")


@dataclass
class OrderNumberParts:
    date_key: str
    sequence: int
    order_date: date


def business_today(tz: str | None = None) -> date:
    """업무 시간대 기준 오늘 날짜"""
    return datetime.now(ZoneInfo(tz or settings.BUSINESS_TIMEZONE)).date()


def _date_from_key(date_key: str) -> date | None:
    try:
        return date(2000 + int(date_key[:2]), int(date_key[2:4]), int(date_key[4:6]))
    except ValueError:
        return None


def format_date_key(value: date | datetime | str, tz: str | None = None) -> str:
    """
    날짜 → "YYMMDD".
    - aware datetime은 업무 시간대로 변환 후 날짜를 취한다.
    - naive datetime/date는 이미 업무 시간대 기준으로 간주한다.
    - "YYMMDD" 문자열은 달력상 유효한지만 확인 후 그대로 반환한다.
    """
    if isinstance(value, str):
        if not _DATE_KEY_PATTERN.match(value) or _date_from_key(value) is None:
            raise InvalidArgument(f"잘못된 날짜 키: {value!r} (YYMMDD)")
        return value
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(tz or settings.BUSINESS_TIMEZONE))
        value = value.date()
    if isinstance(value, date):
        return value.strftime("%y%m%d")
    raise InvalidArgument(f"날짜 형식이 아닙니다: {value!r}")


def format_order_number(date_key: str, sequence: int) -> str:
    return f"{PREFIX}-{date_key}-{sequence:0{SEQUENCE_DIGITS}d}"


def parse_order_number(order_no: str | None) -> OrderNumberParts | None:
    if not order_no:
        return None
    match = ORDER_NO_PATTERN.match(order_no)
    if not match:
        return None
    date_key = "".join(match.group(1, 2, 3))
    order_date = _date_from_key(date_key)
    if order_date is None:
        return None
    return OrderNumberParts(date_key=date_key, sequence=int(match.group(4)), order_date=order_date)


def is_valid_order_number(order_no: str | None) -> bool:
    parts = parse_order_number(order_no)
    return parts is not None and 1 <= parts.sequence <= 999


class SequenceStore(Protocol):
    """일자별 시퀀스 저장소 프로토콜"""

    def next_sequence(self, date_key: str) -> int: ...


class InMemorySequenceStore:
    """
    프로세스 내 dict 카운터.
    락으로 스레드 간 원자성은 보장하지만 프로세스/인스턴스 간에는 공유되지 않는다.
    """

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._lock = threading.Lock()

    def next_sequence(self, date_key: str) -> int:
        with self._lock:
            seq = self._counters.get(date_key, 0) + 1
            self._counters[date_key] = seq
            return seq


# 단일 프로세스 임베딩용 기본 저장소
_default_memory_store = InMemorySequenceStore()


class DatabaseSequenceStore:
    """
    order_sequence_counters 기반 카운터.
    호출자의 트랜잭션 안에서 동작하며 커밋하지 않는다. 주문 INSERT와 함께 커밋/롤백된다.
    카운터가 기존 주문번호보다 뒤처져 있으면 가장 큰 주문번호 다음 값부터 발급한다.
    """

    def __init__(self, db: Session):
        self.db = db

    def _last_issued_from_orders(self, date_key: str) -> int:
        """해당 날짜의 기존 주문번호 중 가장 큰 시퀀스"""
        last_order = (
            self.db.query(Order.order_no)
            .filter(Order.order_no.like(f"{PREFIX}-{date_key}-%"))
            .order_by(Order.order_no.desc())
            .first()
        )
        if last_order is None:
            return 0
        parts = parse_order_number(last_order[0])
        return parts.sequence if parts else 0

    def next_sequence(self, date_key: str) -> int:
        try:
            floor = self._last_issued_from_orders(date_key)
            current = OrderSequenceCounter.last_sequence
            updated = (
                self.db.query(OrderSequenceCounter)
                .filter(OrderSequenceCounter.date_key == date_key)
                .update(
                    {current: case((current < floor, floor), else_=current) + 1},
                    synchronize_session=False,
                )
            )
            if not updated:
                seq = floor + 1
                self.db.add(OrderSequenceCounter(date_key=date_key, last_sequence=seq))
                self.db.flush()
                return seq

            return (
                self.db.query(OrderSequenceCounter.last_sequence)
                .filter(OrderSequenceCounter.date_key == date_key)
                .scalar()
            )
        except IntegrityError as e:
            # 다른 요청이 같은 날짜의 첫 카운터 행을 먼저 만든 경우
            logger.warning(f"주문 시퀀스 행 생성 충돌: {date_key}")
            raise DuplicateIdentifier("order_sequence", date_key) from e
        except OperationalError as e:
            logger.error(f"주문 시퀀스 저장소 접근 실패: {e}")
            raise PersistenceUnavailable(f"주문 시퀀스 저장소에 접근할 수 없습니다: {date_key}") from e


class RedisSequenceStore:
    """Redis INCR 기반 카운터. 키는 이틀 뒤 만료된다."""

    def __init__(
        self,
        client: redis.Redis | None = None,
        redis_url: str | None = None,
        key_prefix: str = "yuandi:order_seq:",
        ttl_seconds: int = 2 * 24 * 3600,
    ):
        self._client = client or redis.Redis.from_url(
            redis_url or settings.REDIS_URL, decode_responses=True,
        )
        self._key_prefix = key_prefix
        self._ttl_seconds = ttl_seconds

    def next_sequence(self, date_key: str) -> int:
        key = f"{self._key_prefix}{date_key}"
        try:
            seq = int(self._client.incr(key))
            if seq == 1:
                self._client.expire(key, self._ttl_seconds)
            return seq
        except RedisError as e:
            logger.error(f"Redis 주문 시퀀스 증가 실패 ({key}): {e}")
            raise PersistenceUnavailable(f"주문 시퀀스 저장소(Redis)에 접근할 수 없습니다: {key}") from e


# 프로세스당 하나의 Redis 클라이언트(커넥션 풀)를 공유한다
_redis_store: RedisSequenceStore | None = None
_redis_store_lock = threading.Lock()


def shared_redis_store() -> RedisSequenceStore:
    """REDIS_URL로 만든 RedisSequenceStore를 처음 호출 시 한 번만 생성한다."""
    global _redis_store
    with _redis_store_lock:
        if _redis_store is None:
            _redis_store = RedisSequenceStore()
            logger.info(f"Redis 주문 시퀀스 저장소 연결: {settings.REDIS_URL}")
        return _redis_store


def build_sequence_store(db: Session | None = None, backend: str | None = None) -> SequenceStore:
    """설정(ORDER_SEQUENCE_BACKEND)에 맞는 시퀀스 저장소 생성"""
    backend = (backend or settings.ORDER_SEQUENCE_BACKEND).lower()
    if backend == "database":
        if db is None:
            raise InvalidArgument("database 시퀀스 저장소에는 DB 세션이 필요합니다")
        return DatabaseSequenceStore(db)
    if backend == "redis":
        return shared_redis_store()
    if backend == "memory":
        return _default_memory_store
    raise InvalidArgument(f"알 수 없는 시퀀스 저장소: {backend}")


class OrderNumberGenerator:
    """일자별로 단조 증가하는 주문번호 발급기"""

    def __init__(self, store: SequenceStore, limit: int | None = None, tz: str | None = None):
        self.store = store
        self.limit = limit or settings.ORDER_DAILY_LIMIT
        self.tz = tz or settings.BUSINESS_TIMEZONE

    def allocate(self, day: date | datetime | str | None = None) -> str:
        date_key = format_date_key(day if day is not None else business_today(self.tz), self.tz)
        seq = self.store.next_sequence(date_key)
        if seq > self.limit:
            raise DailyOrderLimitExceeded(date_key, self.limit)

        order_no = format_order_number(date_key, seq)
        logger.info(f"주문번호 발급: {order_no}")
        return order_no


def allocate_order_number(
    day: date | datetime | str | None = None,
    store: SequenceStore | None = None,
) -> str:
    """store를 생략하면 프로세스 내 카운터를 사용한다."""
    return OrderNumberGenerator(store or _default_memory_store).allocate(day)
