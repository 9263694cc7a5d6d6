"""
애플리케이션 설정
- DB, Redis, 주문번호/SKU 생성 정책, 업무 시간대를 관리한다.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 데이터베이스 (운영은 Postgres URL로 교체)
    DATABASE_URL: str = "sqlite:///yuandi.db"

    # Redis: ORDER_SEQUENCE_BACKEND=redis 일 때 주문 시퀀스 카운터로 사용
    REDIS_URL: str = "redis://localhost:6379/0"

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    # 주문번호 날짜 키(YYMMDD) 기준 시간대
    BUSINESS_TIMEZONE: str = "Asia/Seoul"

    # 주문 시퀀스 저장소: database | redis | memory
    ORDER_SEQUENCE_BACKEND: str = "database"

    # NNN 세 자리에 들어가는 최대 일일 주문 수
    ORDER_DAILY_LIMIT: int = 999

    # 주문번호 충돌 시 주문 트랜잭션 전체 재시도 횟수
    ORDER_CREATE_MAX_ATTEMPTS: int = 3

    # SKU 충돌 시 재생성 횟수
    SKU_MAX_ATTEMPTS: int = 5

    # 상품 등록 시 기본 재고 부족 임계값
    DEFAULT_LOW_STOCK_THRESHOLD: int = 5

    # 검증 메시지 언어 (ko, zh)
    DEFAULT_LOCALE: str = "ko"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
