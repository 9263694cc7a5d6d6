"""
FastAPI 앱 엔트리포인트
- CORS 설정
- 라우터 등록 (상품, 재고, 주문, 고객, 비로그인 주문 조회)
- 도메인 예외 → HTTP 상태 코드 변환
- 헬스체크 엔드포인트
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from yuandi import __version__
from yuandi.config import settings
from yuandi.database import engine, Base, SessionLocal, get_db
from yuandi.api import products, inventory, orders, customers, track
from yuandi.errors import (
    YuandiError, InvalidArgument, InsufficientStock, DuplicateIdentifier, PersistenceUnavailable,
    DailyOrderLimitExceeded, ProductNotFound, OrderNotFound, CustomerNotFound, InvalidOrderTransition,
)
from yuandi.schemas.common import HealthResponse

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# 예외 → HTTP 상태 코드
ERROR_STATUS = {
    InvalidArgument: 400,
    ProductNotFound: 404,
    OrderNotFound: 404,
    CustomerNotFound: 404,
    InsufficientStock: 409,
    DuplicateIdentifier: 409,
    InvalidOrderTransition: 409,
    DailyOrderLimitExceeded: 409,
    PersistenceUnavailable: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 시작 시 테이블 확인"""
    Base.metadata.create_all(bind=engine)
    logger.info("데이터베이스 테이블 확인 완료")

    db = SessionLocal()
    try:
        from yuandi.models import Product
        product_count = db.query(Product).count()
        if product_count == 0:
            logger.warning("상품 데이터가 없습니다. 필요하면 python seed_data.py를 실행하세요.")
        else:
            logger.info(f"상품 데이터 확인: Products {product_count}개")
    finally:
        db.close()

    logger.info(f"주문 시퀀스 저장소: {settings.ORDER_SEQUENCE_BACKEND}")
    yield


app = FastAPI(
    title="YUANDI 주문/재고 관리",
    description="SKU·주문번호 발급, PCCC 검증, 재고 원장, 주문 상태 관리",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products.router)
app.include_router(inventory.router)
app.include_router(orders.router)
app.include_router(customers.router)
app.include_router(track.router)


@app.exception_handler(YuandiError)
async def handle_domain_error(request: Request, exc: YuandiError):
    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)),
        500,
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} 실패: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} → {status_code} {exc.code}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.get("/api/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)):
    """시스템 상태 확인"""
    db_ok = False
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.warning(f"DB 헬스체크 실패: {e}")

    return HealthResponse(
        status="ok" if db_ok else "degraded",
        db_connected=db_ok,
        sequence_backend=settings.ORDER_SEQUENCE_BACKEND,
        timestamp=datetime.now(timezone.utc),
    )
