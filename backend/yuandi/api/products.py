"""
상품 API — 상품 등록(SKU 자동 생성), 목록/상세 조회, SKU 미리보기
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from yuandi.config import settings
from yuandi.database import get_db
from yuandi.errors import DuplicateIdentifier
from yuandi.models import Product
from yuandi.schemas.products import (
    ProductCreate, ProductResponse, ProductListResponse, SKUPreviewResponse,
)
from yuandi.services.event_logger import EventLogger
from yuandi.services.sku import generate_sku, generate_unique_sku, is_valid_sku
from yuandi.services.stock_ledger import StockLedger, load_product

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(req: ProductCreate, db: Session = Depends(get_db)):
    """
    상품 등록.
    SKU는 SELECT로 중복 확인 후 INSERT하며, INSERT 시 유니크 제약 위반이면 새로 생성해 재시도한다.
    initial_stock이 있으면 입고 이동으로 기록한다.
    """
    name = req.name or " ".join(v for v in (req.brand, req.model) if v).strip() or "미지정 상품"
    threshold = (
        req.low_stock_threshold
        if req.low_stock_threshold is not None
        else settings.DEFAULT_LOW_STOCK_THRESHOLD
    )

    sku = ""
    for attempt in range(1, settings.SKU_MAX_ATTEMPTS + 1):
        sku = generate_unique_sku(
            db, req.category, req.model, req.color, req.brand,
            max_attempts=settings.SKU_MAX_ATTEMPTS,
        )
        product = Product(
            sku=sku,
            name=name,
            category=req.category,
            model=req.model,
            color=req.color,
            brand=req.brand,
            cost_cny=req.cost_cny,
            sale_price_krw=req.sale_price_krw,
            on_hand=0,
            low_stock_threshold=threshold,
        )
        db.add(product)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.warning(f"SKU INSERT 충돌, 재생성 ({attempt}/{settings.SKU_MAX_ATTEMPTS}): {sku}")
            continue

        if req.initial_stock > 0:
            StockLedger(db).record_inbound(product, req.initial_stock, req.cost_cny, note="초기 재고")
        EventLogger(db).log("products", sku, "create", {
            "name": name,
            "initial_stock": req.initial_stock,
        })
        db.commit()
        db.refresh(product)

        logger.info(f"상품 등록: {sku} | {name} | 초기 재고 {req.initial_stock}")
        return product

    raise DuplicateIdentifier("sku", sku)


@router.get("", response_model=ProductListResponse)
def list_products(
    category: str | None = Query(None, description="카테고리 필터"),
    low_stock: bool = Query(False, description="재고 부족 상품만"),
    include_inactive: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """상품 목록 조회"""
    query = db.query(Product)
    if not include_inactive:
        query = query.filter(Product.active.is_(True))
    if category:
        query = query.filter(Product.category == category)
    if low_stock:
        query = query.filter(Product.on_hand <= Product.low_stock_threshold)

    total = query.count()
    products = query.order_by(Product.id.desc()).offset(offset).limit(limit).all()
    return ProductListResponse(
        total=total,
        products=[ProductResponse.model_validate(p) for p in products],
    )


@router.get("/sku/preview", response_model=SKUPreviewResponse)
def preview_sku(
    category: str = "",
    model: str = "",
    color: str = "",
    brand: str = "",
):
    """저장하지 않고 SKU 형식만 미리 보기"""
    sku = generate_sku(category, model, color, brand)
    return SKUPreviewResponse(sku=sku, valid=is_valid_sku(sku))


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return load_product(db, product_id)
