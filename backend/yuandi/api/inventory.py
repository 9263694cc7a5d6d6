"""
재고 API — 재고 확인, 입고/조정/폐기, 이동 원장 조회, 재고 부족, 원장 정합성 점검
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from yuandi.database import get_db
from yuandi.schemas.products import (
    StockCheckRequest, StockCheckResponse, InboundRequest, AdjustRequest, DisposalRequest,
    StockChangeResponse, MovementResponse, LowStockResponse, ConsistencyResponse,
)
from yuandi.services.event_logger import EventLogger
from yuandi.services.stock_ledger import StockLedger, StockChange, load_product

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


def _change_response(change: StockChange) -> StockChangeResponse:
    return StockChangeResponse(**asdict(change))


@router.post("/check", response_model=StockCheckResponse)
def check_stock(req: StockCheckRequest, db: Session = Depends(get_db)):
    """재고 충분 여부 (부족해도 200, shortage로 표시)"""
    product = load_product(db, req.product_id)
    result = StockLedger(db).check_stock(product, req.quantity)
    return StockCheckResponse(product_id=product.id, **result.to_dict())


@router.post("/inbound", response_model=StockChangeResponse)
def record_inbound(req: InboundRequest, db: Session = Depends(get_db)):
    product = load_product(db, req.product_id)
    change = StockLedger(db).record_inbound(product, req.quantity, req.unit_cost_cny, req.note)
    db.commit()
    return _change_response(change)


@router.post("/adjust", response_model=StockChangeResponse)
def adjust_stock(req: AdjustRequest, db: Session = Depends(get_db)):
    product = load_product(db, req.product_id)
    change = StockLedger(db).adjust_stock(product, req.new_quantity, req.reason)
    EventLogger(db).log("products", product.sku, "adjust", {
        "on_hand": change.balance_after,
        "previous": change.balance_before,
        "reason": req.reason,
    })
    db.commit()
    return _change_response(change)


@router.post("/disposal", response_model=StockChangeResponse)
def record_disposal(req: DisposalRequest, db: Session = Depends(get_db)):
    product = load_product(db, req.product_id)
    change = StockLedger(db).record_disposal(product, req.quantity, req.reason)
    EventLogger(db).log("products", product.sku, "disposal", {
        "quantity": req.quantity,
        "reason": req.reason,
    })
    db.commit()
    return _change_response(change)


@router.get("/movements", response_model=list[MovementResponse])
def list_movements(
    product_id: int | None = Query(None, description="상품 ID 필터"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """재고 이동 원장 (최신순)"""
    movements = StockLedger(db).movements(product_id, limit=limit, offset=offset)
    return [MovementResponse.model_validate(m) for m in movements]


@router.get("/low-stock", response_model=list[LowStockResponse])
def list_low_stock(
    threshold: int | None = Query(None, ge=0, description="생략 시 상품별 임계값"),
    db: Session = Depends(get_db),
):
    return [LowStockResponse(**asdict(p)) for p in StockLedger(db).low_stock_products(threshold)]


@router.get("/{product_id}/consistency", response_model=ConsistencyResponse)
def check_consistency(product_id: int, db: Session = Depends(get_db)):
    """마지막 이동의 balance_after와 on_hand 일치 여부"""
    product = load_product(db, product_id)
    return ConsistencyResponse(**asdict(StockLedger(db).verify_consistency(product)))
