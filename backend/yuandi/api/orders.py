"""
주문 API — 주문 접수, 목록/상세 조회, 출고, 배송 완료, 환불
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from yuandi.database import get_db
from yuandi.models import Order
from yuandi.models.order import OrderStatus
from yuandi.schemas.common import ValidationFailedResponse, FieldErrorResponse
from yuandi.schemas.orders import (
    OrderCreate, OrderResponse, OrderItemResponse, OrderListResponse,
    ShipRequest, RefundRequest, RefundResponse, OrderEventResponse,
)
from yuandi.services.event_logger import EventLogger
from yuandi.services.order_service import OrderService, tracking_url
from yuandi.services.pccc import mask_pccc

router = APIRouter(prefix="/api/orders", tags=["orders"])


def _build_order_response(order: Order) -> OrderResponse:
    """Order ORM → OrderResponse 변환 헬퍼"""
    return OrderResponse(
        id=order.id,
        order_no=order.order_no,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        customer_email=order.customer_email,
        pccc_code=order.pccc_code,
        pccc_masked=mask_pccc(order.pccc_code),
        shipping_address=order.shipping_address,
        shipping_address_detail=order.shipping_address_detail,
        zip_code=order.zip_code,
        status=order.status.value if hasattr(order.status, "value") else str(order.status),
        total_amount=order.total_amount,
        courier=order.courier,
        tracking_no=order.tracking_no,
        tracking_url=tracking_url(order.courier, order.tracking_no),
        shipped_at=order.shipped_at,
        completed_at=order.completed_at,
        refunded_at=order.refunded_at,
        refund_reason=order.refund_reason,
        memo=order.memo,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[OrderItemResponse.model_validate(i) for i in order.items],
    )


@router.post("", response_model=OrderResponse, status_code=201,
             responses={422: {"model": ValidationFailedResponse}})
def create_order(
    req: OrderCreate,
    accept_language: str | None = Header(None),
    db: Session = Depends(get_db),
):
    """
    주문 접수.
    PCCC/필수 항목 오류나 재고 부족이면 422와 함께 항목별 오류를 돌려주며 아무것도 저장하지 않는다.
    """
    locale = "zh" if accept_language and accept_language.lower().startswith("zh") else None
    result = OrderService(db).create_order(req, locale=locale)
    if not result.success:
        body = ValidationFailedResponse(
            errors=[FieldErrorResponse(**asdict(e)) for e in result.errors],
        )
        return JSONResponse(status_code=422, content=body.model_dump())
    return _build_order_response(result.order)


@router.get("", response_model=OrderListResponse)
def list_orders(
    status: str | None = Query(None, description="주문 상태 필터 (PAID, SHIPPED, DONE, REFUNDED)"),
    pccc: str | None = Query(None, description="PCCC 필터"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """주문 목록 조회 (최신순)"""
    status_enum = None
    if status:
        try:
            status_enum = OrderStatus(status.upper())
        except ValueError:
            pass  # 잘못된 상태값은 무시

    total, orders = OrderService(db).list_orders(status_enum, pccc, limit=limit, offset=offset)
    return OrderListResponse(
        total=total,
        orders=[_build_order_response(o) for o in orders],
    )


@router.get("/by-no/{order_no}", response_model=OrderResponse)
def get_order_by_no(order_no: str, db: Session = Depends(get_db)):
    return _build_order_response(OrderService(db).get_order_by_no(order_no))


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, db: Session = Depends(get_db)):
    return _build_order_response(OrderService(db).get_order(order_id))


@router.patch("/{order_id}/ship", response_model=OrderResponse)
def ship_order(order_id: int, req: ShipRequest, db: Session = Depends(get_db)):
    """출고 처리: PAID → SHIPPED"""
    order = OrderService(db).ship_order(order_id, req.courier, req.tracking_no)
    return _build_order_response(order)


@router.patch("/{order_id}/complete", response_model=OrderResponse)
def complete_order(order_id: int, db: Session = Depends(get_db)):
    """배송 완료: SHIPPED → DONE"""
    return _build_order_response(OrderService(db).complete_order(order_id))


@router.patch("/{order_id}/refund", response_model=RefundResponse)
def refund_order(order_id: int, req: RefundRequest, db: Session = Depends(get_db)):
    """
    환불: PAID|SHIPPED|DONE → REFUNDED, 품목 수량만큼 재고 복구.
    이미 환불된 주문에 다시 요청하면 재고 변화 없이 already_refunded=true로 200 응답.
    """
    result = OrderService(db).refund_order(order_id, req.reason)
    return RefundResponse(
        order=_build_order_response(result.order),
        already_refunded=result.already_refunded,
        restored_items=result.restored_items,
    )


@router.get("/{order_id}/history", response_model=list[OrderEventResponse])
def get_order_history(order_id: int, db: Session = Depends(get_db)):
    """주문 상태 변경 이력 (event_logs, 오래된 순)"""
    order = OrderService(db).get_order(order_id)
    return [OrderEventResponse.model_validate(e) for e in EventLogger(db).history("orders", order.order_no)]
