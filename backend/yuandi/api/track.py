"""
비로그인 주문 조회 API — 이름 + 연락처로 최근 주문 확인 (개인정보 마스킹)
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from yuandi.database import get_db
from yuandi.models import Order
from yuandi.schemas.orders import OrderItemResponse, TrackResponse, TrackedOrderResponse
from yuandi.services.order_service import OrderService, mask_phone, tracking_url
from yuandi.services.pccc import mask_pccc

router = APIRouter(prefix="/api/track", tags=["track"])


def _build_tracked_order(order: Order) -> TrackedOrderResponse:
    return TrackedOrderResponse(
        order_no=order.order_no,
        status=order.status.value if hasattr(order.status, "value") else str(order.status),
        customer_name=order.customer_name,
        customer_phone=mask_phone(order.customer_phone),
        pccc_masked=mask_pccc(order.pccc_code),
        total_amount=order.total_amount,
        courier=order.courier,
        tracking_no=order.tracking_no,
        tracking_url=tracking_url(order.courier, order.tracking_no),
        shipped_at=order.shipped_at,
        created_at=order.created_at,
        items=[OrderItemResponse.model_validate(i) for i in order.items],
    )


@router.get("", response_model=TrackResponse)
def track_orders(
    name: str | None = Query(None, description="주문자 이름"),
    phone: str | None = Query(None, description="주문자 연락처 (하이픈 허용)"),
    db: Session = Depends(get_db),
):
    """이름/연락처가 비었거나 짧으면 400"""
    orders = OrderService(db).track_orders(name, phone)
    if not orders:
        return TrackResponse(message="조회된 주문이 없습니다", orders=[])
    return TrackResponse(
        message=f"최근 {len(orders)}건의 주문이 조회되었습니다",
        orders=[_build_tracked_order(o) for o in orders],
    )
