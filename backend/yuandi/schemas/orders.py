"""
주문 관련 Pydantic 스키마
"""

from datetime import datetime
from pydantic import BaseModel, Field


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_price: int | None = Field(None, ge=0)  # 생략 시 상품 판매가


class OrderCreate(BaseModel):
    customer_name: str
    customer_phone: str
    customer_email: str | None = None
    pccc_code: str
    shipping_address: str
    shipping_address_detail: str | None = None
    zip_code: str | None = None
    memo: str | None = None
    items: list[OrderItemCreate] = Field(..., min_length=1)


class ShipRequest(BaseModel):
    courier: str = Field(..., min_length=1)
    tracking_no: str = Field(..., min_length=1)


class RefundRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    sku: str
    product_name: str
    quantity: int
    unit_price: int
    subtotal: int

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: int
    order_no: str
    customer_name: str
    customer_phone: str
    customer_email: str | None = None
    pccc_code: str
    pccc_masked: str
    shipping_address: str
    shipping_address_detail: str | None = None
    zip_code: str | None = None
    status: str
    total_amount: int
    courier: str | None = None
    tracking_no: str | None = None
    tracking_url: str | None = None
    shipped_at: datetime | None = None
    completed_at: datetime | None = None
    refunded_at: datetime | None = None
    refund_reason: str | None = None
    memo: str | None = None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemResponse] = []


class OrderListResponse(BaseModel):
    total: int
    orders: list[OrderResponse]


class RefundResponse(BaseModel):
    order: OrderResponse
    already_refunded: bool
    restored_items: int


class PCCCValidateRequest(BaseModel):
    pccc_code: str
    locale: str | None = None


class PCCCValidateResponse(BaseModel):
    valid: bool
    normalized: str | None = None
    error: str | None = None
    error_code: str | None = None
    masked: str | None = None


class CustomerLookupResponse(BaseModel):
    pccc_code: str
    customer_name: str
    customer_phone: str
    customer_email: str | None = None
    shipping_address: str
    shipping_address_detail: str | None = None
    zip_code: str | None = None
    order_count: int
    last_order_no: str


class OrderEventResponse(BaseModel):
    event_id: str
    action: str
    actor: str
    new_values: dict | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TrackedOrderResponse(BaseModel):
    """비로그인 주문 조회용 응답 (연락처/PCCC 마스킹)"""
    order_no: str
    status: str
    customer_name: str
    customer_phone: str
    pccc_masked: str
    total_amount: int
    courier: str | None = None
    tracking_no: str | None = None
    tracking_url: str | None = None
    shipped_at: datetime | None = None
    created_at: datetime
    items: list[OrderItemResponse] = []


class TrackResponse(BaseModel):
    message: str
    orders: list[TrackedOrderResponse]
