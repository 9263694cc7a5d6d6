"""
상품/재고 관련 Pydantic 스키마
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from yuandi.models.inventory_movement import MovementType


class ProductCreate(BaseModel):
    name: str | None = None  # 생략 시 브랜드 + 모델
    category: str = ""
    model: str = ""
    color: str = ""
    brand: str = ""
    cost_cny: Decimal = Field(Decimal("0"), ge=0)
    sale_price_krw: int = Field(0, ge=0)
    initial_stock: int = Field(0, ge=0)
    low_stock_threshold: int | None = Field(None, ge=0)


class ProductResponse(BaseModel):
    id: int
    sku: str
    name: str
    category: str
    model: str
    color: str
    brand: str
    cost_cny: Decimal
    sale_price_krw: int
    on_hand: int
    low_stock_threshold: int
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProductListResponse(BaseModel):
    total: int
    products: list[ProductResponse]


class SKUPreviewResponse(BaseModel):
    sku: str
    valid: bool


class StockCheckRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=0)


class StockCheckResponse(BaseModel):
    product_id: int
    has_stock: bool
    available: int
    requested: int
    shortage: int


class InboundRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_cost_cny: Decimal | None = Field(None, ge=0)
    note: str | None = None


class AdjustRequest(BaseModel):
    product_id: int
    new_quantity: int = Field(..., ge=0)
    reason: str = Field(..., min_length=1)


class DisposalRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    reason: str = Field(..., min_length=1)


class StockChangeResponse(BaseModel):
    product_id: int
    movement_type: MovementType
    quantity: int
    balance_before: int
    balance_after: int
    movement_id: int | None = None


class MovementResponse(BaseModel):
    id: int
    product_id: int
    movement_type: MovementType
    quantity: int
    balance_before: int
    balance_after: int
    ref_type: str | None = None
    ref_id: str | None = None
    unit_cost_cny: Decimal | None = None
    note: str | None = None
    created_by: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class LowStockResponse(BaseModel):
    id: int
    sku: str
    name: str
    on_hand: int
    low_stock_threshold: int
    shortage: int


class ConsistencyResponse(BaseModel):
    product_id: int
    on_hand: int
    ledger_balance: int | None = None
    movement_count: int
    consistent: bool
    problems: list[str] = []
