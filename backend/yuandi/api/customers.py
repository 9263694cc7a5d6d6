"""
고객 API — PCCC 검증, PCCC로 이전 주문 고객 정보 조회
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from yuandi.database import get_db
from yuandi.errors import CustomerNotFound
from yuandi.schemas.orders import PCCCValidateRequest, PCCCValidateResponse, CustomerLookupResponse
from yuandi.services.order_service import OrderService
from yuandi.services.pccc import validate_pccc, mask_pccc

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.post("/pccc/validate", response_model=PCCCValidateResponse)
def validate_pccc_code(req: PCCCValidateRequest):
    """PCCC 형식 검증 (형식 오류여도 200, valid=false)"""
    result = validate_pccc(req.pccc_code, req.locale)
    return PCCCValidateResponse(
        valid=result.valid,
        normalized=result.normalized,
        error=result.error,
        error_code=result.error_code,
        masked=mask_pccc(result.normalized) if result.valid else None,
    )


@router.get("/by-pccc", response_model=CustomerLookupResponse)
def find_customer_by_pccc(
    pccc: str = Query(..., description="개인통관고유부호"),
    db: Session = Depends(get_db),
):
    """이전 주문에서 같은 PCCC를 쓴 최근 고객 정보 (주문 폼 자동 채우기용)"""
    customer = OrderService(db).find_customer_by_pccc(pccc)
    if customer is None:
        raise CustomerNotFound(f"해당 PCCC로 주문한 고객이 없습니다: {mask_pccc(pccc) or pccc}")
    return CustomerLookupResponse(**customer)
