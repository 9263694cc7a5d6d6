"""
도메인 서비스 패키지
- sku: SKU 생성/검증
- order_number: 주문번호(ORD-YYMMDD-NNN) 발급과 일자별 시퀀스 저장소
- pccc: 개인통관고유부호 검증
- stock_ledger: 재고 확인/차감/복구 + 이동 원장
- order_service: 주문 접수와 상태 전이
- event_logger: event_logs 감사 기록
"""

from yuandi.services.event_logger import EventLogger
from yuandi.services.order_number import OrderNumberGenerator, allocate_order_number
from yuandi.services.order_service import OrderService
from yuandi.services.pccc import validate_pccc
from yuandi.services.sku import generate_sku
from yuandi.services.stock_ledger import StockLedger, check_stock

__all__ = [
    "EventLogger",
    "OrderNumberGenerator",
    "allocate_order_number",
    "OrderService",
    "validate_pccc",
    "generate_sku",
    "StockLedger",
    "check_stock",
]
