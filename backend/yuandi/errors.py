"""
도메인 예외 계층
- 사용자 입력 검증 실패(PCCC, 재고 부족)는 구조화된 결과로 반환하고,
  아래 예외는 호출 계약 위반이나 저장소 장애에만 사용한다.
- API 계층은 main.py의 예외 핸들러에서 HTTP 상태 코드로 변환한다.
"""


class YuandiError(Exception):
    """모든 도메인 예외의 기반 클래스"""

    code = "YUANDI_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class InvalidArgument(YuandiError):
    code = "INVALID_ARGUMENT"


class InsufficientStock(YuandiError):
    """요청 수량이 가용 재고를 초과"""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int | None, available: int, requested: int):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        self.shortage = max(0, requested - available)
        super().__init__(
            f"재고 부족: product={product_id} 요청 {requested}, 가용 {available}"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "product_id": self.product_id,
            "available": self.available,
            "requested": self.requested,
            "shortage": self.shortage,
        })
        return data


class DuplicateIdentifier(YuandiError):
    """SKU 또는 주문번호 충돌. 재생성/재시도로 복구 가능"""

    code = "DUPLICATE_IDENTIFIER"

    def __init__(self, kind: str, value: str):
        self.kind = kind
        self.value = value
        super().__init__(f"중복 식별자 ({kind}): {value}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"kind": self.kind, "value": self.value})
        return data


class PersistenceUnavailable(YuandiError):
    """카운터/원장 저장소에 접근할 수 없음. 현재 요청은 중단된다"""

    code = "PERSISTENCE_UNAVAILABLE"


class DailyOrderLimitExceeded(YuandiError):
    code = "DAILY_ORDER_LIMIT_EXCEEDED"

    def __init__(self, date_key: str, limit: int):
        self.date_key = date_key
        self.limit = limit
        super().__init__(f"일일 주문 한도 초과: {date_key} (최대 {limit}건)")


class ProductNotFound(YuandiError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"상품을 찾을 수 없습니다: {product_id}")


class OrderNotFound(YuandiError):
    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id):
        self.order_id = order_id
        super().__init__(f"주문을 찾을 수 없습니다: {order_id}")


class InvalidOrderTransition(YuandiError):
    code = "INVALID_ORDER_TRANSITION"

    def __init__(self, order_no: str, current: str, target: str):
        self.order_no = order_no
        self.current = current
        self.target = target
        super().__init__(f"주문 {order_no}: {current} → {target} 전환 불가")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"current": self.current, "target": self.target})
        return data


class CustomerNotFound(YuandiError):
    code = "CUSTOMER_NOT_FOUND"
