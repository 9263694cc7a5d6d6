"""
주문 서비스 — 주문 접수, 출고, 배송 완료, 환불
- 접수 순서: 입력/PCCC 검증 → 재고 확인 → 재고 차감(+원장) → 주문번호 발급 → 주문 저장
- 한 주문의 차감/원장/번호/주문 행은 하나의 트랜잭션으로 커밋되거나 모두 롤백된다.
- 상태 전이: PAID → SHIPPED → DONE, PAID|SHIPPED|DONE → REFUNDED
- 환불 재고 복구는 refunded_at 조건부 UPDATE로 주문당 한 번만 수행한다.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from yuandi.config import settings
from yuandi.errors import (
    DuplicateIdentifier, InsufficientStock, InvalidArgument, InvalidOrderTransition,
    OrderNotFound, PersistenceUnavailable,
)
from yuandi.models import InventoryMovement, Order, OrderItem, Product
from yuandi.models.order import OrderStatus
from yuandi.schemas.orders import OrderCreate
from yuandi.services.event_logger import EventLogger
from yuandi.services.order_number import OrderNumberGenerator, SequenceStore, build_sequence_store
from yuandi.services.pccc import validate_pccc
from yuandi.services.stock_ledger import StockLedger, check_stock

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^01\d-?\d{3,4}-?\d{4}$")

# 허용되는 상태 전이
TRANSITIONS = {
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.REFUNDED},
    OrderStatus.SHIPPED: {OrderStatus.DONE, OrderStatus.REFUNDED},
    OrderStatus.DONE: {OrderStatus.REFUNDED},
    OrderStatus.REFUNDED: set(),
}

# 택배사별 배송 조회 URL
TRACKING_URL_PATTERNS = {
    "CJ대한통운": "https://www.cjlogistics.com/ko/tool/parcel/tracking?gnbInvcNo=",
    "한진택배": "https://www.hanjin.com/kor/CMS/DeliveryMgr/WaybillResult.do?mCode=MN038&schLang=KR&wblnumText2=",
    "롯데택배": "https://www.lotteglogis.com/mobile/reservation/tracking/index?InvNo=",
    "우체국택배": "https://service.epost.go.kr/trace.RetrieveDomRigiTraceList.comm?sid1=",
    "로젠택배": "https://www.ilogen.com/web/personal/trace/",
    "DHL": "https://www.dhl.com/kr-ko/home/tracking/tracking-express.html?submit=1&tracking-id=",
    "FedEx": "https://www.fedex.com/fedextrack/?tracknumbers=",
    "UPS": "https://www.ups.com/track?loc=ko_KR&tracknum=",
}


def tracking_url(courier: str | None, tracking_no: str | None) -> str | None:
    if not courier or not tracking_no:
        return None
    base = TRACKING_URL_PATTERNS.get(courier.strip())
    return f"{base}{tracking_no.strip()}" if base else None


def mask_phone(phone: str | None) -> str:
    """연락처 마스킹: 010-****-5678"""
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) < 8:
        return phone or ""
    return f"{digits[:3]}-****-{digits[-4:]}"


@dataclass
class FieldError:
    field: str
    code: str
    message: str
    available: int | None = None
    requested: int | None = None
    shortage: int | None = None


@dataclass
class OrderIntakeResult:
    success: bool
    order: Order | None = None
    errors: list[FieldError] = field(default_factory=list)


@dataclass
class RefundResult:
    order: Order
    already_refunded: bool
    restored_items: int


class OrderService:
    """주문 접수/상태 전이 서비스. 메서드 단위로 커밋 또는 롤백한다."""

    def __init__(self, db: Session, sequence_store: SequenceStore | None = None, actor: str = "system"):
        self.db = db
        self.sequence_store = sequence_store or build_sequence_store(db)
        self.numbers = OrderNumberGenerator(self.sequence_store)
        self.ledger = StockLedger(db, actor=actor)
        self.events = EventLogger(db, actor=actor)

    # ── 조회 ──

    def get_order(self, order_id: int) -> Order:
        order = self.db.get(Order, order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def get_order_by_no(self, order_no: str) -> Order:
        order = self.db.query(Order).filter(Order.order_no == order_no).first()
        if order is None:
            raise OrderNotFound(order_no)
        return order

    def list_orders(
        self,
        status: OrderStatus | None = None,
        pccc_code: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[int, list[Order]]:
        query = self.db.query(Order)
        if status is not None:
            query = query.filter(Order.status == status)
        if pccc_code:
            query = query.filter(Order.pccc_code == pccc_code.strip().upper())
        total = query.count()
        orders = query.order_by(Order.id.desc()).offset(offset).limit(limit).all()
        return total, orders

    def find_customer_by_pccc(self, pccc_code: str) -> dict | None:
        """이전 주문에서 같은 PCCC로 사용된 최근 고객 정보"""
        result = validate_pccc(pccc_code)
        if not result.valid:
            return None

        query = self.db.query(Order).filter(Order.pccc_code == result.normalized)
        latest = query.order_by(Order.id.desc()).first()
        if latest is None:
            return None
        return {
            "pccc_code": latest.pccc_code,
            "customer_name": latest.customer_name,
            "customer_phone": latest.customer_phone,
            "customer_email": latest.customer_email,
            "shipping_address": latest.shipping_address,
            "shipping_address_detail": latest.shipping_address_detail,
            "zip_code": latest.zip_code,
            "order_count": query.count(),
            "last_order_no": latest.order_no,
        }

    def track_orders(self, customer_name: str | None, phone: str | None, limit: int = 5) -> list[Order]:
        """
        비로그인 주문 조회: 이름 + 연락처가 모두 일치하는 최근 주문.
        연락처는 숫자만 비교하므로 하이픈 유무와 관계없이 찾는다.
        """
        name = (customer_name or "").strip()
        digits = re.sub(r"\D", "", phone or "")
        if not name or not digits:
            raise InvalidArgument("이름과 전화번호를 입력해주세요")
        if len(name) < 2:
            raise InvalidArgument("올바른 이름을 입력해주세요")
        if len(digits) < 10:
            raise InvalidArgument("올바른 전화번호를 입력해주세요")

        orders = (
            self.db.query(Order)
            .filter(
                Order.customer_name == name,
                func.replace(Order.customer_phone, "-", "") == digits,
            )
            .order_by(Order.id.desc())
            .limit(limit)
            .all()
        )
        logger.info(f"비로그인 주문 조회: {name} {mask_phone(digits)} → {len(orders)}건")
        return orders

    # ── 접수 ──

    def _validate_customer(self, payload: OrderCreate, locale: str | None) -> tuple[list[FieldError], str | None]:
        errors = []
        if not payload.customer_name or not payload.customer_name.strip():
            errors.append(FieldError("customer_name", "REQUIRED", "고객명은 필수입니다"))

        phone = re.sub(r"\s", "", payload.customer_phone or "")
        if not phone:
            errors.append(FieldError("customer_phone", "REQUIRED", "연락처는 필수입니다"))
        elif not PHONE_PATTERN.match(phone):
            errors.append(FieldError("customer_phone", "INVALID_FORMAT", "올바른 휴대폰 번호 형식이 아닙니다"))

        if not payload.shipping_address or not payload.shipping_address.strip():
            errors.append(FieldError("shipping_address", "REQUIRED", "배송 주소는 필수입니다"))

        pccc = validate_pccc(payload.pccc_code, locale)
        if not pccc.valid:
            errors.append(FieldError("pccc_code", pccc.error_code, pccc.error))

        return errors, pccc.normalized

    def _check_items(self, payload: OrderCreate) -> tuple[list[FieldError], dict[int, Product]]:
        product_ids = {item.product_id for item in payload.items}
        products = {
            p.id: p
            for p in self.db.query(Product).filter(Product.id.in_(product_ids), Product.active.is_(True)).all()
        }

        errors = []
        requested: dict[int, int] = {}
        for idx, item in enumerate(payload.items):
            if item.product_id not in products:
                errors.append(FieldError(
                    f"items[{idx}].product_id", "PRODUCT_NOT_FOUND",
                    f"상품을 찾을 수 없습니다: {item.product_id}",
                ))
                continue
            requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

        # 같은 상품이 여러 줄이면 합산 수량으로 확인
        for product_id, qty in requested.items():
            check = check_stock(products[product_id], qty)
            if not check.has_stock:
                errors.append(self._shortage_error(product_id, check.available, check.requested))

        return errors, products

    @staticmethod
    def _shortage_error(product_id: int, available: int, requested: int) -> FieldError:
        return FieldError(
            field=f"product:{product_id}",
            code="INSUFFICIENT_STOCK",
            message=f"재고 부족: 요청 {requested}, 가용 {available}",
            available=available,
            requested=requested,
            shortage=max(0, requested - available),
        )

    def _create_once(self, payload: OrderCreate, products: dict[int, Product], pccc_code: str) -> Order:
        # 1) 재고 차감 + 원장
        movement_ids = []
        for item in payload.items:
            change = self.ledger.deduct_stock(products[item.product_id], item.quantity, ref_type="order")
            if change.movement_id is not None:
                movement_ids.append(change.movement_id)

        # 2) 주문번호 발급
        order_no = self.numbers.allocate()
        if movement_ids:
            (
                self.db.query(InventoryMovement)
                .filter(InventoryMovement.id.in_(movement_ids))
                .update({InventoryMovement.ref_id: order_no}, synchronize_session=False)
            )

        # 3) 주문 저장
        items = []
        for item in payload.items:
            product = products[item.product_id]
            unit_price = item.unit_price if item.unit_price is not None else product.sale_price_krw
            items.append(OrderItem(
                product_id=product.id,
                sku=product.sku,
                product_name=product.name,
                quantity=item.quantity,
                unit_price=unit_price,
                subtotal=item.quantity * unit_price,
            ))

        order = Order(
            order_no=order_no,
            customer_name=payload.customer_name.strip(),
            customer_phone=re.sub(r"\s", "", payload.customer_phone),
            customer_email=payload.customer_email,
            pccc_code=pccc_code,
            shipping_address=payload.shipping_address.strip(),
            shipping_address_detail=payload.shipping_address_detail,
            zip_code=payload.zip_code,
            memo=payload.memo,
            status=OrderStatus.PAID,
            total_amount=sum(i.subtotal for i in items),
            items=items,
        )
        self.db.add(order)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise DuplicateIdentifier("order_no", order_no) from e

        self.events.log("orders", order_no, "create", {
            "status": OrderStatus.PAID.value,
            "total_amount": order.total_amount,
            "items": [{"sku": i.sku, "quantity": i.quantity} for i in items],
        })
        return order

    def create_order(self, payload: OrderCreate, locale: str | None = None) -> OrderIntakeResult:
        """
        주문 접수. 입력 검증 실패와 재고 부족은 OrderIntakeResult.errors로 돌려주고,
        저장소 장애는 롤백 후 예외로 전파한다.
        """
        errors, pccc_code = self._validate_customer(payload, locale)
        if errors:
            return OrderIntakeResult(success=False, errors=errors)

        errors, products = self._check_items(payload)
        if errors:
            logger.info(f"주문 접수 거절: {[e.code for e in errors]}")
            return OrderIntakeResult(success=False, errors=errors)

        max_attempts = settings.ORDER_CREATE_MAX_ATTEMPTS
        for attempt in range(1, max_attempts + 1):
            try:
                order = self._create_once(payload, products, pccc_code)
                self.db.commit()
            except DuplicateIdentifier as e:
                self.db.rollback()
                logger.warning(f"주문 식별자 충돌, 재시도 ({attempt}/{max_attempts}): {e.value}")
                if attempt == max_attempts:
                    raise
                continue
            except InsufficientStock as e:
                # 사전 확인 이후 다른 주문이 먼저 재고를 가져간 경우
                self.db.rollback()
                logger.info(f"주문 접수 중 재고 부족: product={e.product_id}")
                return OrderIntakeResult(
                    success=False,
                    errors=[self._shortage_error(e.product_id, e.available, e.requested)],
                )
            except OperationalError as e:
                self.db.rollback()
                logger.error(f"주문 저장 실패: {e}")
                raise PersistenceUnavailable("주문 저장소에 접근할 수 없습니다") from e
            except Exception:
                self.db.rollback()
                raise

            self.db.refresh(order)
            logger.info(
                f"주문 생성: {order.order_no} | 고객: {order.customer_name} "
                f"| 품목: {len(order.items)}개 | 합계: {order.total_amount}원"
            )
            return OrderIntakeResult(success=True, order=order)

    # ── 상태 전이 ──

    @staticmethod
    def _ensure_transition(order: Order, target: OrderStatus):
        if target not in TRANSITIONS[order.status]:
            raise InvalidOrderTransition(order.order_no, order.status.value, target.value)

    def _commit(self):
        try:
            self.db.commit()
        except OperationalError as e:
            self.db.rollback()
            raise PersistenceUnavailable("주문 저장소에 접근할 수 없습니다") from e

    def ship_order(self, order_id: int, courier: str, tracking_no: str) -> Order:
        """PAID → SHIPPED"""
        if not courier or not courier.strip() or not tracking_no or not tracking_no.strip():
            raise InvalidArgument("택배사와 송장번호는 필수입니다")

        order = self.get_order(order_id)
        self._ensure_transition(order, OrderStatus.SHIPPED)

        order.status = OrderStatus.SHIPPED
        order.courier = courier.strip()
        order.tracking_no = tracking_no.strip()
        order.shipped_at = datetime.now(timezone.utc)
        self.events.log("orders", order.order_no, "ship", {
            "status": OrderStatus.SHIPPED.value,
            "courier": order.courier,
            "tracking_no": order.tracking_no,
        })
        self._commit()

        logger.info(f"주문 출고: {order.order_no} | {order.courier} {order.tracking_no}")
        return order

    def complete_order(self, order_id: int) -> Order:
        """SHIPPED → DONE (이미 DONE이면 그대로 반환)"""
        order = self.get_order(order_id)
        if order.status == OrderStatus.DONE:
            return order
        self._ensure_transition(order, OrderStatus.DONE)

        order.status = OrderStatus.DONE
        order.completed_at = datetime.now(timezone.utc)
        self.events.log("orders", order.order_no, "complete", {"status": OrderStatus.DONE.value})
        self._commit()

        logger.info(f"배송 완료: {order.order_no}")
        return order

    def refund_order(self, order_id: int, reason: str) -> RefundResult:
        """
        PAID|SHIPPED|DONE → REFUNDED. 품목마다 restore_stock을 한 번씩 호출한다.
        이미 환불된 주문이면 재고를 건드리지 않고 already_refunded=True를 반환한다.
        """
        if not reason or not reason.strip():
            raise InvalidArgument("환불 사유는 필수입니다")

        order = self.get_order(order_id)
        if order.refunded_at is not None or order.status == OrderStatus.REFUNDED:
            logger.info(f"이미 환불된 주문: {order.order_no}")
            return RefundResult(order=order, already_refunded=True, restored_items=0)
        self._ensure_transition(order, OrderStatus.REFUNDED)

        now = datetime.now(timezone.utc)
        try:
            # refunded_at이 비어 있을 때만 선점, 동시 환불 요청은 한쪽만 통과
            claimed = (
                self.db.query(Order)
                .filter(Order.id == order.id, Order.refunded_at.is_(None))
                .update(
                    {
                        Order.status: OrderStatus.REFUNDED,
                        Order.refunded_at: now,
                        Order.refund_reason: reason.strip(),
                    },
                    synchronize_session=False,
                )
            )
            if not claimed:
                self.db.rollback()
                self.db.refresh(order)
                return RefundResult(order=order, already_refunded=True, restored_items=0)

            for item in order.items:
                product = self.db.get(Product, item.product_id)
                self.ledger.restore_stock(product, item.quantity, ref_type="refund", ref_id=order.order_no)

            self.events.log("orders", order.order_no, "refund", {
                "status": OrderStatus.REFUNDED.value,
                "refund_reason": reason.strip(),
                "refund_amount": order.total_amount,
            })
            self.db.commit()
        except OperationalError as e:
            self.db.rollback()
            raise PersistenceUnavailable("환불 처리 중 저장소에 접근할 수 없습니다") from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(f"주문 환불: {order.order_no} | 복구 품목 {len(order.items)}개")
        return RefundResult(order=order, already_refunded=False, restored_items=len(order.items))
