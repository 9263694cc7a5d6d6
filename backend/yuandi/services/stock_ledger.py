"""
재고 원장 (Stock Ledger)
- products.on_hand 변경과 inventory_movements 기록을 한 트랜잭션에서 처리한다.
- StockLedger는 커밋하지 않는다. 호출자(주문/환불/입고 핸들러)가 커밋 또는 롤백한다.
- 차감은 조건부 UPDATE(on_hand >= 수량)로 수행하여 동시 요청에서도 음수 재고를 막는다.
"""

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from decimal import Decimal

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from yuandi.errors import InsufficientStock, InvalidArgument, PersistenceUnavailable, ProductNotFound
from yuandi.models import InventoryMovement, Product
from yuandi.models.inventory_movement import MovementType

logger = logging.getLogger(__name__)


@dataclass
class StockCheck:
    has_stock: bool
    available: int
    requested: int
    shortage: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class StockChange:
    product_id: int
    movement_type: MovementType
    quantity: int  # 부호 포함
    balance_before: int
    balance_after: int
    movement_id: int | None = None


@dataclass
class LowStockProduct:
    id: int
    sku: str
    name: str
    on_hand: int
    low_stock_threshold: int
    shortage: int


@dataclass
class LedgerConsistency:
    product_id: int
    on_hand: int
    ledger_balance: int | None
    movement_count: int
    consistent: bool
    problems: list[str] = field(default_factory=list)


def _on_hand_of(product) -> int:
    if isinstance(product, Mapping):
        return int(product.get("on_hand") or 0)
    return int(product.on_hand or 0)


def check_stock(product, quantity: int) -> StockCheck:
    """재고 충분 여부 확인 (읽기 전용). product는 ORM 객체 또는 on_hand 키를 가진 dict."""
    if quantity < 0:
        raise InvalidArgument(f"수량은 0 이상이어야 합니다: {quantity}")

    available = _on_hand_of(product)
    shortage = max(0, quantity - available)
    return StockCheck(
        has_stock=shortage == 0,
        available=available,
        requested=quantity,
        shortage=shortage,
    )


class StockLedger:
    """상품 재고 변경 + 이동 원장 기록"""

    def __init__(self, db: Session, actor: str = "system"):
        self.db = db
        self.actor = actor

    def _current_on_hand(self, product_id: int) -> int | None:
        return self.db.query(Product.on_hand).filter(Product.id == product_id).scalar()

    def _apply(
        self,
        product: Product,
        delta: int,
        movement_type: MovementType,
        ref_type: str | None = None,
        ref_id: str | None = None,
        note: str | None = None,
        unit_cost_cny: Decimal | None = None,
    ) -> StockChange:
        """
        on_hand += delta 후 이동 기록을 추가한다.
        delta < 0 이면 on_hand >= -delta 인 경우에만 갱신되며, 아니면 InsufficientStock.
        """
        try:
            query = self.db.query(Product).filter(Product.id == product.id)
            if delta < 0:
                query = query.filter(Product.on_hand >= -delta)
            updated = query.update(
                {Product.on_hand: Product.on_hand + delta},
                synchronize_session=False,
            )

            if not updated:
                current = self._current_on_hand(product.id)
                if current is None:
                    raise ProductNotFound(product.id)
                raise InsufficientStock(product.id, current, -delta)

            balance_after = self._current_on_hand(product.id)
            balance_before = balance_after - delta

            movement = InventoryMovement(
                product_id=product.id,
                movement_type=movement_type,
                quantity=delta,
                balance_before=balance_before,
                balance_after=balance_after,
                ref_type=ref_type,
                ref_id=ref_id,
                unit_cost_cny=unit_cost_cny,
                note=note,
                created_by=self.actor,
            )
            self.db.add(movement)
            self.db.flush()
            self.db.refresh(product, attribute_names=["on_hand"])
        except OperationalError as e:
            logger.error(f"재고 원장 기록 실패 (product={product.id}): {e}")
            raise PersistenceUnavailable(f"재고 원장에 접근할 수 없습니다: product={product.id}") from e

        logger.info(
            f"재고 {movement_type.value}: {product.sku} {balance_before} → {balance_after} "
            f"({delta:+d}, ref={ref_type}:{ref_id})"
        )
        return StockChange(
            product_id=product.id,
            movement_type=movement_type,
            quantity=delta,
            balance_before=balance_before,
            balance_after=balance_after,
            movement_id=movement.id,
        )

    def _unchanged(self, product: Product, movement_type: MovementType) -> StockChange:
        on_hand = _on_hand_of(product)
        return StockChange(
            product_id=product.id,
            movement_type=movement_type,
            quantity=0,
            balance_before=on_hand,
            balance_after=on_hand,
        )

    def check_stock(self, product: Product, quantity: int) -> StockCheck:
        return check_stock(product, quantity)

    def deduct_stock(
        self,
        product: Product,
        quantity: int,
        ref_type: str | None = "order",
        ref_id: str | None = None,
    ) -> StockChange:
        """판매 차감. 재고가 부족하면 InsufficientStock, on_hand는 그대로."""
        self.db.refresh(product, attribute_names=["on_hand"])
        check = check_stock(product, quantity)
        if not check.has_stock:
            raise InsufficientStock(product.id, check.available, check.requested)
        if quantity == 0:
            return self._unchanged(product, MovementType.SALE)
        return self._apply(product, -quantity, MovementType.SALE, ref_type, ref_id)

    def restore_stock(
        self,
        product: Product,
        quantity: int,
        ref_type: str | None = "refund",
        ref_id: str | None = None,
        note: str | None = None,
    ) -> StockChange:
        """환불 복구. 상한 없이 on_hand를 늘린다. 중복 복구 방지는 주문의 refunded_at이 담당."""
        if quantity < 0:
            raise InvalidArgument(f"복구 수량은 0 이상이어야 합니다: {quantity}")
        if quantity == 0:
            return self._unchanged(product, MovementType.REFUND)
        return self._apply(product, quantity, MovementType.REFUND, ref_type, ref_id, note)

    def record_inbound(
        self,
        product: Product,
        quantity: int,
        unit_cost_cny: Decimal | float | None = None,
        note: str | None = None,
    ) -> StockChange:
        """입고 기록"""
        if quantity <= 0:
            raise InvalidArgument(f"입고 수량은 양수여야 합니다: {quantity}")
        cost = Decimal(str(unit_cost_cny)) if unit_cost_cny is not None else None
        return self._apply(
            product, quantity, MovementType.INBOUND,
            ref_type="inbound", note=note, unit_cost_cny=cost,
        )

    def adjust_stock(self, product: Product, new_quantity: int, reason: str | None = None) -> StockChange:
        """실사 결과로 재고를 절대값으로 맞춘다. 차이가 0이어도 조정 이력은 남긴다."""
        if new_quantity < 0:
            raise InvalidArgument(f"재고는 음수가 될 수 없습니다: {new_quantity}")

        current = (
            self.db.query(Product.on_hand)
            .filter(Product.id == product.id)
            .with_for_update()
            .scalar()
        )
        if current is None:
            raise ProductNotFound(product.id)
        return self._apply(
            product, new_quantity - current, MovementType.ADJUSTMENT,
            ref_type="adjustment", note=reason,
        )

    def record_disposal(self, product: Product, quantity: int, reason: str | None = None) -> StockChange:
        """파손/분실 폐기"""
        if quantity <= 0:
            raise InvalidArgument(f"폐기 수량은 양수여야 합니다: {quantity}")
        return self._apply(
            product, -quantity, MovementType.DISPOSAL,
            ref_type="disposal", note=reason,
        )

    def movements(self, product_id: int | None = None, limit: int = 100, offset: int = 0) -> list[InventoryMovement]:
        query = self.db.query(InventoryMovement)
        if product_id is not None:
            query = query.filter(InventoryMovement.product_id == product_id)
        return query.order_by(InventoryMovement.id.desc()).offset(offset).limit(limit).all()

    def low_stock_products(self, threshold: int | None = None) -> list[LowStockProduct]:
        """재고 부족 상품. threshold를 생략하면 상품별 low_stock_threshold 기준."""
        query = self.db.query(Product).filter(Product.active.is_(True))
        if threshold is not None:
            query = query.filter(Product.on_hand <= threshold)
        else:
            query = query.filter(Product.on_hand <= Product.low_stock_threshold)

        result = []
        for p in query.order_by(Product.on_hand.asc(), Product.id.asc()).all():
            limit = threshold if threshold is not None else p.low_stock_threshold
            result.append(LowStockProduct(
                id=p.id,
                sku=p.sku,
                name=p.name,
                on_hand=p.on_hand,
                low_stock_threshold=limit,
                shortage=limit - p.on_hand,
            ))
        return result

    def verify_consistency(self, product: Product) -> LedgerConsistency:
        """
        원장 무결성 검사:
          - 각 이동의 balance_after = balance_before + quantity
          - 연속한 이동끼리 잔고가 이어짐
          - 마지막 이동의 balance_after = 현재 on_hand
        """
        history = (
            self.db.query(InventoryMovement)
            .filter(InventoryMovement.product_id == product.id)
            .order_by(InventoryMovement.id.asc())
            .all()
        )
        on_hand = self._current_on_hand(product.id)
        if on_hand is None:
            raise ProductNotFound(product.id)

        problems = []
        previous = None
        for m in history:
            if m.balance_after != m.balance_before + m.quantity:
                problems.append(f"movement {m.id}: {m.balance_before} + {m.quantity} != {m.balance_after}")
            if previous is not None and m.balance_before != previous.balance_after:
                problems.append(f"movement {m.id}: 이전 잔고 {previous.balance_after}와 불일치")
            previous = m

        ledger_balance = previous.balance_after if previous is not None else None
        if (ledger_balance if ledger_balance is not None else 0) != on_hand:
            problems.append(f"원장 잔고 {ledger_balance} != on_hand {on_hand}")

        if problems:
            logger.warning(f"재고 원장 불일치 ({product.sku}): {problems}")

        return LedgerConsistency(
            product_id=product.id,
            on_hand=on_hand,
            ledger_balance=ledger_balance,
            movement_count=len(history),
            consistent=not problems,
            problems=problems,
        )


def load_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise ProductNotFound(product_id)
    return product
