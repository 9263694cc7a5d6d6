"""
데모 데이터 시딩 스크립트
- 명품 구매대행 상품 카탈로그 (SKU 자동 생성 + 초기 입고 원장)
- 샘플 주문 몇 건 (출고/배송 완료/환불 포함)
- 실행: cd backend && python seed_data.py
"""

import random
import sys
import os
from decimal import Decimal

# backend/ 디렉토리 기준으로 yuandi 패키지를 찾을 수 있도록 경로 설정
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from yuandi.database import engine, SessionLocal, Base
from yuandi.models import Product
from yuandi.schemas.orders import OrderCreate, OrderItemCreate
from yuandi.services.order_number import InMemorySequenceStore
from yuandi.services.order_service import OrderService
from yuandi.services.sku import generate_sku
from yuandi.services.stock_ledger import StockLedger

# (카테고리, 모델, 색상, 브랜드, 상품명, 원가 CNY, 판매가 KRW)
CATALOG = [
    ("BAG", "Lindy26", "BLK", "Hermes", "에르메스 린디 26 블랙", "38000.00", 12500000),
    ("BAG", "Kelly25", "GLD", "Hermes", "에르메스 켈리 25 골드", "52000.00", 17800000),
    ("BAG", "Neverfull MM", "BRN", "Louis Vuitton", "루이비통 네버풀 MM", "11200.00", 2950000),
    ("BAG", "Speedy25", "BRN", "Louis Vuitton", "루이비통 스피디 25", "9800.00", 2580000),
    ("BAG", "Classic Flap", "BLK", "Chanel", "샤넬 클래식 플랩 미디엄", "48000.00", 15900000),
    ("WAL", "Zippy", "BLK", "Louis Vuitton", "루이비통 지피 월릿", "6100.00", 1650000),
    ("WAL", "Card Holder", "BEI", "Chanel", "샤넬 카드 홀더 베이지", "3600.00", 990000),
    ("SHO", "Oran", "WHT", "Hermes", "에르메스 오란 샌들 화이트", "4900.00", 1390000),
    ("SHO", "Ace", "WHT", "Gucci", "구찌 에이스 스니커즈", "4300.00", 1150000),
    ("ACC", "Twilly", "MUL", "Hermes", "에르메스 트윌리 스카프", "1650.00", 480000),
    ("ACC", "GG Belt", "BLK", "Gucci", "구찌 GG 마몽 벨트", "2900.00", 780000),
    ("JEW", "Clash", "SLV", "Cartier", "까르띠에 클래쉬 링", "17800.00", 4850000),
]

CUSTOMERS = [
    ("김민지", "010-1234-5678", "P123456789012", "서울특별시 강남구 테헤란로 152"),
    ("이서연", "010-2345-6789", "P234567890123", "서울특별시 송파구 올림픽로 300"),
    ("박지훈", "010-3456-7890", "P345678901234", "부산광역시 해운대구 센텀중앙로 79"),
    ("최유나", "010-4567-8901", "P456789012345", "경기도 성남시 분당구 판교역로 235"),
]


def seed_products(session):
    """카탈로그 상품 생성 + 초기 재고 입고"""
    ledger = StockLedger(session, actor="seed")
    products = []
    for category, model, color, brand, name, cost, price in CATALOG:
        product = Product(
            sku=generate_sku(category, model, color, brand),
            name=name,
            category=category,
            model=model,
            color=color,
            brand=brand,
            cost_cny=Decimal(cost),
            sale_price_krw=price,
            on_hand=0,
            low_stock_threshold=2,
        )
        session.add(product)
        session.flush()

        ledger.record_inbound(product, random.randint(1, 8), Decimal(cost), note="초기 입고")
        products.append(product)

    session.commit()
    print(f"  [OK] Products: {len(products)}개 생성")
    return products


def seed_orders(session, products):
    """샘플 주문 생성 후 일부는 출고/완료/환불 처리"""
    service = OrderService(session, sequence_store=InMemorySequenceStore(), actor="seed")
    orders = []
    for name, phone, pccc, address in CUSTOMERS:
        in_stock = [p for p in products if p.on_hand > 0]
        if not in_stock:
            break
        picked = random.sample(in_stock, k=min(2, len(in_stock)))
        result = service.create_order(OrderCreate(
            customer_name=name,
            customer_phone=phone,
            pccc_code=pccc,
            shipping_address=address,
            items=[OrderItemCreate(product_id=p.id, quantity=1) for p in picked],
        ))
        if result.success:
            orders.append(result.order)
        else:
            print(f"  [SKIP] {name}: {[e.code for e in result.errors]}")

    if len(orders) >= 1:
        service.ship_order(orders[0].id, "CJ대한통운", "6012345678901")
    if len(orders) >= 2:
        service.ship_order(orders[1].id, "한진택배", "5098765432109")
        service.complete_order(orders[1].id)
    if len(orders) >= 3:
        service.refund_order(orders[2].id, "고객 단순 변심")

    print(f"  [OK] Orders: {len(orders)}건 생성")
    return orders


def main():
    print("=" * 60)
    print("YUANDI 주문/재고 — 데모 데이터 시딩")
    print("=" * 60)

    # 테이블 전체 재생성
    print("\n[1/3] 테이블 생성 중...")
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    print("  [OK] 테이블 생성 완료")

    session = SessionLocal()
    try:
        print("\n[2/3] Products 시딩...")
        products = seed_products(session)

        print("\n[3/3] Orders 시딩...")
        orders = seed_orders(session, products)

        print("\n" + "=" * 60)
        print("시딩 완료!")
        print(f"  Products: {len(products)}개")
        print(f"  Orders:   {len(orders)}건")
        for order in orders:
            print(f"    {order.order_no} | {order.customer_name} | {order.status.value}")
        print("=" * 60)

    except Exception as e:
        session.rollback()
        print(f"\n[ERROR] 시딩 실패: {e}")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
