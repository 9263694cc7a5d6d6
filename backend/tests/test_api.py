import pytest

from yuandi.models import Product
from yuandi.services.order_number import business_today, format_date_key


def _create_product(client, **overrides):
    body = {
        "category": "BAG",
        "model": "Lindy26",
        "color": "BLK",
        "brand": "Hermes",
        "cost_cny": "38000.00",
        "sale_price_krw": 12000,
        "initial_stock": 5,
    }
    body.update(overrides)
    r = client.post("/api/products", json=body)
    assert r.status_code == 201, r.text
    return r.json()


def _order_body(product_id, quantity=1, pccc_code="P123456789012"):
    return {
        "customer_name": "김민지",
        "customer_phone": "010-1234-5678",
        "pccc_code": pccc_code,
        "shipping_address": "서울특별시 강남구 테헤란로 152",
        "items": [{"product_id": product_id, "quantity": quantity}],
    }


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] in ("ok", "degraded")


def test_create_product_generates_sku_and_inbound(client):
    product = _create_product(client)
    assert product["sku"].startswith("BAG-LINDY2-BLK-HER-")
    assert product["on_hand"] == 5
    assert product["name"] == "Hermes Lindy26"

    r = client.get("/api/inventory/movements", params={"product_id": product["id"]})
    assert [m["movement_type"] for m in r.json()] == ["inbound"]

    r = client.get(f"/api/inventory/{product['id']}/consistency")
    assert r.json()["consistent"] is True


def test_product_list_and_lookup(client):
    bag = _create_product(client, initial_stock=1, low_stock_threshold=3)
    _create_product(client, category="WAL", initial_stock=10)

    assert client.get("/api/products").json()["total"] == 2
    assert client.get("/api/products", params={"category": "WAL"}).json()["total"] == 1
    low = client.get("/api/products", params={"low_stock": True}).json()
    assert [p["id"] for p in low["products"]] == [bag["id"]]

    assert client.get(f"/api/products/{bag['id']}").json()["sku"] == bag["sku"]
    r = client.get("/api/products/9999")
    assert r.status_code == 404
    assert r.json()["error"] == "PRODUCT_NOT_FOUND"


def test_sku_preview(client):
    r = client.get("/api/products/sku/preview", params={"category": "가방", "model": "Kelly"})
    data = r.json()
    assert data["valid"] is True
    assert data["sku"].startswith("XXX-KELLY-X-XX-")


def test_stock_check_and_adjustments(client):
    product = _create_product(client, initial_stock=3)
    pid = product["id"]

    r = client.post("/api/inventory/check", json={"product_id": pid, "quantity": 5})
    assert r.status_code == 200
    assert r.json() == {"product_id": pid, "has_stock": False, "available": 3, "requested": 5, "shortage": 2}

    r = client.post("/api/inventory/inbound", json={"product_id": pid, "quantity": 4, "unit_cost_cny": "100.5"})
    assert r.json()["balance_after"] == 7

    r = client.post("/api/inventory/adjust", json={"product_id": pid, "new_quantity": 6, "reason": "실사"})
    assert r.json()["quantity"] == -1

    r = client.post("/api/inventory/disposal", json={"product_id": pid, "quantity": 10, "reason": "파손"})
    assert r.status_code == 409
    assert r.json()["shortage"] == 4

    r = client.get("/api/inventory/low-stock", params={"threshold": 10})
    assert [p["id"] for p in r.json()] == [pid]

    assert client.get(f"/api/inventory/{pid}/consistency").json()["consistent"] is True


def test_order_flow(client, db):
    product = _create_product(client, initial_stock=2)
    pid = product["id"]

    r = client.post("/api/orders", json=_order_body(pid, 2))
    assert r.status_code == 201, r.text
    order = r.json()
    assert order["order_no"] == f"ORD-{format_date_key(business_today())}-001"
    assert order["status"] == "PAID"
    assert order["total_amount"] == 24000
    assert order["pccc_masked"] == "P-****-****-9012"
    assert db.get(Product, pid).on_hand == 0

    r = client.patch(f"/api/orders/{order['id']}/complete")
    assert r.status_code == 409
    assert r.json()["error"] == "INVALID_ORDER_TRANSITION"

    r = client.patch(f"/api/orders/{order['id']}/ship", json={"courier": "CJ대한통운", "tracking_no": "6012345678901"})
    assert r.json()["status"] == "SHIPPED"
    assert r.json()["tracking_url"].endswith("6012345678901")

    r = client.patch(f"/api/orders/{order['id']}/complete")
    assert r.json()["status"] == "DONE"

    r = client.patch(f"/api/orders/{order['id']}/refund", json={"reason": "불량"})
    assert r.status_code == 200
    assert r.json()["already_refunded"] is False
    assert r.json()["order"]["status"] == "REFUNDED"

    r = client.patch(f"/api/orders/{order['id']}/refund", json={"reason": "불량"})
    assert r.json()["already_refunded"] is True
    db.expire_all()
    assert db.get(Product, pid).on_hand == 2

    assert client.get(f"/api/orders/by-no/{order['order_no']}").json()["id"] == order["id"]
    assert client.get("/api/orders", params={"status": "refunded"}).json()["total"] == 1
    assert client.get("/api/orders", params={"status": "bogus"}).json()["total"] == 1


def test_order_rejected_for_stock(client, db):
    product = _create_product(client, initial_stock=1)

    r = client.post("/api/orders", json=_order_body(product["id"], 3))
    assert r.status_code == 422
    body = r.json()
    assert body["error"] == "VALIDATION_FAILED"
    assert body["errors"][0]["shortage"] == 2
    assert client.get("/api/orders").json()["total"] == 0


def test_order_rejected_for_pccc_in_chinese(client):
    product = _create_product(client)

    r = client.post(
        "/api/orders",
        json=_order_body(product["id"], pccc_code="P12345"),
        headers={"Accept-Language": "zh-CN"},
    )
    assert r.status_code == 422
    error = r.json()["errors"][0]
    assert error["code"] == "WRONG_LENGTH"
    assert error["message"] == "P后面必须是12位数字"


def test_empty_items_is_a_request_error(client):
    body = _order_body(1)
    body["items"] = []
    assert client.post("/api/orders", json=body).status_code == 422


def test_missing_order(client):
    r = client.get("/api/orders/9999")
    assert r.status_code == 404
    assert r.json()["error"] == "ORDER_NOT_FOUND"


def test_pccc_validate_endpoint(client):
    r = client.post("/api/customers/pccc/validate", json={"pccc_code": " p123456789012"})
    assert r.json() == {
        "valid": True,
        "normalized": "P123456789012",
        "error": None,
        "error_code": None,
        "masked": "P-****-****-9012",
    }

    r = client.post("/api/customers/pccc/validate", json={"pccc_code": "123456789012", "locale": "zh"})
    assert r.status_code == 200
    assert r.json()["valid"] is False
    assert r.json()["error_code"] == "MISSING_PREFIX"


def test_customer_lookup(client):
    product = _create_product(client)
    client.post("/api/orders", json=_order_body(product["id"]))

    r = client.get("/api/customers/by-pccc", params={"pccc": "P123456789012"})
    assert r.status_code == 200
    assert r.json()["customer_name"] == "김민지"
    assert r.json()["order_count"] == 1

    r = client.get("/api/customers/by-pccc", params={"pccc": "P000000000000"})
    assert r.status_code == 404


@pytest.mark.parametrize("params", [
    {"phone": "01012345678"},
    {"name": "김", "phone": "01012345678"},
    {"name": "김민지", "phone": "010-123"},
])
def test_track_rejects_short_or_missing_input(client, params):
    r = client.get("/api/track", params=params)
    assert r.status_code == 400
    assert r.json()["error"] == "INVALID_ARGUMENT"


def test_track_masks_personal_data(client):
    product = _create_product(client)
    order = client.post("/api/orders", json=_order_body(product["id"])).json()

    r = client.get("/api/track", params={"name": "김민지", "phone": "01012345678"})
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "최근 1건의 주문이 조회되었습니다"
    tracked = body["orders"][0]
    assert tracked["order_no"] == order["order_no"]
    assert tracked["customer_phone"] == "010-****-5678"
    assert tracked["pccc_masked"] == "P-****-****-9012"
    assert "pccc_code" not in tracked

    r = client.get("/api/track", params={"name": "이서연", "phone": "010-1234-5678"})
    assert r.json() == {"message": "조회된 주문이 없습니다", "orders": []}


def test_order_history(client):
    product = _create_product(client)
    order = client.post("/api/orders", json=_order_body(product["id"])).json()
    client.patch(f"/api/orders/{order['id']}/ship", json={"courier": "CJ대한통운", "tracking_no": "6012345678901"})

    r = client.get(f"/api/orders/{order['id']}/history")
    assert r.status_code == 200
    assert [e["action"] for e in r.json()] == ["create", "ship"]
    assert r.json()[1]["new_values"]["tracking_no"] == "6012345678901"

    assert client.get("/api/orders/9999/history").status_code == 404
