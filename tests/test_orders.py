import pytest

import services
from models import Order, OrderItem
from schemas import OrderCreate, OrderItemIn, PaymentIn, ShippingIn


def create_order(client, headers, payload):
    res = client.post("/api/orders", json=payload, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()["data"]


def test_create_order_keeps_client_totals(client, db, user_headers, order_payload):
    res = client.post("/api/orders", json=order_payload, headers=user_headers)

    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "New Order Created"
    order = body["data"]
    assert order["totalPrice"] == 200
    assert order["itemsPrice"] == 200
    assert order["isPaid"] is False
    assert order["shippingCity"] == "Springfield"
    assert [i["qty"] for i in order["orderItems"]] == [1, 2]

    items = db.query(OrderItem).all()
    assert len(items) == 2
    assert {i.order_id for i in items} == {order["id"]}


def test_total_is_not_recomputed_from_items(client, user_headers, order_payload):
    order_payload["totalPrice"] = 999.99
    order = create_order(client, user_headers, order_payload)
    assert order["totalPrice"] == 999.99


def test_create_order_requires_items(client, db, user_headers, order_payload):
    order_payload["orderItems"] = []
    res = client.post("/api/orders", json=order_payload, headers=user_headers)
    assert res.status_code == 400
    assert db.query(Order).count() == 0


def test_create_order_requires_token(client, order_payload):
    res = client.post("/api/orders", json=order_payload)
    assert res.status_code == 401


def test_failed_item_insert_rolls_back_whole_order(db, user):
    payload = OrderCreate(
        shipping=ShippingIn(address="1 Main St", city="Springfield", postal_code="12345", country="US"),
        payment=PaymentIn(payment_method="paypal"),
        items_price=50,
        tax_price=0,
        shipping_price=0,
        total_price=50,
        order_items=[
            OrderItemIn(name="Good item", qty=1, image="/images/p1.jpg", price=25, product=1),
            # bypasses validation so the row violates NOT NULL on insert
            OrderItemIn.model_construct(name=None, qty=1, image="/images/p2.jpg", price=25, product_id=2),
        ],
    )

    with pytest.raises(services.StoreFailureError):
        services.create_order(db, user, payload)

    assert db.query(Order).count() == 0
    assert db.query(OrderItem).count() == 0


def test_list_own_orders_only(client, user_headers, other_headers, order_payload):
    mine = create_order(client, user_headers, order_payload)
    create_order(client, other_headers, order_payload)

    res = client.get("/api/orders/mine", headers=user_headers)

    assert res.status_code == 200
    orders = res.json()
    assert [o["id"] for o in orders] == [mine["id"]]
    assert len(orders[0]["orderItems"]) == 2


def test_admin_lists_all_orders_with_user(client, user, user_headers, other_headers, admin_headers, order_payload):
    create_order(client, user_headers, order_payload)
    create_order(client, other_headers, order_payload)

    res = client.get("/api/orders", headers=admin_headers)

    assert res.status_code == 200
    orders = res.json()
    assert len(orders) == 2
    assert orders[0]["user"] == {"id": user.id, "name": user.name, "email": user.email}
    assert len(orders[0]["orderItems"]) == 2


def test_list_all_orders_is_admin_only(client, user_headers):
    res = client.get("/api/orders", headers=user_headers)
    assert res.status_code == 403


def test_get_order(client, user_headers, order_payload):
    created = create_order(client, user_headers, order_payload)

    res = client.get(f"/api/orders/{created['id']}", headers=user_headers)

    assert res.status_code == 200
    assert res.json()["id"] == created["id"]
    assert len(res.json()["orderItems"]) == 2


def test_get_missing_order_is_not_found(client, user_headers):
    res = client.get("/api/orders/424242", headers=user_headers)
    assert res.status_code == 404


def test_get_someone_elses_order_is_forbidden(client, user_headers, other_headers, admin_headers, order_payload):
    created = create_order(client, user_headers, order_payload)

    assert client.get(f"/api/orders/{created['id']}", headers=other_headers).status_code == 403
    assert client.get(f"/api/orders/{created['id']}", headers=admin_headers).status_code == 200


def test_pay_order(client, user_headers, order_payload):
    created = create_order(client, user_headers, order_payload)

    res = client.put(f"/api/orders/{created['id']}/pay", headers=user_headers)

    assert res.status_code == 200
    order = res.json()["order"]
    assert order["isPaid"] is True
    assert order["paidAt"] is not None
    assert order["paymentMethod"] == "paypal"
    assert order["totalPrice"] == 200


def test_pay_missing_order(client, user_headers):
    res = client.put("/api/orders/999/pay", headers=user_headers)
    assert res.status_code == 404


def test_deliver_order(client, user_headers, admin_headers, order_payload):
    created = create_order(client, user_headers, order_payload)

    assert client.put(f"/api/orders/{created['id']}/deliver", headers=user_headers).status_code == 403
    res = client.put(f"/api/orders/{created['id']}/deliver", headers=admin_headers)

    assert res.status_code == 200
    assert res.json()["order"]["isDelivered"] is True
    assert res.json()["order"]["deliveredAt"] is not None


def test_delete_order_removes_items(client, db, user_headers, admin_headers, order_payload):
    created = create_order(client, user_headers, order_payload)
    kept = create_order(client, user_headers, order_payload)

    res = client.delete(f"/api/orders/{created['id']}", headers=admin_headers)

    assert res.status_code == 200
    assert db.query(Order).filter(Order.id == created["id"]).count() == 0
    assert db.query(OrderItem).filter(OrderItem.order_id == created["id"]).count() == 0
    assert db.query(OrderItem).filter(OrderItem.order_id == kept["id"]).count() == 2


def test_delete_missing_order(client, admin_headers):
    res = client.delete("/api/orders/31337", headers=admin_headers)
    assert res.status_code == 404


def test_delete_order_is_admin_only(client, user_headers, order_payload):
    created = create_order(client, user_headers, order_payload)
    res = client.delete(f"/api/orders/{created['id']}", headers=user_headers)
    assert res.status_code == 403
