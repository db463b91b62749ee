"""Integration tests for quotes, order placement, delivery settlement and the sales report"""

from decimal import Decimal
from unittest.mock import patch
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from shop_gateway.infrastructure.database.models import Customer, Order, Product, Sale
from shop_gateway.domain.exceptions import RemoteOperationError


def _place(client: TestClient, headers: dict, customer_id: int, items: list) -> dict:
    response = client.post(
        "/v1/orders",
        json={"customer_id": customer_id, "items": items, "delivery_window": "9-12"},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_quote_preview_uses_price_list_and_debt(client, auth_headers, wholesale_customer, products):
    response = client.post(
        "/v1/quotes/preview",
        json={
            "customer_id": wholesale_customer.id,
            "items": [
                {"product_id": products["flour"].id, "quantity": 2},
                {"product_id": products["sugar"].id, "quantity": 5},
                {"product_id": products["flour"].id, "quantity": 1},
            ],
        },
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert [(i["name"], i["quantity"]) for i in data["items"]] == [("Flour 25kg", 3), ("Sugar 1kg", 5)]
    assert Decimal(data["subtotal"]) == 1240  # 3 * 400 + 5 * 8
    assert Decimal(data["prior_debt"]) == 150
    assert Decimal(data["total"]) == 1390


def test_place_order_decrements_stock_below_zero(client, auth_headers, retail_customer, products, db: Session):
    order = _place(
        client,
        auth_headers,
        retail_customer.id,
        [{"product_id": products["flour"].id, "quantity": 2}, {"product_id": products["sugar"].id, "quantity": 3}],
    )

    assert order["status"] == "pending"
    assert Decimal(order["total"]) == 1030
    db.expire_all()
    assert db.get(Product, products["flour"].id).stock == 3
    assert db.get(Product, products["sugar"].id).stock == -2


def test_place_order_requires_items(client, auth_headers, retail_customer):
    response = client.post("/v1/orders", json={"customer_id": retail_customer.id, "items": []}, headers=auth_headers)

    assert response.status_code == 422


def test_place_order_unknown_product(client, auth_headers, retail_customer, db: Session):
    response = client.post(
        "/v1/orders",
        json={"customer_id": retail_customer.id, "items": [{"product_id": 999, "quantity": 1}]},
        headers=auth_headers,
    )

    assert response.status_code == 404
    assert db.query(Order).count() == 0


def test_pending_orders_listed(client, auth_headers, retail_customer, products):
    order = _place(client, auth_headers, retail_customer.id, [{"product_id": products["flour"].id, "quantity": 1}])

    listed = client.get("/v1/orders", headers=auth_headers).json()

    assert [o["id"] for o in listed] == [order["id"]]
    assert listed[0]["customer"]["name"] == "Almacen Don Jose"
    assert listed[0]["delivery_window"] == "9-12"


def test_deliver_within_tolerance_clears_debt(client, auth_headers, retail_customer, products, db: Session):
    retail_customer.debt = Decimal("0")
    db.commit()
    order = _place(client, auth_headers, retail_customer.id, [{"product_id": products["flour"].id, "quantity": 2}])

    response = client.post(
        f"/v1/orders/{order['id']}/deliver",
        json={"cash_amount": "950", "transfer_amount": ""},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "delivered"
    assert Decimal(data["difference"]) == 50
    assert Decimal(data["new_debt"]) == 0
    db.expire_all()
    assert db.get(Customer, retail_customer.id).debt == 0
    assert db.get(Order, order["id"]).status == "delivered"
    assert db.query(Sale).count() == 1
    assert client.get("/v1/orders", headers=auth_headers).json() == []


def test_deliver_overwrites_prior_debt(client, auth_headers, wholesale_customer, products, db: Session):
    """Order total already carries the 150 prior debt; the new balance replaces it"""
    order = _place(client, auth_headers, wholesale_customer.id, [{"product_id": products["flour"].id, "quantity": 2}])
    assert Decimal(order["total"]) == 950

    response = client.post(
        f"/v1/orders/{order['id']}/deliver",
        json={"cash_amount": 500},
        headers=auth_headers,
    )

    assert Decimal(response.json()["new_debt"]) == 450
    db.expire_all()
    assert db.get(Customer, wholesale_customer.id).debt == 450


def test_deliver_overpayment_stored_as_credit(client, auth_headers, retail_customer, products, db: Session):
    order = _place(client, auth_headers, retail_customer.id, [{"product_id": products["flour"].id, "quantity": 1}])

    response = client.post(
        f"/v1/orders/{order['id']}/deliver",
        json={"cash_amount": 700},
        headers=auth_headers,
    )

    assert Decimal(response.json()["new_debt"]) == -200
    db.expire_all()
    assert db.get(Customer, retail_customer.id).debt == -200


def test_deliver_with_transfer(client, auth_headers, retail_customer, products):
    order = _place(
        client,
        auth_headers,
        retail_customer.id,
        [{"product_id": products["flour"].id, "quantity": 2}, {"product_id": products["sugar"].id, "quantity": 3}],
    )

    response = client.post(
        f"/v1/orders/{order['id']}/deliver",
        json={"cash_amount": "0", "transfer_amount": "1030"},
        headers=auth_headers,
    )

    data = response.json()
    assert Decimal(data["total_paid"]) == 1000
    assert Decimal(data["difference"]) == 30
    assert Decimal(data["new_debt"]) == 0


def test_deliver_zero_payment_writes_nothing(client, auth_headers, retail_customer, products, db: Session):
    order = _place(client, auth_headers, retail_customer.id, [{"product_id": products["flour"].id, "quantity": 1}])

    response = client.post(
        f"/v1/orders/{order['id']}/deliver",
        json={"cash_amount": "abc", "transfer_amount": None},
        headers=auth_headers,
    )

    assert response.status_code == 422
    db.expire_all()
    assert db.get(Order, order["id"]).status == "pending"
    assert db.query(Sale).count() == 0


def test_deliver_twice_conflicts(client, auth_headers, retail_customer, products):
    order = _place(client, auth_headers, retail_customer.id, [{"product_id": products["flour"].id, "quantity": 1}])
    client.post(f"/v1/orders/{order['id']}/deliver", json={"cash_amount": 500}, headers=auth_headers)

    response = client.post(f"/v1/orders/{order['id']}/deliver", json={"cash_amount": 500}, headers=auth_headers)

    assert response.status_code == 409


def test_deliver_unknown_order(client, auth_headers):
    response = client.post("/v1/orders/404/deliver", json={"cash_amount": 100}, headers=auth_headers)

    assert response.status_code == 404


@patch("shop_gateway.infrastructure.database.repositories.SaleRepository.create_sale")
def test_deliver_partial_failure_keeps_committed_steps(
    mock_create_sale,
    client,
    auth_headers,
    retail_customer,
    products,
    db: Session,
):
    """A failed sale insert leaves the order delivered and the debt untouched"""
    retail_customer.debt = Decimal("75")
    db.commit()
    order = _place(client, auth_headers, retail_customer.id, [{"product_id": products["flour"].id, "quantity": 1}])
    mock_create_sale.side_effect = RemoteOperationError("Data store rejected create sale")

    response = client.post(
        f"/v1/orders/{order['id']}/deliver",
        json={"cash_amount": 100},
        headers=auth_headers,
    )

    assert response.status_code == 502
    db.expire_all()
    assert db.get(Order, order["id"]).status == "delivered"
    assert db.get(Customer, retail_customer.id).debt == 75
    assert db.query(Sale).count() == 0


def test_cancel_order(client, auth_headers, retail_customer, products):
    order = _place(client, auth_headers, retail_customer.id, [{"product_id": products["flour"].id, "quantity": 1}])

    response = client.post(f"/v1/orders/{order['id']}/cancel", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert client.post(f"/v1/orders/{order['id']}/deliver", json={"cash_amount": 1}, headers=auth_headers).status_code == 409


def test_drafts_save_list_promote(client, auth_headers, retail_customer, products, db: Session):
    saved = client.post(
        "/v1/quotes/drafts",
        json={"customer_id": retail_customer.id, "items": [{"product_id": products["sugar"].id, "quantity": 4}]},
        headers=auth_headers,
    )
    assert saved.status_code == 201
    draft = saved.json()
    assert Decimal(draft["total"]) == 40

    listed = client.get("/v1/quotes/drafts", headers=auth_headers).json()
    assert [d["id"] for d in listed] == [draft["id"]]

    promoted = client.post(f"/v1/quotes/drafts/{draft['id']}/promote", json={}, headers=auth_headers)
    assert promoted.status_code == 201
    assert promoted.json()["status"] == "pending"
    assert client.get("/v1/quotes/drafts", headers=auth_headers).json() == []
    db.expire_all()
    assert db.get(Product, products["sugar"].id).stock == -3


def test_draft_requires_items(client, auth_headers, retail_customer):
    response = client.post("/v1/quotes/drafts", json={"customer_id": retail_customer.id, "items": []}, headers=auth_headers)

    assert response.status_code == 422


def test_delete_draft(client, auth_headers, retail_customer, products):
    draft = client.post(
        "/v1/quotes/drafts",
        json={"customer_id": retail_customer.id, "items": [{"product_id": products["sugar"].id, "quantity": 1}]},
        headers=auth_headers,
    ).json()

    assert client.delete(f"/v1/quotes/drafts/{draft['id']}", headers=auth_headers).status_code == 204
    assert client.delete(f"/v1/quotes/drafts/{draft['id']}", headers=auth_headers).status_code == 404


def test_sales_report(client, auth_headers, retail_customer, products):
    order = _place(
        client,
        auth_headers,
        retail_customer.id,
        [{"product_id": products["flour"].id, "quantity": 2}, {"product_id": products["sugar"].id, "quantity": 3}],
    )
    client.post(f"/v1/orders/{order['id']}/deliver", json={"transfer_amount": "1030"}, headers=auth_headers)

    response = client.get("/v1/sales", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    sale = data["sales"][0]
    assert sale["customer_name"] == "Almacen Don Jose"
    assert Decimal(sale["transfer_received"]) == 1000
    assert Decimal(sale["outstanding"]) == 30
    assert Decimal(data["summary"]["total_sales"]) == 1030
    assert Decimal(data["summary"]["total_collected"]) == 1030
    assert Decimal(data["summary"]["total_debt"]) == 0


def test_sales_report_needs_both_dates(client, auth_headers):
    response = client.get("/v1/sales", params={"date_from": "2024-01-01"}, headers=auth_headers)

    assert response.status_code == 422


def test_sales_report_date_range(client, auth_headers, retail_customer, products):
    order = _place(client, auth_headers, retail_customer.id, [{"product_id": products["flour"].id, "quantity": 1}])
    client.post(f"/v1/orders/{order['id']}/deliver", json={"cash_amount": 500}, headers=auth_headers)

    response = client.get(
        "/v1/sales",
        params={"date_from": "2000-01-01", "date_to": "2000-01-31"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["sales"] == []


def test_place_order_refused_when_credit_exceeds_subtotal(client, auth_headers, retail_customer, products, db: Session):
    """A negative total could never be delivered, so nothing is written"""
    retail_customer.debt = Decimal("-5000")
    db.commit()

    response = client.post(
        "/v1/orders",
        json={"customer_id": retail_customer.id, "items": [{"product_id": products["sugar"].id, "quantity": 1}]},
        headers=auth_headers,
    )

    assert response.status_code == 422
    assert "credit" in response.json()["detail"]
    db.expire_all()
    assert db.query(Order).count() == 0
    assert db.get(Product, products["sugar"].id).stock == 1
    assert db.get(Customer, retail_customer.id).debt == -5000


def test_customer_with_small_credit_orders_and_settles(client, auth_headers, retail_customer, products, db: Session):
    retail_customer.debt = Decimal("-30")
    db.commit()
    order = _place(client, auth_headers, retail_customer.id, [{"product_id": products["flour"].id, "quantity": 1}])
    assert Decimal(order["total"]) == 470

    response = client.post(f"/v1/orders/{order['id']}/deliver", json={"cash_amount": "470"}, headers=auth_headers)

    assert response.status_code == 200
    assert Decimal(response.json()["new_debt"]) == 0
    db.expire_all()
    assert db.get(Customer, retail_customer.id).debt == 0


def test_promote_draft_keeps_order_when_draft_removal_fails(client, auth_headers, retail_customer, products, db: Session):
    draft = client.post(
        "/v1/quotes/drafts",
        json={"customer_id": retail_customer.id, "items": [{"product_id": products["sugar"].id, "quantity": 2}]},
        headers=auth_headers,
    ).json()

    with patch(
        "shop_gateway.infrastructure.drafts.DraftStore.delete_draft",
        side_effect=RemoteOperationError("Draft store not writable"),
    ):
        response = client.post(f"/v1/quotes/drafts/{draft['id']}/promote", json={}, headers=auth_headers)

    assert response.status_code == 201
    assert response.json()["status"] == "pending"
    assert db.query(Order).count() == 1
    assert [d["id"] for d in client.get("/v1/quotes/drafts", headers=auth_headers).json()] == [draft["id"]]


def test_sales_report_uses_configured_rounding_unit(client, auth_headers, retail_customer, products, monkeypatch):
    from shop_gateway.config import settings

    order = _place(
        client,
        auth_headers,
        retail_customer.id,
        [{"product_id": products["flour"].id, "quantity": 2}, {"product_id": products["sugar"].id, "quantity": 3}],
    )
    client.post(f"/v1/orders/{order['id']}/deliver", json={"transfer_amount": "1500"}, headers=auth_headers)

    default_sale = client.get("/v1/sales", headers=auth_headers).json()["sales"][0]
    monkeypatch.setattr(settings, "report_rounding_unit", Decimal("10"))
    tens_sale = client.get("/v1/sales", headers=auth_headers).json()["sales"][0]

    assert Decimal(default_sale["transfer_received"]) == 1500
    assert Decimal(tens_sale["transfer_received"]) == 1460  # 1456.31 to the nearest 10
    assert Decimal(tens_sale["outstanding"]) == -430
