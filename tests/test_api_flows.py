from datetime import datetime, timedelta

import pytest

pytestmark = pytest.mark.api

ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "ADMIN"}


def create_battery(client, serial="SN-100", price=500):
    resp = client.post("/api/v1/inventory", json={"serial_number": serial, "price": price})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_customer(client, phone="+255700000001", name="Amina"):
    resp = client.post("/api/v1/customers", json={"name": name, "phone_number": phone})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_rental(client, battery_id, customer_id, price=100, is_paid=False):
    return client.post(
        "/api/v1/rentals",
        json={
            "battery_id": battery_id,
            "customer_id": customer_id,
            "rental_price": price,
            "is_paid": is_paid,
        },
    )


# ---------- identity ----------


def test_requests_without_identity_are_rejected(client):
    resp = client.get("/api/v1/inventory", headers={"X-User-Id": ""})
    assert resp.status_code == 401


def test_staff_cannot_delete(client):
    battery = create_battery(client)

    resp = client.delete(f"/api/v1/inventory/{battery['id']}")

    assert resp.status_code == 403
    assert client.get(f"/api/v1/inventory/{battery['id']}").status_code == 200


def test_admin_can_delete_unused_battery(client):
    battery = create_battery(client)

    resp = client.delete(f"/api/v1/inventory/{battery['id']}", headers=ADMIN)

    assert resp.status_code == 200
    assert resp.json() == {"message": "Battery deleted successfully"}
    assert client.get(f"/api/v1/inventory/{battery['id']}").status_code == 404


def test_current_user(client):
    resp = client.get("/api/v1/users/me")

    assert resp.status_code == 200
    assert resp.json()["id"] == "staff-1"
    assert resp.json()["role"] == "STAFF"


def test_user_management_is_admin_only(client):
    payload = {"email": "ops@example.com", "name": "Ops"}
    assert client.post("/api/v1/users", json=payload).status_code == 403

    created = client.post("/api/v1/users", json=payload, headers=ADMIN)
    assert created.status_code == 201
    user = created.json()
    assert user["role"] == "STAFF"

    dup = client.post("/api/v1/users", json=payload, headers=ADMIN)
    assert dup.status_code == 409

    updated = client.put(
        f"/api/v1/users/{user['id']}", json={"role": "ADMIN"}, headers=ADMIN
    )
    assert updated.status_code == 200
    assert updated.json()["role"] == "ADMIN"

    me = client.get("/api/v1/users/me", headers={"X-User-Id": user["id"]})
    assert me.json()["email"] == "ops@example.com"

    listed = client.get("/api/v1/users", headers=ADMIN)
    assert [u["id"] for u in listed.json()] == [user["id"]]

    assert client.delete(f"/api/v1/users/{user['id']}", headers=ADMIN).status_code == 200
    assert client.delete(f"/api/v1/users/{user['id']}", headers=ADMIN).status_code == 404


def test_user_routes_take_the_id_from_the_path(client):
    created = client.post(
        "/api/v1/users", json={"email": "desk@example.com", "name": "Desk"}, headers=ADMIN
    ).json()
    path = f"/api/v1/users/{created['id']}"

    assert client.put(path, json={"name": "Front desk"}).status_code == 403
    assert client.delete(path).status_code == 403

    renamed = client.put(path, json={"name": "Front desk"}, headers=ADMIN)
    assert renamed.status_code == 200
    assert renamed.json()["id"] == created["id"]
    assert renamed.json()["name"] == "Front desk"

    assert client.put(
        "/api/v1/users/missing", json={"name": "x"}, headers=ADMIN
    ).status_code == 404

    deleted = client.delete(path, headers=ADMIN)
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "User deleted successfully"}
    assert client.get("/api/v1/users", headers=ADMIN).json() == []


# ---------- error mapping ----------


def test_unknown_ids_return_404(client):
    assert client.get("/api/v1/inventory/missing").status_code == 404
    assert client.get("/api/v1/customers/missing").status_code == 404
    assert client.get("/api/v1/rentals/missing").status_code == 404
    assert client.get("/api/v1/payments/missing").status_code == 404

    resp = client.put("/api/v1/rentals/missing/return", json={})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Rental not found"


def test_invalid_input_returns_400_with_field(client):
    resp = client.post("/api/v1/inventory", json={"serial_number": "SN-1", "price": 0})

    assert resp.status_code == 400
    assert resp.json()["detail"]["field"] == "price"


def test_malformed_body_returns_422(client):
    resp = client.post("/api/v1/inventory", json={"price": 100})
    assert resp.status_code == 422


def test_duplicate_serial_returns_409(client):
    create_battery(client, serial="SN-DUP")

    resp = client.post("/api/v1/inventory", json={"serial_number": "SN-DUP", "price": 10})

    assert resp.status_code == 409


def test_invalid_month_returns_400(client):
    resp = client.get("/api/v1/payments/summary/monthly", params={"year": 2024, "month": 13})
    assert resp.status_code == 400


@pytest.mark.parametrize(
    "params, field",
    [
        ({"year": 2024, "month": 0}, "month"),
        ({"year": 99999, "month": 1}, "year"),
        ({"year": 0}, "year"),
    ],
)
def test_out_of_range_month_or_year_returns_400(client, params, field):
    resp = client.get("/api/v1/payments/summary/monthly", params=params)

    assert resp.status_code == 400
    assert resp.json()["detail"]["field"] == field


# ---------- rental lifecycle ----------


def test_rent_pay_return_flow(client):
    battery = create_battery(client)
    customer = create_customer(client)

    created = create_rental(client, battery["id"], customer["id"], price=100)
    assert created.status_code == 201, created.text
    rental = created.json()
    assert rental["battery"]["status"] == "RENTED"

    again = create_rental(client, battery["id"], customer["id"])
    assert again.status_code == 409

    active = client.get("/api/v1/rentals/filter/active").json()
    assert [r["id"] for r in active] == [rental["id"]]

    paid = client.post(
        "/api/v1/payments",
        json={
            "rental_id": rental["id"],
            "customer_id": customer["id"],
            "amount": 100,
            "payment_method": "MOBILE_MONEY",
        },
    )
    assert paid.status_code == 201, paid.text
    assert client.get(f"/api/v1/rentals/{rental['id']}").json()["is_paid"] is True

    rent_date = datetime.fromisoformat(rental["rent_date"].replace("Z", "+00:00"))
    returned = client.put(
        f"/api/v1/rentals/{rental['id']}/return",
        json={"return_date": (rent_date + timedelta(days=3)).isoformat()},
    )
    assert returned.status_code == 200, returned.text
    assert returned.json()["battery"]["status"] == "AVAILABLE"

    twice = client.put(f"/api/v1/rentals/{rental['id']}/return", json={})
    assert twice.status_code == 409

    profile = client.get(f"/api/v1/customers/{customer['id']}").json()
    assert profile["credit_rating"] == 5
    assert profile["due_balance"] == 0
    assert len(profile["rentals"]) == 1
    assert len(profile["payments"]) == 1

    history = client.get(f"/api/v1/inventory/{battery['id']}").json()
    assert [r["id"] for r in history["rentals"]] == [rental["id"]]

    # battery with history cannot be removed
    resp = client.delete(f"/api/v1/inventory/{battery['id']}", headers=ADMIN)
    assert resp.status_code == 409


def test_fractional_amounts_over_http(client):
    battery = create_battery(client)
    customer = create_customer(client)

    created = create_rental(client, battery["id"], customer["id"], price=12.5)
    assert created.status_code == 201, created.text
    rental = created.json()
    assert rental["rental_price"] == 12.5

    for amount in (0.5, 12):
        resp = client.post(
            "/api/v1/payments",
            json={
                "rental_id": rental["id"],
                "customer_id": customer["id"],
                "amount": amount,
                "payment_method": "CASH",
            },
        )
        assert resp.status_code == 201, resp.text

    body = client.get(f"/api/v1/rentals/{rental['id']}").json()
    assert body["is_paid"] is True
    assert body["remaining_balance"] == 0


def test_payment_for_wrong_customer_returns_409(client):
    battery = create_battery(client)
    owner = create_customer(client, phone="+1")
    stranger = create_customer(client, phone="+2", name="Other")
    rental = create_rental(client, battery["id"], owner["id"]).json()

    resp = client.post(
        "/api/v1/payments",
        json={
            "rental_id": rental["id"],
            "customer_id": stranger["id"],
            "amount": 10,
            "payment_method": "CASH",
        },
    )

    assert resp.status_code == 409
    assert client.get("/api/v1/payments").json() == []


def test_manual_payment_status(client):
    battery = create_battery(client)
    customer = create_customer(client)
    rental = create_rental(client, battery["id"], customer["id"]).json()

    resp = client.put(f"/api/v1/rentals/{rental['id']}/payment", json={"is_paid": True})

    assert resp.status_code == 200
    assert resp.json()["is_paid"] is True


def test_rentals_by_date_rejects_inverted_range(client):
    resp = client.get(
        "/api/v1/rentals/filter/by-date",
        params={
            "start_date": "2024-02-01T00:00:00+00:00",
            "end_date": "2024-01-01T00:00:00+00:00",
        },
    )
    assert resp.status_code == 400


# ---------- reporting ----------


def test_dashboard_summary(client):
    battery = create_battery(client)
    create_battery(client, serial="SN-200")
    customer = create_customer(client)
    rental = create_rental(client, battery["id"], customer["id"], price=80).json()
    client.post(
        "/api/v1/payments",
        json={
            "rental_id": rental["id"],
            "customer_id": customer["id"],
            "amount": 30,
            "payment_method": "CASH",
        },
    )

    summary = client.get("/api/v1/dashboard/summary")
    assert summary.status_code == 200
    body = summary.json()

    assert body["inventory"] == {"total": 2, "available": 1, "rented": 1, "maintenance": 0}
    assert body["financial"]["total_due"] == 50
    assert body["customers"]["top_renters"][0]["id"] == customer["id"]

    stats = client.get("/api/v1/inventory/summary/stats").json()
    assert stats == body["inventory"]

    dues = client.get("/api/v1/customers/filter/with-dues").json()
    assert [(c["id"], c["due_amount"]) for c in dues] == [(customer["id"], 50)]

    top = client.get("/api/v1/customers/top/by-rentals").json()
    assert top[0]["rental_count"] == 1

    financial = client.get("/api/v1/payments/summary/financial").json()
    assert financial["total_due"] == 50
