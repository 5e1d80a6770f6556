import csv
from io import BytesIO, StringIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from tests.conftest import PASSWORD
from workcenter.main import app


@pytest.fixture
def customer(make_customer):
    return make_customer()


@pytest.fixture
def product(make_product):
    return make_product("Oak Stick", "5.00")


def _create_order(client, customer, product, qty=3, **line):
    resp = client.post("/api/orders", json={
        "customer_id": customer.id,
        "line_items": [dict(product_id=product.id, qty=qty, **line)],
    })
    assert resp.status_code == 200, resp.text
    return resp.json()


# ---------- auth ----------
def test_health_is_public():
    assert TestClient(app).get("/api/health").json() == {"ok": True}


def test_api_requires_session():
    resp = TestClient(app).get("/api/orders")
    assert resp.status_code == 401
    assert resp.json() == {"detail": "Not authenticated"}


def test_login_me_logout(admin):
    client = TestClient(app)
    resp = client.post("/api/auth/login", json={"username": " Jordan.Admin ", "password": PASSWORD})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "ADMIN"
    assert "password_hash" not in resp.json()["user"]

    me = client.get("/api/auth/me").json()
    assert me["username"] == "jordan.admin"
    assert me["last_login_at"] is not None

    assert client.post("/api/auth/logout").json() == {"ok": True}
    assert client.get("/api/auth/me").status_code == 401


def test_disabled_user_cannot_login(make_user):
    make_user("gone.user", status="DISABLED")
    resp = TestClient(app).post("/api/auth/login", json={"username": "gone.user", "password": PASSWORD})
    assert resp.status_code == 401


def test_login_rate_limit(admin):
    client = TestClient(app)
    for _ in range(5):
        resp = client.post("/api/auth/login", json={"username": "jordan.admin", "password": "wrong"})
        assert resp.status_code == 401

    resp = client.post("/api/auth/login", json={"username": "jordan.admin", "password": PASSWORD})
    assert resp.status_code == 429


# ---------- RBAC ----------
def test_standard_user_cannot_use_admin_routes(standard_client, customer):
    assert standard_client.get("/api/users").status_code == 403
    assert standard_client.get("/api/audit").status_code == 403
    assert standard_client.get("/api/orders/export/completed?initials=JS").status_code == 403
    resp = standard_client.patch("/api/orders/1/delete", json={"initials": "JS"})
    assert resp.status_code == 403
    assert resp.json() == {"detail": "Admin only"}
    assert standard_client.post(f"/api/customers/{customer.id}/archive", json={"initials": "JS"}).status_code == 403


def test_read_only_user_can_only_read(readonly_client, customer, product):
    assert readonly_client.get("/api/orders").status_code == 200
    assert readonly_client.get(f"/api/customers/{customer.id}").status_code == 200

    resp = readonly_client.post("/api/orders", json={"customer_id": customer.id, "line_items": []})
    assert resp.status_code == 403
    assert resp.json() == {"detail": "Read-only account"}


# ---------- orders ----------
def test_order_flow(admin_client, customer, product):
    order = _create_order(admin_client, customer, product, qty=3)
    assert order["order_number"] == "ORD000001"
    assert order["status"] == "WIP"
    assert order["total"] == 15.0
    assert order["customer"]["name"] == "Casey Carter"
    assert [h["event_type"] for h in order["history"]] == ["ORDER_CREATED", "LINE_ITEMS_ADDED"]

    resp = admin_client.post(f"/api/orders/{order['id']}/complete", json={"initials": "js"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "FINISHED"
    assert resp.json()["history"][-1]["initials"] == "JS"

    resp = admin_client.post(f"/api/orders/{order['id']}/complete", json={"initials": "js"})
    assert resp.status_code == 409

    resp = admin_client.patch(f"/api/orders/{order['id']}/delete", json={"initials": "JS"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "DELETED"

    assert admin_client.get("/api/orders?status=ALL").json() == []
    assert admin_client.get(f"/api/orders/{order['id']}").json()["status"] == "DELETED"


def test_override_price_via_api(standard_client, customer, product):
    order = _create_order(standard_client, customer, product, qty=2, override_unit_price="7.50")
    [line] = order["line_items"]
    assert line["catalog_unit_price_snapshot"] == 5.0
    assert line["unit_price_final"] == 7.5
    assert line["is_price_overridden"] is True
    assert order["total"] == 15.0


def test_create_order_errors(standard_client, customer, product):
    resp = standard_client.post("/api/orders", json={
        "customer_id": customer.id,
        "line_items": [{"product_id": product.id, "qty": 0}],
    })
    assert resp.status_code == 400

    resp = standard_client.post("/api/orders", json={
        "customer_id": customer.id,
        "line_items": [{"product_id": 999, "qty": 1}],
    })
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Not found"}

    resp = standard_client.post("/api/orders", json={"customer_id": "abc"})
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Invalid input"}

    assert standard_client.get("/api/orders?status=ALL").json() == []


@pytest.mark.parametrize("line", [
    {"qty": 10**20},
    {"qty": 2**31},
    {"qty": 1, "override_unit_price": "1e20"},
    {"qty": 1, "override_unit_price": "99999999999"},
])
def test_out_of_range_line_is_rejected(standard_client, customer, product, line):
    resp = standard_client.post("/api/orders", json={
        "customer_id": customer.id,
        "line_items": [dict(product_id=product.id, **line)],
    })
    assert resp.status_code == 400
    assert standard_client.get("/api/orders?status=ALL").json() == []

    # счётчик не сдвинулся
    assert _create_order(standard_client, customer, product)["order_number"] == "ORD000001"


def test_complete_requires_initials(standard_client, customer, product):
    order = _create_order(standard_client, customer, product)
    resp = standard_client.post(f"/api/orders/{order['id']}/complete", json={"initials": "J"})
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Initials must be 2–3 letters"}


def test_unknown_order_is_generic_404(standard_client):
    resp = standard_client.get("/api/orders/424242")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Not found"}


def test_order_pdf(standard_client, customer, product):
    order = _create_order(standard_client, customer, product)
    standard_client.post(f"/api/orders/{order['id']}/attachments", json={
        "label": "Proof", "url": "https://files.example.com/proof.pdf", "initials": "JS",
    })

    resp = standard_client.get(f"/api/orders/{order['id']}/pdf")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert "ORD000001.pdf" in resp.headers["content-disposition"]
    assert resp.content.startswith(b"%PDF")


# ---------- attachments ----------
def test_attachment_api(standard_client, customer, product):
    order = _create_order(standard_client, customer, product)
    base = f"/api/orders/{order['id']}/attachments"

    created = standard_client.post(base, json={
        "label": "Proof", "url": "https://files.example.com/v1.pdf", "initials": "JS",
    })
    assert created.status_code == 200
    att = created.json()
    assert att["current_version"]["version_number"] == 1

    dup = standard_client.post(base, json={
        "label": "Proof", "url": "https://files.example.com/other.pdf", "initials": "JS",
    })
    assert dup.status_code == 409

    v2 = standard_client.post(f"{base}/{att['id']}/versions", json={
        "url": "https://files.example.com/v2.pdf", "initials": "AB", "note": "client edits",
    }).json()
    assert v2["current_version"]["version_number"] == 2
    assert [v["version_number"] for v in v2["versions"]] == [2, 1]
    assert [v["is_current"] for v in v2["versions"]] == [True, False]

    assert standard_client.post(f"{base}/{att['id']}/archive", json={"initials": "JS"}).status_code == 200
    assert standard_client.get(base).json() == []
    assert len(standard_client.get(f"{base}?include_archived=true").json()) == 1

    detail = standard_client.get(f"/api/orders/{order['id']}").json()
    assert detail["attachments"] == []
    assert [h["event_type"] for h in detail["history"]][-3:] == [
        "ATTACHMENT_CREATED", "ATTACHMENT_VERSION_ADDED", "ATTACHMENT_ARCHIVED",
    ]

    late = standard_client.post(f"{base}/{att['id']}/versions", json={
        "url": "https://files.example.com/v3.pdf", "initials": "AB",
    })
    assert late.status_code == 404


# ---------- export ----------
def test_export_completed(admin_client, customer, product):
    done = _create_order(admin_client, customer, product, qty=3)
    _create_order(admin_client, customer, product, qty=1)
    admin_client.post(f"/api/orders/{done['id']}/complete", json={"initials": "JS"})

    resp = admin_client.get("/api/orders/export/completed?initials=js")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    rows = list(csv.reader(StringIO(resp.text)))
    assert rows[0] == ["Order #", "Customer", "Created Date", "Finished Date", "Products", "Total"]
    assert len(rows) == 2
    assert rows[1][0] == "ORD000001"
    assert rows[1][4] == "3x Oak Stick"
    assert rows[1][5] == "15.00"

    resp = admin_client.get("/api/orders/export/completed?initials=JS&format=xlsx")
    assert resp.status_code == 200
    ws = load_workbook(BytesIO(resp.content)).active
    values = list(ws.iter_rows(values_only=True))
    assert values[1][0] == "ORD000001"
    assert values[1][5] == 15.0

    audit = admin_client.get("/api/audit").json()
    assert [a["action"] for a in audit][:2] == ["ORDERS_EXPORTED_COMPLETED"] * 2
    assert audit[0]["actor"]["username"] == "jordan.admin"


def test_export_requires_initials_and_known_format(admin_client):
    assert admin_client.get("/api/orders/export/completed").status_code == 400
    assert admin_client.get("/api/orders/export/completed?initials=JS&format=pdf").status_code == 400


# ---------- search ----------
def test_global_search(standard_client, make_customer, product):
    ord_customer = make_customer("Ordway Supply", email="ordway@example.com")
    order = _create_order(standard_client, ord_customer, product)

    results = standard_client.get("/api/search?q=ORD").json()
    assert results[0]["type"] == "order"
    assert results[0]["order_number"] == order["order_number"]
    assert any(r["type"] == "customer" for r in results)

    results = standard_client.get("/api/search?q=supply").json()
    assert results[0]["type"] == "customer"

    assert standard_client.get("/api/search?q=").json() == []


def test_search_limits_each_kind(standard_client, make_customer):
    for i in range(15):
        make_customer(f"Patel {i:02d}", email=f"patel{i}@example.com")
    assert len(standard_client.get("/api/search?q=patel").json()) == 10


# ---------- customers / products ----------
def test_customer_validation(standard_client):
    resp = standard_client.post("/api/customers", json={"name": "Al", "shipping_address": "1 Road"})
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Phone or Email is required"}

    resp = standard_client.post("/api/customers", json={
        "name": "Al Green", "email": "AL@Example.COM", "shipping_address": "1 Road",
    })
    assert resp.status_code == 200
    assert resp.json()["email"] == "al@example.com"


def test_archive_customer(admin_client, customer):
    resp = admin_client.post(f"/api/customers/{customer.id}/archive", json={"initials": "JS"})
    assert resp.json()["is_archived"] is True
    assert admin_client.get("/api/customers").json() == []
    assert admin_client.get("/api/audit").json()[0]["action"] == "CUSTOMER_ARCHIVED"


def test_products(admin_client, standard_client):
    resp = admin_client.post("/api/products", json={"name": "Birch Stick", "price": "3.5"})
    assert resp.status_code == 200
    product = resp.json()
    assert product["price"] == 3.5

    assert standard_client.post("/api/products", json={"name": "Nope", "price": 1}).status_code == 403
    assert admin_client.post("/api/products", json={"name": "Bad", "price": -1}).status_code == 400
    assert admin_client.post("/api/products", json={"name": "Huge", "price": "1e12"}).status_code == 400

    toggled = admin_client.patch(f"/api/products/{product['id']}/status", json={}).json()
    assert toggled["status"] == "DISABLED"
    assert standard_client.get("/api/products?active=true").json() == []
    assert len(standard_client.get("/api/products").json()) == 1


# ---------- users ----------
def test_user_management(admin_client, admin):
    resp = admin_client.post("/api/users", json={"username": "New.Person", "password": "1234"})
    assert resp.status_code == 200
    user = resp.json()
    assert user["username"] == "new.person"
    assert user["role"] == "STANDARD"

    dup = admin_client.post("/api/users", json={"username": "new.person", "password": "1234"})
    assert dup.status_code == 409

    resp = admin_client.patch(f"/api/users/{user['id']}/role", json={"role": "READ_ONLY", "initials": "JS"})
    assert resp.json()["role"] == "READ_ONLY"

    own = admin_client.patch(f"/api/users/{admin.id}/role", json={"role": "STANDARD", "initials": "JS"})
    assert own.status_code == 400
    own = admin_client.post(f"/api/users/{admin.id}/delete", json={"initials": "JS"})
    assert own.status_code == 400

    resp = admin_client.post(f"/api/users/{user['id']}/delete", json={"initials": "JS"})
    assert resp.json()["user"]["status"] == "DISABLED"

    actions = [a["action"] for a in admin_client.get("/api/audit?take=3").json()]
    assert actions == ["USER_DELETED", "USER_ROLE_CHANGED", "USER_CREATED"]


# ---------- branding ----------
def test_branding(admin_client):
    resp = admin_client.post("/api/settings/branding/company-name", json={
        "company_name": "Sticks & Co", "initials": "JS",
    })
    assert resp.status_code == 200
    assert admin_client.get("/api/settings/branding").json()["company_name"] == "Sticks & Co"

    png = b"\x89PNG\r\n\x1a\nfake-image"
    resp = admin_client.post(
        "/api/settings/branding/logo",
        files={"logo": ("brand.png", png, "image/png")},
        data={"initials": "JS"},
    )
    assert resp.status_code == 200
    assert resp.json()["logo_path"] == "/uploads/logo.png"

    public = TestClient(app).get("/api/settings/branding/logo")
    assert public.status_code == 200
    assert public.content == png

    bad = admin_client.post(
        "/api/settings/branding/logo",
        files={"logo": ("brand.gif", b"GIF89a", "image/gif")},
        data={"initials": "JS"},
    )
    assert bad.status_code == 400


def test_settings_readable_by_any_user(standard_client, readonly_client):
    assert standard_client.get("/api/settings").status_code == 200
    assert readonly_client.get("/api/settings").status_code == 200
    assert standard_client.get("/api/settings/branding").status_code == 403
    resp = standard_client.post("/api/settings/branding/company-name", json={
        "company_name": "Nope", "initials": "JS",
    })
    assert resp.status_code == 403
