"""End-to-end REST scenarios against the FastAPI app with in-memory storage."""

from app.models.enums import ListingStatus


def _error_code(resp):
    body = resp.json()
    assert body["success"] is False
    return body["error"]["code"]


def test_healthz_and_unknown_route(client):
    assert client.get("/healthz").json()["status"] == "ok"

    resp = client.get("/api/does-not-exist")
    assert resp.status_code == 404
    assert _error_code(resp) == "NOT_FOUND"
    assert "X-Request-ID" in resp.headers


def test_register_login_logout(register, make_client):
    c = register("a@x.com", "secret1", "A", "B")

    me = c.get("/api/user").json()["data"]
    assert me["email"] == "a@x.com"
    assert me["firstName"] == "A"
    assert me["role"] == "USER"
    assert "password" not in me

    resp = c.post("/api/logout")
    assert resp.json()["data"]["message"] == "Logged out successfully"
    resp = c.get("/api/user")
    assert resp.status_code == 401
    assert _error_code(resp) == "NOT_AUTHENTICATED"

    fresh = make_client()
    resp = fresh.post("/api/login", json={"email": "a@x.com", "password": "wrong"})
    assert resp.status_code == 401
    assert _error_code(resp) == "INVALID_CREDENTIALS"

    resp = fresh.post("/api/login", json={"email": "A@X.com", "password": "secret1"})
    assert resp.status_code == 200
    assert resp.json()["data"]["email"] == "a@x.com"
    assert fresh.get("/api/user").status_code == 200


def test_session_cookie_attributes(client):
    resp = client.post("/api/register", json={"email": "c@x.com", "password": "secret1"})

    cookie = resp.headers["set-cookie"]
    assert cookie.startswith("marketplace.sid=")
    assert "HttpOnly" in cookie
    assert "samesite=lax" in cookie.lower()
    assert "Max-Age=2592000" in cookie


def test_register_validation_and_duplicates(client, register):
    resp = client.post("/api/register", json={"email": "short@x.com", "password": "123"})
    assert resp.status_code == 400
    assert _error_code(resp) == "VALIDATION_ERROR"
    assert resp.json()["error"]["details"]

    register("dup@x.com")
    resp = client.post("/api/register", json={"email": "dup@x.com", "password": "secret1"})
    assert resp.status_code == 400
    assert _error_code(resp) == "EMAIL_EXISTS"


def test_update_profile(register):
    c = register("p@x.com")
    resp = c.patch("/api/user", json={"phone": "+86 123", "avatar": "https://img/a.png"})
    assert resp.status_code == 200
    assert resp.json()["data"]["phone"] == "+86 123"
    assert c.get("/api/user").json()["data"]["avatar"] == "https://img/a.png"


def test_categories(client):
    categories = client.get("/api/categories").json()["data"]
    assert len(categories) == 5
    assert categories[0]["nameEn"] == "Accounting Services"
    assert categories[0]["nameZh"] == "会计服务"

    assert client.get("/api/categories/tech-services").json()["data"]["nameEn"] == "Tech Services"
    assert client.get("/api/categories/unknown").status_code == 404


def test_vendor_listing_goes_live_after_approval(register, admin_client, client):
    vendor = register("seller@x.com")
    resp = vendor.post("/api/vendors", json={"companyName": "Ledger Co", "website": "https://ledger.co"})
    assert resp.status_code == 201
    profile = resp.json()["data"]
    assert profile["verificationStatus"] == "PENDING"

    body = {
        "titleEn": "Annual audit", "titleZh": "年度审计", "descriptionEn": "Full audit",
        "descriptionZh": "全面审计", "price": 500, "categoryId": 1,
    }
    resp = vendor.post("/api/vendors/listings", json=body)
    assert resp.status_code == 403
    assert _error_code(resp) == "NOT_APPROVED"

    pending = admin_client.get("/api/admin/vendors/pending").json()["data"]
    assert [p["id"] for p in pending] == [profile["id"]]
    resp = admin_client.patch(f"/api/admin/vendors/{profile['id']}", json={"verificationStatus": "APPROVED"})
    assert resp.json()["data"]["verificationStatus"] == "APPROVED"
    assert vendor.get("/api/user").json()["data"]["role"] == "VENDOR"

    resp = vendor.post("/api/vendors/listings", json=body)
    assert resp.status_code == 201
    listing = resp.json()["data"]
    assert listing["status"] == "PENDING"

    assert client.get("/api/listings").json()["data"] == []
    assert client.get(f"/api/listings/{listing['id']}").status_code == 404
    assert vendor.get(f"/api/listings/{listing['id']}").status_code == 200
    assert [l["id"] for l in vendor.get("/api/vendors/listings").json()["data"]] == [listing["id"]]

    resp = admin_client.patch(f"/api/admin/listings/{listing['id']}", json={"status": "APPROVED"})
    assert resp.json()["data"]["status"] == "ACTIVE"

    public = client.get("/api/listings").json()["data"]
    assert [l["id"] for l in public] == [listing["id"]]
    assert client.get(f"/api/listings/{listing['id']}").json()["data"]["titleZh"] == "年度审计"
    assert [l["id"] for l in client.get("/api/listings/category/1").json()["data"]] == [listing["id"]]
    assert [l["id"] for l in client.get("/api/listings/search", params={"q": "AUDIT"}).json()["data"]] == [listing["id"]]
    assert client.get("/api/listings/search", params={"q": "  "}).json()["data"] == []


def test_vendor_rejection_requires_reason(register, admin_client):
    vendor = register("r@x.com")
    vendor_id = vendor.post("/api/vendors", json={"companyName": "Shady"}).json()["data"]["id"]

    resp = admin_client.patch(f"/api/admin/vendors/{vendor_id}", json={"verificationStatus": "REJECTED"})
    assert resp.status_code == 400
    assert _error_code(resp) == "VALIDATION_ERROR"

    resp = admin_client.patch(f"/api/admin/vendors/{vendor_id}", json={"verificationStatus": "MAYBE"})
    assert _error_code(resp) == "INVALID_STATUS"

    resp = admin_client.patch(
        f"/api/admin/vendors/{vendor_id}",
        json={"verificationStatus": "REJECTED", "rejectionReason": "No licence"},
    )
    assert resp.json()["data"]["rejectionReason"] == "No licence"

    resp = vendor.post("/api/vendors", json={"companyName": "Shady v2"})
    assert resp.status_code == 201
    assert vendor.get("/api/vendors/profile").json()["data"]["companyName"] == "Shady v2"


def test_duplicate_vendor_application(approved_vendor):
    resp = approved_vendor.post("/api/vendors", json={"companyName": "Again"})
    assert resp.status_code == 400
    assert _error_code(resp) == "VENDOR_EXISTS"


def test_admin_routes_are_guarded(client, register):
    assert _error_code(client.get("/api/admin/users")) == "NOT_AUTHENTICATED"
    user = register("u@x.com")
    resp = user.get("/api/admin/users")
    assert resp.status_code == 403
    assert _error_code(resp) == "FORBIDDEN"


def test_admin_suspends_user(register, admin_client, storage):
    user = register("bad@x.com")
    user_id = user.get("/api/user").json()["data"]["id"]

    resp = admin_client.patch(f"/api/admin/users/{user_id}", json={"status": "SUSPENDED"})
    assert resp.json()["data"]["status"] == "SUSPENDED"
    # The existing session no longer authenticates.
    assert user.get("/api/user").status_code == 401
    emails = [u["email"] for u in admin_client.get("/api/admin/users").json()["data"]]
    assert "bad@x.com" in emails


def test_featured_and_top_rated(publish_listing, register, admin_client, client):
    first = publish_listing("First")
    second = publish_listing("Second")

    featured = client.get("/api/listings/featured").json()["data"]
    assert [l["id"] for l in featured] == [second["id"], first["id"]]

    buyer = register("fan@x.com")
    comment = buyer.post(f"/api/listings/{first['id']}/comments", json={"content": "Great", "rating": 5}).json()["data"]
    admin_client.patch(f"/api/admin/comments/{comment['id']}", json={"status": "APPROVED"})

    top = client.get("/api/listings/top-rated", params={"limit": 1}).json()["data"]
    assert [l["id"] for l in top] == [first["id"]]


def test_comments_are_moderated(publish_listing, register, admin_client, client):
    listing = publish_listing()
    buyer = register("critic@x.com")

    assert _error_code(client.post(f"/api/listings/{listing['id']}/comments", json={"content": "x", "rating": 3})) == "NOT_AUTHENTICATED"
    resp = buyer.post(f"/api/listings/{listing['id']}/comments", json={"content": "x", "rating": 9})
    assert _error_code(resp) == "VALIDATION_ERROR"

    resp = buyer.post(f"/api/listings/{listing['id']}/comments", json={"content": "Helpful", "rating": 4})
    assert resp.status_code == 201
    comment = resp.json()["data"]
    assert comment["status"] == "PENDING"
    assert client.get(f"/api/listings/{listing['id']}/comments").json()["data"] == []

    pending = admin_client.get("/api/admin/comments/pending").json()["data"]
    assert [c["id"] for c in pending] == [comment["id"]]
    admin_client.patch(f"/api/admin/comments/{comment['id']}", json={"status": "APPROVED"})

    comments = client.get(f"/api/listings/{listing['id']}/comments").json()["data"]
    assert [c["content"] for c in comments] == ["Helpful"]
    rating = client.get(f"/api/listings/{listing['id']}/rating").json()["data"]
    assert rating == {"listingId": listing["id"], "average": 4.0, "count": 1}


def test_favorites_toggle(publish_listing, register):
    listing = publish_listing()
    buyer = register("saver@x.com")

    assert buyer.get("/api/favorites").json()["data"] == []
    assert buyer.post(f"/api/favorites/{listing['id']}").status_code == 201
    assert buyer.post(f"/api/favorites/{listing['id']}").status_code == 201
    favorites = buyer.get("/api/favorites").json()["data"]
    assert len(favorites) == 1
    assert favorites[0]["listing"]["id"] == listing["id"]

    assert buyer.delete(f"/api/favorites/{listing['id']}").status_code == 200
    assert buyer.get("/api/favorites").json()["data"] == []
    assert _error_code(buyer.delete(f"/api/favorites/{listing['id']}")) == "NOT_FOUND"
    assert _error_code(buyer.post("/api/favorites/999")) == "NOT_FOUND"


def test_cannot_favorite_unpublished_listing(approved_vendor, register):
    resp = approved_vendor.post("/api/vendors/listings", json={
        "titleEn": "Secret", "titleZh": "秘密", "descriptionEn": "d", "descriptionZh": "描述",
        "price": 10, "categoryId": 1,
    })
    pending_id = resp.json()["data"]["id"]
    stranger = register("stranger@x.com")

    assert _error_code(stranger.get(f"/api/listings/{pending_id}")) == "NOT_FOUND"
    assert _error_code(stranger.post(f"/api/favorites/{pending_id}")) == "NOT_FOUND"
    assert stranger.get("/api/favorites").json()["data"] == []


def test_favorites_hide_listing_taken_down(publish_listing, register, storage):
    listing = publish_listing("Withdrawn")
    buyer = register("keeper@x.com")
    assert buyer.post(f"/api/favorites/{listing['id']}").status_code == 201

    storage.update_listing(listing["id"], {"status": ListingStatus.INACTIVE})

    favorites = buyer.get("/api/favorites").json()["data"]
    assert len(favorites) == 1
    assert favorites[0]["listingId"] == listing["id"]
    assert favorites[0]["listing"] is None


def test_checkout_and_payment(publish_listing, register, storage):
    ten = publish_listing("Ten", price=10)
    five = publish_listing("Five", price=5)
    buyer = register("shopper@x.com")

    resp = buyer.post("/api/orders", json={"items": [
        {"listingId": ten["id"], "quantity": 2, "unitPrice": 1},
        {"listingId": five["id"], "quantity": 1},
    ]})
    assert resp.status_code == 201
    order = resp.json()["data"]
    assert order["totalAmount"] == 25.0
    assert order["status"] == "CREATED"
    assert [i["unitPrice"] for i in order["items"]] == [10.0, 5.0]

    storage.update_listing(ten["id"], {"price": 12.0})
    orders = buyer.get("/api/orders").json()["data"]
    assert orders[0]["totalAmount"] == 25.0
    assert [i["unitPrice"] for i in orders[0]["items"]] == [10.0, 5.0]

    resp = buyer.post("/api/payments", json={"orderId": order["id"], "paymentMethod": "card"})
    assert resp.status_code == 200
    payment = resp.json()["data"]
    assert payment["status"] == "COMPLETED"
    assert payment["amount"] == 25.0
    assert buyer.get("/api/orders").json()["data"][0]["status"] == "PAID"

    resp = buyer.post("/api/payments", json={"orderId": order["id"], "paymentMethod": "card"})
    assert resp.status_code == 400
    assert _error_code(resp) == "PAYMENT_EXISTS"


def test_payment_errors(publish_listing, register):
    listing = publish_listing()
    buyer = register("b1@x.com")
    other = register("b2@x.com")
    order = buyer.post("/api/orders", json={"items": [{"listingId": listing["id"], "quantity": 1}]}).json()["data"]

    assert _error_code(other.post("/api/payments", json={"orderId": order["id"], "paymentMethod": "card"})) == "NOT_FOUND"

    resp = buyer.post("/api/payments", json={"orderId": order["id"], "paymentMethod": "decline"})
    assert resp.status_code == 400
    assert _error_code(resp) == "PAYMENT_FAILED"
    assert buyer.get("/api/orders").json()["data"][0]["status"] == "CREATED"

    assert _error_code(buyer.post("/api/orders", json={"items": []})) == "VALIDATION_ERROR"
    assert _error_code(buyer.post("/api/orders", json={"items": [{"listingId": 999}]})) == "NOT_FOUND"


def test_listing_price_must_be_whole_cents(approved_vendor):
    body = {
        "titleEn": "Payroll", "titleZh": "工资", "descriptionEn": "d", "descriptionZh": "描述",
        "categoryId": 1,
    }

    resp = approved_vendor.post("/api/vendors/listings", json={**body, "price": 10.005})
    assert resp.status_code == 400
    assert _error_code(resp) == "VALIDATION_ERROR"

    resp = approved_vendor.post("/api/vendors/listings", json={**body, "price": 19.99})
    assert resp.status_code == 201
    assert resp.json()["data"]["price"] == 19.99


def test_oversized_fields_are_validation_errors(publish_listing, register):
    listing = publish_listing()
    buyer = register("long@x.com")
    items = [{"listingId": listing["id"], "quantity": 1}]

    resp = buyer.post("/api/orders", json={"items": items, "currency": "EURO"})
    assert resp.status_code == 400
    assert _error_code(resp) == "VALIDATION_ERROR"
    assert buyer.get("/api/orders").json()["data"] == []

    order = buyer.post("/api/orders", json={"items": items, "currency": "eur"}).json()["data"]
    assert order["currency"] == "EUR"
    resp = buyer.post("/api/payments", json={"orderId": order["id"], "paymentMethod": "x" * 51})
    assert _error_code(resp) == "VALIDATION_ERROR"

    assert _error_code(buyer.post("/api/vendors", json={"companyName": "c" * 256})) == "VALIDATION_ERROR"
    assert _error_code(buyer.patch("/api/user", json={"phone": "1" * 51})) == "VALIDATION_ERROR"


def test_cancel_and_refund(publish_listing, register, admin_client):
    listing = publish_listing()
    buyer = register("r1@x.com")
    first = buyer.post("/api/orders", json={"items": [{"listingId": listing["id"]}]}).json()["data"]
    second = buyer.post("/api/orders", json={"items": [{"listingId": listing["id"]}]}).json()["data"]

    assert buyer.post(f"/api/orders/{first['id']}/cancel").json()["data"]["status"] == "CANCELLED"
    assert _error_code(buyer.post(f"/api/orders/{first['id']}/cancel")) == "INVALID_STATUS"

    buyer.post("/api/payments", json={"orderId": second["id"], "paymentMethod": "card"})
    resp = admin_client.post(f"/api/admin/orders/{second['id']}/refund")
    assert resp.json()["data"]["status"] == "REFUNDED"
    statuses = {o["id"]: o["status"] for o in buyer.get("/api/orders").json()["data"]}
    assert statuses == {first["id"]: "CANCELLED", second["id"]: "REFUNDED"}
