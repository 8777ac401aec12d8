from bson import ObjectId


def _submit(client, headers, product, market, **extra):
    payload = {"product": product["id"], "market": market["id"], "price": 15.5, "unit": "kg", **extra}
    resp = client.post("/api/price-submissions", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# ============================================================================
# Lifecycle
# ============================================================================

def test_collector_submits_admin_verifies_and_history_shows_it(client, collector, other_collector, admin, product, market):
    collector_user, collector_headers = collector
    _, other_headers = other_collector
    admin_user, admin_headers = admin

    submission = _submit(client, collector_headers, product, market, status="approved", is_verified=True)

    assert submission["status"] == "pending"
    assert submission["is_verified"] is False
    assert submission["verified_by"] is None
    assert submission["price_display"] == "$15.50 per kg"
    assert submission["submitted_by"]["id"] == collector_user["id"]
    assert submission["product"]["name"] == "Tomatoes"
    assert submission["market"]["address"]["city"] == "Serrekunda"

    history_url = f"/api/price-submissions/product/{product['id']}/market/{market['id']}/history"
    assert client.get(history_url).json()["count"] == 0

    resp = client.patch(f"/api/price-submissions/{submission['id']}/verify", headers=admin_headers)

    assert resp.status_code == 200
    verified = resp.json()["data"]
    assert verified["status"] == "approved"
    assert verified["is_verified"] is True
    assert verified["verified_by"]["id"] == admin_user["id"]
    assert verified["verified_at"]

    pending = _submit(client, other_headers, product, market, price=14)
    assert pending["status"] == "pending"

    history = client.get(history_url).json()
    assert [s["id"] for s in history["data"]] == [submission["id"]]


def test_create_requires_login(client, product, market):
    resp = client.post(
        "/api/price-submissions",
        json={"product": product["id"], "market": market["id"], "price": 3},
    )

    assert resp.status_code == 401


def test_negative_price(client, collector, product, market):
    _, headers = collector

    resp = client.post(
        "/api/price-submissions",
        json={"product": product["id"], "market": market["id"], "price": -1},
        headers=headers,
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["errors"][0]["field"] == "price"


def test_unknown_product_reference(client, collector, market):
    _, headers = collector

    resp = client.post(
        "/api/price-submissions",
        json={"product": str(ObjectId()), "market": market["id"], "price": 3},
        headers=headers,
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["errors"] == [{"field": "product", "message": "Product not found"}]


def test_reject_with_reason(client, collector, admin, product, market):
    _, collector_headers = collector
    _, admin_headers = admin
    submission = _submit(client, collector_headers, product, market)

    resp = client.patch(
        f"/api/price-submissions/{submission['id']}/reject",
        json={"reason": "Outlier"},
        headers=admin_headers,
    )

    data = resp.json()["data"]
    assert resp.status_code == 200
    assert data["status"] == "rejected"
    assert data["is_verified"] is False
    assert data["rejection_reason"] == "Outlier"


def test_reject_without_body(client, collector, admin, product, market):
    _, collector_headers = collector
    _, admin_headers = admin
    submission = _submit(client, collector_headers, product, market)

    resp = client.patch(f"/api/price-submissions/{submission['id']}/reject", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["rejection_reason"] is None


def test_collector_cannot_review_or_edit_own_submission(client, collector, product, market):
    _, headers = collector
    submission = _submit(client, headers, product, market)
    url = f"/api/price-submissions/{submission['id']}"

    responses = [
        client.patch(f"{url}/verify", headers=headers),
        client.patch(f"{url}/reject", headers=headers),
        client.put(url, json={"price": 1}, headers=headers),
        client.delete(url, headers=headers),
    ]

    assert [r.status_code for r in responses] == [403, 403, 403, 403]
    assert responses[0].json()["error"]["message"] == "Access denied. This resource requires admin role."

    stored = client.get(url).json()["data"]
    assert stored["status"] == "pending"
    assert stored["price"] == 15.5


def test_admin_update_cannot_touch_status(client, collector, admin, product, market):
    _, collector_headers = collector
    _, admin_headers = admin
    submission = _submit(client, collector_headers, product, market)

    resp = client.put(
        f"/api/price-submissions/{submission['id']}",
        json={"price": 16, "notes": "Corrected", "status": "approved"},
        headers=admin_headers,
    )

    data = resp.json()["data"]
    assert data["price"] == 16
    assert data["notes"] == "Corrected"
    assert data["status"] == "pending"


def test_admin_delete_is_audited(client, db, collector, admin, product, market):
    _, collector_headers = collector
    admin_user, admin_headers = admin
    submission = _submit(client, collector_headers, product, market)

    resp = client.delete(f"/api/price-submissions/{submission['id']}", headers=admin_headers)

    assert resp.status_code == 200
    assert client.get(f"/api/price-submissions/{submission['id']}").status_code == 404

    entry = client.portal.call(db.audit_logs.find_one, {"action": "SUBMISSION_DELETED"})
    assert str(entry["actor_id"]) == admin_user["id"]
    assert entry["metadata"]["submission_id"] == submission["id"]


def test_unknown_submission(client):
    assert client.get(f"/api/price-submissions/{ObjectId()}").status_code == 404
    assert client.get("/api/price-submissions/garbage").status_code == 404


# ============================================================================
# Aggregates
# ============================================================================

def test_average_without_data(client, product):
    resp = client.get(f"/api/price-submissions/product/{product['id']}/average")

    assert resp.status_code == 200
    assert resp.json()["data"] is None
    assert resp.json()["message"] == "No price data found for this product"


def test_average_over_approved_prices(client, collector, admin, product, market):
    _, collector_headers = collector
    _, admin_headers = admin

    for price in (10, 20, 30):
        submission = _submit(client, collector_headers, product, market, price=price)
        client.patch(f"/api/price-submissions/{submission['id']}/verify", headers=admin_headers)
    _submit(client, collector_headers, product, market, price=1000)

    data = client.get(f"/api/price-submissions/product/{product['id']}/average").json()["data"]

    assert data["average_price"] == 20
    assert data["min_price"] == 10
    assert data["max_price"] == 30
    assert data["count"] == 3
    assert data["period"] == "30 days"


def test_list_filters_by_status(client, collector, admin, product, market):
    _, collector_headers = collector
    _, admin_headers = admin
    first = _submit(client, collector_headers, product, market)
    _submit(client, collector_headers, product, market)
    client.patch(f"/api/price-submissions/{first['id']}/verify", headers=admin_headers)

    pending = client.get("/api/price-submissions", params={"status": "pending"}).json()
    everything = client.get("/api/price-submissions").json()

    assert pending["total"] == 1
    assert everything["total"] == 2
    assert client.get("/api/price-submissions", params={"status": "archived"}).status_code == 400


def test_by_market_and_recent_only_show_approved(client, collector, admin, product, market):
    _, collector_headers = collector
    _, admin_headers = admin
    approved = _submit(client, collector_headers, product, market)
    _submit(client, collector_headers, product, market)
    client.patch(f"/api/price-submissions/{approved['id']}/verify", headers=admin_headers)

    by_market = client.get(f"/api/price-submissions/market/{market['id']}").json()["data"]
    by_product = client.get(f"/api/price-submissions/product/{product['id']}").json()["data"]
    recent = client.get("/api/price-submissions/recent").json()["data"]

    assert [s["id"] for s in by_market] == [approved["id"]]
    assert [s["id"] for s in by_product] == [approved["id"]]
    assert [s["id"] for s in recent] == [approved["id"]]


def test_deleted_product_renders_as_null(client, collector, product, market):
    _, headers = collector
    submission = _submit(client, headers, product, market)
    client.delete(f"/api/products/{product['id']}", headers=headers)

    data = client.get(f"/api/price-submissions/{submission['id']}").json()["data"]

    assert data["product"] is None
    assert data["market"]["name"] == "Serrekunda Market"


def test_infinite_price_is_refused_and_not_stored(client, collector, product, market):
    _, headers = collector
    raw = '{"product": "%s", "market": "%s", "price": Infinity}' % (product["id"], market["id"])

    resp = client.post(
        "/api/price-submissions",
        content=raw,
        headers={**headers, "Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["errors"][0]["field"] == "price"
    assert client.get("/api/price-submissions").json()["total"] == 0


def test_update_of_missing_submission_is_404_even_with_bad_reference(client, admin):
    _, headers = admin

    resp = client.put(
        f"/api/price-submissions/{ObjectId()}",
        json={"product": str(ObjectId())},
        headers=headers,
    )

    assert resp.status_code == 404
    assert resp.json()["error"]["message"] == "Price submission not found"
