"""API tests for estimates, including discount and deposit pricing."""

BASE = "/t/zen-zone"

LINE_ITEMS = [
    {"name": "Standard clean", "quantity": 2, "unit_price": "50.00"},
    {"name": "Oven", "quantity": 1, "unit_price": "150.00"},
]


def _estimate(client_id, **fields):
    payload = {"client_id": client_id, "title": "Spring clean", "tax_rate": 13, "line_items": LINE_ITEMS}
    payload.update(fields)
    return payload


def test_create_estimate_with_discount_and_deposit(api, make_client):
    response = api.post(
        f"{BASE}/estimates",
        json=_estimate(
            make_client()["id"],
            discount_type="percentage",
            discount_value=10,
            deposit_required=True,
            deposit_type="fixed",
            deposit_value=50,
        ),
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["display_number"] == "EST-0001"
    assert data["status"] == "DRAFT"

    pricing = data["pricing"]
    assert pricing["subtotal"] == 250.0
    assert pricing["discount_amount"] == 25.0
    assert pricing["tax_amount"] == 29.25
    assert pricing["total"] == 254.25
    assert pricing["deposit_amount"] == 50.0
    assert pricing["deposit_required"] is True


def test_plain_estimate_matches_invoice_pricing(api, make_client):
    data = api.post(f"{BASE}/estimates", json=_estimate(make_client()["id"])).json()
    assert data["pricing"]["total"] == 282.5
    assert data["pricing"]["discount_amount"] == 0.0
    assert data["pricing"]["deposit_amount"] == 0.0


def test_estimate_validation(api, make_client):
    client_id = make_client()["id"]

    too_much = api.post(
        f"{BASE}/estimates",
        json=_estimate(client_id, discount_type="percentage", discount_value=150),
    )
    assert too_much.status_code == 422

    no_deposit_type = api.post(
        f"{BASE}/estimates", json=_estimate(client_id, deposit_required=True, deposit_value=20)
    )
    assert no_deposit_type.status_code == 422

    no_items = api.post(f"{BASE}/estimates", json=_estimate(client_id, line_items=[]))
    assert no_items.status_code == 422

    negative = api.post(
        f"{BASE}/estimates",
        json=_estimate(client_id, line_items=[{"name": "X", "quantity": 1, "unit_price": -5}]),
    )
    assert negative.status_code == 422


def test_status_update_and_delete(api, make_client):
    estimate = api.post(f"{BASE}/estimates", json=_estimate(make_client()["id"])).json()

    sent = api.patch(f"{BASE}/estimates/{estimate['id']}/status", json={"status": "SENT"})
    assert sent.json()["status"] == "SENT"
    assert [e["id"] for e in api.get(f"{BASE}/estimates", params={"status": "SENT"}).json()] == [
        estimate["id"]
    ]

    assert api.delete(f"{BASE}/estimates/{estimate['id']}").status_code == 200
    assert api.get(f"{BASE}/estimates/{estimate['id']}").status_code == 404


def test_edit_estimate_fields_and_line_items(api, make_client):
    estimate = api.post(f"{BASE}/estimates", json=_estimate(make_client()["id"])).json()

    response = api.patch(
        f"{BASE}/estimates/{estimate['id']}",
        json={
            "title": "Spring clean, 3 bedrooms",
            "status": "SENT",
            "discount_type": "fixed",
            "discount_value": 20,
            "line_items": [{"name": "Standard clean", "quantity": 3, "unit_price": "50.00"}],
        },
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["title"] == "Spring clean, 3 bedrooms"
    assert data["status"] == "SENT"
    assert data["display_number"] == estimate["display_number"]
    assert [item["quantity"] for item in data["line_items"]] == [3.0]

    pricing = data["pricing"]
    assert pricing["subtotal"] == 150.0
    assert pricing["discount_amount"] == 20.0
    assert pricing["total"] == 146.9


def test_edit_keeps_omitted_settings(api, make_client):
    estimate = api.post(
        f"{BASE}/estimates",
        json=_estimate(
            make_client()["id"],
            deposit_required=True,
            deposit_type="percentage",
            deposit_value=50,
        ),
    ).json()

    data = api.patch(f"{BASE}/estimates/{estimate['id']}", json={"description": "Bring ladder"}).json()
    assert data["description"] == "Bring ladder"
    assert data["pricing"]["deposit_required"] is True
    assert data["pricing"]["deposit_amount"] == 141.25
    assert len(data["line_items"]) == 2

    # Turning the deposit off drops its settings
    data = api.patch(f"{BASE}/estimates/{estimate['id']}", json={"deposit_required": False}).json()
    assert data["pricing"]["deposit_required"] is False
    assert data["pricing"]["deposit_type"] is None
    assert data["pricing"]["deposit_amount"] == 0.0


def test_edit_checks_merged_pricing_settings(api, make_client):
    estimate = api.post(
        f"{BASE}/estimates",
        json=_estimate(make_client()["id"], discount_type="fixed", discount_value=150),
    ).json()
    url = f"{BASE}/estimates/{estimate['id']}"

    # 150 is fine as a fixed amount but not as a percentage
    assert api.patch(url, json={"discount_type": "percentage"}).status_code == 422
    assert api.patch(url, json={"deposit_required": True}).status_code == 422
    assert api.patch(url, json={"line_items": []}).status_code == 422
    assert api.patch(url, json={"status": "WON"}).status_code == 422
    assert api.patch(f"{BASE}/estimates/999", json={"title": "X"}).status_code == 404

    unchanged = api.get(url).json()
    assert unchanged["pricing"]["discount_type"] == "fixed"
    assert unchanged["pricing"]["discount_amount"] == 150.0
