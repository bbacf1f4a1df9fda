"""API tests for invoices: creation, derived totals and line item edits."""

from datetime import datetime, timedelta

from cleandesk.models_invoice import LineItem

BASE = "/t/zen-zone"


def test_create_invoice_derives_totals(api, make_invoice):
    invoice = make_invoice()
    assert invoice["display_number"] == "INV-0001"
    assert invoice["status"] == "DRAFT"
    assert invoice["payment_status"] == "unpaid"
    assert invoice["subtotal"] == 250.0
    assert invoice["tax_amount"] == 32.5
    assert invoice["total"] == 282.5
    assert invoice["amount_paid"] == 0.0
    assert invoice["balance_due"] == 282.5
    assert [item["total"] for item in invoice["line_items"]] == [100.0, 150.0]


def test_default_due_date(api, make_invoice):
    issued = datetime(2026, 1, 1, 9, 0)
    invoice = make_invoice(issued_at=issued.isoformat())
    assert datetime.fromisoformat(invoice["due_at"]) == issued + timedelta(days=15)


def test_invoice_requires_line_items(api, make_client):
    response = api.post(
        f"{BASE}/invoices", json={"client_id": make_client()["id"], "line_items": []}
    )
    assert response.status_code == 422


def test_invoice_for_unknown_client(api):
    response = api.post(
        f"{BASE}/invoices",
        json={"client_id": 999, "line_items": [{"name": "Clean", "quantity": 1, "unit_price": 10}]},
    )
    assert response.status_code == 404


def test_stored_line_item_total_is_not_trusted(api, db, make_invoice):
    invoice = make_invoice()
    item = db.query(LineItem).filter(LineItem.invoice_id == invoice["id"]).first()
    item.total = 999
    db.commit()

    detail = api.get(f"{BASE}/invoices/{invoice['id']}").json()
    assert detail["subtotal"] == 250.0
    assert detail["total"] == 282.5


def test_list_shows_balances(api, make_invoice):
    first = make_invoice()
    api.post(f"{BASE}/payments", json={"invoice_id": first["id"], "amount": "100.00"})
    make_invoice(line_items=[{"name": "Windows", "quantity": 4, "unit_price": "12.50"}])

    rows = {row["id"]: row for row in api.get(f"{BASE}/invoices").json()}
    assert len(rows) == 2
    assert rows[first["id"]]["amount_paid"] == 100.0
    assert rows[first["id"]]["balance_due"] == 182.5
    assert rows[first["id"]]["payment_status"] == "partial"


def test_preview_pricing(api):
    response = api.post(
        f"{BASE}/invoices/preview-pricing",
        json={
            "line_items": [
                {"quantity": 2, "unit_price": "50.00"},
                {"quantity": 1, "unit_price": 150, "total": 1},
                {"quantity": "abc", "unit_price": 10},
            ],
            "tax_rate": "13",
        },
    )
    assert response.status_code == 200
    assert response.json() == {
        "subtotal": 250.0,
        "tax_rate_percent": 13.0,
        "tax_amount": 32.5,
        "total": 282.5,
        "formatted_total": "$282.50",
    }


def test_preview_pricing_with_garbage_tax_rate(api):
    response = api.post(
        f"{BASE}/invoices/preview-pricing",
        json={"line_items": [{"quantity": 1, "unit_price": 10}], "tax_rate": "thirteen"},
    )
    assert response.json()["total"] == 10.0


def test_preview_pricing_with_enormous_numbers(api):
    response = api.post(
        f"{BASE}/invoices/preview-pricing",
        json={
            "line_items": [
                {"quantity": "1e30", "unit_price": 1},
                {"quantity": "1e999999", "unit_price": "5"},
                {"quantity": 1, "unit_price": 10},
            ],
            "tax_rate": 13,
        },
    )
    assert response.status_code == 200
    assert response.json()["subtotal"] == 10.0
    assert response.json()["total"] == 11.3


def test_replace_line_items_only_on_drafts(api, make_invoice):
    invoice = make_invoice()
    items = {"line_items": [{"name": "Deep clean", "quantity": 1, "unit_price": "400"}]}

    response = api.put(f"{BASE}/invoices/{invoice['id']}/line-items", json=items)
    assert response.status_code == 200
    assert response.json()["total"] == 452.0
    assert [i["name"] for i in response.json()["line_items"]] == ["Deep clean"]

    api.patch(f"{BASE}/invoices/{invoice['id']}/status", json={"status": "SENT"})
    response = api.put(f"{BASE}/invoices/{invoice['id']}/line-items", json=items)
    assert response.status_code == 400


def test_status_changes(api, make_invoice):
    invoice = make_invoice()

    paid = api.patch(f"{BASE}/invoices/{invoice['id']}/status", json={"status": "PAID"}).json()
    assert paid["paid_at"] is not None
    # Stored status and derived payment state are reported separately
    assert paid["payment_status"] == "unpaid"
    assert paid["balance_due"] == 282.5

    sent = api.patch(f"{BASE}/invoices/{invoice['id']}/status", json={"status": "SENT"}).json()
    assert sent["paid_at"] is None

    bad = api.patch(f"{BASE}/invoices/{invoice['id']}/status", json={"status": "ARCHIVED"})
    assert bad.status_code == 422


def test_overdue_is_derived_from_due_date(api, make_invoice):
    past = datetime.utcnow() - timedelta(days=30)
    invoice = make_invoice(issued_at=past.isoformat(), due_at=(past + timedelta(days=15)).isoformat())
    assert invoice["payment_status"] == "unpaid"

    sent = api.patch(f"{BASE}/invoices/{invoice['id']}/status", json={"status": "SENT"}).json()
    assert sent["payment_status"] == "overdue"


def test_filter_by_status(api, make_invoice):
    draft = make_invoice()
    sent = make_invoice()
    api.patch(f"{BASE}/invoices/{sent['id']}/status", json={"status": "SENT"})

    rows = api.get(f"{BASE}/invoices", params={"status": "DRAFT"}).json()
    assert [row["id"] for row in rows] == [draft["id"]]


def test_create_from_job(api, make_client):
    client = make_client()
    job = api.post(
        f"{BASE}/jobs",
        json={
            "client_id": client["id"],
            "title": "Office clean",
            "tax_rate": 5,
            "line_items": [{"name": "Office", "quantity": 3, "unit_price": "80"}],
        },
    ).json()

    response = api.post(f"{BASE}/invoices/from-job", json={"job_id": job["id"]})
    assert response.status_code == 201
    invoice = response.json()
    assert invoice["job_id"] == job["id"]
    assert invoice["client_id"] == client["id"]
    assert invoice["tax_rate_percent"] == 5.0
    assert invoice["total"] == 252.0

    empty = api.post(f"{BASE}/jobs", json={"client_id": client["id"], "title": "Quote visit"}).json()
    assert api.post(f"{BASE}/invoices/from-job", json={"job_id": empty["id"]}).status_code == 400


def test_job_must_belong_to_invoice_client(api, make_client):
    alice = make_client(first_name="Alice")
    bob = make_client(first_name="Bob")
    job = api.post(f"{BASE}/jobs", json={"client_id": alice["id"], "title": "Clean"}).json()

    response = api.post(
        f"{BASE}/invoices",
        json={
            "client_id": bob["id"],
            "job_id": job["id"],
            "line_items": [{"name": "Clean", "quantity": 1, "unit_price": 10}],
        },
    )
    assert response.status_code == 400


def test_delete_invoice(api, make_invoice):
    invoice = make_invoice()
    assert api.delete(f"{BASE}/invoices/{invoice['id']}").status_code == 200
    assert api.get(f"{BASE}/invoices/{invoice['id']}").status_code == 404


def test_invoice_with_payments_cannot_be_deleted(api, make_invoice):
    invoice = make_invoice()
    api.post(f"{BASE}/payments", json={"invoice_id": invoice["id"], "amount": "10"})
    assert api.delete(f"{BASE}/invoices/{invoice['id']}").status_code == 409
