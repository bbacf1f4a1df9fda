"""API tests for payments and the invoice status they drive."""

BASE = "/t/zen-zone"


def _pay(api, invoice_id, amount, **fields):
    response = api.post(f"{BASE}/payments", json={"invoice_id": invoice_id, "amount": amount, **fields})
    assert response.status_code == 201, response.text
    return response.json()


def test_partial_then_full_payment(api, make_invoice):
    invoice = make_invoice()

    first = _pay(api, invoice["id"], "100.00", method="e-transfer", reference="ET-1")
    assert first["payment"]["display_number"] == "PAY-0001"
    assert first["payment"]["method"] == "E-TRANSFER"
    assert first["payment"]["invoice_number"] == "INV-0001"
    assert first["amount_paid"] == 100.0
    assert first["balance_due"] == 182.5
    assert first["invoice_status"] == "SENT"
    assert first["warning"] is None

    second = _pay(api, invoice["id"], "50.00")
    assert second["amount_paid"] == 150.0
    assert second["balance_due"] == 132.5

    last = _pay(api, invoice["id"], "132.50")
    assert last["balance_due"] == 0.0
    assert last["invoice_status"] == "PAID"

    detail = api.get(f"{BASE}/invoices/{invoice['id']}").json()
    assert detail["status"] == "PAID"
    assert detail["payment_status"] == "paid"
    assert detail["paid_at"] is not None
    assert len(detail["payments"]) == 3


def test_overpayment_is_accepted_with_warning(api, make_invoice):
    invoice = make_invoice()
    result = _pay(api, invoice["id"], "300.00")

    assert result["balance_due"] == -17.5
    assert result["invoice_status"] == "PAID"
    assert "exceeds the balance due of $282.50" in result["warning"]

    detail = api.get(f"{BASE}/invoices/{invoice['id']}").json()
    assert detail["is_overpaid"] is True
    assert detail["balance_due"] == -17.5


def test_payment_validation(api, make_invoice):
    invoice = make_invoice()
    assert api.post(f"{BASE}/payments", json={"invoice_id": invoice["id"], "amount": 0}).status_code == 422
    assert (
        api.post(
            f"{BASE}/payments", json={"invoice_id": invoice["id"], "amount": 5, "method": "BITCOIN"}
        ).status_code
        == 422
    )
    assert api.post(f"{BASE}/payments", json={"invoice_id": 999, "amount": 5}).status_code == 404


def test_cancelled_invoice_rejects_payments(api, make_invoice):
    invoice = make_invoice()
    api.patch(f"{BASE}/invoices/{invoice['id']}/status", json={"status": "CANCELLED"})
    response = api.post(f"{BASE}/payments", json={"invoice_id": invoice["id"], "amount": 10})
    assert response.status_code == 400


def test_deleting_payments_recomputes_status(api, make_invoice):
    invoice = make_invoice()
    first = _pay(api, invoice["id"], "200.00")
    second = _pay(api, invoice["id"], "82.50")
    assert second["invoice_status"] == "PAID"

    response = api.delete(f"{BASE}/payments/{second['payment']['id']}")
    assert response.status_code == 200
    data = response.json()
    assert data["invoice_status"] == "SENT"
    assert data["balance_due"] == 82.5
    assert api.get(f"{BASE}/invoices/{invoice['id']}").json()["paid_at"] is None

    data = api.delete(f"{BASE}/payments/{first['payment']['id']}").json()
    assert data["invoice_status"] == "DRAFT"
    assert data["amount_paid"] == 0.0

    assert api.delete(f"{BASE}/payments/{first['payment']['id']}").status_code == 404


def test_payment_list(api, make_invoice):
    invoice = make_invoice()
    _pay(api, invoice["id"], "10", paid_at="2026-01-01T10:00:00")
    _pay(api, invoice["id"], "20", paid_at="2026-02-01T10:00:00")

    rows = api.get(f"{BASE}/payments").json()
    assert [row["amount"] for row in rows] == [20.0, 10.0]
    assert rows[0]["client_name"] == "Jane Doe"


def test_unpaid_invoices_and_summary(api, make_invoice):
    partial = make_invoice()
    settled = make_invoice()
    overpaid = make_invoice()
    untouched = make_invoice()
    cancelled = make_invoice()

    _pay(api, partial["id"], "100")
    _pay(api, settled["id"], "282.50")
    _pay(api, overpaid["id"], "300")
    api.patch(f"{BASE}/invoices/{cancelled['id']}/status", json={"status": "CANCELLED"})

    unpaid = {row["id"] for row in api.get(f"{BASE}/payments/unpaid-invoices").json()}
    assert unpaid == {partial["id"], untouched["id"]}

    summary = api.get(f"{BASE}/payments/summary").json()
    assert summary == {
        "total_collected": 682.5,
        "total_outstanding": 465.0,
        "payment_count": 3,
        "unpaid_invoice_count": 2,
        "overpaid_invoice_count": 1,
    }


def test_payments_are_org_scoped(api, make_invoice, other_org, auth, db):
    from cleandesk.models import User

    invoice = make_invoice()
    payment = _pay(api, invoice["id"], "10")

    other_owner = db.query(User).filter(User.email == "owner@sparkle.test").one()
    auth.act_as(other_owner)
    assert api.get("/t/sparkle-co/payments").json() == []
    assert api.delete(f"/t/sparkle-co/payments/{payment['payment']['id']}").status_code == 404
    response = api.post("/t/sparkle-co/payments", json={"invoice_id": invoice["id"], "amount": 5})
    assert response.status_code == 404
