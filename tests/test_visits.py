"""API tests for job visits, their line items and invoicing them."""

BASE = "/t/zen-zone"


def _create_job(api, client_id, **fields):
    payload = {
        "client_id": client_id,
        "title": "Weekly clean",
        "tax_rate": 13,
        "line_items": [{"name": "Standard clean", "quantity": 1, "unit_price": "120.00"}],
    }
    payload.update(fields)
    response = api.post(f"{BASE}/jobs", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _schedule(api, job_id, when="2026-03-02T09:00:00", **fields):
    response = api.post(f"{BASE}/jobs/{job_id}/visits", json={"scheduled_at": when, **fields})
    assert response.status_code == 201, response.text
    return response.json()


def _complete(api, visit_id):
    response = api.patch(f"{BASE}/visits/{visit_id}/status", json={"status": "COMPLETED"})
    assert response.status_code == 200, response.text
    return response.json()


def test_visit_copies_job_line_items(api, make_client):
    job = _create_job(api, make_client()["id"])
    visit = _schedule(api, job["id"])

    assert visit["status"] == "SCHEDULED"
    assert visit["duration_minutes"] == 120
    assert visit["job_title"] == "Weekly clean"
    assert visit["is_invoiced"] is False
    assert visit["invoice"] is None
    assert [item["name"] for item in visit["line_items"]] == ["Standard clean"]
    assert visit["pricing"]["subtotal"] == 120.0
    assert visit["pricing"]["total"] == 135.6

    # The job keeps its own items
    assert len(api.get(f"{BASE}/jobs/{job['id']}").json()["line_items"]) == 1


def test_visit_with_its_own_line_items(api, make_client):
    job = _create_job(api, make_client()["id"])
    visit = _schedule(
        api,
        job["id"],
        duration_minutes=90,
        line_items=[{"name": "Windows", "quantity": 3, "unit_price": "10.00"}],
    )
    assert visit["duration_minutes"] == 90
    assert [item["name"] for item in visit["line_items"]] == ["Windows"]
    assert visit["pricing"]["subtotal"] == 30.0


def test_cannot_schedule_on_cancelled_job(api, make_client):
    job = _create_job(api, make_client()["id"])
    api.patch(f"{BASE}/jobs/{job['id']}/status", json={"status": "CANCELLED"})

    response = api.post(f"{BASE}/jobs/{job['id']}/visits", json={"scheduled_at": "2026-03-02T09:00:00"})
    assert response.status_code == 400

    assert api.post(f"{BASE}/jobs/999/visits", json={"scheduled_at": "2026-03-02T09:00:00"}).status_code == 404


def test_visits_listed_in_schedule_order(api, make_client):
    job = _create_job(api, make_client()["id"])
    later = _schedule(api, job["id"], when="2026-03-09T09:00:00")
    earlier = _schedule(api, job["id"], when="2026-03-02T09:00:00")

    visits = api.get(f"{BASE}/jobs/{job['id']}/visits").json()
    assert [v["id"] for v in visits] == [earlier["id"], later["id"]]
    assert api.get(f"{BASE}/visits/{later['id']}").json()["scheduled_at"].startswith("2026-03-09")


def test_update_visit_fields(api, make_client):
    job = _create_job(api, make_client()["id"])
    visit = _schedule(api, job["id"])

    response = api.patch(
        f"{BASE}/visits/{visit['id']}",
        json={"scheduled_at": "2026-03-03T13:30:00", "notes": "  Side door code 4411  "},
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["scheduled_at"].startswith("2026-03-03T13:30")
    assert updated["notes"] == "Side door code 4411"
    assert updated["duration_minutes"] == 120

    # A completion time needs a completed visit
    bad = api.patch(f"{BASE}/visits/{visit['id']}", json={"completed_at": "2026-03-03T15:00:00"})
    assert bad.status_code == 400

    done = api.patch(
        f"{BASE}/visits/{visit['id']}",
        json={"status": "COMPLETED", "completed_at": "2026-03-03T15:00:00"},
    ).json()
    assert done["completed_at"].startswith("2026-03-03T15:00")


def test_status_sets_and_clears_completion(api, make_client):
    job = _create_job(api, make_client()["id"])
    visit = _schedule(api, job["id"])

    assert _complete(api, visit["id"])["completed_at"] is not None

    reopened = api.patch(f"{BASE}/visits/{visit['id']}/status", json={"status": "IN_PROGRESS"})
    assert reopened.json()["completed_at"] is None

    bad = api.patch(f"{BASE}/visits/{visit['id']}/status", json={"status": "DONE"})
    assert bad.status_code == 422


def test_replace_visit_line_items(api, make_client):
    job = _create_job(api, make_client()["id"])
    visit = _schedule(api, job["id"])

    response = api.put(
        f"{BASE}/visits/{visit['id']}/line-items",
        json={
            "line_items": [
                {"name": "Standard clean", "quantity": 1, "unit_price": "120.00"},
                {"name": "Fridge", "quantity": 1, "unit_price": "35.00"},
            ]
        },
    )
    assert response.status_code == 200
    assert response.json()["pricing"]["subtotal"] == 155.0

    cleared = api.put(f"{BASE}/visits/{visit['id']}/line-items", json={"line_items": []}).json()
    assert cleared["line_items"] == []
    assert cleared["pricing"]["total"] == 0.0


def test_invoiceable_visits(api, make_client):
    job = _create_job(api, make_client()["id"])
    first = _schedule(api, job["id"], when="2026-03-02T09:00:00")
    second = _schedule(api, job["id"], when="2026-03-09T09:00:00")
    _schedule(api, job["id"], when="2026-03-16T09:00:00")

    assert api.get(f"{BASE}/jobs/{job['id']}/visits/invoiceable").json() == []

    _complete(api, first["id"])
    _complete(api, second["id"])
    invoiceable = api.get(f"{BASE}/jobs/{job['id']}/visits/invoiceable").json()
    assert [v["id"] for v in invoiceable] == [first["id"], second["id"]]

    api.post(f"{BASE}/invoices/from-job", json={"job_id": job["id"], "visit_ids": [first["id"]]})
    invoiceable = api.get(f"{BASE}/jobs/{job['id']}/visits/invoiceable").json()
    assert [v["id"] for v in invoiceable] == [second["id"]]


def test_invoice_from_completed_visits(api, make_client):
    job = _create_job(api, make_client()["id"])
    first = _schedule(api, job["id"], when="2026-03-02T09:00:00")
    second = _schedule(
        api,
        job["id"],
        when="2026-03-09T09:00:00",
        line_items=[{"name": "Deep clean", "quantity": 1, "unit_price": "200.00"}],
    )
    _complete(api, first["id"])
    _complete(api, second["id"])

    response = api.post(
        f"{BASE}/invoices/from-job",
        json={"job_id": job["id"], "visit_ids": [first["id"], second["id"]]},
    )
    assert response.status_code == 201, response.text
    invoice = response.json()
    assert sorted(invoice["visit_ids"]) == sorted([first["id"], second["id"]])
    assert invoice["subtotal"] == 320.0
    assert invoice["total"] == 361.6

    billed = api.get(f"{BASE}/visits/{first['id']}").json()
    assert billed["is_invoiced"] is True
    assert billed["invoice"]["display_number"] == invoice["display_number"]

    assert api.get(f"{BASE}/invoices/{invoice['id']}").json()["visit_ids"] == invoice["visit_ids"]


def test_invoice_rejects_unfinished_or_billed_visits(api, make_client):
    job = _create_job(api, make_client()["id"])
    scheduled = _schedule(api, job["id"])
    done = _schedule(api, job["id"], when="2026-03-09T09:00:00")
    _complete(api, done["id"])

    url = f"{BASE}/invoices/from-job"
    assert api.post(url, json={"job_id": job["id"], "visit_ids": [scheduled["id"]]}).status_code == 409
    assert api.post(url, json={"job_id": job["id"], "visit_ids": [999]}).status_code == 404
    assert api.post(url, json={"job_id": job["id"], "visit_ids": []}).status_code == 422

    assert api.post(url, json={"job_id": job["id"], "visit_ids": [done["id"]]}).status_code == 201
    assert api.post(url, json={"job_id": job["id"], "visit_ids": [done["id"]]}).status_code == 409


def test_visit_from_another_job_cannot_be_billed(api, make_client):
    client_id = make_client()["id"]
    job = _create_job(api, client_id)
    other_job = _create_job(api, client_id, title="Move-out clean")
    visit = _schedule(api, other_job["id"])
    _complete(api, visit["id"])

    response = api.post(f"{BASE}/invoices/from-job", json={"job_id": job["id"], "visit_ids": [visit["id"]]})
    assert response.status_code == 404


def test_invoiced_visit_is_locked(api, make_client):
    job = _create_job(api, make_client()["id"])
    visit = _schedule(api, job["id"])
    _complete(api, visit["id"])
    api.post(f"{BASE}/invoices/from-job", json={"job_id": job["id"], "visit_ids": [visit["id"]]})

    url = f"{BASE}/visits/{visit['id']}"
    assert api.patch(url, json={"scheduled_at": "2026-04-01T09:00:00"}).status_code == 409
    assert api.patch(f"{url}/status", json={"status": "SCHEDULED"}).status_code == 409
    assert api.put(f"{url}/line-items", json={"line_items": []}).status_code == 409

    # Notes stay editable and an unchanged status is accepted
    assert api.patch(url, json={"notes": "Client paid by e-transfer"}).status_code == 200
    assert api.patch(f"{url}/status", json={"status": "COMPLETED"}).status_code == 200


def test_delete_visit_keeps_invoice_by_default(api, make_client):
    job = _create_job(api, make_client()["id"])
    visit = _schedule(api, job["id"])
    _complete(api, visit["id"])
    invoice = api.post(
        f"{BASE}/invoices/from-job", json={"job_id": job["id"], "visit_ids": [visit["id"]]}
    ).json()

    response = api.delete(f"{BASE}/visits/{visit['id']}")
    assert response.status_code == 200
    assert response.json() == {
        "message": "Visit deleted successfully",
        "invoice_deleted": False,
        "invoice_id": invoice["id"],
    }
    assert api.get(f"{BASE}/visits/{visit['id']}").status_code == 404

    kept = api.get(f"{BASE}/invoices/{invoice['id']}").json()
    assert kept["visit_ids"] == []
    assert kept["total"] == 135.6


def test_delete_visit_with_its_invoice(api, make_client):
    job = _create_job(api, make_client()["id"])
    first = _schedule(api, job["id"])
    second = _schedule(api, job["id"], when="2026-03-09T09:00:00")
    _complete(api, first["id"])
    _complete(api, second["id"])
    invoice = api.post(
        f"{BASE}/invoices/from-job",
        json={"job_id": job["id"], "visit_ids": [first["id"], second["id"]]},
    ).json()

    response = api.delete(f"{BASE}/visits/{first['id']}", params={"delete_invoice": True})
    assert response.status_code == 200
    assert response.json()["invoice_deleted"] is True
    assert api.get(f"{BASE}/invoices/{invoice['id']}").status_code == 404

    # The other visit on that invoice can be billed again
    invoiceable = api.get(f"{BASE}/jobs/{job['id']}/visits/invoiceable").json()
    assert [v["id"] for v in invoiceable] == [second["id"]]


def test_invoice_with_payments_is_not_deleted_with_visit(api, make_client):
    job = _create_job(api, make_client()["id"])
    visit = _schedule(api, job["id"])
    _complete(api, visit["id"])
    invoice = api.post(
        f"{BASE}/invoices/from-job", json={"job_id": job["id"], "visit_ids": [visit["id"]]}
    ).json()
    api.post(f"{BASE}/payments", json={"invoice_id": invoice["id"], "amount": "50.00"})

    response = api.delete(f"{BASE}/visits/{visit['id']}", params={"delete_invoice": True})
    assert response.status_code == 409
    assert api.get(f"{BASE}/visits/{visit['id']}").status_code == 200
    assert api.get(f"{BASE}/invoices/{invoice['id']}").status_code == 200


def test_deleting_job_removes_its_visits(api, make_client):
    job = _create_job(api, make_client()["id"])
    visit = _schedule(api, job["id"])

    assert api.delete(f"{BASE}/jobs/{job['id']}").status_code == 200
    assert api.get(f"{BASE}/visits/{visit['id']}").status_code == 404


def test_visits_are_org_scoped(api, make_client, other_org, auth, db):
    from cleandesk.models import User

    job = _create_job(api, make_client()["id"])
    visit = _schedule(api, job["id"])

    other_owner = db.query(User).filter(User.email == "owner@sparkle.test").one()
    auth.act_as(other_owner)
    assert api.get(f"/t/sparkle-co/visits/{visit['id']}").status_code == 404
    assert api.get(f"/t/sparkle-co/jobs/{job['id']}/visits").status_code == 404
    assert api.delete(f"/t/sparkle-co/visits/{visit['id']}").status_code == 404
