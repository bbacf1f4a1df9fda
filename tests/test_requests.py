"""API tests for website form ingestion and service request management."""

import pytest

from cleandesk.domain.requests.service import SERVICE_TYPE_SLUGS, map_label, parse_preferred_at
from cleandesk.models import Activity, Client, ServiceType

BASE = "/t/zen-zone"
HEADERS = {"x-form-ingest-secret": "test-ingest-secret"}


@pytest.fixture
def submission():
    """A complete submission as the marketing website sends it."""
    return {
        "submissionId": "sub-123",
        "formVersion": "2.1",
        "contactInfo": {
            "firstName": "Maya",
            "lastName": "Patel",
            "email": "Maya.Patel@Example.com",
            "phone": "416-555-0101",
        },
        "serviceDetails": {
            "industry": "Home Cleaning",
            "cleaningType": "Deep Cleaning",
            "reason": "Moving in",
        },
        "location": {
            "address": "88 Queen St",
            "city": "Toronto",
            "province": "ON",
            "postalCode": "M5H 2N2",
        },
        "propertyDetails": {"propertyType": "Condo", "bedrooms": 2, "bathrooms": "1"},
        "scheduling": {"datePreferences": "2026-05-04T14:00:00Z", "specialRequests": "Pet-safe products"},
        "marketingInfo": {"hearAbout": "Google Maps or GBP"},
        "pricing": {"estimatedPrice": 240},
        "images": {"count": 2, "archiveLink": "https://files.example.com/abc.zip"},
        "utm": {"campaign": "spring"},
    }


def test_ingest_creates_lead_property_and_request(api, db, lookups, submission):
    response = api.post("/api/requests", json=submission, headers=HEADERS)
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Request received successfully"
    assert data["submissionId"] == "sub-123"
    assert data["requestNumber"] == 1
    assert data["propertyId"] is not None

    lead = db.get(Client, data["clientId"])
    assert lead.client_status == "LEAD"
    assert lead.lead_status == "NEW"
    assert lead.lead_source == "gbp"
    assert lead.emails == ["maya.patel@example.com"]

    detail = api.get(f"{BASE}/requests/{data['requestId']}").json()
    assert detail["title"] == "Home Cleaning - Deep Cleaning"
    assert detail["status"] == "NEW"
    assert detail["industry"] == "Home Cleaning"
    assert detail["service_type"] == "Deep Cleaning"
    assert detail["hear_about"] == "Google Maps or GBP"
    assert detail["property_address"] == "88 Queen St, Toronto, ON, M5H 2N2"
    assert detail["preferred_at"].startswith("2026-05-04T14:00")
    assert "Pet-safe products" in detail["description"]
    # Unknown keys are kept in the stored snapshot
    assert detail["details"]["utm"] == {"campaign": "spring"}
    assert detail["details"]["meta"]["serviceTypeSlug"] == "deep"

    activity = db.query(Activity).filter(Activity.request_id == data["requestId"]).one()
    assert activity.type == "SYSTEM"
    assert activity.meta["estimatedPrice"] == 240
    assert activity.meta["hasImages"] is True


def test_minimal_submission(api, db, lookups):
    response = api.post(
        "/api/requests",
        json={"contactInfo": {"company": "Acme Offices", "email": "ops@acme.test"}},
        headers=HEADERS,
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["propertyId"] is None

    lead = db.get(Client, data["clientId"])
    assert lead.company_name == "Acme Offices"
    assert lead.lead_source == "website"

    detail = api.get(f"{BASE}/requests/{data['requestId']}").json()
    assert detail["title"] == "Service Request - Standard"
    assert detail["service_type"] == "Standard Cleaning"


def test_unknown_service_type_is_created(api, db, lookups, submission):
    submission["serviceDetails"]["cleaningType"] = "Window Washing"
    response = api.post("/api/requests", json=submission, headers=HEADERS)
    assert response.status_code == 201
    created = db.query(ServiceType).filter(ServiceType.slug == "window-washing").one()
    assert created.label == "Window Washing"


def test_missing_or_wrong_secret_is_401(api, lookups, submission):
    assert api.post("/api/requests", json=submission).status_code == 401
    response = api.post(
        "/api/requests", json=submission, headers={"x-form-ingest-secret": "guess"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Unauthorized"


def test_invalid_email_is_422(api, lookups, submission):
    submission["contactInfo"]["email"] = "maya-at-example"
    response = api.post("/api/requests", json=submission, headers=HEADERS)
    assert response.status_code == 422


def test_missing_ingest_org_is_500(api, lookups, submission, monkeypatch):
    monkeypatch.setattr("cleandesk.config.DEFAULT_ORG_SLUG", "does-not-exist")
    response = api.post("/api/requests", json=submission, headers=HEADERS)
    assert response.status_code == 500


def test_list_and_update_status(api, db, lookups, submission):
    created = api.post("/api/requests", json=submission, headers=HEADERS).json()

    rows = api.get(f"{BASE}/requests").json()
    assert [r["display_number"] for r in rows] == ["REQ-0001"]
    assert rows[0]["details"] is None

    response = api.patch(
        f"{BASE}/requests/{created['requestId']}/status", json={"status": "CONTACTED"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "CONTACTED"
    assert api.get(f"{BASE}/requests", params={"status": "NEW"}).json() == []

    messages = [
        a.message
        for a in db.query(Activity).filter(Activity.request_id == created["requestId"]).all()
    ]
    assert "Status changed from NEW to CONTACTED" in messages

    bad = api.patch(f"{BASE}/requests/{created['requestId']}/status", json={"status": "WON"})
    assert bad.status_code == 422


def test_map_label():
    assert map_label("Moving Deep Cleaning", SERVICE_TYPE_SLUGS) == "moving-deep"
    assert map_label("Carpet Care", SERVICE_TYPE_SLUGS) == "carpet-care"


def test_parse_preferred_at():
    parsed = parse_preferred_at({"scheduling": {"datePreferences": "2026-05-04T10:00:00-04:00"}})
    assert parsed.isoformat() == "2026-05-04T14:00:00"
    assert parse_preferred_at({"scheduleAndAccess": {"preferred": "2026-05-04T09:30"}}).hour == 9
    assert parse_preferred_at({"scheduling": {"datePreferences": "Weekday mornings"}}) is None
    assert parse_preferred_at({}) is None
