"""API tests for organizations, members and roles."""

from cleandesk.models import Membership, User

BASE = "/t/zen-zone"


def test_my_organizations(api, other_org):
    rows = api.get("/organizations").json()
    assert [(r["slug"], r["role"]) for r in rows] == [("zen-zone", "OWNER")]


def test_only_super_admin_creates_organizations(api, auth, make_user):
    response = api.post("/organizations", json={"name": "Fresh Start"})
    assert response.status_code == 403

    auth.act_as(make_user("root@cleandesk.test", is_super_admin=True))
    response = api.post("/organizations", json={"name": "Fresh Start Cleaning Co."})
    assert response.status_code == 201
    assert response.json()["slug"] == "fresh-start-cleaning-co"
    assert response.json()["role"] == "OWNER"

    taken = api.post("/organizations", json={"name": "Again", "slug": "fresh-start-cleaning-co"})
    assert taken.status_code == 409


def test_create_organization_for_another_owner(api, db, auth, make_user):
    auth.act_as(make_user("root@cleandesk.test", is_super_admin=True))
    response = api.post(
        "/organizations", json={"name": "Tidy Homes", "owner_email": "Tess@TidyHomes.test"}
    )
    assert response.status_code == 201
    assert response.json()["role"] is None

    invited = db.query(User).filter(User.email == "tess@tidyhomes.test").one()
    assert invited.firebase_uid.startswith("invited:")
    membership = db.query(Membership).filter(Membership.user_id == invited.id).one()
    assert membership.role == "OWNER"


def test_invite_member(api):
    response = api.post(
        f"{BASE}/team/members",
        json={"email": "New.Cleaner@Example.com", "full_name": "New Cleaner"},
    )
    assert response.status_code == 201
    member = response.json()
    assert member["email"] == "new.cleaner@example.com"
    assert member["role"] == "MEMBER"
    assert member["pending"] is True

    members = api.get(f"{BASE}/team/members").json()
    assert {m["email"] for m in members} == {"owner@zenzone.test", "new.cleaner@example.com"}

    again = api.post(f"{BASE}/team/members", json={"email": "new.cleaner@example.com"})
    assert again.status_code == 409


def test_invite_existing_user_is_not_pending(api, make_user):
    make_user("existing@example.com")
    member = api.post(f"{BASE}/team/members", json={"email": "existing@example.com"}).json()
    assert member["pending"] is False


def test_members_cannot_manage_team(api, org, auth, make_user):
    auth.act_as(make_user("member@zenzone.test", org=org, role="MEMBER"))
    response = api.post(f"{BASE}/team/members", json={"email": "x@example.com"})
    assert response.status_code == 403
    assert api.get(f"{BASE}/team/members").status_code == 200


def test_admin_cannot_add_or_demote_owners(api, db, org, owner, auth, make_user):
    auth.act_as(make_user("admin@zenzone.test", org=org, role="ADMIN"))

    response = api.post(f"{BASE}/team/members", json={"email": "boss@example.com", "role": "OWNER"})
    assert response.status_code == 403

    owner_membership = db.query(Membership).filter(Membership.user_id == owner.id).one()
    response = api.patch(
        f"{BASE}/team/members/{owner_membership.id}", json={"role": "MEMBER"}
    )
    assert response.status_code == 403
    assert api.delete(f"{BASE}/team/members/{owner_membership.id}").status_code == 403


def test_last_owner_is_kept(api, db, owner):
    membership = db.query(Membership).filter(Membership.user_id == owner.id).one()

    response = api.patch(f"{BASE}/team/members/{membership.id}", json={"role": "ADMIN"})
    assert response.status_code == 400
    assert api.delete(f"{BASE}/team/members/{membership.id}").status_code == 400


def test_change_role_and_remove(api):
    member = api.post(f"{BASE}/team/members", json={"email": "helper@example.com"}).json()

    updated = api.patch(
        f"{BASE}/team/members/{member['membership_id']}", json={"role": "ADMIN"}
    )
    assert updated.status_code == 200
    assert updated.json()["role"] == "ADMIN"

    bad = api.patch(f"{BASE}/team/members/{member['membership_id']}", json={"role": "BOSS"})
    assert bad.status_code == 422

    assert api.delete(f"{BASE}/team/members/{member['membership_id']}").status_code == 200
    assert api.delete(f"{BASE}/team/members/{member['membership_id']}").status_code == 404


def test_promote_second_owner_then_step_down(api, db, owner):
    member = api.post(f"{BASE}/team/members", json={"email": "partner@example.com", "role": "OWNER"}).json()
    assert member["role"] == "OWNER"

    mine = db.query(Membership).filter(Membership.user_id == owner.id).one()
    response = api.patch(f"{BASE}/team/members/{mine.id}", json={"role": "ADMIN"})
    assert response.status_code == 200
