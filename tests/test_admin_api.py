from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session
from app.models.db import Campaign, DisplayOverride
from app.models.db.enums import CampaignStatus
from conftest import NOW


def test_admin_routes_require_admin(client: TestClient, auth_header):
    headers, _ = auth_header
    assert client.get("/api/v1/admin/campaigns/pending", headers=headers).status_code == 403
    assert client.get("/api/v1/admin/campaigns/pending").status_code in (401, 403)
    bad = {"Authorization": "Bearer not-a-key"}
    assert client.get("/api/v1/admin/campaigns/pending", headers=bad).status_code == 401


def test_review_queue_and_approval(client: TestClient, admin_header, user_factory, campaign_factory):
    headers, _ = admin_header
    owner = user_factory(company_name="Corner Cafe")
    pending = campaign_factory("Latte promo", status=CampaignStatus.PENDING, owner=owner)

    r = client.get("/api/v1/admin/campaigns/pending", headers=headers)
    assert r.status_code == 200
    rows = r.json()
    assert [row["id"] for row in rows] == [pending.id]
    assert rows[0]["company_name"] == "Corner Cafe"
    assert rows[0]["email"] == owner.email

    r = client.post(f"/api/v1/admin/campaigns/{pending.id}/approve", headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == "approved"

    assert client.get("/api/v1/admin/campaigns/pending", headers=headers).json() == []
    approved = client.get("/api/v1/admin/campaigns/approved", headers=headers).json()
    assert [row["id"] for row in approved] == [pending.id]

    # Now visible to players
    feed = client.get("/api/v1/player/feed?display=1").json()
    assert [i["id"] for i in feed["playlist"]] == [pending.id]

    # Second approval is rejected: only pending campaigns can be reviewed
    again = client.post(f"/api/v1/admin/campaigns/{pending.id}/approve", headers=headers)
    assert again.status_code == 404
    assert again.json()["message"] == "Not found or not pending"


def test_deny(client: TestClient, admin_header, campaign_factory):
    headers, _ = admin_header
    c = campaign_factory("Too loud", status=CampaignStatus.PENDING)
    r = client.post(f"/api/v1/admin/campaigns/{c.id}/deny", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "denied"
    assert client.post("/api/v1/admin/campaigns/9999/deny", headers=headers).status_code == 404


def test_admin_create_is_pre_approved(client: TestClient, admin_header, user_factory):
    headers, admin = admin_header
    # Stored with mixed case by the login service; lookup ignores case on both sides
    owner = user_factory(email="Owner@Example.com")
    payload = {
        "title": "House ad",
        "file_url": "https://cdn.example.com/house.jpg",
        "user_email": "owner@EXAMPLE.com ",
    }
    r = client.post("/api/v1/admin/campaigns/", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["status"] == "approved"
    assert body["user_id"] == owner.id

    r = client.post("/api/v1/admin/campaigns/", json={k: v for k, v in payload.items() if k != "user_email"}, headers=headers)
    assert r.json()["user_id"] == admin.id


def test_admin_create_unknown_owner_email_rejected(client: TestClient, admin_header, db_session: Session):
    headers, _ = admin_header
    payload = {
        "title": "Orphan",
        "file_url": "https://cdn.example.com/orphan.jpg",
        "user_email": "nobody@example.com",
    }
    r = client.post("/api/v1/admin/campaigns/", json=payload, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Unknown user_email"
    assert db_session.query(Campaign).count() == 0


def test_schedule_update(client: TestClient, admin_header, campaign_factory):
    headers, _ = admin_header
    c = campaign_factory("Weekend")
    window = {
        "scheduled_from": (NOW + timedelta(days=1)).isoformat(),
        "scheduled_to": (NOW + timedelta(days=3)).isoformat(),
    }
    r = client.put(f"/api/v1/admin/campaigns/{c.id}/schedule", json=window, headers=headers)
    assert r.status_code == 200, r.text
    assert client.get("/api/v1/player/feed?display=1").json()["playlist"] == []

    backwards = {"scheduled_from": window["scheduled_to"], "scheduled_to": window["scheduled_from"]}
    assert client.put(f"/api/v1/admin/campaigns/{c.id}/schedule", json=backwards, headers=headers).status_code == 422
    assert client.put("/api/v1/admin/campaigns/9999/schedule", json=window, headers=headers).status_code == 404

    deleted = campaign_factory("Deleted", status=CampaignStatus.DELETED)
    r = client.put(f"/api/v1/admin/campaigns/{deleted.id}/schedule", json=window, headers=headers)
    assert r.status_code == 409
    assert r.json()["code"] == "invalid_state"


def test_targeting_get_and_put(client: TestClient, admin_header, campaign_factory):
    headers, _ = admin_header
    c = campaign_factory("Lobby")
    url = f"/api/v1/admin/campaigns/{c.id}/displays"

    assert client.get(url, headers=headers).json() == {"campaign_id": c.id, "display_ids": [], "is_global": True}

    r = client.put(url, json={"display_ids": [2, 42]}, headers=headers)
    assert r.status_code == 200
    assert r.json() == {"campaign_id": c.id, "display_ids": [2], "is_global": False}
    assert client.get("/api/v1/player/feed?display=1").json()["playlist"] == []
    assert [i["id"] for i in client.get("/api/v1/player/feed?display=2").json()["playlist"]] == [c.id]

    r = client.put(url, json={"display_ids": []}, headers=headers)
    assert r.json()["is_global"] is True
    assert client.get("/api/v1/admin/campaigns/9999/displays", headers=headers).status_code == 404


def test_override_duration_clamped(client: TestClient, admin_header, campaign_factory, db_session: Session):
    headers, _ = admin_header
    c = campaign_factory("Breaking")
    r = client.post("/api/v1/admin/overrides", json={"campaign_id": c.id, "display_id": 2, "minutes": 600}, headers=headers)
    assert r.status_code == 201, r.text
    valid_until = datetime.fromisoformat(r.json()["valid_until"].replace("Z", "+00:00"))
    assert valid_until.replace(tzinfo=None) == (NOW + timedelta(minutes=60)).replace(tzinfo=None)

    r = client.post("/api/v1/admin/overrides", json={"campaign_id": c.id, "display_id": 2}, headers=headers)
    valid_until = datetime.fromisoformat(r.json()["valid_until"].replace("Z", "+00:00"))
    assert valid_until.replace(tzinfo=None) == (NOW + timedelta(minutes=10)).replace(tzinfo=None)

    r = client.post("/api/v1/admin/overrides", json={"campaign_id": c.id, "display_id": 2, "minutes": 0}, headers=headers)
    valid_until = datetime.fromisoformat(r.json()["valid_until"].replace("Z", "+00:00"))
    assert valid_until.replace(tzinfo=None) == (NOW + timedelta(minutes=1)).replace(tzinfo=None)

    assert db_session.query(DisplayOverride).count() == 3
    history = client.get("/api/v1/admin/overrides", params={"display": 2}, headers=headers).json()
    assert len(history) == 3
    assert client.get("/api/v1/admin/overrides", params={"display": 1}, headers=headers).json() == []


def test_override_invalid_payload(client: TestClient, admin_header, campaign_factory):
    headers, _ = admin_header
    c = campaign_factory("Breaking")
    r = client.post("/api/v1/admin/overrides", json={"campaign_id": c.id, "display_id": 77}, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid payload"
    r = client.post("/api/v1/admin/overrides", json={"campaign_id": 9999, "display_id": 1}, headers=headers)
    assert r.status_code == 400


def test_override_for_pending_campaign_shows_after_approval(client: TestClient, admin_header, campaign_factory):
    headers, _ = admin_header
    organic = campaign_factory("Organic", created_at=NOW - timedelta(days=5))
    later = campaign_factory("Later", status=CampaignStatus.PENDING)
    client.post("/api/v1/admin/overrides", json={"campaign_id": later.id, "display_id": 1}, headers=headers)
    assert [i["id"] for i in client.get("/api/v1/player/feed?display=1").json()["playlist"]] == [organic.id]

    client.post(f"/api/v1/admin/campaigns/{later.id}/approve", headers=headers)
    assert [i["id"] for i in client.get("/api/v1/player/feed?display=1").json()["playlist"]] == [later.id, organic.id]


def test_hard_delete_removes_dependents(client: TestClient, admin_header, campaign_factory, override_factory, db_session: Session):
    headers, _ = admin_header
    c = campaign_factory("Gone", displays=[1], file_url="https://cdn.example.com/gone.mp4")
    override_factory(1, c.id, NOW + timedelta(minutes=5))
    r = client.post(f"/api/v1/admin/campaigns/{c.id}/delete", headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["file_url"] == "https://cdn.example.com/gone.mp4"

    assert db_session.execute(select(Campaign.id).where(Campaign.id == c.id)).first() is None
    assert db_session.query(DisplayOverride).count() == 0
    assert client.post(f"/api/v1/admin/campaigns/{c.id}/delete", headers=headers).status_code == 404
