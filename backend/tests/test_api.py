import pytest
from fastapi.testclient import TestClient

from slotline.db.session import get_db
from slotline.main import app


@pytest.fixture
def client(db):
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _member(member):
    return {"X-Member-Id": str(member.id)}


GUEST = {"X-Guest-Name": "Sam Guest", "X-Guest-Verification-Id": "verif-0001"}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_generate_and_list_timeslots(client, make_event, host):
    ev = make_event(total_slots=2, slot_duration_minutes=20)

    resp = client.post(f"/events/{ev.id}/timeslots", headers=_member(host))
    assert resp.status_code == 200
    assert [s["start_offset_minutes"] for s in resp.json()["timeslots"]] == [0, 20]

    board = client.get(f"/events/{ev.id}/timeslots").json()
    assert board["total"] == 2
    assert board["timeslots"][0]["claim"] is None


def test_generate_requires_host(client, make_event, performer_a):
    ev = make_event()

    resp = client.post(f"/events/{ev.id}/timeslots", headers=_member(performer_a))

    assert resp.status_code == 403
    assert resp.json()["detail"]["error"] == "PermissionDenied"


def test_claim_taken_slot_returns_conflict(client, slot, performer_a, performer_b):
    assert client.post(f"/timeslots/{slot.id}/claim", headers=_member(performer_a)).status_code == 200

    resp = client.post(f"/timeslots/{slot.id}/claim", headers=_member(performer_b))

    assert resp.status_code == 409
    assert resp.json()["detail"]["error"] == "SlotUnavailable"


def test_guest_joins_waitlist_and_cancels(client, slot, performer_a):
    client.post(f"/timeslots/{slot.id}/claim", headers=_member(performer_a))

    joined = client.post(f"/timeslots/{slot.id}/waitlist", headers=GUEST)
    assert joined.status_code == 200
    body = joined.json()
    assert body["status"] == "waitlist"
    assert body["is_guest"] is True
    assert "guest_verification_id" not in body

    waitlist = client.get(f"/timeslots/{slot.id}/waitlist").json()
    assert waitlist["count"] == 1

    cancelled = client.post(f"/claims/{body['id']}/cancel", headers=GUEST)
    assert cancelled.json()["status"] == "cancelled"


def test_missing_identity_is_forbidden(client, slot):
    resp = client.post(f"/timeslots/{slot.id}/claim")

    assert resp.status_code == 403


def test_bad_member_header_is_bad_request(client, slot):
    resp = client.post(f"/timeslots/{slot.id}/claim", headers={"X-Member-Id": "not-a-uuid"})

    assert resp.status_code == 400


def test_guest_cannot_mark_no_show(client, slot, performer_a):
    claim = client.post(f"/timeslots/{slot.id}/claim", headers=_member(performer_a)).json()

    resp = client.post(f"/claims/{claim['id']}/no-show", headers=GUEST)

    assert resp.status_code == 403


def test_no_show_offer_accept_flow(client, slot, host, performer_a, performer_b):
    a = client.post(f"/timeslots/{slot.id}/claim", headers=_member(performer_a)).json()
    b = client.post(f"/timeslots/{slot.id}/waitlist", headers=_member(performer_b)).json()

    no_show = client.post(f"/claims/{a['id']}/no-show", headers=_member(host))
    assert no_show.json()["status"] == "no_show"

    offered = client.get(f"/claims/{b['id']}").json()
    assert offered["status"] == "offered"
    assert offered["offer_expires_at"] is not None

    accepted = client.post(f"/claims/{b['id']}/accept", headers=_member(performer_b))
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "confirmed"


def test_performed_twice_is_conflict(client, slot, host, performer_a):
    a = client.post(f"/timeslots/{slot.id}/claim", headers=_member(performer_a)).json()
    assert client.post(f"/claims/{a['id']}/performed", headers=_member(host)).status_code == 200

    resp = client.post(f"/claims/{a['id']}/performed", headers=_member(host))

    assert resp.status_code == 409
    assert resp.json()["detail"]["error"] == "InvalidTransition"


def test_delete_own_waitlist_claim(client, slot, performer_a, performer_b):
    client.post(f"/timeslots/{slot.id}/claim", headers=_member(performer_a))
    b = client.post(f"/timeslots/{slot.id}/waitlist", headers=_member(performer_b)).json()

    resp = client.delete(f"/claims/{b['id']}", headers=_member(performer_b))

    assert resp.json() == {"deleted": True, "claim_id": b["id"]}
    assert client.get(f"/claims/{b['id']}").status_code == 404


def test_host_promote_endpoint_reports_no_candidate(client, slot, host):
    resp = client.post(f"/timeslots/{slot.id}/promote", headers=_member(host))

    assert resp.json() == {"timeslot_id": str(slot.id), "promoted_claim_id": None}


def test_host_claim_listing(client, event_with_slots, host, performer_a):
    ev, slots = event_with_slots
    client.post(f"/timeslots/{slots[0].id}/claim", headers=GUEST)
    client.post(f"/timeslots/{slots[1].id}/claim", headers=_member(performer_a))

    listing = client.get(f"/events/{ev.id}/claims", headers=_member(host)).json()

    assert listing["total_claims"] == 2
    assert listing["claims"][0]["guest_verification_id"] == "verif-0001"


def test_lineup_endpoints(client, event_with_slots, host):
    ev, slots = event_with_slots

    assert client.get(f"/events/{ev.id}/lineup").json()["now_playing_timeslot_id"] is None

    put = client.put(f"/events/{ev.id}/lineup", json={"timeslot_id": str(slots[2].id)}, headers=_member(host))
    assert put.json()["now_playing_timeslot_id"] == str(slots[2].id)

    advanced = client.post(f"/events/{ev.id}/lineup/advance", json={"step": -1}, headers=_member(host))
    assert advanced.json()["now_playing_timeslot_id"] == str(slots[1].id)

    cleared = client.put(f"/events/{ev.id}/lineup", json={"timeslot_id": None}, headers=_member(host))
    assert cleared.json()["now_playing_timeslot_id"] is None
