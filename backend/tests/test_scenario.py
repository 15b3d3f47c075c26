"""One slot, a member and a guest: claim, queue, no-show, offer, accept."""
from datetime import timedelta

from helpers import NOW, as_member, guest
from slotline.core.constants import CLAIM_CONFIRMED, CLAIM_NO_SHOW, CLAIM_OFFERED, CLAIM_WAITLIST
from slotline.models.timeslot_claim import TimeslotClaim
from slotline.services.claim_ledger import accept_offer, as_utc, claim_slot, get_claim, join_waitlist, mark_no_show
from slotline.services.reputation import get_no_show_count
from slotline.services.slot_generator import generate_timeslots


def test_no_show_hands_slot_to_waitlist(db, make_event, host, performer_a, policy, notifications):
    ev = make_event(total_slots=1)
    (slot,) = generate_timeslots(db, ev.id, 1, 10, True)

    a = claim_slot(db, slot.id, as_member(performer_a))
    assert a.status == CLAIM_CONFIRMED

    guest_b = guest("Bea Guest", "verif-0002")
    b = join_waitlist(db, slot.id, guest_b)
    assert (b.status, b.waitlist_position) == (CLAIM_WAITLIST, 1)

    mark_no_show(db, a.id, host.id, policy, now=NOW)
    a, b = get_claim(db, a.id), get_claim(db, b.id)
    assert a.status == CLAIM_NO_SHOW
    assert b.status == CLAIM_OFFERED
    assert (b.member_id, b.guest_name) == (None, "Bea Guest")
    assert b.waitlist_position is None
    assert as_utc(b.offer_expires_at) == NOW + timedelta(minutes=120)
    assert get_no_show_count(db, performer_a.id) == 1

    accept_offer(db, b.id, guest_b, now=NOW + timedelta(minutes=5))

    statuses = sorted(c.status for c in db.query(TimeslotClaim).filter(TimeslotClaim.timeslot_id == slot.id))
    assert statuses == [CLAIM_CONFIRMED, CLAIM_NO_SHOW]
    assert [t for t, _ in notifications if t.startswith("claim.")] == [
        "claim.confirmed",
        "claim.waitlisted",
        "claim.no_show",
        "claim.offered",
        "claim.confirmed",
    ]
