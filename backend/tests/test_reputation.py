import uuid

from helpers import guest, as_member
from slotline.services.claim_ledger import claim_slot, mark_no_show
from slotline.services.reputation import get_no_show_count, increment_no_show_count


def test_increment_is_atomic_update(db, performer_a):
    assert increment_no_show_count(db, performer_a.id) == 1
    assert increment_no_show_count(db, performer_a.id) == 1
    db.commit()

    assert get_no_show_count(db, performer_a.id) == 2


def test_increment_unknown_member_updates_nothing(db):
    assert increment_no_show_count(db, uuid.uuid4()) == 0


def test_member_no_show_counts_once(db, event_with_slots, host, performer_a, performer_b, policy):
    _, slots = event_with_slots
    claim = claim_slot(db, slots[0].id, as_member(performer_a))

    mark_no_show(db, claim.id, host.id, policy)

    assert get_no_show_count(db, performer_a.id) == 1
    assert get_no_show_count(db, performer_b.id) == 0


def test_guest_no_show_touches_no_counter(db, event_with_slots, host, performer_a, policy):
    _, slots = event_with_slots
    claim = claim_slot(db, slots[0].id, guest())

    mark_no_show(db, claim.id, host.id, policy)

    assert get_no_show_count(db, performer_a.id) == 0
    assert get_no_show_count(db, host.id) == 0
