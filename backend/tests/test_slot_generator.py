import uuid

import pytest

from helpers import as_member
from slotline.core.errors import NotFound, PermissionDenied, ValidationError
from slotline.models.lineup_state import LineupState
from slotline.models.timeslot import Timeslot
from slotline.models.timeslot_claim import TimeslotClaim
from slotline.services.claim_ledger import claim_slot
from slotline.services.lineup import set_now_playing
from slotline.services.slot_generator import generate_timeslots, get_event_timeslots, regenerate_event_timeslots


def test_generate_with_start_time_sets_offsets(db, make_event):
    ev = make_event()

    slots = generate_timeslots(db, ev.id, 4, 15, True)

    assert [s.slot_index for s in slots] == [0, 1, 2, 3]
    assert [s.start_offset_minutes for s in slots] == [0, 15, 30, 45]
    assert all(s.duration_minutes == 15 for s in slots)


def test_generate_without_start_time_leaves_offsets_null(db, make_event):
    ev = make_event(start_time=None)

    slots = generate_timeslots(db, ev.id, 2, 10, False)

    assert [s.start_offset_minutes for s in slots] == [None, None]


@pytest.mark.parametrize("total_slots", [0, -1, None])
def test_generate_rejects_non_positive_total(db, make_event, total_slots):
    ev = make_event()

    with pytest.raises(ValidationError):
        generate_timeslots(db, ev.id, total_slots, 10, True)

    assert get_event_timeslots(db, ev.id) == []


@pytest.mark.parametrize("duration", [4, 91])
def test_generate_rejects_duration_out_of_range(db, make_event, duration):
    ev = make_event()

    with pytest.raises(ValidationError):
        generate_timeslots(db, ev.id, 3, duration, True)


def test_generate_unknown_event(db):
    with pytest.raises(NotFound):
        generate_timeslots(db, uuid.uuid4(), 3, 10, True)


def test_regeneration_discards_claims_and_lineup(db, make_event, host, performer_a, policy, notifications):
    ev = make_event()
    first = generate_timeslots(db, ev.id, 3, 10, True)
    claim_slot(db, first[0].id, as_member(performer_a))
    set_now_playing(db, ev.id, first[0].id, host.id, policy)
    notifications.clear()

    second = generate_timeslots(db, ev.id, 5, 20, True)

    assert len(second) == 5
    assert db.query(Timeslot).filter(Timeslot.event_id == ev.id).count() == 5
    assert db.query(TimeslotClaim).count() == 0
    state = db.query(LineupState).filter(LineupState.event_id == ev.id).one()
    assert state.now_playing_timeslot_id is None
    assert notifications[-1][0] == "timeslots.regenerated"
    assert notifications[-1][1]["claims_discarded"] == 1


def test_regenerate_from_event_configuration(db, make_event, host, policy):
    ev = make_event(total_slots=6, slot_duration_minutes=5)

    slots = regenerate_event_timeslots(db, ev.id, host.id, policy)

    assert len(slots) == 6
    assert slots[-1].start_offset_minutes == 25


def test_regenerate_requires_event_admin(db, make_event, performer_a, policy):
    ev = make_event()

    with pytest.raises(PermissionDenied):
        regenerate_event_timeslots(db, ev.id, performer_a.id, policy)
    assert not db.in_transaction()
    assert db.query(Timeslot).filter(Timeslot.event_id == ev.id).count() == 0


def test_regenerate_requires_total_slots(db, make_event, host, policy):
    ev = make_event(total_slots=None)

    with pytest.raises(ValidationError):
        regenerate_event_timeslots(db, ev.id, host.id, policy)
    assert not db.in_transaction()


def test_regenerate_unknown_event_leaves_no_open_transaction(db, host, policy):
    with pytest.raises(NotFound):
        regenerate_event_timeslots(db, uuid.uuid4(), host.id, policy)
    assert not db.in_transaction()
