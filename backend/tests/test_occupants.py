import uuid
from types import SimpleNamespace

import pytest

from slotline.core.errors import ValidationError
from slotline.core.occupants import (
    GuestOccupant,
    MemberOccupant,
    member_id_of,
    occupant_columns,
    occupant_of,
    same_occupant,
)


def _claim(member_id=None, guest_name=None, guest_verification_id=None):
    return SimpleNamespace(member_id=member_id, guest_name=guest_name, guest_verification_id=guest_verification_id)


@pytest.mark.parametrize("name,ref", [("", "v-1"), ("   ", "v-1"), ("Sam", ""), ("Sam", None)])
def test_guest_requires_name_and_verification(name, ref):
    with pytest.raises(ValidationError):
        GuestOccupant(name=name, verification_ref=ref)


def test_columns_are_exclusive():
    member_id = uuid.uuid4()

    assert occupant_columns(MemberOccupant(member_id)) == {
        "member_id": member_id,
        "guest_name": None,
        "guest_verification_id": None,
    }
    assert occupant_columns(GuestOccupant(" Sam ", " v-1 ")) == {
        "member_id": None,
        "guest_name": "Sam",
        "guest_verification_id": "v-1",
    }


def test_occupant_of_rebuilds_tagged_value():
    member_id = uuid.uuid4()

    assert occupant_of(_claim(member_id=member_id)) == MemberOccupant(member_id)
    assert occupant_of(_claim(guest_name="Sam", guest_verification_id="v-1")) == GuestOccupant("Sam", "v-1")


def test_guests_match_on_verification_record_not_name():
    claim = _claim(guest_name="Sam", guest_verification_id="v-1")

    assert same_occupant(claim, GuestOccupant("Samuel", "v-1"))
    assert not same_occupant(claim, GuestOccupant("Sam", "v-2"))
    assert not same_occupant(claim, MemberOccupant(uuid.uuid4()))


def test_member_match():
    member_id = uuid.uuid4()
    claim = _claim(member_id=member_id)

    assert same_occupant(claim, MemberOccupant(member_id))
    assert not same_occupant(claim, MemberOccupant(uuid.uuid4()))
    assert not same_occupant(claim, GuestOccupant("Sam", "v-1"))


def test_only_members_are_audited():
    member_id = uuid.uuid4()

    assert member_id_of(MemberOccupant(member_id)) == member_id
    assert member_id_of(GuestOccupant("Sam", "v-1")) is None
    assert member_id_of(None) is None
