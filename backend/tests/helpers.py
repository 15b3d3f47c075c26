"""Shared test values and occupant builders."""
from datetime import datetime, timezone

from slotline.core.occupants import GuestOccupant, MemberOccupant

NOW = datetime(2026, 10, 18, 20, 0, tzinfo=timezone.utc)


def as_member(member):
    return MemberOccupant(member_id=member.id)


def guest(name="Sam Guest", ref="verif-0001"):
    return GuestOccupant(name=name, verification_ref=ref)
