"""
Who holds or queues for a slot: a verified member, or a verified guest.

Identity is resolved upstream (the core never verifies). The two column groups on
timeslot_claims are only written through occupant_columns and read through
occupant_of, so "exactly one of member or guest" is a property of the type.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Union

from slotline.core.errors import ValidationError


@dataclass(frozen=True)
class MemberOccupant:
    member_id: uuid.UUID

    @property
    def display_label(self) -> str:
        return f"member:{self.member_id}"


@dataclass(frozen=True)
class GuestOccupant:
    """Guest display name (public) plus a reference to the external verification record holding the contact."""

    name: str
    verification_ref: str

    def __post_init__(self):
        if not (self.name or "").strip():
            raise ValidationError("Guest name is required")
        if not (self.verification_ref or "").strip():
            raise ValidationError("Guest verification reference is required")

    @property
    def display_label(self) -> str:
        return f"guest:{self.name}"


Occupant = Union[MemberOccupant, GuestOccupant]


def occupant_columns(occupant: Occupant) -> dict:
    """Column values for a new claim row."""
    if isinstance(occupant, MemberOccupant):
        return {"member_id": occupant.member_id, "guest_name": None, "guest_verification_id": None}
    if isinstance(occupant, GuestOccupant):
        return {
            "member_id": None,
            "guest_name": occupant.name.strip(),
            "guest_verification_id": occupant.verification_ref.strip(),
        }
    raise ValidationError(f"Unsupported occupant {occupant!r}")


def occupant_of(claim) -> Occupant:
    """Rebuild the tagged occupant from a claim row."""
    if claim.member_id is not None:
        return MemberOccupant(member_id=claim.member_id)
    return GuestOccupant(name=claim.guest_name, verification_ref=claim.guest_verification_id)


def member_id_of(occupant: Occupant | None) -> uuid.UUID | None:
    """Audit id for updated_by: members only; guests have no durable identity."""
    if isinstance(occupant, MemberOccupant):
        return occupant.member_id
    return None


def same_occupant(claim, occupant: Occupant) -> bool:
    """True when the caller is the occupant of the claim. Guests match on their verification record."""
    if isinstance(occupant, MemberOccupant):
        return claim.member_id is not None and claim.member_id == occupant.member_id
    if isinstance(occupant, GuestOccupant):
        return claim.member_id is None and claim.guest_verification_id == occupant.verification_ref.strip()
    return False
