"""
Request dependencies: caller identity and access policy.

Identity is verified upstream (auth gateway / identity provider) and forwarded as headers:
X-Member-Id for members, or X-Guest-Name + X-Guest-Verification-Id for verified guests.
"""
import uuid

from fastapi import Depends, Header

from slotline.core.errors import PermissionDenied, ValidationError
from slotline.core.occupants import GuestOccupant, MemberOccupant, Occupant
from slotline.services.access_policy import AccessPolicy, default_policy


def _parse_member_id(raw: str | None) -> uuid.UUID | None:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError as e:
        raise ValidationError("X-Member-Id must be a UUID") from e


def get_caller(
    x_member_id: str | None = Header(None, alias="X-Member-Id"),
    x_guest_name: str | None = Header(None, alias="X-Guest-Name"),
    x_guest_verification_id: str | None = Header(None, alias="X-Guest-Verification-Id"),
) -> Occupant:
    member_id = _parse_member_id(x_member_id)
    if member_id is not None:
        return MemberOccupant(member_id=member_id)
    if x_guest_name or x_guest_verification_id:
        return GuestOccupant(name=x_guest_name or "", verification_ref=x_guest_verification_id or "")
    raise PermissionDenied("Caller identity required (X-Member-Id or verified guest headers)")


def get_member_id(caller: Occupant = Depends(get_caller)) -> uuid.UUID:
    """Host/admin actions need a member; guests never administer."""
    if not isinstance(caller, MemberOccupant):
        raise PermissionDenied("This action requires a member")
    return caller.member_id


def get_access_policy() -> AccessPolicy:
    return default_policy
