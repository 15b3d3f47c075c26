import pytest

from slotline.core.errors import (
    InvalidTransition,
    NotFound,
    PermissionDenied,
    SlotlineError,
    SlotUnavailable,
    ValidationError,
    slotline_error_to_http,
)


@pytest.mark.parametrize(
    "exc,status_code",
    [
        (ValidationError("bad"), 400),
        (PermissionDenied("no"), 403),
        (NotFound("gone"), 404),
        (SlotUnavailable("taken"), 409),
        (InvalidTransition("nope"), 409),
        (SlotlineError("unexpected"), 500),
    ],
)
def test_status_codes(exc, status_code):
    assert slotline_error_to_http(exc).status_code == status_code


def test_detail_carries_kind_and_details():
    http_exc = slotline_error_to_http(SlotUnavailable("This slot is already taken", timeslot_id="abc"))

    assert http_exc.detail == {
        "error": "SlotUnavailable",
        "message": "This slot is already taken",
        "timeslot_id": "abc",
    }
