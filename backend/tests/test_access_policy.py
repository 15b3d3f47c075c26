import pytest

from slotline.core.errors import PermissionDenied
from slotline.services.access_policy import require_event_admin


def test_host_administers_own_event(db, make_event, host, policy):
    ev = make_event()

    assert policy.can_administer(db, host.id, ev.id)


def test_admin_role_administers_any_event(db, make_event, admin, policy):
    ev = make_event()

    assert policy.can_administer(db, admin.id, ev.id)


@pytest.mark.parametrize("status,allowed", [("accepted", True), ("pending", False), ("declined", False)])
def test_cohost_needs_accepted_invitation(db, make_event, performer_a, add_cohost, policy, status, allowed):
    ev = make_event()
    add_cohost(ev.id, performer_a.id, invitation_status=status)

    assert policy.can_administer(db, performer_a.id, ev.id) is allowed


def test_stranger_and_anonymous_denied(db, make_event, performer_a, policy):
    ev = make_event()

    assert not policy.can_administer(db, performer_a.id, ev.id)
    assert not policy.can_administer(db, None, ev.id)


def test_require_event_admin_raises(db, make_event, performer_a, policy):
    ev = make_event()

    with pytest.raises(PermissionDenied) as exc_info:
        require_event_admin(db, policy, performer_a.id, ev.id, "mark no-show")

    assert "mark no-show" in exc_info.value.message
    assert exc_info.value.details == {"event_id": str(ev.id)}


def test_custom_policy_is_honoured(db, make_event, performer_a):
    class AllowAll:
        def can_administer(self, db, member_id, event_id):
            return True

    ev = make_event()

    require_event_admin(db, AllowAll(), performer_a.id, ev.id, "update the lineup")
