import uuid
from datetime import time

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import slotline.models  # noqa: F401
from slotline.core.constants import COHOST_ACCEPTED, ROLE_ADMIN
from slotline.db.base import Base
from slotline.models.event import Event
from slotline.models.event_host import EventHost
from slotline.models.member import Member
from slotline.services import notify
from slotline.services.access_policy import EventHostPolicy
from slotline.services.slot_generator import generate_timeslots


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def sync_notify(monkeypatch):
    """Deliver notifications inline so tests can assert on them."""
    monkeypatch.setattr(notify, "_spawn", lambda target, *args: target(*args))


@pytest.fixture
def notifications():
    received = []

    def sink(event_type, payload):
        received.append((event_type, payload))

    notify.register_sink(sink)
    yield received
    notify.unregister_sink(sink)


@pytest.fixture
def policy():
    return EventHostPolicy()


@pytest.fixture
def make_member(db):
    def _make(display_name=None, role="member"):
        member = Member(id=uuid.uuid4(), display_name=display_name, role=role)
        db.add(member)
        db.commit()
        return member

    return _make


@pytest.fixture
def host(make_member):
    return make_member("Host")


@pytest.fixture
def admin(make_member):
    return make_member("Admin", role=ROLE_ADMIN)


@pytest.fixture
def performer_a(make_member):
    return make_member("Performer A")


@pytest.fixture
def performer_b(make_member):
    return make_member("Performer B")


@pytest.fixture
def performer_c(make_member):
    return make_member("Performer C")


@pytest.fixture
def performer_d(make_member):
    return make_member("Performer D")


@pytest.fixture
def make_event(db, host):
    def _make(total_slots=3, slot_duration_minutes=10, start_time=time(19, 0), **kwargs):
        ev = Event(
            id=uuid.uuid4(),
            title="Open Mic Night",
            host_id=host.id,
            total_slots=total_slots,
            slot_duration_minutes=slot_duration_minutes,
            start_time=start_time,
            **kwargs,
        )
        db.add(ev)
        db.commit()
        return ev

    return _make


@pytest.fixture
def event_with_slots(db, make_event):
    ev = make_event()
    slots = generate_timeslots(db, ev.id, 3, 10, True)
    return ev, slots


@pytest.fixture
def slot(event_with_slots):
    return event_with_slots[1][0]


@pytest.fixture
def add_cohost(db):
    def _add(event_id, member_id, invitation_status=COHOST_ACCEPTED):
        db.add(EventHost(event_id=event_id, member_id=member_id, invitation_status=invitation_status))
        db.commit()

    return _add

