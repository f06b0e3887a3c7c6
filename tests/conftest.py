import os
from dataclasses import dataclass, field
from datetime import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from backend.database import Base  # noqa: E402
from backend.models import appointment_transition, booking_policy  # noqa: E402,F401
from backend.models.availability import AvailabilitySlot  # noqa: E402
from backend.models.listing import Listing  # noqa: E402
from backend.models.user import User  # noqa: E402
from backend.services.notifications import NotificationService  # noqa: E402
from backend.services.scheduling import SchedulingService  # noqa: E402

SUNDAY = 0
MONDAY = 1


@dataclass
class SentNotification:
    to_email: str
    template: str
    data: dict
    attachments: list = field(default_factory=list)


class RecordingNotifier(NotificationService):
    def __init__(self):
        self.sent: list[SentNotification] = []

    def send(self, to_email, template, data, attachments=None):
        self.sent.append(SentNotification(to_email, template, data, list(attachments or [])))


class FailingNotifier(NotificationService):
    def send(self, to_email, template, data, attachments=None):
        raise ConnectionError('SMTP server unreachable')


def _make_engine():
    return create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )


@pytest.fixture
def db():
    engine = _make_engine()
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def broken_db():
    """A session whose database has no tables, so every write fails."""
    engine = _make_engine()
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def owner(db):
    user = User(email='owner@example.com', name='Olivia Owner', phone='050-1234567', role='user')
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def requester(db):
    user = User(email='viewer@example.com', name='Victor Viewer', phone='052-7654321', role='user')
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_user(db):
    user = User(email='other@example.com', name='Someone Else', role='user')
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db):
    user = User(email='admin@example.com', name='Ada Admin', role='admin')
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def listing(db, owner):
    """A listing open for viewings on Sundays between 10:00 and 12:00."""
    item = Listing(owner_id=owner.id, title='3 room apartment', address='12 Herzl St, Beit Shemesh')
    db.add(item)
    db.commit()
    db.refresh(item)

    db.add(AvailabilitySlot(listing_id=item.id, day_of_week=SUNDAY, start_time=time(10, 0), end_time=time(12, 0)))
    db.commit()
    return item


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(db, notifier):
    return SchedulingService(db, notifier=notifier)


@pytest.fixture
def failing_notifier():
    return FailingNotifier()
