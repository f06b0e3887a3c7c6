from datetime import datetime, time

import pytest
from pydantic import ValidationError

from backend.core.errors import Forbidden
from backend.routes.availability_routes import (
    SetAvailabilityRequest,
    SlotRequest,
    get_listing_availability,
    set_listing_availability,
)


def test_slot_request_truncates_seconds() -> None:
    slot = SlotRequest(day_of_week=0, start_time=time(10, 0, 45), end_time=time(12, 0, 59))

    assert (slot.start_time, slot.end_time) == (time(10, 0), time(12, 0))


@pytest.mark.parametrize(
    'payload',
    [
        {'day_of_week': 7, 'start_time': '10:00', 'end_time': '12:00'},
        {'day_of_week': -1, 'start_time': '10:00', 'end_time': '12:00'},
        {'day_of_week': 2, 'start_time': '13:00', 'end_time': '12:00'},
        {'day_of_week': 2, 'start_time': 'noon', 'end_time': '13:00'},
    ],
)
def test_slot_request_rejects_invalid_slots(payload) -> None:
    with pytest.raises(ValidationError):
        SlotRequest(**payload)


def test_get_listing_availability_is_public(service, listing) -> None:
    slots = get_listing_availability(listing_id=listing.id, service=service)

    assert [(slot.day_of_week, slot.start_time, slot.end_time) for slot in slots] == [(0, time(10, 0), time(12, 0))]


def test_get_listing_availability_for_unknown_listing_is_empty(service) -> None:
    assert get_listing_availability(listing_id=999, service=service) == []


def test_set_listing_availability_replaces_slots(service, listing, owner) -> None:
    data = SetAvailabilityRequest(slots=[
        {'day_of_week': 1, 'start_time': '09:00', 'end_time': '11:00'},
        {'day_of_week': 4, 'start_time': '18:00', 'end_time': '20:00'},
    ])

    slots = set_listing_availability(listing_id=listing.id, data=data, current_user=owner, service=service)

    assert [slot.day_of_week for slot in slots] == [1, 4]
    assert service.slot_validator.is_bookable(listing.id, datetime(2026, 1, 4, 11, 0)) is False
    assert service.slot_validator.is_bookable(listing.id, datetime(2026, 1, 5, 11, 0)) is True


def test_set_listing_availability_rejects_non_owner(service, listing, requester) -> None:
    with pytest.raises(Forbidden):
        set_listing_availability(
            listing_id=listing.id,
            data=SetAvailabilityRequest(slots=[]),
            current_user=requester,
            service=service,
        )

    assert len(get_listing_availability(listing_id=listing.id, service=service)) == 1
