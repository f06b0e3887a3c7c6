from datetime import datetime, time

import pytest

from backend.core.errors import Forbidden, InvalidArgument, NotFound
from backend.models.listing import Listing
from backend.services.availability import (
    AvailabilityStore,
    SlotWindow,
    SlotValidator,
    day_of_week,
    minute_of_day,
)


@pytest.fixture
def store(db):
    return AvailabilityStore(db)


@pytest.fixture
def validator(store):
    return SlotValidator(store)


def test_day_of_week_counts_from_sunday() -> None:
    assert day_of_week(datetime(2026, 1, 4, 9, 0)) == 0
    assert day_of_week(datetime(2026, 1, 5, 9, 0)) == 1
    assert day_of_week(datetime(2026, 1, 10, 9, 0)) == 6


def test_minute_of_day_drops_seconds() -> None:
    assert minute_of_day(datetime(2026, 1, 4, 12, 0, 59, 999)) == time(12, 0)


@pytest.mark.parametrize(
    ('candidate', 'expected'),
    [
        (datetime(2026, 1, 4, 10, 0), True),
        (datetime(2026, 1, 4, 11, 0), True),
        (datetime(2026, 1, 4, 12, 0), True),
        (datetime(2026, 1, 4, 12, 0, 30), True),
        (datetime(2026, 1, 4, 9, 59), False),
        (datetime(2026, 1, 4, 12, 1), False),
        (datetime(2026, 1, 4, 13, 0), False),
        (datetime(2026, 1, 5, 11, 0), False),
        (datetime(2026, 1, 11, 10, 30), True),
    ],
)
def test_is_bookable_matches_weekday_and_inclusive_range(validator, listing, candidate, expected) -> None:
    assert validator.is_bookable(listing.id, candidate) is expected


def test_is_bookable_is_false_without_slots(db, owner, validator) -> None:
    bare = Listing(owner_id=owner.id, title='Empty listing')
    db.add(bare)
    db.commit()

    assert validator.is_bookable(bare.id, datetime(2026, 1, 4, 11, 0)) is False


def test_is_bookable_accepts_any_matching_slot(store, validator, listing, owner) -> None:
    store.replace_slots(owner.id, listing.id, [
        SlotWindow(day_of_week=1, start_time=time(9, 0), end_time=time(10, 0)),
        SlotWindow(day_of_week=1, start_time=time(17, 0), end_time=time(19, 30)),
    ])

    assert validator.is_bookable(listing.id, datetime(2026, 1, 5, 18, 15)) is True
    assert validator.is_bookable(listing.id, datetime(2026, 1, 5, 12, 0)) is False


def test_replace_slots_replaces_the_whole_set(store, listing, owner) -> None:
    slots = store.replace_slots(owner.id, listing.id, [
        SlotWindow(day_of_week=3, start_time=time(16, 0), end_time=time(18, 0)),
        SlotWindow(day_of_week=1, start_time=time(9, 0), end_time=time(11, 0)),
    ])

    assert [(slot.day_of_week, slot.start_time) for slot in slots] == [(1, time(9, 0)), (3, time(16, 0))]
    assert all(slot.day_of_week != 0 for slot in store.list_slots(listing.id))


def test_replace_slots_with_empty_list_clears_availability(store, validator, listing, owner) -> None:
    assert store.replace_slots(owner.id, listing.id, []) == []
    assert validator.is_bookable(listing.id, datetime(2026, 1, 4, 11, 0)) is False


def test_replace_slots_allows_single_minute_slot(store, validator, listing, owner) -> None:
    store.replace_slots(owner.id, listing.id, [SlotWindow(day_of_week=0, start_time=time(8, 0), end_time=time(8, 0))])

    assert validator.is_bookable(listing.id, datetime(2026, 1, 4, 8, 0)) is True
    assert validator.is_bookable(listing.id, datetime(2026, 1, 4, 8, 1)) is False


def test_replace_slots_rejects_non_owner(store, listing, other_user) -> None:
    with pytest.raises(Forbidden):
        store.replace_slots(other_user.id, listing.id, [])

    assert len(store.list_slots(listing.id)) == 1


def test_replace_slots_rejects_missing_listing(store, owner) -> None:
    with pytest.raises(NotFound):
        store.replace_slots(owner.id, 999, [])


@pytest.mark.parametrize(
    'slot',
    [
        SlotWindow(day_of_week=7, start_time=time(9, 0), end_time=time(10, 0)),
        SlotWindow(day_of_week=-1, start_time=time(9, 0), end_time=time(10, 0)),
        SlotWindow(day_of_week=2, start_time=time(11, 0), end_time=time(10, 0)),
    ],
)
def test_replace_slots_rejects_invalid_slots_and_keeps_existing(store, listing, owner, slot) -> None:
    with pytest.raises(InvalidArgument):
        store.replace_slots(owner.id, listing.id, [slot])

    assert [slot.day_of_week for slot in store.list_slots(listing.id)] == [0]
