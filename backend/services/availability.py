"""Weekly availability slots and the bookability check built on them."""

import logging
from dataclasses import dataclass
from datetime import datetime, time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.errors import Forbidden, InvalidArgument
from backend.models.availability import AvailabilitySlot
from backend.services.directory import Directory

logger = logging.getLogger(__name__)

DAYS_IN_WEEK = 7


@dataclass(frozen=True)
class SlotWindow:
    day_of_week: int
    start_time: time
    end_time: time


def day_of_week(moment: datetime) -> int:
    """Return the Sunday-based day index (Sunday=0 ... Saturday=6)."""
    return moment.isoweekday() % DAYS_IN_WEEK


def minute_of_day(moment: datetime) -> time:
    return moment.time().replace(second=0, microsecond=0)


def validate_slot(slot: SlotWindow) -> SlotWindow:
    if not 0 <= slot.day_of_week < DAYS_IN_WEEK:
        raise InvalidArgument('Day of week must be between 0 (Sunday) and 6 (Saturday).')

    start_time = slot.start_time.replace(second=0, microsecond=0, tzinfo=None)
    end_time = slot.end_time.replace(second=0, microsecond=0, tzinfo=None)
    if start_time > end_time:
        raise InvalidArgument('Slot start time must not be after its end time.')

    return SlotWindow(day_of_week=slot.day_of_week, start_time=start_time, end_time=end_time)


class AvailabilityStore:
    def __init__(self, db: Session):
        self.db = db

    def list_slots(self, listing_id: int) -> list[AvailabilitySlot]:
        return self.db.query(AvailabilitySlot).filter(
            AvailabilitySlot.listing_id == listing_id,
        ).order_by(AvailabilitySlot.day_of_week.asc(), AvailabilitySlot.start_time.asc()).all()

    def replace_slots(self, owner_id: int, listing_id: int, slots: list[SlotWindow]) -> list[AvailabilitySlot]:
        """Replace every slot of a listing with ``slots``; last writer wins."""
        listing = Directory(self.db).get_listing(listing_id)
        if listing.owner_id != owner_id:
            raise Forbidden('You are not allowed to edit availability for this listing.')

        validated = [validate_slot(slot) for slot in slots]

        try:
            self.db.query(AvailabilitySlot).filter(
                AvailabilitySlot.listing_id == listing_id,
            ).delete(synchronize_session=False)
            self.db.add_all(
                AvailabilitySlot(
                    listing_id=listing_id,
                    day_of_week=slot.day_of_week,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                )
                for slot in validated
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.info('Replaced availability for listing %s with %d slots', listing_id, len(validated))
        return self.list_slots(listing_id)


class SlotValidator:
    def __init__(self, store: AvailabilityStore):
        self.store = store

    def is_bookable(self, listing_id: int, candidate: datetime) -> bool:
        """True iff a slot on the candidate's weekday contains its minute, both ends inclusive."""
        weekday = day_of_week(candidate)
        candidate_time = minute_of_day(candidate)

        for slot in self.store.list_slots(listing_id):
            if slot.day_of_week == weekday and slot.start_time <= candidate_time <= slot.end_time:
                return True

        return False
