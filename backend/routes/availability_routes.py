from datetime import time

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError

from backend.auth.dependencies import get_current_user
from backend.models.user import User
from backend.routes.common import database_unavailable, ensure_database_ready, get_scheduling_service
from backend.services.availability import SlotWindow
from backend.services.scheduling import SchedulingService

router = APIRouter(tags=['availability'])

MAX_SLOTS_PER_LISTING = 50


class SlotRequest(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time

    @field_validator('start_time', 'end_time')
    @classmethod
    def truncate_to_minute(cls, value: time) -> time:
        return value.replace(second=0, microsecond=0, tzinfo=None)

    @model_validator(mode='after')
    def validate_range(self) -> 'SlotRequest':
        if self.start_time > self.end_time:
            raise ValueError('Slot start time must not be after its end time.')
        return self


class SetAvailabilityRequest(BaseModel):
    slots: list[SlotRequest] = Field(default_factory=list, max_length=MAX_SLOTS_PER_LISTING)


class AvailabilitySlotResponse(BaseModel):
    id: int
    listing_id: int
    day_of_week: int
    start_time: time
    end_time: time

    class Config:
        from_attributes = True


@router.get('/{listing_id}', response_model=list[AvailabilitySlotResponse])
def get_listing_availability(
    listing_id: int,
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        return service.get_availability(listing_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.put('/{listing_id}', response_model=list[AvailabilitySlotResponse])
def set_listing_availability(
    listing_id: int,
    data: SetAvailabilityRequest,
    current_user: User = Depends(get_current_user),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    slots = [
        SlotWindow(day_of_week=slot.day_of_week, start_time=slot.start_time, end_time=slot.end_time)
        for slot in data.slots
    ]
    try:
        return service.set_availability(current_user.id, listing_id, slots)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
