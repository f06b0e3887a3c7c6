from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from backend.auth.dependencies import get_current_user
from backend.models.appointment import AppointmentStatus
from backend.models.user import User
from backend.routes.common import database_unavailable, ensure_database_ready, get_scheduling_service
from backend.services.appointments import OwnerAction
from backend.services.scheduling import SchedulingService

router = APIRouter(tags=['appointments'])


class CreateAppointmentRequest(BaseModel):
    listing_id: int
    scheduled_at: datetime
    note: str | None = None


class OwnerActionRequest(BaseModel):
    appointment_id: int
    action: OwnerAction
    new_datetime: datetime | None = None
    reason: str | None = None


class ListingSummary(BaseModel):
    id: int
    title: str
    address: str | None = None

    class Config:
        from_attributes = True


class OwnerSummary(BaseModel):
    id: int
    name: str | None = None

    class Config:
        from_attributes = True


class ContactSummary(BaseModel):
    id: int
    name: str | None = None
    email: str
    phone: str | None = None

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    id: int
    listing: ListingSummary
    owner: OwnerSummary
    requester: ContactSummary
    scheduled_at: datetime
    proposed_at: datetime | None = None
    note: str | None = None
    status: AppointmentStatus
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class CancelledAppointmentResponse(BaseModel):
    id: int
    listing_id: int
    status: AppointmentStatus
    scheduled_at: datetime
    cancelled: bool = True


class TransitionResponse(BaseModel):
    id: int
    appointment_id: int
    from_status: str | None = None
    to_status: str
    from_time: datetime | None = None
    to_time: datetime | None = None
    reason: str | None = None
    actor_id: int
    created_at: datetime

    class Config:
        from_attributes = True


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        return service.request_appointment(current_user.id, data.listing_id, data.scheduled_at, data.note)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/me', response_model=list[AppointmentResponse])
def list_my_appointments(
    current_user: User = Depends(get_current_user),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        return service.list_for_requester(current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/owner', response_model=list[AppointmentResponse])
def list_owner_appointments(
    status_filter: AppointmentStatus | None = Query(default=None, alias='status'),
    current_user: User = Depends(get_current_user),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        return service.list_for_owner(current_user.id, status_filter)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/owner/action', response_model=AppointmentResponse)
def owner_action(
    data: OwnerActionRequest,
    current_user: User = Depends(get_current_user),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        return service.owner_act(
            current_user.id,
            data.appointment_id,
            data.action,
            new_datetime=data.new_datetime,
            reason=data.reason,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/{appointment_id}/confirm-reschedule', response_model=AppointmentResponse)
def confirm_reschedule(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        return service.confirm_reschedule(current_user.id, appointment_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.delete('/{appointment_id}', response_model=CancelledAppointmentResponse)
def cancel_my_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        cancelled = service.cancel(current_user.id, appointment_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    return CancelledAppointmentResponse(
        id=cancelled.id,
        listing_id=cancelled.listing_id,
        status=cancelled.status,
        scheduled_at=cancelled.scheduled_at,
    )


@router.get('/{appointment_id}/history', response_model=list[TransitionResponse])
def appointment_history(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        return service.history(current_user.id, appointment_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
