from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from backend.auth.dependencies import require_admin
from backend.models.appointment import AppointmentStatus
from backend.models.user import User
from backend.routes.appointment_routes import AppointmentResponse, ContactSummary
from backend.routes.common import database_unavailable, ensure_database_ready, get_scheduling_service
from backend.services.scheduling import SchedulingService

router = APIRouter(tags=['admin'])

MAX_PAGE_SIZE = 100


class AdminAppointmentResponse(AppointmentResponse):
    owner: ContactSummary
    updated_at: datetime | None = None


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class AppointmentPageResponse(BaseModel):
    appointments: list[AdminAppointmentResponse]
    pagination: PaginationResponse


class StatusCount(BaseModel):
    status: str
    count: int


class AppointmentStatsResponse(BaseModel):
    total: int
    by_status: list[StatusCount]
    last_week: int


@router.get('', response_model=AppointmentPageResponse)
def list_appointments(
    status_filter: AppointmentStatus | None = Query(default=None, alias='status'),
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    user_id: int | None = None,
    listing_id: int | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    admin: User = Depends(require_admin),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        result = service.list_all(
            status=status_filter,
            start=start_date,
            end=end_date,
            user_id=user_id,
            listing_id=listing_id,
            page=page,
            limit=limit,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    return AppointmentPageResponse(
        appointments=[AdminAppointmentResponse.model_validate(item) for item in result.appointments],
        pagination=PaginationResponse(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get('/stats/summary', response_model=AppointmentStatsResponse)
def appointment_stats(
    admin: User = Depends(require_admin),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        stats = service.stats()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    return AppointmentStatsResponse(
        total=stats.total,
        by_status=[StatusCount(status=status, count=count) for status, count in sorted(stats.by_status.items())],
        last_week=stats.last_week,
    )


@router.get('/{appointment_id}', response_model=AdminAppointmentResponse)
def get_appointment(
    appointment_id: int,
    admin: User = Depends(require_admin),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        return service.get_appointment(appointment_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
