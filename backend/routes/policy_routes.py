from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError

from backend.auth.dependencies import require_admin
from backend.core import config
from backend.models.user import User
from backend.routes.common import database_unavailable, ensure_database_ready, get_scheduling_service
from backend.services.scheduling import SchedulingService

router = APIRouter(tags=['admin'])


class SetPolicyRequest(BaseModel):
    user_id: int
    is_blocked: bool
    block_reason: str | None = None

    @field_validator('block_reason')
    @classmethod
    def validate_block_reason(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > config.MAX_BLOCK_REASON_LENGTH:
            raise ValueError(f'Reason must be {config.MAX_BLOCK_REASON_LENGTH} characters or fewer.')

        return normalized


class PolicyResponse(BaseModel):
    user_id: int
    is_blocked: bool
    block_reason: str | None = None
    updated_by: int | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


@router.get('/appointment-policy/{user_id}', response_model=PolicyResponse)
def get_user_policy(
    user_id: int,
    admin: User = Depends(require_admin),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        return service.get_policy(user_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/appointment-policy', response_model=PolicyResponse)
def set_user_policy(
    data: SetPolicyRequest,
    admin: User = Depends(require_admin),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        return service.set_policy(admin.id, data.user_id, data.is_blocked, data.block_reason)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
