from fastapi import BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.database import ensure_scheduling_schema, get_db
from backend.services.scheduling import SchedulingService

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def database_unavailable(exc: SQLAlchemyError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


def get_scheduling_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> SchedulingService:
    return SchedulingService(db, background_tasks=background_tasks)
