"""Append-only history for appointment transitions and admin actions.

Writes happen after the transition they describe has been committed. A failed
append is logged on the ``backend.audit`` logger for monitoring and otherwise
ignored so the user-facing action still succeeds.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.models.appointment_transition import AppointmentTransition
from backend.models.booking_policy import AdminAuditLog

audit_logger = logging.getLogger('backend.audit')


def _status_value(status) -> str | None:
    return getattr(status, 'value', status)


class AuditTrail:
    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        appointment_id: int,
        from_status,
        to_status,
        actor_id: int,
        from_time: datetime | None = None,
        to_time: datetime | None = None,
        reason: str | None = None,
    ) -> bool:
        entry = AppointmentTransition(
            appointment_id=appointment_id,
            from_status=_status_value(from_status),
            to_status=_status_value(to_status),
            from_time=from_time,
            to_time=to_time,
            reason=reason,
            actor_id=actor_id,
        )
        return self._write(entry, f'transition {entry.from_status}->{entry.to_status} of appointment {appointment_id}')

    def append_admin_action(self, admin_id: int, action: str, target_id: int, meta: dict | None = None) -> bool:
        entry = AdminAuditLog(admin_id=admin_id, action=action, target_id=target_id, meta=meta or {})
        return self._write(entry, f'admin action {action} on user {target_id}')

    def history(self, appointment_id: int) -> list[AppointmentTransition]:
        return self.db.query(AppointmentTransition).filter(
            AppointmentTransition.appointment_id == appointment_id,
        ).order_by(AppointmentTransition.created_at.asc(), AppointmentTransition.id.asc()).all()

    def _write(self, entry, description: str) -> bool:
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            audit_logger.error('Audit append failed for %s', description, exc_info=True)
            return False
        return True
