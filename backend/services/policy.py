"""Per-user booking eligibility."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.models.booking_policy import BookingPolicy
from backend.services.audit import AuditTrail
from backend.services.directory import Directory

logger = logging.getLogger(__name__)

BLOCK_ACTION = 'BLOCK_APPOINTMENTS'
UNBLOCK_ACTION = 'UNBLOCK_APPOINTMENTS'
BLOCKED_MESSAGE = 'Booking viewings is not available for your account right now. Contact support for details.'


class PolicyGate:
    def __init__(self, db: Session, audit: AuditTrail | None = None):
        self.db = db
        self.audit = audit or AuditTrail(db)

    def get_policy(self, user_id: int) -> BookingPolicy | None:
        return self.db.query(BookingPolicy).filter(BookingPolicy.user_id == user_id).first()

    def is_blocked(self, user_id: int) -> tuple[bool, str | None]:
        """Return whether the user may not book, and the stored reason if any.

        A missing policy record means the user is not blocked. The user-level
        ``meetings_blocked`` flag blocks as well.
        """
        policy = self.get_policy(user_id)
        if policy is not None and policy.is_blocked:
            return True, policy.block_reason

        user = Directory(self.db).get_user(user_id)
        if user.meetings_blocked:
            return True, None

        return False, None

    def set_policy(self, admin_id: int, user_id: int, blocked: bool, reason: str | None = None) -> BookingPolicy:
        Directory(self.db).get_user(user_id)

        try:
            policy = self.get_policy(user_id)
            if policy is None:
                policy = BookingPolicy(user_id=user_id)
                self.db.add(policy)
            policy.is_blocked = blocked
            policy.block_reason = reason
            policy.updated_by = admin_id
            self.db.commit()
            self.db.refresh(policy)
        except SQLAlchemyError:
            self.db.rollback()
            raise

        action = BLOCK_ACTION if blocked else UNBLOCK_ACTION
        logger.info('Admin %s applied %s to user %s', admin_id, action, user_id)
        self.audit.append_admin_action(admin_id, action, user_id, meta={'reason': reason})
        return policy
