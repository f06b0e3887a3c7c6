"""Lifecycle of a single viewing appointment.

PENDING -> APPROVED | REJECTED | RESCHEDULE_PROPOSED (owner actions)
RESCHEDULE_PROPOSED -> APPROVED (requester confirmation)
PENDING | RESCHEDULE_PROPOSED | APPROVED -> deleted (requester cancellation)

Every status write is a conditional update on the status that was read, so a
concurrent writer that got there first turns the loser into ``InvalidState``.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core import config
from backend.core.errors import Forbidden, InvalidArgument, InvalidState, InvalidTime, NotFound
from backend.database import utc_now
from backend.models.appointment import Appointment, AppointmentStatus
from backend.models.appointment_transition import CANCELLED_MARKER
from backend.services.audit import AuditTrail
from backend.services.availability import SlotValidator
from backend.services.directory import Directory
from backend.services.policy import BLOCKED_MESSAGE, PolicyGate

logger = logging.getLogger(__name__)

CANCELLABLE_STATUSES = frozenset({
    AppointmentStatus.PENDING,
    AppointmentStatus.RESCHEDULE_PROPOSED,
    AppointmentStatus.APPROVED,
})


class OwnerAction(str, enum.Enum):
    APPROVE = 'APPROVE'
    REJECT = 'REJECT'
    RESCHEDULE = 'RESCHEDULE'


@dataclass(frozen=True)
class CancelledAppointment:
    """What is left of an appointment after its row has been deleted."""
    id: int
    listing_id: int
    listing_title: str
    requester_id: int
    requester_name: str | None
    owner_id: int
    owner_email: str
    status: AppointmentStatus
    scheduled_at: datetime


def normalize_moment(moment: datetime) -> datetime:
    # Slots are wall-clock times, so only the wall-clock part of the request counts.
    return moment.replace(second=0, microsecond=0, tzinfo=None)


def _normalize_text(value: str | None, max_length: int, label: str) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > max_length:
        raise InvalidArgument(f'{label} must be {max_length} characters or fewer.')

    return normalized


def normalize_note(note: str | None) -> str | None:
    return _normalize_text(note, config.MAX_APPOINTMENT_NOTE_LENGTH, 'Notes')


def normalize_reason(reason: str | None) -> str | None:
    return _normalize_text(reason, config.MAX_ACTION_REASON_LENGTH, 'Reasons')


class AppointmentStateMachine:
    def __init__(
        self,
        db: Session,
        policy_gate: PolicyGate,
        slot_validator: SlotValidator,
        audit: AuditTrail,
    ):
        self.db = db
        self.policy_gate = policy_gate
        self.slot_validator = slot_validator
        self.audit = audit
        self.directory = Directory(db)

    def get(self, appointment_id: int) -> Appointment:
        appointment = self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if appointment is None:
            raise NotFound('Appointment not found.')
        return appointment

    def create(self, requester_id: int, listing_id: int, scheduled_at: datetime, note: str | None = None) -> Appointment:
        self.directory.get_user(requester_id)

        blocked, _reason = self.policy_gate.is_blocked(requester_id)
        if blocked:
            raise Forbidden(BLOCKED_MESSAGE)

        listing = self.directory.get_listing(listing_id)
        if listing.owner_id == requester_id:
            raise Forbidden('You cannot request a viewing of your own listing.')

        scheduled_at = normalize_moment(scheduled_at)
        note = normalize_note(note)

        if not self.slot_validator.is_bookable(listing_id, scheduled_at):
            raise InvalidTime('The selected date and time are not available. Please choose another time.')

        appointment = Appointment(
            listing_id=listing_id,
            requester_id=requester_id,
            owner_id=listing.owner_id,
            scheduled_at=scheduled_at,
            note=note,
            status=AppointmentStatus.PENDING.value,
        )
        try:
            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.info('Appointment %s requested by user %s for listing %s', appointment.id, requester_id, listing_id)
        return appointment

    def owner_act(
        self,
        owner_id: int,
        appointment_id: int,
        action: OwnerAction,
        new_datetime: datetime | None = None,
        reason: str | None = None,
    ) -> Appointment:
        appointment = self.get(appointment_id)
        if appointment.owner_id != owner_id:
            raise Forbidden('You are not allowed to act on this appointment.')

        action = OwnerAction(action)
        if action is OwnerAction.RESCHEDULE and new_datetime is None:
            raise InvalidArgument('A new date and time is required to propose a reschedule.')
        reason = normalize_reason(reason)

        current = AppointmentStatus(appointment.status)
        if current is not AppointmentStatus.PENDING:
            raise InvalidState(f'Only pending appointments can be handled by the owner (status is {current.value}).')

        original_time = appointment.scheduled_at
        if action is OwnerAction.APPROVE:
            target = AppointmentStatus.APPROVED
            values = {'status': target.value}
            from_time, to_time = original_time, None
        elif action is OwnerAction.REJECT:
            target = AppointmentStatus.REJECTED
            values = {'status': target.value}
            from_time, to_time = original_time, None
        else:
            target = AppointmentStatus.RESCHEDULE_PROPOSED
            # The owner is trusted to propose a sane time; it is not checked against slots.
            proposed_at = normalize_moment(new_datetime)
            values = {'status': target.value, 'proposed_at': proposed_at}
            from_time, to_time = original_time, proposed_at

        self.compare_and_set(appointment, current, values)
        self.audit.append(
            appointment.id,
            current,
            target,
            actor_id=owner_id,
            from_time=from_time,
            to_time=to_time,
            reason=reason,
        )
        return appointment

    def confirm_reschedule(self, requester_id: int, appointment_id: int) -> Appointment:
        appointment = self.get(appointment_id)
        if appointment.requester_id != requester_id:
            raise Forbidden('You are not allowed to confirm this appointment.')

        if appointment.status != AppointmentStatus.RESCHEDULE_PROPOSED.value:
            raise InvalidState('This appointment has no reschedule proposal awaiting confirmation.')

        if appointment.proposed_at is None:
            raise InvalidState('No proposed date was found for this appointment.')

        original_time = appointment.scheduled_at
        proposed_at = appointment.proposed_at
        self.compare_and_set(
            appointment,
            AppointmentStatus.RESCHEDULE_PROPOSED,
            {'status': AppointmentStatus.APPROVED.value, 'scheduled_at': proposed_at, 'proposed_at': None},
        )
        self.audit.append(
            appointment.id,
            AppointmentStatus.RESCHEDULE_PROPOSED,
            AppointmentStatus.APPROVED,
            actor_id=requester_id,
            from_time=original_time,
            to_time=proposed_at,
            reason='Proposed time confirmed by requester',
        )
        return appointment

    def cancel(self, requester_id: int, appointment_id: int) -> CancelledAppointment:
        appointment = self.get(appointment_id)
        if appointment.requester_id != requester_id:
            raise Forbidden('Only the user who requested this appointment can cancel it.')

        current = AppointmentStatus(appointment.status)
        if current not in CANCELLABLE_STATUSES:
            raise InvalidState(f'Appointments with status {current.value} cannot be cancelled.')

        snapshot = CancelledAppointment(
            id=appointment.id,
            listing_id=appointment.listing_id,
            listing_title=appointment.listing.title,
            requester_id=appointment.requester_id,
            requester_name=appointment.requester.name,
            owner_id=appointment.owner_id,
            owner_email=appointment.owner.email,
            status=current,
            scheduled_at=appointment.scheduled_at,
        )

        try:
            deleted = self.db.query(Appointment).filter(
                Appointment.id == appointment_id,
                Appointment.status == current.value,
            ).delete(synchronize_session=False)
            if deleted == 0:
                self.db.rollback()
                raise InvalidState('The appointment changed while it was being cancelled. Please reload it.')
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.expunge(appointment)

        logger.info('Appointment %s cancelled by requester %s', appointment_id, requester_id)
        self.audit.append(
            appointment_id,
            current,
            CANCELLED_MARKER,
            actor_id=requester_id,
            from_time=snapshot.scheduled_at,
            reason='Cancelled by requester',
        )
        return snapshot

    def compare_and_set(self, appointment: Appointment, expected: AppointmentStatus, values: dict) -> None:
        """Apply ``values`` only if the stored status still equals ``expected``."""
        expected = AppointmentStatus(expected)
        try:
            updated = self.db.query(Appointment).filter(
                Appointment.id == appointment.id,
                Appointment.status == expected.value,
            ).update({**values, 'updated_at': utc_now()}, synchronize_session=False)
            if updated == 0:
                self.db.rollback()
                raise InvalidState('The appointment changed while it was being updated. Please reload it.')
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        logger.info(
            'Appointment %s moved from %s to %s',
            appointment.id,
            expected.value,
            appointment.status,
        )
