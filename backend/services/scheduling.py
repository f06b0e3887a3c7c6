"""Use-case entry points for viewing appointments.

Each write consults the policy gate and slot validator through the state
machine, lets it commit the transition, and only then notifies the other
party. When the service is built for a request, delivery is queued on the
request's background tasks and runs after the response is sent. A
notification that fails is logged and does not undo the transition.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from fastapi import BackgroundTasks
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from backend.core.errors import Forbidden, InvalidArgument, NotFound
from backend.database import utc_now
from backend.models.appointment import Appointment, AppointmentStatus
from backend.models.appointment_transition import AppointmentTransition
from backend.models.availability import AvailabilitySlot
from backend.models.booking_policy import BookingPolicy
from backend.services import email_templates
from backend.services.appointments import AppointmentStateMachine, CancelledAppointment, OwnerAction, normalize_reason
from backend.services.audit import AuditTrail
from backend.services.availability import AvailabilityStore, SlotWindow, SlotValidator
from backend.services.calendar_invite import Attachment, build_viewing_invite
from backend.services.directory import Directory
from backend.services.notifications import NotificationService, get_notifier
from backend.services.policy import PolicyGate

logger = logging.getLogger(__name__)

RECENT_WINDOW_DAYS = 7


@dataclass
class AppointmentPage:
    appointments: list[Appointment]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


@dataclass
class AppointmentStats:
    total: int
    by_status: dict[str, int]
    last_week: int


class SchedulingService:
    def __init__(
        self,
        db: Session,
        notifier: NotificationService | None = None,
        audit: AuditTrail | None = None,
        background_tasks: BackgroundTasks | None = None,
    ):
        self.db = db
        self.background_tasks = background_tasks
        self.notifier = notifier or get_notifier()
        self.audit = audit or AuditTrail(db)
        self.availability = AvailabilityStore(db)
        self.slot_validator = SlotValidator(self.availability)
        self.policy_gate = PolicyGate(db, self.audit)
        self.appointments = AppointmentStateMachine(db, self.policy_gate, self.slot_validator, self.audit)

    # Appointments

    def request_appointment(
        self,
        requester_id: int,
        listing_id: int,
        scheduled_at: datetime,
        note: str | None = None,
    ) -> Appointment:
        appointment = self.appointments.create(requester_id, listing_id, scheduled_at, note)

        self._notify(
            appointment.owner.email,
            email_templates.REQUEST_RECEIVED,
            {
                'appointment_id': appointment.id,
                'listing_id': appointment.listing_id,
                'listing_title': appointment.listing.title,
                'requester_name': appointment.requester.name,
                'scheduled_at': appointment.scheduled_at,
                'note': appointment.note,
            },
        )
        return appointment

    def list_for_requester(self, user_id: int) -> list[Appointment]:
        return self.db.query(Appointment).filter(
            Appointment.requester_id == user_id,
        ).order_by(Appointment.scheduled_at.asc()).all()

    def list_for_owner(self, user_id: int, status: AppointmentStatus | None = None) -> list[Appointment]:
        query = self.db.query(Appointment).filter(Appointment.owner_id == user_id)
        if status is not None:
            query = query.filter(Appointment.status == AppointmentStatus(status).value)
        return query.order_by(Appointment.scheduled_at.asc()).all()

    def owner_act(
        self,
        owner_id: int,
        appointment_id: int,
        action: OwnerAction,
        new_datetime: datetime | None = None,
        reason: str | None = None,
    ) -> Appointment:
        action = OwnerAction(action)
        reason = normalize_reason(reason)
        appointment = self.appointments.owner_act(owner_id, appointment_id, action, new_datetime, reason)
        listing = appointment.listing
        requester_email = appointment.requester.email

        if action is OwnerAction.APPROVE:
            owner = appointment.owner
            invite = build_viewing_invite(appointment.id, listing.title, listing.address, appointment.scheduled_at)
            self._notify(
                requester_email,
                email_templates.APPROVED,
                {
                    'listing_title': listing.title,
                    'listing_address': listing.address,
                    'owner_name': owner.name,
                    'owner_phone': owner.phone,
                    'owner_email': owner.email,
                    'scheduled_at': appointment.scheduled_at,
                },
                attachments=[invite],
            )
        elif action is OwnerAction.REJECT:
            self._notify(
                requester_email,
                email_templates.REJECTED,
                {'listing_title': listing.title, 'reason': reason},
            )
        else:
            self._notify(
                requester_email,
                email_templates.RESCHEDULE_PROPOSED,
                {
                    'appointment_id': appointment.id,
                    'listing_title': listing.title,
                    'original_at': appointment.scheduled_at,
                    'proposed_at': appointment.proposed_at,
                    'reason': reason,
                },
            )

        return appointment

    def confirm_reschedule(self, requester_id: int, appointment_id: int) -> Appointment:
        appointment = self.appointments.confirm_reschedule(requester_id, appointment_id)
        listing = appointment.listing

        invite = build_viewing_invite(
            appointment.id,
            listing.title,
            listing.address,
            appointment.scheduled_at,
            description=f'Confirmed property viewing: {listing.title}',
        )
        self._notify(
            appointment.owner.email,
            email_templates.RESCHEDULE_CONFIRMED,
            {
                'listing_title': listing.title,
                'listing_address': listing.address,
                'requester_name': appointment.requester.name,
                'scheduled_at': appointment.scheduled_at,
            },
            attachments=[invite],
        )
        return appointment

    def cancel(self, requester_id: int, appointment_id: int) -> CancelledAppointment:
        cancelled = self.appointments.cancel(requester_id, appointment_id)

        self._notify(
            cancelled.owner_email,
            email_templates.CANCELLED,
            {
                'listing_title': cancelled.listing_title,
                'requester_name': cancelled.requester_name,
                'scheduled_at': cancelled.scheduled_at,
            },
        )
        return cancelled

    def history(self, user_id: int, appointment_id: int) -> list[AppointmentTransition]:
        """Transitions of an appointment, visible to its parties.

        Cancelled appointments no longer exist, so their history is visible to
        any user who acted on them.
        """
        appointment = self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        transitions = self.audit.history(appointment_id)

        if appointment is not None:
            if user_id not in (appointment.requester_id, appointment.owner_id):
                raise Forbidden('You are not allowed to view this appointment.')
            return transitions

        if not transitions:
            raise NotFound('Appointment not found.')
        if user_id not in {transition.actor_id for transition in transitions}:
            raise Forbidden('You are not allowed to view this appointment.')
        return transitions

    # Availability

    def get_availability(self, listing_id: int) -> list[AvailabilitySlot]:
        return self.availability.list_slots(listing_id)

    def set_availability(self, owner_id: int, listing_id: int, slots: list[SlotWindow]) -> list[AvailabilitySlot]:
        return self.availability.replace_slots(owner_id, listing_id, slots)

    # Booking policy

    def get_policy(self, user_id: int) -> BookingPolicy:
        policy = self.policy_gate.get_policy(user_id)
        if policy is None:
            Directory(self.db).get_user(user_id)
            return BookingPolicy(user_id=user_id, is_blocked=False, block_reason=None, updated_by=None)
        return policy

    def set_policy(self, admin_id: int, user_id: int, blocked: bool, reason: str | None = None) -> BookingPolicy:
        return self.policy_gate.set_policy(admin_id, user_id, blocked, reason)

    # Administration

    def list_all(
        self,
        status: AppointmentStatus | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        user_id: int | None = None,
        listing_id: int | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> AppointmentPage:
        """Every appointment, newest request first, for the admin console.

        ``user_id`` matches the user as either requester or owner; ``start``
        and ``end`` bound the scheduled time inclusively.
        """
        if page < 1 or limit < 1:
            raise InvalidArgument('Page and limit must be positive.')
        if start is not None and end is not None and start > end:
            raise InvalidArgument('The start date must not be after the end date.')

        query = self.db.query(Appointment)
        if status is not None:
            query = query.filter(Appointment.status == AppointmentStatus(status).value)
        if user_id is not None:
            query = query.filter(or_(Appointment.requester_id == user_id, Appointment.owner_id == user_id))
        if listing_id is not None:
            query = query.filter(Appointment.listing_id == listing_id)
        if start is not None:
            query = query.filter(Appointment.scheduled_at >= start)
        if end is not None:
            query = query.filter(Appointment.scheduled_at <= end)

        total = query.count()
        appointments = query.order_by(
            Appointment.created_at.desc(),
            Appointment.id.desc(),
        ).offset((page - 1) * limit).limit(limit).all()
        return AppointmentPage(appointments=appointments, page=page, limit=limit, total=total)

    def get_appointment(self, appointment_id: int) -> Appointment:
        return self.appointments.get(appointment_id)

    def stats(self, now: datetime | None = None) -> AppointmentStats:
        now = now or utc_now()
        rows = self.db.query(Appointment.status, func.count(Appointment.id)).group_by(Appointment.status).all()
        by_status = {status: count for status, count in rows}
        last_week = self.db.query(Appointment).filter(
            Appointment.created_at >= now - timedelta(days=RECENT_WINDOW_DAYS),
        ).count()
        return AppointmentStats(total=sum(by_status.values()), by_status=by_status, last_week=last_week)

    def _notify(
        self,
        to_email: str,
        template: str,
        data: dict,
        attachments: list[Attachment] | None = None,
    ) -> None:
        if self.background_tasks is not None:
            self.background_tasks.add_task(self._deliver, to_email, template, data, attachments)
        else:
            self._deliver(to_email, template, data, attachments)

    def _deliver(
        self,
        to_email: str,
        template: str,
        data: dict,
        attachments: list[Attachment] | None = None,
    ) -> None:
        try:
            self.notifier.send(to_email, template, data, attachments)
        except Exception:
            logger.exception('Failed to send %s notification to %s', template, to_email)
