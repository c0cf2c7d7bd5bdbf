from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple
import logging

from ..core.config import settings
from ..core.exceptions import InvalidTransitionError, RemoteError, ValidationError
from ..core.security import UserRole
from ..models.appointment import Appointment, AppointmentStatus, DoctorSummary, TIME_SLOTS
from .api_client import parse_items
from .session_store import SessionStore

logger = logging.getLogger(__name__)

PENDING = AppointmentStatus.PENDING
APPROVED = AppointmentStatus.APPROVED
COMPLETED = AppointmentStatus.COMPLETED
CANCELLED = AppointmentStatus.CANCELLED

# (from, to, actor) triples; everything else is rejected
TRANSITIONS = frozenset({
    (PENDING, APPROVED, UserRole.DOCTOR),
    (PENDING, CANCELLED, UserRole.DOCTOR),
    (PENDING, CANCELLED, UserRole.PATIENT),  # patient withdrawal
    (APPROVED, CANCELLED, UserRole.DOCTOR),
    (APPROVED, COMPLETED, UserRole.DOCTOR),
})

def check_transition(current_status, new_status, role) -> None:
    """Raise InvalidTransitionError unless the actor may make this change."""
    try:
        key = (AppointmentStatus(current_status), AppointmentStatus(new_status), UserRole(role))
    except ValueError:
        raise InvalidTransitionError(current_status, new_status, role)

    if key not in TRANSITIONS:
        raise InvalidTransitionError(*key)

def booking_window(today: Optional[date] = None) -> Tuple[date, date]:
    """First and last bookable day, both inclusive."""
    today = _as_day(today) or date.today()
    return today + timedelta(days=1), today + timedelta(days=settings.BOOKING_WINDOW_DAYS)

def validate_booking(doctor_id: str, day: date, time_slot: str, symptoms: str, today: Optional[date] = None) -> None:
    day = _as_day(day)
    if not doctor_id:
        raise ValidationError("Please select a doctor")

    earliest, latest = booking_window(today)
    if not isinstance(day, date) or day < earliest or day > latest:
        raise ValidationError(
            f"Appointments can be booked from {earliest.isoformat()} to {latest.isoformat()}"
        )

    if time_slot not in TIME_SLOTS:
        raise ValidationError(f"'{time_slot}' is not an available time slot")

    if not symptoms or not symptoms.strip():
        raise ValidationError("Please describe your symptoms")

def _unwrap(data, key: str):
    if isinstance(data, dict) and isinstance(data.get(key), dict):
        return data[key]
    return data

def _as_day(value):
    # datetime is a date subclass but does not compare with one
    return value.date() if isinstance(value, datetime) else value

class AppointmentService:
    """Appointment lifecycle for the current session.

    The service is the source of truth: every write is followed by a full
    refresh of ``appointments`` and local state is never patched.
    """

    def __init__(self, store: SessionStore):
        self.store = store
        self.api = store.api
        self.appointments: List[Appointment] = []
        self._in_flight = set()

    def get(self, appointment_id: str) -> Optional[Appointment]:
        for appointment in self.appointments:
            if appointment.id == str(appointment_id):
                return appointment
        return None

    async def refresh(self) -> List[Appointment]:
        """Replace the collection with the service's role-scoped list."""
        self.store.require_actor()
        data = await self.api.list_appointments()
        self.appointments = parse_items(Appointment, data, "appointments")
        return self.appointments

    async def doctors(self) -> List[DoctorSummary]:
        self.store.require_actor()
        return parse_items(DoctorSummary, await self.api.doctors(), "doctors")

    async def book(self, doctor_id: str, day: date, time_slot: str, symptoms: str, today: Optional[date] = None) -> Appointment:
        """Request an appointment; it starts out pending."""
        claim = self.store.require_actor(UserRole.PATIENT)
        day = _as_day(day)
        validate_booking(doctor_id, day, time_slot, symptoms, today)

        data = await self.api.create_appointment({
            "doctor": doctor_id,
            "date": day.isoformat(),
            "timeSlot": time_slot,
            "symptoms": symptoms.strip(),
        })
        logger.info(f"Patient {claim.subject_id} booked {time_slot} on {day} with doctor {doctor_id}")

        await self.refresh()

        created = _unwrap(data, "appointment")
        if isinstance(created, dict) and (created.get("_id") or created.get("id")):
            appointment_id = str(created.get("_id") or created.get("id"))
            return self.get(appointment_id) or parse_items(Appointment, [created], "appointments")[0]

        for appointment in self.appointments:
            if (
                appointment.doctor_ref == doctor_id
                and appointment.date == day
                and appointment.time_slot == time_slot
                and appointment.status == PENDING
            ):
                return appointment
        raise RemoteError("The booked appointment was not returned by the service")

    async def update_status(self, appointment_id: str, new_status) -> Appointment:
        """Move an appointment to ``new_status`` on behalf of the current actor."""
        claim = self.store.require_actor()
        appointment_id = str(appointment_id)

        if appointment_id in self._in_flight:
            raise ValidationError("This appointment is already being updated")

        self._in_flight.add(appointment_id)
        try:
            # Check against the service's current status, not a stale copy
            await self.refresh()
            appointment = self.get(appointment_id)
            if appointment is None:
                raise ValidationError("Appointment not found")

            check_transition(appointment.status, new_status, claim.role)
            new_status = AppointmentStatus(new_status)

            if (
                claim.role == UserRole.PATIENT
                and appointment.patient_ref is not None
                and appointment.patient_ref != claim.subject_id
            ):
                raise ValidationError("You can only cancel your own appointments")

            if claim.role == UserRole.PATIENT:
                await self.api.delete_appointment(appointment_id)
            else:
                await self.api.update_appointment(appointment_id, new_status.value)
        finally:
            self._in_flight.discard(appointment_id)

        logger.info(
            f"Appointment {appointment_id}: {appointment.status.value} -> {new_status.value} "
            f"by {claim.role.value} {claim.subject_id}"
        )

        await self.refresh()
        # Cancelled appointments may drop out of the refreshed list
        return self.get(appointment_id) or appointment.model_copy(update={"status": new_status})

    async def cancel(self, appointment_id: str, confirmed: bool = False) -> Appointment:
        """Patient withdrawal of a pending appointment; must be confirmed."""
        self.store.require_actor(UserRole.PATIENT)
        if not confirmed:
            raise ValidationError("Please confirm that you want to cancel this appointment")
        return await self.update_status(appointment_id, CANCELLED)
