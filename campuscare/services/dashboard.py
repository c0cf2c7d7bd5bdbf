"""
Dashboard summaries.

A pure projection over the current appointments and records. Nothing is
stored; notifications are rebuilt from scratch on every refresh, so there
is no read/dismissed state.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional

from pydantic import BaseModel

from ..core.config import settings
from ..core.security import UserRole
from ..models.appointment import Appointment, AppointmentStatus
from ..models.record import MedicalRecord


class Notification(BaseModel):
    type: str
    message: str
    urgent: bool = False


class DashboardSummary(BaseModel):
    upcoming_count: int = 0
    today_count: int = 0
    pending_count: int = 0
    recent_record_count: int = 0
    notifications: List[Notification] = []


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def upcoming(appointments: Iterable[Appointment], today: date) -> List[Appointment]:
    return [a for a in appointments if a.date > today and a.status != AppointmentStatus.CANCELLED]


def scheduled_today(appointments: Iterable[Appointment], today: date) -> List[Appointment]:
    closed = (AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED)
    return [a for a in appointments if a.date == today and a.status not in closed]


def pending(appointments: Iterable[Appointment]) -> List[Appointment]:
    return [a for a in appointments if a.status == AppointmentStatus.PENDING]


def recent_records(records: Iterable[MedicalRecord], now: datetime) -> List[MedicalRecord]:
    cutoff = _as_utc(now) - timedelta(days=settings.RECENT_RECORD_DAYS)
    return [r for r in records if _as_utc(r.created_at) > cutoff]


def summarize(
    appointments: Iterable[Appointment],
    records: Iterable[MedicalRecord] = (),
    today: Optional[date] = None,
    role: UserRole = UserRole.PATIENT,
    now: Optional[datetime] = None,
) -> DashboardSummary:
    """Build the counts and notification list shown on a dashboard."""
    appointments = list(appointments)
    today = today or date.today()
    now = now or datetime.now(timezone.utc)

    upcoming_items = upcoming(appointments, today)
    today_items = scheduled_today(appointments, today)
    pending_items = pending(appointments)
    recent = recent_records(records, now)

    notifications = []
    if role == UserRole.DOCTOR:
        if today_items:
            notifications.append(Notification(
                type="today",
                message=f"You have {len(today_items)} appointment(s) today",
                urgent=True,
            ))
    elif upcoming_items:
        notifications.append(Notification(
            type="appointment",
            message=f"You have {len(upcoming_items)} upcoming appointment(s)",
        ))

    if pending_items:
        message = (
            f"{len(pending_items)} appointment(s) pending approval"
            if role == UserRole.DOCTOR
            else f"{len(pending_items)} appointment(s) awaiting doctor approval"
        )
        notifications.append(Notification(type="pending", message=message))

    if role == UserRole.PATIENT and recent:
        notifications.append(Notification(
            type="record",
            message=f"{len(recent)} new medical record(s) available",
        ))

    return DashboardSummary(
        upcoming_count=len(upcoming_items),
        today_count=len(today_items),
        pending_count=len(pending_items),
        recent_record_count=len(recent),
        notifications=notifications,
    )
