from datetime import date
import logging

from fastapi import APIRouter, Depends, status

from ...core.exceptions import RemoteError
from ...core.security import IdentityClaim, UserRole
from ...api.deps import (
    get_admin_claim, get_clinical_claim, get_current_claim, get_doctor_claim, get_patient_claim,
    get_appointment_service, get_record_service, get_session_store
)
from ...models.appointment import TIME_SLOTS
from ...schemas.portal import BookingRequest, CancelRequest, RecordCreate, StatusUpdate
from ...services.appointment_service import AppointmentService, booking_window
from ...services.dashboard import summarize
from ...services.record_service import RecordService
from ...services.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Portal"])

@router.get("/dashboard")
async def student_dashboard(
    claim: IdentityClaim = Depends(get_patient_claim),
    store: SessionStore = Depends(get_session_store),
    appointments: AppointmentService = Depends(get_appointment_service),
    records: RecordService = Depends(get_record_service)
):
    """Student dashboard: appointments, records and notifications."""
    profile = await store.profile()
    appointment_list = await appointments.refresh()
    record_list = await records.refresh()

    return {
        "profile": profile,
        "appointments": appointment_list,
        "records": record_list,
        "summary": summarize(appointment_list, record_list, role=UserRole.PATIENT),
    }

@router.get("/doctor-dashboard")
async def doctor_dashboard(
    claim: IdentityClaim = Depends(get_doctor_claim),
    store: SessionStore = Depends(get_session_store),
    appointments: AppointmentService = Depends(get_appointment_service),
    records: RecordService = Depends(get_record_service)
):
    """Doctor dashboard: today's schedule, pending requests and patients."""
    profile = await store.profile()
    appointment_list = await appointments.refresh()
    record_list = await records.refresh()

    try:
        patients = await records.list_patients()
    except RemoteError:
        logger.warning("Could not fetch patients list")
        patients = []

    return {
        "profile": profile,
        "appointments": appointment_list,
        "records": record_list,
        "patients": patients,
        "summary": summarize(appointment_list, record_list, role=UserRole.DOCTOR),
    }

@router.get("/book-appointment")
async def booking_form(
    claim: IdentityClaim = Depends(get_patient_claim),
    appointments: AppointmentService = Depends(get_appointment_service)
):
    """Options for the booking form."""
    earliest, latest = booking_window(date.today())
    return {
        "doctors": await appointments.doctors(),
        "time_slots": list(TIME_SLOTS),
        "min_date": earliest,
        "max_date": latest,
    }

@router.post("/book-appointment", status_code=status.HTTP_201_CREATED)
async def book_appointment(
    booking: BookingRequest,
    claim: IdentityClaim = Depends(get_patient_claim),
    appointments: AppointmentService = Depends(get_appointment_service)
):
    """Book an appointment with a doctor."""
    appointment = await appointments.book(
        booking.doctor, booking.date, booking.time_slot, booking.symptoms
    )
    return {
        "message": "Appointment booked successfully!",
        "appointment": appointment,
        "appointments": appointments.appointments,
    }

@router.post("/appointments/{appointment_id}/status")
async def update_appointment_status(
    appointment_id: str,
    update: StatusUpdate,
    claim: IdentityClaim = Depends(get_clinical_claim),
    appointments: AppointmentService = Depends(get_appointment_service)
):
    """Approve, complete or cancel an appointment."""
    appointment = await appointments.update_status(appointment_id, update.status)
    return {"appointment": appointment, "appointments": appointments.appointments}

@router.post("/appointments/{appointment_id}/cancel")
async def cancel_appointment(
    appointment_id: str,
    cancel_request: CancelRequest,
    claim: IdentityClaim = Depends(get_patient_claim),
    appointments: AppointmentService = Depends(get_appointment_service)
):
    """Withdraw a pending appointment."""
    appointment = await appointments.cancel(appointment_id, confirmed=cancel_request.confirm)
    return {"appointment": appointment, "appointments": appointments.appointments}

@router.get("/records")
async def medical_records(
    claim: IdentityClaim = Depends(get_current_claim),
    records: RecordService = Depends(get_record_service)
):
    """Medical records visible to the current actor."""
    return await records.refresh()

@router.post("/records", status_code=status.HTTP_201_CREATED)
async def create_medical_record(
    record: RecordCreate,
    claim: IdentityClaim = Depends(get_doctor_claim),
    records: RecordService = Depends(get_record_service)
):
    """Write a diagnosis and prescription for a patient."""
    record_list = await records.create_record(
        record.patient, record.diagnosis, record.prescription, record.notes
    )
    return {"message": "Medical record created", "records": record_list}

@router.get("/admin")
async def admin_dashboard(
    claim: IdentityClaim = Depends(get_admin_claim),
    records: RecordService = Depends(get_record_service)
):
    """Portal-wide totals for administrators."""
    return await records.admin_stats()
