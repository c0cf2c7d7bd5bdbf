from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.appointment import AppointmentStatus
from ..models.record import PrescriptionItem

class BookingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    doctor: str
    date: date
    time_slot: str = Field(alias="timeSlot")
    symptoms: str = ""

class StatusUpdate(BaseModel):
    status: AppointmentStatus

class CancelRequest(BaseModel):
    # Cancellation is irreversible; the caller must confirm explicitly
    confirm: bool = False

class RecordCreate(BaseModel):
    patient: str = ""
    diagnosis: str = ""
    prescription: List[PrescriptionItem] = []
    notes: Optional[str] = None
