import datetime as dt
import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator, model_validator

class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

TERMINAL_STATUSES = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED})

# Bookable half-hour labels, 09:00 to 17:00 with the 13:00-14:00 break removed
TIME_SLOTS = (
    "09:00 AM",
    "09:30 AM",
    "10:00 AM",
    "10:30 AM",
    "11:00 AM",
    "11:30 AM",
    "12:00 PM",
    "12:30 PM",
    "02:00 PM",
    "02:30 PM",
    "03:00 PM",
    "03:30 PM",
    "04:00 PM",
    "04:30 PM",
    "05:00 PM",
)

def ref_id(value):
    """Reduce a populated reference ({"_id": ..., "name": ...}) to its id."""
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
    return str(value) if value is not None else None

def parse_day(value):
    """Accept a calendar day as a date, datetime or ISO string."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value

class Appointment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    patient_ref: Optional[str] = Field(
        None, validation_alias=AliasChoices("patient_ref", "patient", "patientId")
    )
    doctor_ref: Optional[str] = Field(
        None, validation_alias=AliasChoices("doctor_ref", "doctor", "doctorId")
    )
    date: dt.date
    time_slot: str = Field(validation_alias=AliasChoices("time_slot", "timeSlot"))
    symptoms: str = ""
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def flatten_slot(cls, data):
        # Older service responses nest the day and time under "slot"
        if isinstance(data, dict) and isinstance(data.get("slot"), dict):
            data = dict(data)
            data.setdefault("date", data["slot"].get("date"))
            data.setdefault("timeSlot", data["slot"].get("time"))
        return data

    @field_validator("id", "patient_ref", "doctor_ref", mode="before")
    @classmethod
    def reduce_ref(cls, value):
        return ref_id(value)

    @field_validator("date", mode="before")
    @classmethod
    def reduce_day(cls, value):
        return parse_day(value)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self):
        return f"<Appointment(id={self.id}, doctor={self.doctor_ref}, date='{self.date}', slot='{self.time_slot}', status='{self.status.value}')>"

class DoctorSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    specialization: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def reduce_ref(cls, value):
        return ref_id(value)
