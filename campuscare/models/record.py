from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator

from .appointment import ref_id

class PrescriptionItem(BaseModel):
    medicine: str
    dosage: str = ""

class MedicalRecord(BaseModel):
    """A diagnosis written by a doctor; immutable once created."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    patient_ref: Optional[str] = Field(
        None, validation_alias=AliasChoices("patient_ref", "patient", "patientId")
    )
    doctor_ref: Optional[str] = Field(
        None, validation_alias=AliasChoices("doctor_ref", "doctor", "doctorId")
    )
    diagnosis: str
    prescription: List[PrescriptionItem] = []
    notes: Optional[str] = None
    created_at: datetime = Field(validation_alias=AliasChoices("created_at", "createdAt"))

    @field_validator("id", "patient_ref", "doctor_ref", mode="before")
    @classmethod
    def reduce_ref(cls, value):
        return ref_id(value)

    @field_validator("prescription", mode="before")
    @classmethod
    def default_prescription(cls, value):
        return value or []

class PatientSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    email: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def reduce_ref(cls, value):
        return ref_id(value)
