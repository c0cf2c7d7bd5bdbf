from typing import List, Optional
import logging

from ..core.exceptions import ValidationError
from ..core.security import UserRole
from ..models.record import MedicalRecord, PatientSummary, PrescriptionItem
from .api_client import parse_items
from .session_store import SessionStore

logger = logging.getLogger(__name__)

class RecordService:
    """Medical records and admin statistics for the current session."""

    def __init__(self, store: SessionStore):
        self.store = store
        self.api = store.api
        self.records: List[MedicalRecord] = []

    async def refresh(self) -> List[MedicalRecord]:
        self.store.require_actor()
        data = await self.api.list_records()
        self.records = parse_items(MedicalRecord, data, "records")
        return self.records

    async def list_patients(self) -> List[PatientSummary]:
        self.store.require_actor(UserRole.DOCTOR)
        return parse_items(PatientSummary, await self.api.list_patients(), "patients")

    async def create_record(
        self,
        patient_id: str,
        diagnosis: str,
        prescription: Optional[List[PrescriptionItem]] = None,
        notes: Optional[str] = None,
    ) -> List[MedicalRecord]:
        """Write a new record for a patient and return the refreshed list."""
        claim = self.store.require_actor(UserRole.DOCTOR)

        if not patient_id:
            raise ValidationError("Please select a patient")
        if not diagnosis or not diagnosis.strip():
            raise ValidationError("Diagnosis is required")

        # Blank rows left over from the entry form are dropped
        items = [
            {"medicine": item.medicine.strip(), "dosage": item.dosage.strip()}
            for item in (prescription or [])
            if item.medicine and item.medicine.strip()
        ]

        await self.api.create_record({
            "patient": patient_id,
            "diagnosis": diagnosis.strip(),
            "prescription": items,
            "notes": notes or "",
        })
        logger.info(f"Doctor {claim.subject_id} created a record for patient {patient_id}")

        return await self.refresh()

    async def admin_stats(self) -> dict:
        self.store.require_actor(UserRole.ADMIN)
        data = await self.api.admin_stats()
        return {key: int(data.get(key) or 0) for key in ("patients", "doctors", "appointments")}
