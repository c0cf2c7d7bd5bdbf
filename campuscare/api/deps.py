from fastapi import Depends, Request
from typing import Optional, List

from ..core.security import IdentityClaim, UserRole
from ..services.access_gate import GateDecision, evaluate
from ..services.appointment_service import AppointmentService
from ..services.record_service import RecordService
from ..services.session_store import SessionStore

class GateRejected(Exception):
    """Raised by gated dependencies when a view may not render."""

    def __init__(self, decision: GateDecision):
        self.decision = decision
        super().__init__(decision.outcome.value)

def get_session_store(request: Request) -> SessionStore:
    """Get the process-wide session store."""
    return request.app.state.session_store

def get_appointment_service(request: Request) -> AppointmentService:
    return request.app.state.appointment_service

def get_record_service(request: Request) -> RecordService:
    return request.app.state.record_service

def _requested_location(request: Request) -> str:
    if request.url.query:
        return f"{request.url.path}?{request.url.query}"
    return request.url.path

# Role-based access control dependencies
def require_session(allowed_roles: Optional[List[UserRole]] = None):
    """Create a dependency that runs the access gate for a view."""
    async def gate_checker(
        request: Request,
        store: SessionStore = Depends(get_session_store)
    ) -> IdentityClaim:
        decision = evaluate(store.session, allowed_roles, _requested_location(request))
        if not decision.permitted:
            raise GateRejected(decision)
        return store.session.identity_claim

    return gate_checker

async def get_current_claim(
    claim: IdentityClaim = Depends(require_session())
) -> IdentityClaim:
    """Require any logged-in actor."""
    return claim

async def get_patient_claim(
    claim: IdentityClaim = Depends(require_session([UserRole.PATIENT]))
) -> IdentityClaim:
    """Require patient role."""
    return claim

async def get_doctor_claim(
    claim: IdentityClaim = Depends(require_session([UserRole.DOCTOR]))
) -> IdentityClaim:
    """Require doctor role."""
    return claim

async def get_admin_claim(
    claim: IdentityClaim = Depends(require_session([UserRole.ADMIN]))
) -> IdentityClaim:
    """Require admin role."""
    return claim

async def get_clinical_claim(
    claim: IdentityClaim = Depends(require_session([UserRole.PATIENT, UserRole.DOCTOR]))
) -> IdentityClaim:
    """Require patient or doctor role."""
    return claim
