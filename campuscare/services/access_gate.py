"""
Access gate for protected portal views.

``evaluate`` is a pure decision over the current Session. Decisions are
advisory only; the CampusCare service re-checks every request it receives.
"""

import enum
from typing import Iterable, Optional

from pydantic import BaseModel

from ..core.config import settings
from ..models.session import Session


class GateOutcome(str, enum.Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    RENDER = "render"


class GateDecision(BaseModel):
    outcome: GateOutcome
    target: Optional[str] = None
    # Location the user asked for before being sent to log in
    return_path: Optional[str] = None

    @property
    def permitted(self) -> bool:
        return self.outcome == GateOutcome.RENDER


def evaluate(
    session: Session,
    required_roles: Optional[Iterable] = None,
    requested_path: Optional[str] = None,
) -> GateDecision:
    """Decide whether a protected view may render for this session."""
    if not session.ready:
        return GateDecision(outcome=GateOutcome.LOADING)

    claim = session.identity_claim
    if claim is None:
        return GateDecision(
            outcome=GateOutcome.REDIRECT,
            target=settings.LOGIN_PATH,
            return_path=requested_path,
        )

    if required_roles is not None and claim.role not in list(required_roles):
        return GateDecision(outcome=GateOutcome.REDIRECT, target=settings.LANDING_PATH)

    return GateDecision(outcome=GateOutcome.RENDER)
