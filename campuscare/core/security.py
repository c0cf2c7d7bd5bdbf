from datetime import datetime, timezone
from typing import Optional
from enum import Enum
import json

from jose.utils import base64url_decode
from pydantic import BaseModel, ConfigDict

from .config import settings
from .exceptions import ValidationError


class UserRole(str, Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"

class IdentityClaim(BaseModel):
    """Decoded, unverified facts about the current actor."""
    model_config = ConfigDict(frozen=True)

    subject_id: str
    role: UserRole
    email: str = ""
    expires_at: Optional[datetime] = None

# Credential codec
def decode_token(token) -> Optional[IdentityClaim]:
    """Decode the payload segment of a credential token into an IdentityClaim.

    The signature is never verified; the portal has no secret. Any malformed
    input yields None instead of raising.
    """
    payload = decode_payload(token)
    if payload is None:
        return None
    return claim_from_payload(payload)

def decode_payload(token) -> Optional[dict]:
    """Return the JSON object carried in the token's middle segment, or None."""
    if not isinstance(token, str) or not token:
        return None

    segments = token.split(".")
    if len(segments) < 2:
        return None

    try:
        payload = json.loads(base64url_decode(segments[1].encode("ascii")))
    except (ValueError, TypeError, UnicodeError, RecursionError):
        return None

    return payload if isinstance(payload, dict) else None

def claim_from_payload(payload: dict, role=None, email=None) -> Optional[IdentityClaim]:
    """Map a decoded payload onto the IdentityClaim shape.

    ``role`` and ``email`` override the payload values when given.
    """
    subject_id = payload.get("id") or payload.get("_id")
    if subject_id is None or isinstance(subject_id, (dict, list)):
        return None

    try:
        claim_role = UserRole(role or payload.get("role"))
    except (ValueError, TypeError):
        return None

    return IdentityClaim(
        subject_id=str(subject_id),
        role=claim_role,
        email=str(email if email is not None else payload.get("email") or ""),
        expires_at=_expiry(payload.get("exp")),
    )

def _expiry(value) -> Optional[datetime]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None

def is_expired(claim: IdentityClaim, now: Optional[datetime] = None) -> bool:
    """Return True when the claim carries an expiry that has already passed."""
    if claim.expires_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    return claim.expires_at <= now

# Password utilities
def validate_new_password(password: str, confirm_password: str) -> None:
    """Check a new password against its confirmation and the minimum length."""
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long"
        )

def password_strength(password: str) -> dict:
    """Rate a password on a 0-4 scale for the reset form."""
    if len(password) == 0:
        return {"strength": 0, "text": ""}
    if len(password) < 6:
        return {"strength": 1, "text": "Weak"}
    if len(password) < 8:
        return {"strength": 2, "text": "Fair"}
    if (
        any(c.isupper() for c in password)
        and any(c.islower() for c in password)
        and any(c.isdigit() for c in password)
    ):
        return {"strength": 4, "text": "Strong"}
    return {"strength": 3, "text": "Good"}
