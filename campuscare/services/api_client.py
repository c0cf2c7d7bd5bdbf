"""
Async client for the remote CampusCare API service.

The service issues credentials and persists appointments and records; this
client only moves JSON back and forth and turns failures into RemoteError.
Timeouts are left to the transport and nothing is retried.
"""

from typing import Any, Callable, Optional
import logging

import httpx
import pydantic

from ..core.config import settings
from ..core.exceptions import RemoteError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Request failed. Please try again."


def extract_error_message(response: httpx.Response, fallback: str = GENERIC_ERROR_MESSAGE) -> str:
    """Best-effort human-readable message from an error response."""
    try:
        body = response.json()
    except ValueError:
        return fallback

    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


def parse_items(model, data, what: str = "data") -> list:
    """Validate a list payload from the service, one ``model`` per item."""
    try:
        return [model.model_validate(item) for item in data or []]
    except (pydantic.ValidationError, TypeError) as e:
        logger.warning(f"Malformed {what} from the CampusCare service: {str(e)}")
        raise RemoteError(f"The CampusCare service returned malformed {what}") from e


class CampusCareAPI:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token_getter: Optional[Callable[[], Optional[str]]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.token_getter = token_getter
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout if timeout is not None else settings.API_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def request(self, method: str, path: str, json: Any = None) -> Any:
        headers = {}
        token = self.token_getter() if self.token_getter else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {str(e)}")
            raise RemoteError("Unable to reach the CampusCare service") from e

        if response.is_error:
            message = extract_error_message(response)
            logger.warning(f"{method} {path} - Status: {response.status_code} - {message}")
            raise RemoteError(message, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def aclose(self):
        await self._client.aclose()

    # Authentication
    async def login(self, email: str, password: str) -> dict:
        return await self.request("POST", "/auth/login", {"email": email, "password": password}) or {}

    async def register(self, payload: dict) -> Any:
        return await self.request("POST", "/auth/register", payload)

    async def forgot_password(self, email: str, role: str) -> dict:
        return await self.request("POST", "/auth/forgot-password", {"email": email, "role": role}) or {}

    async def reset_password(self, token: str, email: str, new_password: str) -> Any:
        return await self.request(
            "POST",
            "/auth/reset-password",
            {"token": token, "email": email, "newPassword": new_password},
        )

    async def profile(self) -> dict:
        return await self.request("GET", "/auth/profile") or {}

    # Appointments
    async def doctors(self) -> list:
        return await self.request("GET", "/appointments/doctors") or []

    async def create_appointment(self, payload: dict) -> Any:
        return await self.request("POST", "/appointments", payload)

    async def list_appointments(self) -> list:
        return await self.request("GET", "/appointments") or []

    async def update_appointment(self, appointment_id: str, status: str) -> Any:
        return await self.request("PATCH", f"/appointments/{appointment_id}", {"status": status})

    async def delete_appointment(self, appointment_id: str) -> Any:
        return await self.request("DELETE", f"/appointments/{appointment_id}")

    # Medical records
    async def list_records(self) -> list:
        return await self.request("GET", "/records") or []

    async def list_patients(self) -> list:
        return await self.request("GET", "/records/patients") or []

    async def create_record(self, payload: dict) -> Any:
        return await self.request("POST", "/records", payload)

    # Admin
    async def admin_stats(self) -> dict:
        return await self.request("GET", "/admin/stats") or {}
