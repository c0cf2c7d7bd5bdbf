from typing import Optional
import logging

import redis

from ..core.config import settings
from ..core.exceptions import AuthError, RemoteError, ValidationError
from ..core.security import (
    IdentityClaim, UserRole, claim_from_payload, decode_payload, decode_token,
    is_expired, validate_new_password
)
from ..core.storage import TokenStorage
from ..models.session import Session
from ..schemas.auth import (
    UserRegister, PasswordReset, PasswordResetConfirm,
    ForgotPasswordResponse, Profile
)
from .api_client import CampusCareAPI

logger = logging.getLogger(__name__)

class SessionStore:
    """Single writer of the portal Session.

    Owns the durable credential slot and the in-memory copy of the raw token
    that the API client sends as its bearer credential.
    """

    def __init__(self, storage: TokenStorage, api: Optional[CampusCareAPI] = None, session: Optional[Session] = None):
        self.storage = storage
        self.session = session or Session()
        self._token: Optional[str] = None
        self.api = api or CampusCareAPI()
        self.api.token_getter = self.current_token

    def current_token(self) -> Optional[str]:
        return self._token

    @property
    def claim(self) -> Optional[IdentityClaim]:
        return self.session.identity_claim

    def require_actor(self, *roles: UserRole) -> IdentityClaim:
        """Return the current claim, or raise AuthError for a missing or wrong-role actor."""
        if not self.session.is_authenticated:
            raise AuthError("Please log in to continue")
        claim = self.session.identity_claim
        if roles and claim.role not in roles:
            raise AuthError(f"This action is not available to {claim.role.value} accounts")
        return claim

    def initialize(self) -> Session:
        """Load the persisted credential once per process start."""
        if self.session.ready:
            return self.session

        try:
            token = self.storage.read()
            if token:
                claim = decode_token(token)
                if claim and settings.REJECT_EXPIRED_TOKENS and is_expired(claim):
                    logger.info("Stored credential has expired")
                    claim = None

                if claim:
                    self._token = token
                    self.session._set_claim(claim)
                    logger.info(f"Restored session for {claim.role.value} {claim.subject_id}")
                else:
                    self.storage.delete()
                    logger.info("Discarded unreadable stored credential")
        except redis.RedisError as e:
            logger.error(f"Credential storage unavailable: {str(e)}")
        finally:
            self.session._mark_ready()

        return self.session

    async def login(self, email: str, password: str) -> IdentityClaim:
        """Exchange credentials for a token and make it the current session."""
        try:
            data = await self.api.login(email, password)
        except RemoteError as e:
            raise AuthError(e.message) from e

        token = data.get("token")
        payload = decode_payload(token)
        claim = None
        if payload is not None:
            claim = claim_from_payload(payload, role=data.get("role"), email=email)
        if claim is None:
            raise AuthError("Received an invalid credential from the server")

        self.storage.write(token)
        self._token = token
        self.session._set_claim(claim)

        logger.info(f"Logged in as {claim.role.value} {claim.subject_id}")
        return claim

    def logout(self) -> None:
        """Forget the stored credential and clear the session."""
        self._token = None
        self.session._set_claim(None)
        try:
            self.storage.delete()
        except redis.RedisError as e:
            logger.error(f"Could not remove stored credential: {str(e)}")

    async def register(self, payload: UserRegister):
        """Create an account; registration does not log the user in."""
        validate_new_password(payload.password, payload.confirm_password)
        return await self.api.register(payload.to_remote())

    async def forgot_password(self, payload: PasswordReset) -> ForgotPasswordResponse:
        data = await self.api.forgot_password(payload.email, payload.role.value)
        return ForgotPasswordResponse.model_validate(data)

    async def reset_password(self, payload: PasswordResetConfirm):
        if not payload.token or not payload.email:
            raise ValidationError("Invalid reset link. Please request a new password reset.")
        validate_new_password(payload.new_password, payload.confirm_password)
        return await self.api.reset_password(payload.token, payload.email, payload.new_password)

    async def profile(self) -> Profile:
        """Fetch the actor's profile, falling back to what the claim knows."""
        claim = self.require_actor()
        try:
            return Profile.model_validate(await self.api.profile())
        except RemoteError:
            logger.warning("Profile endpoint not available, using basic info")
            return Profile(name=claim.email, email=claim.email)
