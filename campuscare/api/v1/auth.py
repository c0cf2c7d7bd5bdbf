from fastapi import APIRouter, Depends, Request

from ...core.config import settings
from ...core.security import IdentityClaim, UserRole, password_strength
from ...api.deps import get_current_claim, get_session_store
from ...services.session_store import SessionStore
from ...schemas.auth import (
    UserLogin, UserRegister, PasswordReset, PasswordResetConfirm,
    ForgotPasswordResponse, LoginResponse, Profile
)

router = APIRouter(tags=["Authentication"])

HOME_PATHS = {
    UserRole.PATIENT: settings.PATIENT_HOME_PATH,
    UserRole.DOCTOR: settings.DOCTOR_HOME_PATH,
    UserRole.ADMIN: settings.ADMIN_HOME_PATH,
}

@router.get("/student-login")
@router.get("/doctor-login")
async def login_form(request: Request):
    """Login entry point; ``from`` is the location the gate turned away."""
    role = UserRole.DOCTOR if request.url.path == "/doctor-login" else UserRole.PATIENT
    return {"form": "login", "role": role, "from": request.query_params.get("from")}

@router.post("/student-login", response_model=LoginResponse)
@router.post("/doctor-login", response_model=LoginResponse)
async def login(
    login_data: UserLogin,
    store: SessionStore = Depends(get_session_store)
):
    """Log in and start a session."""
    claim = await store.login(login_data.email, login_data.password)
    return LoginResponse(user=claim, next=HOME_PATHS[claim.role])

@router.post("/logout")
async def logout(store: SessionStore = Depends(get_session_store)):
    """End the current session."""
    store.logout()
    return {"message": "Successfully logged out", "next": settings.LANDING_PATH}

@router.post("/register")
async def register(
    user_data: UserRegister,
    store: SessionStore = Depends(get_session_store)
):
    """Register a student account."""
    user_data = user_data.model_copy(update={"role": UserRole.PATIENT})
    await store.register(user_data)
    return {"message": "Registration successful. Please log in.", "next": settings.LOGIN_PATH}

@router.post("/doctor-register")
async def doctor_register(
    user_data: UserRegister,
    store: SessionStore = Depends(get_session_store)
):
    """Register a doctor account."""
    user_data = user_data.model_copy(update={"role": UserRole.DOCTOR})
    await store.register(user_data)
    return {"message": "Registration successful. Please log in.", "next": "/doctor-login"}

@router.post("/forgot-password", response_model=ForgotPasswordResponse, response_model_exclude_none=True)
async def forgot_password(
    reset_data: PasswordReset,
    store: SessionStore = Depends(get_session_store)
):
    """Request a password reset link."""
    return await store.forgot_password(reset_data)

@router.post("/reset-password")
async def reset_password(
    reset_data: PasswordResetConfirm,
    store: SessionStore = Depends(get_session_store)
):
    """Set a new password from a reset link."""
    await store.reset_password(reset_data)
    return {"message": "Password reset successfully", "next": settings.LOGIN_PATH}

@router.post("/password-strength")
async def check_password_strength(data: dict):
    """Rate a candidate password for the reset form."""
    return password_strength(str(data.get("password", "")))

@router.get("/profile", response_model=Profile)
async def profile(
    claim: IdentityClaim = Depends(get_current_claim),
    store: SessionStore = Depends(get_session_store)
):
    """Get the current actor's profile."""
    return await store.profile()
