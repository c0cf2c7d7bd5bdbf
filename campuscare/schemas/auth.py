from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..core.security import IdentityClaim, UserRole

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class UserRegister(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    email: EmailStr
    password: str
    confirm_password: str = Field(alias="confirmPassword")
    role: UserRole = UserRole.PATIENT

    def to_remote(self) -> dict:
        return {
            "name": self.name,
            "email": self.email,
            "password": self.password,
            "role": self.role.value,
        }

class PasswordReset(BaseModel):
    email: EmailStr
    role: UserRole = UserRole.PATIENT

class PasswordResetConfirm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str = ""
    email: str = ""
    new_password: str = Field(alias="newPassword")
    confirm_password: str = Field(alias="confirmPassword")

class ForgotPasswordResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    # Only returned by the service outside production
    reset_token: Optional[str] = Field(None, alias="resetToken")
    reset_url: Optional[str] = Field(None, alias="resetUrl")

class Profile(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    email: Optional[str] = None

class LoginResponse(BaseModel):
    user: IdentityClaim
    next: str
