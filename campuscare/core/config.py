from pydantic_settings import BaseSettings
from typing import List
import os

class Settings(BaseSettings):
    # Application
    APP_NAME: str = "CampusCare Portal"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    TESTING: bool = os.getenv("TESTING", "0").lower() in ("1", "true", "t", "yes", "y")

    # Remote CampusCare API service
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:5000/api")
    API_TIMEOUT_SECONDS: float = 10.0

    # Durable credential storage (single named slot)
    REDIS_URL: str = "redis://localhost:6379"
    TOKEN_STORAGE_KEY: str = "campuscare:token"
    REJECT_EXPIRED_TOKENS: bool = True

    # Portal navigation targets
    LOGIN_PATH: str = "/student-login"
    LANDING_PATH: str = "/"
    PATIENT_HOME_PATH: str = "/dashboard"
    DOCTOR_HOME_PATH: str = "/doctor-dashboard"
    ADMIN_HOME_PATH: str = "/admin"

    # Appointment and dashboard rules
    BOOKING_WINDOW_DAYS: int = 30
    RECENT_RECORD_DAYS: int = 7
    MIN_PASSWORD_LENGTH: int = 6

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173", "http://testserver"]

    class Config:
        env_file = ".env"
        case_sensitive = True

# Create settings instance
settings = Settings()
