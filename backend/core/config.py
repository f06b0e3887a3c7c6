import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./viewings.db")

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:5173"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

# Leave SMTP_HOST empty to log notifications instead of sending them.
SMTP_HOST = os.getenv("SMTP_HOST", "")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
SMTP_USE_SSL = _get_bool(os.getenv("SMTP_USE_SSL"), default=False)
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Viewings <noreply@viewings.local>")

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

CALENDAR_UID_DOMAIN = os.getenv("CALENDAR_UID_DOMAIN", "viewings.local")
CALENDAR_PRODID = os.getenv("CALENDAR_PRODID", "-//Viewings//Appointments//EN")
VIEWING_DURATION_MINUTES = int(os.getenv("VIEWING_DURATION_MINUTES", "60"))

MAX_APPOINTMENT_NOTE_LENGTH = int(os.getenv("MAX_APPOINTMENT_NOTE_LENGTH", "500"))
MAX_BLOCK_REASON_LENGTH = int(os.getenv("MAX_BLOCK_REASON_LENGTH", "250"))
MAX_ACTION_REASON_LENGTH = int(os.getenv("MAX_ACTION_REASON_LENGTH", "250"))

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if VIEWING_DURATION_MINUTES <= 0:
        raise RuntimeError("VIEWING_DURATION_MINUTES must be positive.")
