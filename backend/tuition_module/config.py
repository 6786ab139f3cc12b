import os
from dataclasses import dataclass

from dotenv import load_dotenv


BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
# Settings are read at import time, so .env has to be loaded first.
load_dotenv(os.path.join(BACKEND_DIR, ".env"))

DATA_DIR = os.getenv("TUITION_DATA_DIR", os.path.join(BACKEND_DIR, "data"))


def _csv_env(name: str, default: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in os.getenv(name, default).split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    jwt_secret: str = os.getenv("TUITION_JWT_SECRET", os.getenv("JWT_SECRET", "change-me-in-production"))
    jwt_algorithm: str = os.getenv("TUITION_JWT_ALGORITHM", "HS256")
    jwt_exp_minutes: int = int(os.getenv("TUITION_JWT_EXP_MINUTES", "1440"))
    data_dir: str = DATA_DIR
    database_url: str = os.getenv("TUITION_DATABASE_URL", f"sqlite:///{os.path.join(DATA_DIR, 'tuition.db')}")
    temp_password_length: int = int(os.getenv("TUITION_TEMP_PASSWORD_LENGTH", "10"))
    smtp_host: str = os.getenv("SMTP_SERVER", "smtp.gmail.com")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_username: str = os.getenv("SMTP_EMAIL", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "").replace(" ", "")
    allow_console_fallback: bool = os.getenv("ALLOW_CREDENTIAL_CONSOLE_FALLBACK", "true").lower() == "true"
    cors_origins: tuple[str, ...] = _csv_env("TUITION_CORS_ORIGINS", "*")


settings = Settings()
