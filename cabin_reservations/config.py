from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple
from dotenv import load_dotenv
import logging
import os

logger = logging.getLogger(__name__)

# Shared calendar the service account was granted access to
DEFAULT_CALENDAR_ID = "33f2b860648ddfba6f555ad436e9546153c69c1391de0143aad37415e76bc6a8@group.calendar.google.com"
DEFAULT_TIMEZONE = "America/Santiago"
DEFAULT_PORT = 8080
DEFAULT_AVAILABILITY_WINDOW_DAYS = 90
DEFAULT_SERVICE_ACCOUNT_FILE = "./service-account-key.json"

# Booking site plus local front-end dev servers. Extra origins come from CORS_ORIGINS.
DEFAULT_CORS_ORIGINS = (
    "https://lemachine.cl",
    "http://lemachine.cl",
    "https://www.lemachine.cl",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
)


@dataclass(frozen=True)
class ServiceConfig:
    """
    Everything the service needs to know about its environment. Built once at startup and handed to create_app()
    and the calendar client, so tests can swap in another calendar or origin list.
    """
    calendar_id: str = DEFAULT_CALENDAR_ID
    service_account_file: str = DEFAULT_SERVICE_ACCOUNT_FILE
    timezone: str = DEFAULT_TIMEZONE
    port: int = DEFAULT_PORT
    cors_origins: Tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    # Seconds. None leaves httplib2's own default in place.
    request_timeout: Optional[float] = None
    availability_window_days: int = DEFAULT_AVAILABILITY_WINDOW_DAYS
    production: bool = False

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "ServiceConfig":
        """
        Reads configuration from environment variables, loading a .env file first if there is one.
        Raises ValueError on malformed numeric values so a bad deploy fails at startup, not on the first request.
        """
        load_dotenv(env_file)

        extra_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

        config = cls(
            calendar_id=os.getenv("CALENDAR_ID", DEFAULT_CALENDAR_ID),
            service_account_file=os.getenv("SERVICE_ACCOUNT_FILE", DEFAULT_SERVICE_ACCOUNT_FILE),
            timezone=os.getenv("CALENDAR_TIMEZONE", DEFAULT_TIMEZONE),
            port=_parse_int("PORT", DEFAULT_PORT),
            cors_origins=DEFAULT_CORS_ORIGINS + tuple(o for o in extra_origins if o not in DEFAULT_CORS_ORIGINS),
            request_timeout=_parse_float("CALENDAR_TIMEOUT"),
            availability_window_days=_parse_int("AVAILABILITY_WINDOW_DAYS", DEFAULT_AVAILABILITY_WINDOW_DAYS),
            production=os.getenv("FLASK_ENV") == "production",
        )
        logger.info(f"Loaded config for calendar {config.calendar_id} (production={config.production})")
        return config


def _parse_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"ERROR: {name} must be an integer, got {value!r}")


def _parse_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"ERROR: {name} must be a number of seconds, got {value!r}")
