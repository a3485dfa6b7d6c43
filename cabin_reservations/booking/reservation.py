# Reservation request handling: validation, calendar payload and reservation code
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo
import logging
import secrets
import string
from .error_utils import MissingFieldError

logger = logging.getLogger(__name__)

RESERVATION_CODE_PREFIX = "CB"
RESERVATION_CODE_ALPHABET = string.ascii_uppercase + string.digits
RESERVATION_CODE_LENGTH = 6

# Google Calendar color id used to tag confirmed reservations (green)
CONFIRMED_COLOR_ID = "2"
MESSAGE_PLACEHOLDER = "No especificado"

# (attribute name, JSON key) in the order they're reported when missing
REQUIRED_FIELDS = [
    ("check_in_date", "checkInDate"),
    ("check_out_date", "checkOutDate"),
    ("name", "name"),
    ("email", "email"),
    ("phone", "phone"),
    ("guests", "guests"),
]


@dataclass
class ReservationRequest:
    check_in_date: Any = None
    check_out_date: Any = None
    name: Any = None
    email: Any = None
    phone: Any = None
    guests: Any = None
    message: Any = None

    @classmethod
    def from_json(cls, body) -> "ReservationRequest":
        """
        Reads the request body sent by the booking form. Anything that isn't a JSON object is treated as an empty one
        so it fails validation instead of blowing up.
        """
        if not isinstance(body, dict):
            body = {}
        return cls(
            check_in_date=body.get("checkInDate"),
            check_out_date=body.get("checkOutDate"),
            name=body.get("name"),
            email=body.get("email"),
            phone=body.get("phone"),
            guests=body.get("guests"),
            message=body.get("message"),
        )

    def missing_fields(self) -> list[str]:
        # Falsy covers absent, empty string, 0 guests and null
        return [json_key for attr, json_key in REQUIRED_FIELDS if not getattr(self, attr)]

    def validate(self):
        """
        Raises MissingFieldError if any required field is absent or empty.
        No other checks are made: dates aren't ordered or compared to today and guests isn't range checked.
        """
        missing = self.missing_fields()
        if missing:
            raise MissingFieldError(missing)


@dataclass
class Reservation:
    payload: Dict[str, Any]
    code: str


def generate_reservation_code(now: Optional[datetime] = None) -> str:
    """
    Cosmetic, human readable reservation code: CB-<year>-<6 uppercase alphanumerics>.
    Not stored anywhere and not checked for collisions.
    """
    now = now or datetime.now()
    suffix = "".join(secrets.choice(RESERVATION_CODE_ALPHABET) for _ in range(RESERVATION_CODE_LENGTH))
    return f"{RESERVATION_CODE_PREFIX}-{now.year}-{suffix}"


def _describe(request: ReservationRequest) -> str:
    message = request.message or MESSAGE_PLACEHOLDER
    return "\n".join([
        "Reserva de Cabaña - Sistema Automático",
        "--------------------------------------",
        f"Nombre: {request.name}",
        f"Email: {request.email}",
        f"Teléfono: {request.phone}",
        f"Huéspedes: {request.guests} personas",
        f"Check-in: {request.check_in_date}",
        f"Check-out: {request.check_out_date}",
        f"Mensaje: {message}",
        "",
        "Estado: Confirmada",
    ])


def build_reservation(request: ReservationRequest, timezone: str) -> Reservation:
    """
    Validates the request and builds the all-day event to insert into the reservations calendar.

    Input: the parsed request and the IANA timezone name of the calendar.

    Returns: Reservation with the Google event body and a freshly generated reservation code.
    Raises MissingFieldError before anything is built if the request is incomplete.
    """
    request.validate()
    payload = {
        "summary": f"Reserva Cabaña: {request.name}",
        "description": _describe(request),
        "start": {"date": request.check_in_date, "timeZone": timezone},
        "end": {"date": request.check_out_date, "timeZone": timezone},
        "colorId": CONFIRMED_COLOR_ID,
    }
    code = generate_reservation_code(datetime.now(ZoneInfo(timezone)))
    logger.info(f"Built reservation {code} for {request.check_in_date} to {request.check_out_date}")
    return Reservation(payload=payload, code=code)
