from datetime import datetime, timezone
import logging
import secrets
from flask import Blueprint, Flask, current_app, jsonify, request
from flask_cors import CORS
from flask_debugtoolbar import DebugToolbarExtension
from werkzeug.exceptions import HTTPException
from cabin_reservations.config import ServiceConfig
from cabin_reservations.booking import availability, reservation
from cabin_reservations.booking.calendar_service import CalendarClient, GoogleCalendarClient
from cabin_reservations.booking.error_utils import (
    CalendarAuthError,
    CalendarError,
    CalendarNotFoundError,
    ValidationError,
)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

SERVICE_NAME = "reservas-backend"

# Client facing messages, the booking site is in Spanish
MISSING_FIELDS_MESSAGE = "Faltan campos requeridos"
AVAILABILITY_ERROR_MESSAGE = "Error al obtener la disponibilidad del calendario"
RESERVATION_ERROR_MESSAGE = "Error al crear la reserva en el calendario"
PERMISSION_ERROR_MESSAGE = "Error de permisos. Verifica que el Service Account tenga acceso al calendario."
CALENDAR_NOT_FOUND_MESSAGE = "Calendario no encontrado. Verifica el Calendar ID."
CALENDAR_TEST_ERROR_MESSAGE = "Error accediendo al calendario"
RESERVATION_CREATED_MESSAGE = "Reserva creada exitosamente en Google Calendar"
ROUTE_NOT_FOUND_MESSAGE = "Ruta no encontrada"
INTERNAL_ERROR_MESSAGE = "Error interno del servidor"

bp = Blueprint("reservations", __name__)


def create_app(config: ServiceConfig = None, calendar_client: CalendarClient = None) -> Flask:
    """
    Application factory. Both arguments default to the real thing: config from the environment and a Google
    backed calendar client. Tests pass their own.
    """
    config = config or ServiceConfig.from_env()
    app = Flask(__name__)
    app.secret_key = secrets.token_hex(32) #256 bit
    app.config['SECRET_KEY'] = app.secret_key
    app.config['SERVICE_CONFIG'] = config
    app.json.ensure_ascii = False
    app.extensions['calendar_client'] = calendar_client or GoogleCalendarClient(config)

    CORS(app,
         origins=list(config.cors_origins),
         methods=["GET", "POST", "OPTIONS"],
         allow_headers=["Content-Type", "Authorization"],
         supports_credentials=True)

    app.register_blueprint(bp)
    app.register_error_handler(404, route_not_found)
    # A path served only for other methods is reported as not found
    app.register_error_handler(405, route_not_found)
    app.register_error_handler(Exception, handle_unexpected_error)
    return app


def _calendar() -> CalendarClient:
    return current_app.extensions['calendar_client']


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@bp.route("/")
def index():
    return jsonify({
        "status": "OK",
        "message": "Backend de reservas funcionando",
        "timestamp": _now_iso(),
        "endpoints": {
            "disponibilidad": "GET /disponibilidad",
            "agendar": "POST /agendar",
            "health": "GET /health",
            "testCalendar": "GET /test-calendar",
        },
    })


@bp.route("/health")
def health():
    return jsonify({"status": "healthy", "service": SERVICE_NAME, "timestamp": _now_iso()})


@bp.route("/disponibilidad", methods=["GET"])
def get_availability():
    """
    Occupied dates for the default window (next 90 days unless configured otherwise).
    """
    logger.info("Fetching availability")
    client = _calendar()
    try:
        events = client.list_events()
    except CalendarError as e:
        logger.error(f"Error fetching availability: {e.message} (code {e.code})")
        return jsonify({"success": False, "error": e.message, "message": AVAILABILITY_ERROR_MESSAGE}), 500

    occupied = availability.occupied_dates(events)
    logger.info(f"Occupied dates processed: {len(occupied)} from {len(events)} events")
    return jsonify({
        "success": True,
        "fechasOcupadas": occupied,
        "totalEventos": len(events),
        "calendarId": client.calendar_id,
    })


@bp.route("/agendar", methods=["POST"])
def create_reservation():
    """
    Registers a reservation as an all-day event on the shared calendar.
    Overlapping reservations are not detected; two requests for the same dates both get booked.
    """
    body = request.get_json(silent=True)
    booking_request = reservation.ReservationRequest.from_json(body)
    logger.info(f"Creating reservation for {booking_request.name} ({booking_request.check_in_date} to {booking_request.check_out_date})")

    config = current_app.config['SERVICE_CONFIG']
    try:
        new_reservation = reservation.build_reservation(booking_request, config.timezone)
    except ValidationError as e:
        logger.info(f"Rejected reservation request: {e.message}")
        return jsonify({"success": False, "message": MISSING_FIELDS_MESSAGE}), 400

    client = _calendar()
    try:
        inserted = client.insert_event(new_reservation.payload)
    except CalendarError as e:
        logger.error(f"Error creating reservation: {e.message} (code {e.code})")
        if isinstance(e, CalendarAuthError):
            message = PERMISSION_ERROR_MESSAGE
        elif isinstance(e, CalendarNotFoundError):
            message = CALENDAR_NOT_FOUND_MESSAGE
        else:
            message = RESERVATION_ERROR_MESSAGE
        return jsonify({
            "success": False,
            "error": e.message,
            "message": message,
            "details": {"code": e.code, "calendarId": client.calendar_id},
        }), 500

    logger.info(f"Reservation created: {new_reservation.code} (event {inserted.event_id})")
    return jsonify({
        "success": True,
        "eventId": inserted.event_id,
        "reservationCode": new_reservation.code,
        "message": RESERVATION_CREATED_MESSAGE,
        "eventLink": inserted.html_link,
    })


# Used to verify the service account can see the calendar after a deploy
@bp.route("/test-calendar", methods=["GET"])
def check_calendar():
    try:
        metadata = _calendar().get_calendar_metadata()
    except CalendarError as e:
        logger.error(f"Error testing calendar: {e.message} (code {e.code})")
        return jsonify({"success": False, "error": e.message, "message": CALENDAR_TEST_ERROR_MESSAGE}), 500

    return jsonify({
        "success": True,
        "calendar": {
            "id": metadata.id,
            "summary": metadata.summary,
            "timeZone": metadata.time_zone,
            "access": metadata.access_role,
        },
    })


def route_not_found(error):
    return jsonify({"success": False, "message": ROUTE_NOT_FOUND_MESSAGE}), 404


def handle_unexpected_error(error):
    # Other werkzeug HTTP errors keep their own status
    if isinstance(error, HTTPException):
        return jsonify({"success": False, "message": error.description, "error": error.name}), error.code
    logger.exception(f"Unhandled error: {error}")
    return jsonify({"success": False, "message": INTERNAL_ERROR_MESSAGE, "error": str(error)}), 500


app = create_app()

if __name__ == '__main__':
    service_config = app.config['SERVICE_CONFIG']
    logger.info(f"Reservations server starting on port {service_config.port}")
    logger.info(f"Calendar ID: {service_config.calendar_id}")
    logger.info(f"CORS origins: {', '.join(service_config.cors_origins)}")
    # production
    if service_config.production:
        app.run(host="0.0.0.0", port=service_config.port, debug=False)
    else:
        app.debug = True
        toolbar = DebugToolbarExtension(app)
        app.run(host="0.0.0.0", port=service_config.port, debug=True)
