import unittest
import os
import re
import sys
from datetime import datetime
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from cabin_reservations.booking.reservation import (
    ReservationRequest,
    build_reservation,
    generate_reservation_code,
)
from cabin_reservations.booking.error_utils import MissingFieldError, ValidationError

CODE_PATTERN = re.compile(r"^CB-\d{4}-[A-Z0-9]{6}$")


def complete_request(**overrides):
    body = {
        "checkInDate": "2024-06-01",
        "checkOutDate": "2024-06-04",
        "name": "Ana Pérez",
        "email": "ana@example.com",
        "phone": "+56911112222",
        "guests": 4,
    }
    body.update(overrides)
    return ReservationRequest.from_json(body)


class ReservationRequestTest(unittest.TestCase):

    def test_from_json_maps_keys(self):
        request = complete_request(message="Hola")
        self.assertEqual(request.check_in_date, "2024-06-01")
        self.assertEqual(request.check_out_date, "2024-06-04")
        self.assertEqual(request.guests, 4)
        self.assertEqual(request.message, "Hola")

    def test_non_object_body_is_empty(self):
        for body in (None, [], "text", 42):
            request = ReservationRequest.from_json(body)
            self.assertEqual(len(request.missing_fields()), 6)

    def test_missing_email(self):
        request = complete_request(email=None)
        with self.assertRaises(MissingFieldError) as cm:
            request.validate()
        self.assertEqual(cm.exception.missing_fields, ["email"])
        self.assertIsInstance(cm.exception, ValidationError)

    def test_empty_values_count_as_missing(self):
        request = complete_request(name="", guests=0, phone=None)
        self.assertEqual(request.missing_fields(), ["name", "phone", "guests"])

    def test_message_is_optional(self):
        complete_request().validate()

    def test_no_range_validation(self):
        # Check-out before check-in and absurd guest counts are accepted as is
        complete_request(checkInDate="2030-01-10", checkOutDate="2020-01-01", guests=500).validate()


class BuildReservationTest(unittest.TestCase):

    def test_payload(self):
        reservation = build_reservation(complete_request(message="Con mascota"), "America/Santiago")
        payload = reservation.payload
        self.assertEqual(payload["summary"], "Reserva Cabaña: Ana Pérez")
        self.assertEqual(payload["start"], {"date": "2024-06-01", "timeZone": "America/Santiago"})
        self.assertEqual(payload["end"], {"date": "2024-06-04", "timeZone": "America/Santiago"})
        self.assertEqual(payload["colorId"], "2")
        for text in ("Ana Pérez", "ana@example.com", "+56911112222", "4 personas",
                     "2024-06-01", "2024-06-04", "Con mascota", "Confirmada"):
            self.assertIn(text, payload["description"])

    def test_message_placeholder(self):
        reservation = build_reservation(complete_request(), "America/Santiago")
        self.assertIn("Mensaje: No especificado", reservation.payload["description"])

    def test_code_format(self):
        reservation = build_reservation(complete_request(), "America/Santiago")
        self.assertRegex(reservation.code, CODE_PATTERN)

    def test_invalid_request_builds_nothing(self):
        with self.assertRaises(MissingFieldError):
            build_reservation(complete_request(checkOutDate=""), "America/Santiago")


class ReservationCodeTest(unittest.TestCase):

    def test_uses_given_year(self):
        code = generate_reservation_code(datetime(2031, 3, 1))
        self.assertTrue(code.startswith("CB-2031-"))
        self.assertRegex(code, CODE_PATTERN)

    def test_defaults_to_current_year(self):
        code = generate_reservation_code()
        self.assertRegex(code, CODE_PATTERN)
        self.assertEqual(code.split("-")[1], str(datetime.now().year))

    def test_codes_vary(self):
        codes = {generate_reservation_code() for _ in range(50)}
        self.assertGreater(len(codes), 1)


if __name__ == '__main__':
    unittest.main()
