import unittest
import os
import sys
from unittest.mock import patch
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from cabin_reservations.config import DEFAULT_CALENDAR_ID, DEFAULT_CORS_ORIGINS, ServiceConfig

ENV_KEYS = ["PORT", "CALENDAR_ID", "SERVICE_ACCOUNT_FILE", "CALENDAR_TIMEZONE", "CORS_ORIGINS",
            "CALENDAR_TIMEOUT", "AVAILABILITY_WINDOW_DAYS", "FLASK_ENV"]


class ServiceConfigTest(unittest.TestCase):
    def setUp(self):
        # Start every test from a clean environment and never read a developer's .env
        cleared = {key: "" for key in ENV_KEYS}
        env_patch = patch.dict(os.environ, cleared)
        env_patch.start()
        self.addCleanup(env_patch.stop)
        dotenv_patch = patch("cabin_reservations.config.load_dotenv")
        dotenv_patch.start()
        self.addCleanup(dotenv_patch.stop)
        for key in ENV_KEYS:
            del os.environ[key]

    def test_defaults(self):
        config = ServiceConfig.from_env()
        self.assertEqual(config.port, 8080)
        self.assertEqual(config.calendar_id, DEFAULT_CALENDAR_ID)
        self.assertEqual(config.timezone, "America/Santiago")
        self.assertEqual(config.cors_origins, DEFAULT_CORS_ORIGINS)
        self.assertEqual(config.availability_window_days, 90)
        self.assertIsNone(config.request_timeout)
        self.assertFalse(config.production)

    def test_overrides(self):
        with patch.dict(os.environ, {
            "PORT": "5003",
            "CALENDAR_ID": "other@group.calendar.google.com",
            "SERVICE_ACCOUNT_FILE": "/secrets/key.json",
            "CORS_ORIGINS": "https://staging.lemachine.cl, https://lemachine.cl,",
            "CALENDAR_TIMEOUT": "2.5",
            "AVAILABILITY_WINDOW_DAYS": "120",
            "FLASK_ENV": "production",
        }):
            config = ServiceConfig.from_env()
        self.assertEqual(config.port, 5003)
        self.assertEqual(config.calendar_id, "other@group.calendar.google.com")
        self.assertEqual(config.service_account_file, "/secrets/key.json")
        # Extra origins are appended once
        self.assertEqual(config.cors_origins, DEFAULT_CORS_ORIGINS + ("https://staging.lemachine.cl",))
        self.assertEqual(config.request_timeout, 2.5)
        self.assertEqual(config.availability_window_days, 120)
        self.assertTrue(config.production)

    def test_bad_port(self):
        with patch.dict(os.environ, {"PORT": "eighty"}):
            with self.assertRaises(ValueError):
                ServiceConfig.from_env()

    def test_bad_timeout(self):
        with patch.dict(os.environ, {"CALENDAR_TIMEOUT": "soon"}):
            with self.assertRaises(ValueError) as cm:
                ServiceConfig.from_env()
        self.assertIn("CALENDAR_TIMEOUT", str(cm.exception))


if __name__ == '__main__':
    unittest.main()
