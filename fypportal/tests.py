from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase

from applications.tests.factories import create_student


class HealthViewTests(TestCase):
    def test_ok(self) -> None:
        resp = self.client.get("/api/health/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"success": True, "data": {"status": "ok", "database": "ok"}})

    def test_database_failure(self) -> None:
        with patch(
            "django.db.backends.base.base.BaseDatabaseWrapper.cursor",
            side_effect=DatabaseError("gone"),
        ):
            with self.assertLogs("fypportal.views", level="ERROR"):
                resp = self.client.get("/api/health/")
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()["data"]["database"], "error")


class ErrorEnvelopeTests(TestCase):
    def test_method_not_allowed(self) -> None:
        self.client.force_login(create_student())
        resp = self.client.put("/api/applications/my-applications/")
        self.assertEqual(resp.status_code, 405)
        self.assertEqual(resp.json()["code"], "method_not_allowed")
        self.assertIn("PUT", resp.json()["message"])

    def test_bad_pagination_parameters(self) -> None:
        self.client.force_login(create_student())
        resp = self.client.get("/api/applications/my-applications/", {"page": "zero"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {
            "code": "invalid_argument",
            "message": "page: Must be an integer.",
            "errors": {"page": ["Must be an integer."]},
        })

    def test_limit_is_capped(self) -> None:
        self.client.force_login(create_student())
        resp = self.client.get("/api/applications/my-applications/", {"limit": 10_000})
        self.assertEqual(resp.json()["pagination"]["limit"], 500)
