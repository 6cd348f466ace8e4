import csv
import io
from datetime import timedelta
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from applications.tests.factories import create_admin, create_student, create_supervisor

from .models import ActivityLog, ImmutableLogError
from .services import ActivityRecorder, Entry, activity_stats, export_csv


class ImmutableLogTests(TestCase):
    def setUp(self) -> None:
        self.user = create_student()
        self.log = ActivityRecorder().record(
            self.user, ActivityLog.Action.LOGIN, "User", self.user.pk
        )

    def test_entries_cannot_be_changed(self) -> None:
        original = self.log.timestamp
        self.log.timestamp = original - timedelta(days=3)
        with self.assertRaises(ImmutableLogError):
            self.log.save()
        with self.assertRaises(ImmutableLogError):
            ActivityLog.objects.filter(pk=self.log.pk).update(timestamp=timezone.now())
        self.assertEqual(ActivityLog.objects.get(pk=self.log.pk).timestamp, original)

    def test_entries_cannot_be_deleted(self) -> None:
        with self.assertRaises(ImmutableLogError):
            self.log.delete()
        with self.assertRaises(ImmutableLogError):
            ActivityLog.objects.all().delete()
        self.assertTrue(ActivityLog.objects.filter(pk=self.log.pk).exists())


class ActivityRecorderTests(TestCase):
    def setUp(self) -> None:
        self.user = create_student()

    def test_record_stores_entry(self) -> None:
        log = ActivityRecorder(ip_address="198.51.100.4").record(
            self.user,
            ActivityLog.Action.APPLICATION_SUBMITTED,
            "Application",
            17,
            details={"topic_id": 3},
        )
        log = ActivityLog.objects.get(pk=log.pk)
        self.assertEqual(log.entity_id, "17")
        self.assertEqual(log.details, {"topic_id": 3})
        self.assertEqual(log.ip_address, "198.51.100.4")
        self.assertIsNotNone(log.timestamp)

    def test_missing_fields_are_skipped_with_warning(self) -> None:
        with self.assertLogs("activity", level="WARNING"):
            self.assertIsNone(ActivityRecorder().record(self.user, "", "Application"))
        self.assertFalse(ActivityLog.objects.exists())

    def test_storage_errors_are_swallowed(self) -> None:
        with patch.object(ActivityLog, "save", side_effect=DatabaseError("down")):
            with self.assertLogs("activity", level="ERROR"):
                result = ActivityRecorder().record(self.user, ActivityLog.Action.LOGIN, "User")
        self.assertIsNone(result)

    def test_record_many(self) -> None:
        logs = ActivityRecorder().record_many(
            self.user,
            [
                Entry(ActivityLog.Action.APPLICATION_APPROVED, "Application", 1),
                Entry(ActivityLog.Action.APPLICATION_REJECTED, "Application", 2, {"reason": "x"}),
            ],
        )
        self.assertEqual(len(logs), 2)
        self.assertEqual(ActivityLog.objects.count(), 2)


class ActivityReportingTests(TestCase):
    def setUp(self) -> None:
        self.admin = create_admin()
        self.student = create_student(full_name="Grace Hopper")
        self.supervisor = create_supervisor()
        recorder = ActivityRecorder()
        recorder.record(self.student, ActivityLog.Action.APPLICATION_SUBMITTED, "Application", 1)
        recorder.record(self.student, ActivityLog.Action.APPLICATION_SUBMITTED, "Application", 2)
        recorder.record(self.supervisor, ActivityLog.Action.APPLICATION_APPROVED, "Application", 1)

    def test_stats(self) -> None:
        stats = activity_stats(days=7)
        self.assertEqual(stats["period"], "Last 7 days")
        self.assertEqual(stats["total_logs"], 3)
        self.assertEqual(
            stats["action_stats"][0],
            {"action": ActivityLog.Action.APPLICATION_SUBMITTED, "count": 2},
        )
        self.assertEqual(stats["top_users"][0]["user_id"], self.student.pk)

        later = timezone.now() + timedelta(days=30)
        self.assertEqual(activity_stats(days=7, now=later)["total_logs"], 0)

    def test_csv_export(self) -> None:
        rows = list(csv.reader(io.StringIO(export_csv(ActivityLog.objects.all()))))
        self.assertEqual(rows[0][:5], ["timestamp", "user", "email", "role", "action"])
        self.assertEqual(len(rows), 4)
        student_rows = [row for row in rows[1:] if row[1] == "Grace Hopper"]
        self.assertEqual(len(student_rows), 2)
        self.assertEqual(student_rows[0][3], "Student")

    def test_admin_list_filters(self) -> None:
        self.client.force_login(self.admin)
        resp = self.client.get(
            "/api/activity/",
            {"action": ActivityLog.Action.APPLICATION_SUBMITTED, "user_id": self.student.pk},
        )
        self.assertEqual(resp.status_code, 200)
        payload = resp.json()
        self.assertEqual(payload["pagination"]["total"], 2)
        self.assertEqual(payload["pagination"]["limit"], 100)
        self.assertEqual(payload["data"][0]["actor"]["id"], self.student.pk)

    def test_non_admins_cannot_read_full_log(self) -> None:
        self.client.force_login(self.supervisor)
        self.assertEqual(self.client.get("/api/activity/").status_code, 403)
        self.assertEqual(self.client.get("/api/activity/stats/").status_code, 403)
        self.assertEqual(self.client.get("/api/activity/export/").status_code, 403)

    def test_user_activity_is_self_or_admin(self) -> None:
        url = f"/api/activity/user/{self.student.pk}/"
        self.client.force_login(self.supervisor)
        self.assertEqual(self.client.get(url).status_code, 403)

        self.client.force_login(self.student)
        resp = self.client.get(url)
        self.assertEqual(resp.status_code, 200)
        # Includes the login entry written by force_login.
        self.assertEqual(resp.json()["pagination"]["total"], 3)

        self.client.force_login(self.admin)
        self.assertEqual(self.client.get(url).status_code, 200)

    def test_entity_activity(self) -> None:
        self.client.force_login(self.student)
        resp = self.client.get("/api/activity/Application/1/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            [item["action"] for item in resp.json()["data"]],
            [ActivityLog.Action.APPLICATION_APPROVED, ActivityLog.Action.APPLICATION_SUBMITTED],
        )

    def test_export_formats(self) -> None:
        self.client.force_login(self.admin)

        resp = self.client.get("/api/activity/export/", {"format": "csv"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp["Content-Type"], "text/csv")
        self.assertIn('filename="activity-log.csv"', resp["Content-Disposition"])

        resp = self.client.get("/api/activity/export/", {"format": "json"})
        self.assertEqual(resp.status_code, 200)
        self.assertIn('filename="activity-log.json"', resp["Content-Disposition"])
        payload = resp.json()
        self.assertEqual(payload["count"], len(payload["logs"]))
        self.assertIn("exported_at", payload)

        resp = self.client.get("/api/activity/export/", {"format": "xml"})
        self.assertEqual(resp.status_code, 400)


class UserEntityPrivacyTests(TestCase):
    def setUp(self) -> None:
        self.admin = create_admin()
        self.student = create_student()
        recorder = ActivityRecorder(ip_address="203.0.113.7")
        recorder.record(self.student, ActivityLog.Action.LOGIN, "User", self.student.pk)
        recorder.record(self.admin, ActivityLog.Action.USER_DEACTIVATED, "User", self.student.pk)
        self.url = f"/api/activity/User/{self.student.pk}/"

    def test_other_users_are_refused(self) -> None:
        for viewer in (create_student(), create_supervisor()):
            self.client.force_login(viewer)
            with self.subTest(viewer=viewer.username):
                self.assertEqual(self.client.get(self.url).status_code, 403)
                self.assertEqual(
                    self.client.get(f"/api/activity/user/{self.student.pk}/").status_code, 403
                )

    def test_owner_sees_own_details_but_not_other_actors(self) -> None:
        self.client.force_login(self.student)
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]

        own = [item for item in data if item["actor"]["id"] == self.student.pk]
        self.assertTrue(all(item["actor"]["email"] == self.student.email for item in own))
        self.assertIn("203.0.113.7", [item["ip_address"] for item in own])
        [admin_entry] = [item for item in data if item["actor"]["id"] == self.admin.pk]
        self.assertNotIn("email", admin_entry["actor"])
        self.assertNotIn("ip_address", admin_entry)

    def test_admin_sees_everything(self) -> None:
        self.client.force_login(self.admin)
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, 200)
        for item in resp.json()["data"]:
            self.assertIn("email", item["actor"])
            self.assertIn("ip_address", item)

    def test_other_entity_types_hide_contact_data(self) -> None:
        ActivityRecorder(ip_address="198.51.100.2").record(
            self.admin, ActivityLog.Action.TOPIC_DELETED, "Topic", 7
        )
        self.client.force_login(self.student)
        resp = self.client.get("/api/activity/Topic/7/")
        self.assertEqual(resp.status_code, 200)
        item = resp.json()["data"][0]
        self.assertEqual(item["actor"], {"id": self.admin.pk, "username": self.admin.username})
        self.assertNotIn("ip_address", item)
