import json
from datetime import timedelta
from io import StringIO
from smtplib import SMTPException
from unittest.mock import patch

from django.core import mail
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import exceptions

from activity.models import ActivityLog
from applications.tests.factories import (
    create_admin,
    create_application,
    create_assignment,
    create_student,
    create_supervisor,
    create_topic,
)
from applications.workflow import ApplicationWorkflow
from assignments import services as assignment_service
from fypportal.errors import InvalidState
from submissions import reminders
from submissions import services as submission_service
from submissions.models import Submission


class SubmissionModelTests(TestCase):
    def test_saving_past_due_row_marks_it_overdue(self) -> None:
        student = create_student()
        submission = Submission.objects.create(
            student=student,
            topic=create_topic(),
            phase=Submission.Phase.INITIAL_STATEMENT,
            due_date=timezone.now() - timedelta(days=1),
        )
        self.assertEqual(submission.status, Submission.Status.OVERDUE)

    def test_submitted_rows_stay_submitted(self) -> None:
        submission = Submission.objects.create(
            student=create_student(),
            topic=create_topic(),
            phase=Submission.Phase.FINAL_DISSERTATION,
            status=Submission.Status.SUBMITTED,
            due_date=timezone.now() - timedelta(days=1),
        )
        self.assertEqual(submission.status, Submission.Status.SUBMITTED)


class SubmissionServiceTests(TestCase):
    def setUp(self) -> None:
        self.student = create_student()
        self.supervisor = create_supervisor()
        self.topic = create_topic(self.supervisor)

    def test_requires_active_assignment(self) -> None:
        with self.assertRaises(InvalidState):
            submission_service.submit_document(
                self.student, "initial_statement", "https://files.example.com/a.pdf"
            )
        self.assertFalse(Submission.objects.exists())

    def test_submit_creates_phase_row_with_due_date(self) -> None:
        assignment = create_assignment(self.student, self.topic)

        submission = submission_service.submit_document(
            self.student, "progress_report_1", "https://files.example.com/report.pdf"
        )

        self.assertEqual(submission.status, Submission.Status.SUBMITTED)
        self.assertEqual(submission.topic, self.topic)
        self.assertEqual(submission.document_url, "https://files.example.com/report.pdf")
        self.assertEqual(submission.due_date, assignment.assigned_at + timedelta(days=60))
        self.assertTrue(
            ActivityLog.objects.filter(
                action=ActivityLog.Action.DOCUMENT_SUBMITTED, entity_id=str(submission.pk)
            ).exists()
        )

        again = submission_service.submit_document(
            self.student, "progress_report_1", "https://files.example.com/report-v2.pdf"
        )
        self.assertEqual(again.pk, submission.pk)
        self.assertEqual(Submission.objects.filter(student=self.student).count(), 1)

    def test_unknown_phase(self) -> None:
        create_assignment(self.student, self.topic)
        with self.assertRaises(exceptions.ValidationError):
            submission_service.submit_document(self.student, "appendix", "https://x.example.com")

    def test_declare_not_needed(self) -> None:
        create_assignment(self.student, self.topic)
        with self.assertRaises(exceptions.ValidationError):
            submission_service.declare_not_needed(self.student, "progress_report_2", "  ")

        submission = submission_service.declare_not_needed(
            self.student, "progress_report_2", "Merged into final report"
        )

        self.assertEqual(submission.status, Submission.Status.DECLARED_NOT_NEEDED)
        self.assertEqual(submission.declaration_reason, "Merged into final report")
        self.assertIsNotNone(submission.declared_at)

    def test_supervisor_sees_current_students_only(self) -> None:
        create_assignment(self.student, self.topic)
        submission_service.submit_document(
            self.student, "initial_statement", "https://files.example.com/a.pdf"
        )
        other = create_student()
        create_assignment(other)
        submission_service.submit_document(other, "initial_statement", "https://files.example.com/b.pdf")

        rows = list(submission_service.supervisor_submissions(self.supervisor))
        self.assertEqual([row.student for row in rows], [self.student])

        stats = submission_service.supervisor_submission_stats(self.supervisor)
        self.assertEqual(len(stats), 1)
        self.assertEqual(stats[0]["phase"], "initial_statement")
        self.assertEqual(stats[0]["submitted"], 1)


class SubmissionApiTests(TestCase):
    def test_student_submits_and_lists(self) -> None:
        student = create_student()
        create_assignment(student)
        self.client.force_login(student)

        resp = self.client.post(
            "/api/submissions/initial_statement/",
            data=json.dumps({"document_url": "https://files.example.com/s.pdf"}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["data"]["status"], "submitted")

        resp = self.client.get("/api/submissions/")
        self.assertEqual(len(resp.json()["data"]), 1)

        resp = self.client.get("/api/submissions/final_dissertation/")
        self.assertEqual(resp.status_code, 404)

    def test_submit_without_assignment(self) -> None:
        self.client.force_login(create_student())
        resp = self.client.post(
            "/api/submissions/initial_statement/",
            data=json.dumps({"document_url": "https://files.example.com/s.pdf"}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "invalid_state")


@override_settings(
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
    FYP_REMINDER_SENDER="fyp@example.com",
)
class LateReminderTests(TestCase):
    def setUp(self) -> None:
        self.now = timezone.now()
        self.student = create_student(email="late@example.com", full_name="Late Student")
        self.topic = create_topic(title="Compilers for toasters")
        self.late = self._submission(self.student, Submission.Phase.INITIAL_STATEMENT, days=-2)

    def _submission(self, student, phase, *, days: int, **fields) -> Submission:
        return Submission.objects.create(
            student=student,
            topic=self.topic,
            phase=phase,
            due_date=self.now + timedelta(days=days),
            **fields,
        )

    def test_finds_only_late_unreminded_rows(self) -> None:
        self._submission(self.student, Submission.Phase.PROGRESS_REPORT_1, days=5)
        self._submission(
            self.student,
            Submission.Phase.PROGRESS_REPORT_2,
            days=-1,
            status=Submission.Status.SUBMITTED,
        )
        self._submission(
            self.student,
            Submission.Phase.FINAL_DISSERTATION,
            days=-1,
            reminder_sent_at=self.now,
        )

        self.assertEqual(list(reminders.find_late_submissions(self.now)), [self.late])

    def test_send_emails_and_stamps_rows(self) -> None:
        summary = reminders.send_late_reminders(self.now)

        self.assertEqual((summary.sent, summary.failed, summary.total), (1, 0, 1))
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["late@example.com"])
        self.assertEqual(message.from_email, "fyp@example.com")
        self.assertIn("Initial Statement", message.subject)
        self.assertIn("Late Student", message.body)
        self.assertIn("Compilers for toasters", message.body)

        self.late.refresh_from_db()
        self.assertEqual(self.late.reminder_sent_at, self.now)
        self.assertTrue(
            ActivityLog.objects.filter(action=ActivityLog.Action.REMINDER_SENT).exists()
        )

        summary = reminders.send_late_reminders(self.now)
        self.assertEqual(summary.total, 0)
        self.assertEqual(len(mail.outbox), 1)

    def test_one_failure_does_not_stop_the_batch(self) -> None:
        other = create_student(email="other@example.com")
        self._submission(other, Submission.Phase.INITIAL_STATEMENT, days=-1)

        real_send = reminders.send_mail

        def flaky_send(subject, body, sender, recipients, **kwargs):
            if recipients == ["late@example.com"]:
                raise SMTPException("relay refused")
            return real_send(subject, body, sender, recipients, **kwargs)

        with patch("submissions.reminders.send_mail", side_effect=flaky_send):
            with self.assertLogs("submissions.reminders", level="ERROR"):
                summary = reminders.send_late_reminders(self.now)

        self.assertEqual((summary.sent, summary.failed, summary.total), (1, 1, 2))
        self.assertEqual([m.to for m in mail.outbox], [["other@example.com"]])
        self.late.refresh_from_db()
        self.assertIsNone(self.late.reminder_sent_at)

    def test_command(self) -> None:
        out = StringIO()
        call_command("send_late_reminders", "--dry-run", stdout=out)
        self.assertIn("1 late submission(s) found", out.getvalue())
        self.assertEqual(len(mail.outbox), 0)

        out = StringIO()
        call_command("send_late_reminders", stdout=out)
        self.assertIn("Sent 1, failed 0, total 1", out.getvalue())
        self.assertEqual(len(mail.outbox), 1)


class PhaseScheduleTests(TestCase):
    def setUp(self) -> None:
        self.supervisor = create_supervisor()
        self.student = create_student(email="new@example.com", full_name="New Student")
        self.topic = create_topic(self.supervisor, title="Query planners")

    def _approve(self):
        application = create_application(self.student, self.topic)
        return ApplicationWorkflow().approve(self.supervisor, application.pk).assignment

    def test_reminder_goes_out_once_first_phase_lapses(self) -> None:
        assignment = self._approve()
        self.assertEqual(Submission.objects.filter(student=self.student).count(), 4)

        self.assertEqual(
            reminders.send_late_reminders(assignment.assigned_at + timedelta(days=13)).total, 0
        )
        summary = reminders.send_late_reminders(assignment.assigned_at + timedelta(days=15))

        self.assertEqual((summary.sent, summary.total), (1, 1))
        self.assertEqual(mail.outbox[0].to, ["new@example.com"])
        self.assertIn("Initial Statement", mail.outbox[0].subject)
        self.assertIn("Query planners", mail.outbox[0].body)

    def test_reassign_moves_open_phases_and_keeps_finished_ones(self) -> None:
        assignment = self._approve()
        submission_service.submit_document(
            self.student, "initial_statement", "https://files.example.com/statement.pdf"
        )
        Submission.objects.filter(
            student=self.student, phase=Submission.Phase.PROGRESS_REPORT_1
        ).update(status=Submission.Status.OVERDUE, reminder_sent_at=timezone.now())
        new_topic = create_topic(title="Vector indexes")

        replacement = assignment_service.reassign(create_admin(), assignment.pk, new_topic.pk)

        rows = {row.phase: row for row in Submission.objects.filter(student=self.student)}
        self.assertEqual(rows["initial_statement"].status, Submission.Status.SUBMITTED)
        self.assertEqual(rows["initial_statement"].topic, self.topic)
        report = rows["progress_report_1"]
        self.assertEqual(report.status, Submission.Status.NOT_SUBMITTED)
        self.assertEqual(report.topic, new_topic)
        self.assertIsNone(report.reminder_sent_at)
        self.assertEqual(report.due_date, replacement.assigned_at + timedelta(days=60))
