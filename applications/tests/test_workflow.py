from datetime import timedelta
from unittest.mock import patch

from django.conf import settings
from django.db import DatabaseError
from django.test import TestCase, override_settings
from rest_framework import exceptions

from activity.models import ActivityLog
from applications.models import Application
from applications.workflow import AUTO_REJECT_NOTE, ApplicationWorkflow
from assignments.models import Assignment
from fypportal.errors import Conflict, InvalidState, ResourceExhausted
from submissions.models import Submission
from topics.models import Topic

from .factories import (
    create_application,
    create_assignment,
    create_student,
    create_supervisor,
    create_topic,
)


class ApplyTests(TestCase):
    def setUp(self) -> None:
        self.workflow = ApplicationWorkflow()
        self.student = create_student()
        self.topic = create_topic()

    def test_apply_creates_pending_application_and_audit_entry(self) -> None:
        application = self.workflow.apply(self.student, self.topic.pk, 2)

        application.refresh_from_db()
        self.assertEqual(application.status, Application.Status.PENDING)
        self.assertEqual(application.preference_rank, 2)
        self.assertIsNotNone(application.applied_at)
        self.assertIsNone(application.decided_at)

        log = ActivityLog.objects.get(action=ActivityLog.Action.APPLICATION_SUBMITTED)
        self.assertEqual(log.actor, self.student)
        self.assertEqual(log.entity_type, "Application")
        self.assertEqual(log.entity_id, str(application.pk))
        self.assertEqual(log.details["topic_id"], self.topic.pk)

    def test_rank_outside_range_is_rejected_before_anything_else(self) -> None:
        for rank in (0, 6, -1, "2", 2.0, True, None):
            with self.subTest(rank=rank):
                with self.assertRaises(exceptions.ValidationError):
                    self.workflow.apply(self.student, 999_999, rank)
        self.assertFalse(Application.objects.exists())

    def test_unknown_topic(self) -> None:
        with self.assertRaises(exceptions.NotFound):
            self.workflow.apply(self.student, 999_999, 1)

    def test_topic_must_be_active(self) -> None:
        for status in (Topic.Status.DRAFT, Topic.Status.ARCHIVED):
            with self.subTest(status=status):
                topic = create_topic(status=status)
                with self.assertRaises(InvalidState):
                    self.workflow.apply(self.student, topic.pk, 1)
        self.assertFalse(Application.objects.exists())

    def test_duplicate_application_is_a_conflict(self) -> None:
        self.workflow.apply(self.student, self.topic.pk, 1)
        with self.assertRaises(Conflict):
            self.workflow.apply(self.student, self.topic.pk, 2)
        self.assertEqual(
            Application.objects.filter(student=self.student, topic=self.topic).count(), 1
        )

    def test_duplicate_check_includes_decided_applications(self) -> None:
        create_application(self.student, self.topic, status=Application.Status.REJECTED)
        with self.assertRaises(Conflict):
            self.workflow.apply(self.student, self.topic.pk, 1)

    def test_sixth_pending_application_is_refused(self) -> None:
        for rank in range(1, 6):
            self.workflow.apply(self.student, create_topic().pk, rank)

        with self.assertRaises(ResourceExhausted):
            self.workflow.apply(self.student, create_topic().pk, 1)

        self.assertEqual(
            Application.objects.filter(
                student=self.student, status=Application.Status.PENDING
            ).count(),
            5,
        )
        self.assertEqual(Application.objects.filter(student=self.student).count(), 5)

    def test_decided_applications_do_not_count_towards_limit(self) -> None:
        for _ in range(5):
            create_application(self.student, create_topic(), status=Application.Status.REJECTED)
        application = self.workflow.apply(self.student, self.topic.pk, 1)
        self.assertEqual(application.status, Application.Status.PENDING)

    @override_settings(FYP_MAX_PENDING_APPLICATIONS=2)
    def test_limit_comes_from_settings(self) -> None:
        workflow = ApplicationWorkflow()
        workflow.apply(self.student, create_topic().pk, 1)
        workflow.apply(self.student, create_topic().pk, 2)
        with self.assertRaises(ResourceExhausted):
            workflow.apply(self.student, self.topic.pk, 3)

    def test_audit_failure_does_not_abort_apply(self) -> None:
        with patch.object(ActivityLog, "save", side_effect=DatabaseError("log store down")):
            with self.assertLogs("activity", level="ERROR") as logs:
                application = self.workflow.apply(self.student, self.topic.pk, 1)

        self.assertTrue(Application.objects.filter(pk=application.pk).exists())
        self.assertFalse(ActivityLog.objects.exists())
        self.assertIn("Failed to record activity", logs.output[0])


class WithdrawTests(TestCase):
    def setUp(self) -> None:
        self.workflow = ApplicationWorkflow()
        self.student = create_student()
        self.topic = create_topic()

    def test_withdraw_deletes_pending_application(self) -> None:
        application = create_application(self.student, self.topic)

        self.workflow.withdraw(self.student, application.pk)

        self.assertFalse(Application.objects.filter(pk=application.pk).exists())
        self.assertFalse(Assignment.objects.filter(student=self.student).exists())
        log = ActivityLog.objects.get(action=ActivityLog.Action.APPLICATION_WITHDRAWN)
        self.assertEqual(log.entity_id, str(application.pk))

    def test_withdraw_decided_application_fails(self) -> None:
        for status in (Application.Status.APPROVED, Application.Status.REJECTED):
            with self.subTest(status=status):
                application = create_application(self.student, create_topic(), status=status)
                with self.assertRaises(InvalidState):
                    self.workflow.withdraw(self.student, application.pk)
                self.assertTrue(Application.objects.filter(pk=application.pk).exists())
        self.assertFalse(ActivityLog.objects.exists())

    def test_only_owner_can_withdraw(self) -> None:
        application = create_application(self.student, self.topic)
        with self.assertRaises(exceptions.PermissionDenied):
            self.workflow.withdraw(create_student(), application.pk)
        self.assertTrue(Application.objects.filter(pk=application.pk).exists())

    def test_withdraw_unknown_application(self) -> None:
        with self.assertRaises(exceptions.NotFound):
            self.workflow.withdraw(self.student, 999_999)


class ApproveTests(TestCase):
    def setUp(self) -> None:
        self.workflow = ApplicationWorkflow()
        self.supervisor = create_supervisor()
        self.student = create_student()

    def test_approval_cascades_rejection_to_other_pending_applications(self) -> None:
        t1 = create_topic(self.supervisor)
        t2 = create_topic()
        t3 = create_topic()
        a1 = self.workflow.apply(self.student, t1.pk, 1)
        a2 = self.workflow.apply(self.student, t2.pk, 2)
        a3 = self.workflow.apply(self.student, t3.pk, 3)

        result = self.workflow.approve(self.supervisor, a1.pk, "Welcome aboard")

        a1.refresh_from_db()
        a2.refresh_from_db()
        a3.refresh_from_db()
        self.assertEqual(a1.status, Application.Status.APPROVED)
        self.assertEqual(a1.supervisor_notes, "Welcome aboard")
        self.assertIsNotNone(a1.decided_at)
        for sibling in (a2, a3):
            self.assertEqual(sibling.status, Application.Status.REJECTED)
            self.assertEqual(sibling.supervisor_notes, AUTO_REJECT_NOTE)
            self.assertIsNotNone(sibling.decided_at)

        assignment = Assignment.objects.get(student=self.student)
        self.assertEqual(assignment.status, Assignment.Status.ACTIVE)
        self.assertEqual(assignment.topic, t1)
        self.assertEqual(assignment.supervisor, self.supervisor)
        self.assertEqual(result.assignment, assignment)
        self.assertEqual(sorted(result.auto_rejected), sorted([a2.pk, a3.pk]))

    def test_approval_writes_one_entry_plus_one_per_sibling(self) -> None:
        topic = create_topic(self.supervisor)
        target = create_application(self.student, topic)
        siblings = [create_application(self.student, create_topic(), rank=2) for _ in range(2)]
        decided = create_application(
            self.student, create_topic(), rank=3, status=Application.Status.REJECTED
        )

        result = self.workflow.approve(self.supervisor, target.pk)

        approved = ActivityLog.objects.filter(action=ActivityLog.Action.APPLICATION_APPROVED)
        self.assertEqual(approved.count(), 1)
        self.assertEqual(approved.get().details["assignment_id"], result.assignment.pk)
        rejected = ActivityLog.objects.filter(action=ActivityLog.Action.APPLICATION_REJECTED)
        self.assertEqual(
            sorted(rejected.values_list("entity_id", flat=True)),
            sorted(str(app.pk) for app in siblings),
        )
        self.assertTrue(all(log.actor == self.supervisor for log in rejected))
        decided.refresh_from_db()
        self.assertEqual(decided.supervisor_notes, "")

    def test_other_students_are_untouched(self) -> None:
        topic = create_topic(self.supervisor)
        target = create_application(self.student, topic)
        bystander = create_application(create_student(), topic)

        self.workflow.approve(self.supervisor, target.pk)

        bystander.refresh_from_db()
        self.assertEqual(bystander.status, Application.Status.PENDING)

    def test_unknown_application(self) -> None:
        with self.assertRaises(exceptions.NotFound):
            self.workflow.approve(self.supervisor, 999_999)

    def test_only_topic_owner_can_decide(self) -> None:
        application = create_application(self.student, create_topic())
        with self.assertRaises(exceptions.PermissionDenied):
            self.workflow.approve(self.supervisor, application.pk)
        with self.assertRaises(exceptions.PermissionDenied):
            self.workflow.reject(self.supervisor, application.pk)
        application.refresh_from_db()
        self.assertEqual(application.status, Application.Status.PENDING)

    def test_ownership_is_checked_before_status(self) -> None:
        application = create_application(
            self.student, create_topic(), status=Application.Status.APPROVED
        )
        with self.assertRaises(exceptions.PermissionDenied):
            self.workflow.approve(self.supervisor, application.pk)

    def test_deciding_a_decided_application_has_no_side_effects(self) -> None:
        topic = create_topic(self.supervisor)
        for status in (Application.Status.APPROVED, Application.Status.REJECTED):
            application = create_application(create_student(), topic, status=status)
            sibling = create_application(application.student, create_topic(), rank=2)
            for decide in (self.workflow.approve, self.workflow.reject):
                with self.subTest(status=status, operation=decide.__name__):
                    with self.assertRaises(InvalidState):
                        decide(self.supervisor, application.pk, "again")
            application.refresh_from_db()
            sibling.refresh_from_db()
            self.assertEqual(application.status, status)
            self.assertEqual(application.supervisor_notes, "")
            self.assertEqual(sibling.status, Application.Status.PENDING)

        self.assertFalse(Assignment.objects.exists())
        self.assertFalse(ActivityLog.objects.exists())

    def test_student_with_active_assignment_cannot_be_approved(self) -> None:
        create_assignment(self.student)
        application = create_application(self.student, create_topic(self.supervisor))

        with self.assertRaises(Conflict):
            self.workflow.approve(self.supervisor, application.pk)

        application.refresh_from_db()
        self.assertEqual(application.status, Application.Status.PENDING)
        self.assertEqual(Assignment.objects.filter(student=self.student).count(), 1)

    def test_completed_assignment_does_not_block_approval(self) -> None:
        create_assignment(self.student, status=Assignment.Status.COMPLETED)
        application = create_application(self.student, create_topic(self.supervisor))

        self.workflow.approve(self.supervisor, application.pk)

        self.assertEqual(
            Assignment.objects.filter(
                student=self.student, status=Assignment.Status.ACTIVE
            ).count(),
            1,
        )

    def test_concurrent_approvals_leave_one_active_assignment(self) -> None:
        other_supervisor = create_supervisor()
        first = create_application(self.student, create_topic(self.supervisor), rank=1)
        second = create_application(self.student, create_topic(other_supervisor), rank=2)

        self.workflow.approve(self.supervisor, first.pk)
        # The second request read its application before the first one committed.
        Application.objects.filter(pk=second.pk).update(
            status=Application.Status.PENDING, decided_at=None, supervisor_notes=""
        )

        with patch.object(ApplicationWorkflow, "_has_active_assignment", return_value=False):
            with self.assertRaises(Conflict):
                self.workflow.approve(other_supervisor, second.pk)

        self.assertEqual(
            Assignment.objects.filter(
                student=self.student, status=Assignment.Status.ACTIVE
            ).count(),
            1,
        )
        second.refresh_from_db()
        self.assertEqual(second.status, Application.Status.PENDING)
        self.assertEqual(
            ActivityLog.objects.filter(action=ActivityLog.Action.APPLICATION_APPROVED).count(), 1
        )

    def test_notes_are_limited(self) -> None:
        application = create_application(self.student, create_topic(self.supervisor))
        with self.assertRaises(exceptions.ValidationError):
            self.workflow.approve(self.supervisor, application.pk, "x" * 1001)
        application.refresh_from_db()
        self.assertEqual(application.status, Application.Status.PENDING)

    def test_decision_checks_come_before_notes_validation(self) -> None:
        long_notes = "x" * 1001
        with self.assertRaises(exceptions.NotFound):
            self.workflow.approve(self.supervisor, 999_999, long_notes)
        with self.assertRaises(exceptions.NotFound):
            self.workflow.reject(self.supervisor, 999_999, long_notes)

        foreign = create_application(self.student, create_topic())
        with self.assertRaises(exceptions.PermissionDenied):
            self.workflow.approve(self.supervisor, foreign.pk, long_notes)
        with self.assertRaises(exceptions.PermissionDenied):
            self.workflow.reject(self.supervisor, foreign.pk, long_notes)

        decided = create_application(
            create_student(), create_topic(self.supervisor), status=Application.Status.REJECTED
        )
        with self.assertRaises(InvalidState):
            self.workflow.reject(self.supervisor, decided.pk, long_notes)

    def test_approval_opens_every_phase_from_the_assignment_date(self) -> None:
        application = create_application(self.student, create_topic(self.supervisor))

        assignment = self.workflow.approve(self.supervisor, application.pk).assignment

        rows = {row.phase: row for row in Submission.objects.filter(student=self.student)}
        self.assertEqual(set(rows), set(Submission.Phase.values))
        for phase, row in rows.items():
            self.assertEqual(row.status, Submission.Status.NOT_SUBMITTED)
            self.assertEqual(row.topic_id, assignment.topic_id)
            self.assertEqual(
                row.due_date,
                assignment.assigned_at
                + timedelta(days=settings.FYP_SUBMISSION_PHASE_DAYS[phase]),
            )

    def test_rejected_application_opens_nothing(self) -> None:
        application = create_application(self.student, create_topic(self.supervisor))
        self.workflow.reject(self.supervisor, application.pk)
        self.assertFalse(Submission.objects.exists())

    def test_audit_failure_does_not_undo_approval(self) -> None:
        application = create_application(self.student, create_topic(self.supervisor))
        create_application(self.student, create_topic(), rank=2)

        with patch(
            "django.db.models.query.QuerySet.bulk_create",
            side_effect=DatabaseError("log store down"),
        ):
            with self.assertLogs("activity", level="ERROR"):
                result = self.workflow.approve(self.supervisor, application.pk)

        application.refresh_from_db()
        self.assertEqual(application.status, Application.Status.APPROVED)
        self.assertTrue(Assignment.objects.filter(pk=result.assignment.pk).exists())
        self.assertEqual(len(result.auto_rejected), 1)


class RejectTests(TestCase):
    def setUp(self) -> None:
        self.workflow = ApplicationWorkflow()
        self.supervisor = create_supervisor()
        self.student = create_student()

    def test_reject_only_touches_target(self) -> None:
        target = create_application(self.student, create_topic(self.supervisor))
        sibling = create_application(self.student, create_topic(), rank=2)

        self.workflow.reject(self.supervisor, target.pk, "Not a fit")

        target.refresh_from_db()
        sibling.refresh_from_db()
        self.assertEqual(target.status, Application.Status.REJECTED)
        self.assertEqual(target.supervisor_notes, "Not a fit")
        self.assertIsNotNone(target.decided_at)
        self.assertEqual(sibling.status, Application.Status.PENDING)
        self.assertFalse(Assignment.objects.exists())
        log = ActivityLog.objects.get(action=ActivityLog.Action.APPLICATION_REJECTED)
        self.assertEqual(log.entity_id, str(target.pk))
