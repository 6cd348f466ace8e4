import json

from django.test import TestCase
from django.utils import timezone
from rest_framework import exceptions

from activity.models import ActivityLog
from applications.tests.factories import (
    create_admin,
    create_assignment,
    create_student,
    create_supervisor,
    create_topic,
)
from feedback import services as feedback_service
from feedback.models import Feedback
from submissions.models import Submission

COMMENT = "Clear problem statement, tighten the scope."


class FeedbackTestMixin:
    def setUp(self) -> None:
        self.supervisor = create_supervisor()
        self.student = create_student()
        topic = create_topic(self.supervisor)
        create_assignment(self.student, topic)
        self.submission = Submission.objects.create(
            student=self.student,
            topic=topic,
            phase=Submission.Phase.INITIAL_STATEMENT,
            status=Submission.Status.SUBMITTED,
            due_date=timezone.now(),
            submitted_at=timezone.now(),
        )

    def add(self, **data) -> Feedback:
        data.setdefault("text", COMMENT)
        return feedback_service.add_feedback(self.supervisor, self.submission.pk, data)


class FeedbackServiceTests(FeedbackTestMixin, TestCase):
    def test_add_is_audited(self) -> None:
        feedback = self.add(rating=4)

        self.assertEqual(feedback.supervisor, self.supervisor)
        entry = ActivityLog.objects.get(action=ActivityLog.Action.FEEDBACK_ADDED)
        self.assertEqual(entry.entity_id, str(feedback.pk))
        self.assertEqual(
            entry.details,
            {"submission_id": self.submission.pk, "is_private": False, "has_rating": True},
        )

    def test_only_assigned_supervisor_adds(self) -> None:
        with self.assertRaises(exceptions.PermissionDenied):
            feedback_service.add_feedback(
                create_supervisor(), self.submission.pk, {"text": COMMENT}
            )
        with self.assertRaises(exceptions.NotFound):
            feedback_service.add_feedback(self.supervisor, 999_999, {"text": COMMENT})
        self.assertFalse(Feedback.objects.exists())

    def test_students_see_public_feedback_on_own_submissions(self) -> None:
        public = self.add(rating=5)
        private = self.add(is_private=True, text="Student seems to be struggling.")

        self.assertEqual(
            list(feedback_service.feedback_for(self.student, self.submission.pk)), [public]
        )
        self.assertEqual(
            set(feedback_service.feedback_for(self.supervisor, self.submission.pk)),
            {public, private},
        )
        self.assertEqual(
            feedback_service.feedback_for(create_admin(), self.submission.pk).count(), 2
        )
        with self.assertRaises(exceptions.PermissionDenied):
            feedback_service.feedback_for(create_student(), self.submission.pk)
        with self.assertRaises(exceptions.PermissionDenied):
            feedback_service.feedback_for(create_supervisor(), self.submission.pk)

    def test_stats_ignore_private_feedback(self) -> None:
        self.add(rating=2)
        self.add(rating=4)
        self.add()
        self.add(rating=1, is_private=True)

        self.assertEqual(
            feedback_service.feedback_stats(self.student, self.submission.pk),
            {"count": 3, "avg_rating": 3.0, "min_rating": 2, "max_rating": 4},
        )

    def test_stats_without_feedback(self) -> None:
        self.assertEqual(
            feedback_service.feedback_stats(self.supervisor, self.submission.pk),
            {"count": 0, "avg_rating": None, "min_rating": None, "max_rating": None},
        )

    def test_only_author_updates_or_deletes(self) -> None:
        feedback = self.add()
        other = create_supervisor()
        with self.assertRaises(exceptions.PermissionDenied):
            feedback_service.update_feedback(other, feedback.pk, {"rating": 1})
        with self.assertRaises(exceptions.PermissionDenied):
            feedback_service.delete_feedback(other, feedback.pk)

        updated = feedback_service.update_feedback(
            self.supervisor, feedback.pk, {"rating": 3, "is_private": True}
        )
        self.assertEqual((updated.rating, updated.is_private), (3, True))

        feedback_service.delete_feedback(self.supervisor, feedback.pk)
        self.assertFalse(Feedback.objects.exists())
        with self.assertRaises(exceptions.NotFound):
            feedback_service.delete_feedback(self.supervisor, feedback.pk)
        self.assertEqual(
            list(
                ActivityLog.objects.filter(entity_type="Feedback")
                .order_by("id")
                .values_list("action", flat=True)
            ),
            [
                ActivityLog.Action.FEEDBACK_ADDED,
                ActivityLog.Action.FEEDBACK_UPDATED,
                ActivityLog.Action.FEEDBACK_DELETED,
            ],
        )


class FeedbackApiTests(FeedbackTestMixin, TestCase):
    def url(self, suffix: str = "") -> str:
        return f"/api/feedback/submissions/{self.submission.pk}/{suffix}"

    def test_supervisor_adds_and_student_reads(self) -> None:
        self.client.force_login(self.supervisor)
        resp = self.client.post(
            self.url(),
            data=json.dumps({"text": COMMENT, "rating": 4}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["data"]["supervisor"]["id"], self.supervisor.pk)

        self.client.force_login(self.student)
        resp = self.client.get(self.url())
        self.assertEqual(resp.json()["data"]["count"], 1)
        self.assertEqual(resp.json()["data"]["feedback"][0]["text"], COMMENT)

        resp = self.client.get(self.url("stats/"))
        self.assertEqual(resp.json()["data"]["avg_rating"], 4.0)

    def test_validation(self) -> None:
        self.client.force_login(self.supervisor)
        resp = self.client.post(
            self.url(),
            data=json.dumps({"text": "short", "rating": 6}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 400)
        errors = resp.json()["errors"]
        self.assertIn("text", errors)
        self.assertIn("rating", errors)

    def test_students_cannot_write(self) -> None:
        feedback = self.add()
        self.client.force_login(self.student)
        resp = self.client.post(
            self.url(), data=json.dumps({"text": COMMENT}), content_type="application/json"
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(self.client.delete(f"/api/feedback/{feedback.pk}/").status_code, 403)

    def test_author_edits_and_deletes(self) -> None:
        feedback = self.add()
        self.client.force_login(self.supervisor)
        resp = self.client.patch(
            f"/api/feedback/{feedback.pk}/",
            data=json.dumps({"is_private": True}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["data"]["is_private"])

        self.assertEqual(self.client.delete(f"/api/feedback/{feedback.pk}/").status_code, 200)
        self.assertFalse(Feedback.objects.filter(pk=feedback.pk).exists())
