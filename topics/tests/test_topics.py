import json

from django.test import TestCase
from rest_framework import exceptions

from activity.models import ActivityLog
from applications.tests.factories import (
    DESCRIPTION,
    create_admin,
    create_application,
    create_assignment,
    create_student,
    create_supervisor,
    create_topic,
)
from fypportal.errors import Conflict, InvalidState
from topics import services as topic_service
from topics.models import Topic


class TopicServiceTests(TestCase):
    def setUp(self) -> None:
        self.supervisor = create_supervisor()

    def test_lifecycle_is_audited(self) -> None:
        topic = topic_service.create_topic(
            self.supervisor,
            {
                "title": "Graph databases",
                "description": DESCRIPTION,
                "concentration": Topic.Concentration.SYSTEMS,
                "keywords": ["graphs"],
            },
        )
        self.assertEqual(topic.status, Topic.Status.DRAFT)

        topic_service.update_topic(self.supervisor, topic.pk, {"title": "Graph stores"})
        topic_service.publish_topic(self.supervisor, topic.pk)
        topic = topic_service.archive_topic(self.supervisor, topic.pk)

        self.assertEqual(topic.status, Topic.Status.ARCHIVED)
        self.assertIsNotNone(topic.archived_at)
        self.assertEqual(topic.title, "Graph stores")
        self.assertEqual(
            list(
                ActivityLog.objects.filter(entity_type="Topic")
                .order_by("id")
                .values_list("action", flat=True)
            ),
            [
                ActivityLog.Action.TOPIC_CREATED,
                ActivityLog.Action.TOPIC_UPDATED,
                ActivityLog.Action.TOPIC_PUBLISHED,
                ActivityLog.Action.TOPIC_ARCHIVED,
            ],
        )

    def test_only_drafts_can_be_edited_or_published(self) -> None:
        topic = create_topic(self.supervisor, status=Topic.Status.ACTIVE)
        with self.assertRaises(InvalidState):
            topic_service.update_topic(self.supervisor, topic.pk, {"title": "Something new"})
        with self.assertRaises(InvalidState):
            topic_service.publish_topic(self.supervisor, topic.pk)

    def test_archiving_twice_fails(self) -> None:
        topic = create_topic(self.supervisor, status=Topic.Status.ARCHIVED)
        with self.assertRaises(InvalidState):
            topic_service.archive_topic(self.supervisor, topic.pk)

    def test_owner_check(self) -> None:
        topic = create_topic(self.supervisor, status=Topic.Status.DRAFT)
        with self.assertRaises(exceptions.PermissionDenied):
            topic_service.publish_topic(create_supervisor(), topic.pk)
        with self.assertRaises(exceptions.NotFound):
            topic_service.publish_topic(self.supervisor, 999_999)

    def test_delete_removes_applications(self) -> None:
        admin = create_admin()
        topic = create_topic(self.supervisor)
        create_application(create_student(), topic)

        topic_service.delete_topic(admin, topic.pk)

        self.assertFalse(Topic.objects.filter(pk=topic.pk).exists())
        log = ActivityLog.objects.get(action=ActivityLog.Action.TOPIC_DELETED)
        self.assertEqual(log.details["title"], topic.title)

    def test_delete_refuses_topics_with_assignments(self) -> None:
        topic = create_topic(self.supervisor)
        create_assignment(create_student(), topic)
        with self.assertRaises(Conflict):
            topic_service.delete_topic(create_admin(), topic.pk)
        self.assertTrue(Topic.objects.filter(pk=topic.pk).exists())

    def test_visibility_by_role(self) -> None:
        active = create_topic(self.supervisor)
        own_draft = create_topic(self.supervisor, status=Topic.Status.DRAFT)
        other_draft = create_topic(status=Topic.Status.DRAFT)

        student_ids = set(topic_service.visible_topics(create_student()).values_list("pk", flat=True))
        supervisor_ids = set(topic_service.visible_topics(self.supervisor).values_list("pk", flat=True))
        admin_ids = set(topic_service.visible_topics(create_admin()).values_list("pk", flat=True))

        self.assertEqual(student_ids, {active.pk})
        self.assertEqual(supervisor_ids, {active.pk, own_draft.pk})
        self.assertEqual(admin_ids, {active.pk, own_draft.pk, other_draft.pk})

    def test_search_matches_title_description_and_keywords(self) -> None:
        by_title = create_topic(title="Quantum compilers")
        by_keyword = create_topic(title="Something else", keywords=["quantum"])
        create_topic(title="Unrelated work")

        found = set(
            topic_service.visible_topics(create_student(), search="quantum").values_list("pk", flat=True)
        )
        self.assertEqual(found, {by_title.pk, by_keyword.pk})


class TopicApiTests(TestCase):
    def setUp(self) -> None:
        self.supervisor = create_supervisor()

    def test_supervisor_creates_draft(self) -> None:
        self.client.force_login(self.supervisor)
        resp = self.client.post(
            "/api/topics/",
            data=json.dumps(
                {
                    "title": "Federated learning",
                    "description": DESCRIPTION,
                    "concentration": "ai_ml",
                    "academic_year": 4,
                    "keywords": ["privacy", "ml"],
                }
            ),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 201)
        data = resp.json()["data"]
        self.assertEqual(data["status"], "draft")
        self.assertEqual(data["supervisor"]["id"], self.supervisor.pk)

    def test_validation(self) -> None:
        self.client.force_login(self.supervisor)
        resp = self.client.post(
            "/api/topics/",
            data=json.dumps(
                {
                    "title": "ML",
                    "description": "too short",
                    "concentration": "ai_ml",
                    "keywords": [f"k{i}" for i in range(11)],
                }
            ),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 400)
        errors = resp.json()["errors"]
        self.assertIn("title", errors)
        self.assertIn("description", errors)
        self.assertIn("keywords", errors)

    def test_students_cannot_create(self) -> None:
        self.client.force_login(create_student())
        resp = self.client.post("/api/topics/", data="{}", content_type="application/json")
        self.assertEqual(resp.status_code, 403)

    def test_list_and_publish(self) -> None:
        draft = create_topic(self.supervisor, status=Topic.Status.DRAFT)
        create_topic()

        self.client.force_login(create_student())
        resp = self.client.get("/api/topics/")
        self.assertEqual(resp.json()["pagination"]["total"], 1)
        self.assertEqual(self.client.get(f"/api/topics/{draft.pk}/").status_code, 404)

        self.client.force_login(self.supervisor)
        resp = self.client.post(f"/api/topics/{draft.pk}/publish/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["status"], "active")

        resp = self.client.get("/api/topics/mine/")
        self.assertEqual([item["id"] for item in resp.json()["data"]], [draft.pk])

    def test_admin_deletes(self) -> None:
        topic = create_topic(self.supervisor)
        self.client.force_login(self.supervisor)
        self.assertEqual(self.client.delete(f"/api/topics/{topic.pk}/").status_code, 403)

        self.client.force_login(create_admin())
        self.assertEqual(self.client.delete(f"/api/topics/{topic.pk}/").status_code, 200)
        self.assertFalse(Topic.objects.filter(pk=topic.pk).exists())


class TopicModerationTests(TestCase):
    def setUp(self) -> None:
        self.admin = create_admin()
        self.supervisor = create_supervisor()
        self.topic = create_topic(self.supervisor)

    def test_flag_and_clear(self) -> None:
        older = create_topic(self.supervisor, title="Older flagged topic")
        topic_service.flag_topic(self.admin, older.pk, "Duplicate of another topic")
        topic_service.flag_topic(self.admin, self.topic.pk, "Missing references")
        topic_service.flag_topic(self.admin, self.topic.pk, "Scope is unclear")

        flagged = list(topic_service.flagged_topics())
        self.assertEqual([t.pk for t in flagged], [self.topic.pk, older.pk])
        self.assertEqual(flagged[0].flag_count, 2)

        cleared = topic_service.clear_topic_flags(self.admin, self.topic.pk, "Fixed by supervisor")
        self.assertEqual(cleared, 2)
        self.assertEqual([t.pk for t in topic_service.flagged_topics()], [older.pk])
        self.assertEqual(
            list(
                ActivityLog.objects.filter(entity_id=self.topic.pk)
                .order_by("id")
                .values_list("action", flat=True)
            ),
            [
                ActivityLog.Action.TOPIC_FLAGGED,
                ActivityLog.Action.TOPIC_FLAGGED,
                ActivityLog.Action.TOPIC_FLAGS_CLEARED,
            ],
        )

    def test_flag_needs_reason(self) -> None:
        with self.assertRaises(exceptions.ValidationError):
            topic_service.flag_topic(self.admin, self.topic.pk, "   ")
        with self.assertRaises(exceptions.NotFound):
            topic_service.flag_topic(self.admin, 999_999, "Spam")

    def test_clearing_unflagged_topic_fails(self) -> None:
        with self.assertRaises(InvalidState):
            topic_service.clear_topic_flags(self.admin, self.topic.pk)

    def test_admin_archives_any_topic(self) -> None:
        topic = topic_service.archive_topic(self.admin, self.topic.pk, "Inappropriate content")

        self.assertEqual(topic.status, Topic.Status.ARCHIVED)
        entry = ActivityLog.objects.get(action=ActivityLog.Action.TOPIC_ARCHIVED)
        self.assertEqual(entry.actor, self.admin)
        self.assertEqual(
            entry.details, {"previous_status": "active", "reason": "Inappropriate content"}
        )

    def test_supervisor_still_limited_to_own_topics(self) -> None:
        with self.assertRaises(exceptions.PermissionDenied):
            topic_service.archive_topic(create_supervisor(), self.topic.pk)

    def test_moderation_endpoints(self) -> None:
        self.client.force_login(self.supervisor)
        self.assertEqual(
            self.client.post(
                f"/api/topics/{self.topic.pk}/flag/",
                data=json.dumps({"reason": "Spam"}),
                content_type="application/json",
            ).status_code,
            403,
        )
        self.assertEqual(self.client.get("/api/topics/flagged/").status_code, 403)

        self.client.force_login(self.admin)
        resp = self.client.post(
            f"/api/topics/{self.topic.pk}/flag/",
            data=json.dumps({"reason": "Spam"}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["data"]["reason"], "Spam")

        resp = self.client.get("/api/topics/flagged/")
        data = resp.json()["data"]
        self.assertEqual([item["id"] for item in data], [self.topic.pk])
        self.assertEqual(data[0]["flag_count"], 1)
        self.assertEqual(data[0]["flags"][0]["flagged_by"], self.admin.pk)

        resp = self.client.post(f"/api/topics/{self.topic.pk}/clear-flags/")
        self.assertEqual(resp.json()["data"], {"cleared": 1})

        resp = self.client.post(
            f"/api/topics/{self.topic.pk}/archive/",
            data=json.dumps({"reason": "Outdated"}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["status"], "archived")

    def test_students_cannot_archive(self) -> None:
        self.client.force_login(create_student())
        resp = self.client.post(f"/api/topics/{self.topic.pk}/archive/")
        self.assertEqual(resp.status_code, 403)
