import json

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework import exceptions

from activity.models import ActivityLog
from applications.tests.factories import create_admin, create_student, create_supervisor
from fypportal.errors import InvalidState

from . import services as account_service
from .models import Profile, is_deactivated, role_of


class ProfileTests(TestCase):
    def test_profile_created_with_student_role(self) -> None:
        user = get_user_model().objects.create_user(username="newcomer", password="pass")
        self.assertEqual(user.profile.role, Profile.Role.STUDENT)

    def test_role_of(self) -> None:
        self.assertEqual(role_of(create_supervisor()), Profile.Role.SUPERVISOR)
        self.assertEqual(role_of(create_student()), Profile.Role.STUDENT)
        self.assertEqual(role_of(create_admin()), Profile.Role.ADMIN)

        superuser = get_user_model().objects.create_superuser(username="root", password="pass")
        self.assertEqual(role_of(superuser), Profile.Role.ADMIN)


class MeViewTests(TestCase):
    def test_me_returns_role(self) -> None:
        user = create_supervisor(full_name="Barbara Liskov")
        self.client.force_login(user)

        resp = self.client.get("/api/accounts/me/")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json(),
            {
                "success": True,
                "data": {
                    "id": user.pk,
                    "username": user.username,
                    "email": user.email,
                    "full_name": "Barbara Liskov",
                    "role": "supervisor",
                },
            },
        )

    def test_login_is_audited(self) -> None:
        user = create_student()
        self.assertTrue(self.client.login(username=user.username, password="pass"))
        log = ActivityLog.objects.get(action=ActivityLog.Action.LOGIN)
        self.assertEqual(log.actor, user)
        self.assertEqual(log.entity_id, str(user.pk))


class UserManagementTests(TestCase):
    def setUp(self) -> None:
        self.admin = create_admin()
        self.student = create_student(full_name="Alan Turing")

    def test_deactivate_blocks_every_endpoint(self) -> None:
        self.client.force_login(self.student)
        self.assertEqual(self.client.get("/api/accounts/me/").status_code, 200)

        user = account_service.deactivate_user(self.admin, self.student.pk, "Left the programme")

        self.assertFalse(user.is_active)
        self.student.profile.refresh_from_db()
        self.assertIsNotNone(self.student.profile.deactivated_at)
        self.assertTrue(is_deactivated(self.student))
        self.assertEqual(self.client.get("/api/accounts/me/").status_code, 403)
        self.assertEqual(self.client.get("/api/topics/").status_code, 403)
        self.assertFalse(self.client.login(username=self.student.username, password="pass"))
        log = ActivityLog.objects.get(action=ActivityLog.Action.USER_DEACTIVATED)
        self.assertEqual(log.actor, self.admin)
        self.assertEqual(log.details, {"reason": "Left the programme"})

    def test_reactivate_restores_access(self) -> None:
        account_service.deactivate_user(self.admin, self.student.pk)
        user = account_service.reactivate_user(self.admin, self.student.pk)

        self.assertTrue(user.is_active)
        self.assertFalse(is_deactivated(user))
        self.assertTrue(self.client.login(username=self.student.username, password="pass"))
        self.assertEqual(self.client.get("/api/accounts/me/").status_code, 200)
        self.assertEqual(
            ActivityLog.objects.get(action=ActivityLog.Action.USER_DEACTIVATED).details,
            {"reason": "No reason provided"},
        )
        self.assertTrue(
            ActivityLog.objects.filter(action=ActivityLog.Action.USER_REACTIVATED).exists()
        )

    def test_state_checks(self) -> None:
        with self.assertRaises(InvalidState):
            account_service.deactivate_user(self.admin, self.admin.pk)
        with self.assertRaises(InvalidState):
            account_service.reactivate_user(self.admin, self.student.pk)
        account_service.deactivate_user(self.admin, self.student.pk)
        with self.assertRaises(InvalidState):
            account_service.deactivate_user(self.admin, self.student.pk)
        with self.assertRaises(exceptions.NotFound):
            account_service.deactivate_user(self.admin, 999_999)
        with self.assertRaises(exceptions.ValidationError):
            account_service.deactivate_user(self.admin, create_student().pk, "x" * 1001)

    def test_list_users_by_status_and_role(self) -> None:
        supervisor = create_supervisor()
        account_service.deactivate_user(self.admin, self.student.pk)

        active = set(account_service.list_users())
        self.assertEqual(active, {self.admin, supervisor})
        self.assertEqual(
            list(account_service.list_users(status=account_service.AccountStatus.DEACTIVATED)),
            [self.student],
        )
        self.assertEqual(
            list(
                account_service.list_users(
                    role=Profile.Role.STUDENT, status=account_service.AccountStatus.ALL
                )
            ),
            [self.student],
        )


class UserManagementApiTests(TestCase):
    def setUp(self) -> None:
        self.admin = create_admin()
        self.student = create_student(full_name="Alan Turing")

    def test_admin_only(self) -> None:
        self.client.force_login(create_supervisor())
        self.assertEqual(self.client.get("/api/accounts/users/").status_code, 403)
        resp = self.client.post(f"/api/accounts/users/{self.student.pk}/deactivate/")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["code"], "forbidden")
        self.assertEqual(resp.json()["message"], "Only admins can perform this action.")

    def test_list_get_deactivate_reactivate(self) -> None:
        self.client.force_login(self.admin)

        resp = self.client.get("/api/accounts/users/", {"role": "student"})
        self.assertEqual([item["id"] for item in resp.json()["data"]], [self.student.pk])

        resp = self.client.get(f"/api/accounts/users/{self.student.pk}/")
        self.assertEqual(resp.json()["data"]["full_name"], "Alan Turing")
        self.assertIsNone(resp.json()["data"]["deactivated_at"])

        resp = self.client.post(
            f"/api/accounts/users/{self.student.pk}/deactivate/",
            data=json.dumps({"reason": "Duplicate account"}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()["data"]["is_active"])

        resp = self.client.get("/api/accounts/users/", {"status": "deactivated"})
        self.assertEqual(resp.json()["pagination"]["total"], 1)

        resp = self.client.post(f"/api/accounts/users/{self.student.pk}/reactivate/")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["data"]["is_active"])

        self.assertEqual(self.client.get("/api/accounts/users/999999/").status_code, 404)

    def test_self_deactivation_is_refused(self) -> None:
        self.client.force_login(self.admin)
        resp = self.client.post(f"/api/accounts/users/{self.admin.pk}/deactivate/")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "invalid_state")


class DeactivatedPermissionTests(TestCase):
    def test_role_checks_reject_deactivated_profiles(self) -> None:
        supervisor = create_supervisor()
        Profile.objects.filter(user=supervisor).update(deactivated_at=timezone.now())
        self.client.force_login(supervisor)

        resp = self.client.get("/api/topics/mine/")

        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["message"], "This account has been deactivated.")
        self.assertEqual(self.client.get("/api/accounts/me/").status_code, 403)
