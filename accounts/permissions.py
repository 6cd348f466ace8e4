from rest_framework.permissions import BasePermission

from .models import Profile, is_deactivated, role_of

DEACTIVATED_MESSAGE = "This account has been deactivated."


class IsActiveUser(BasePermission):
    """Authenticated and not deactivated by an admin."""

    message = DEACTIVATED_MESSAGE

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return not is_deactivated(request.user)


class HasRole(IsActiveUser):
    required_roles: tuple[str, ...] = ()
    role_message = "Your role is not allowed to perform this action."

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            self.message = DEACTIVATED_MESSAGE
            return False
        self.message = self.role_message
        return role_of(request.user) in self.required_roles


class IsStudent(HasRole):
    required_roles = (Profile.Role.STUDENT,)
    role_message = "Only students can perform this action."


class IsSupervisor(HasRole):
    required_roles = (Profile.Role.SUPERVISOR,)
    role_message = "Only supervisors can perform this action."


class IsAdminRole(HasRole):
    required_roles = (Profile.Role.ADMIN,)
    role_message = "Only admins can perform this action."


class IsSupervisorOrAdmin(HasRole):
    required_roles = (Profile.Role.SUPERVISOR, Profile.Role.ADMIN)
    role_message = "Only supervisors and admins can perform this action."
