import json

from django.core.serializers.json import DjangoJSONEncoder
from django.http import HttpResponse
from django.utils import timezone
from rest_framework import exceptions, serializers
from rest_framework.views import APIView

from accounts.models import Profile, role_of
from accounts.permissions import IsActiveUser, IsAdminRole
from fypportal.api import paginated, success

from . import services as activity_service
from .serializers import ActivityLogSerializer

USER_ENTITY = "User"


def _ensure_self_or_admin(user, user_id) -> None:
    if str(user.pk) != str(user_id) and role_of(user) != Profile.Role.ADMIN:
        raise exceptions.PermissionDenied("Cannot view other users' activity.")


class ActivityLogListView(APIView):
    """System-wide activity log with filters (admins only)."""

    permission_classes = [IsAdminRole]

    class FilterSerializer(serializers.Serializer):
        action = serializers.CharField(required=False)
        entity_type = serializers.CharField(required=False)
        user_id = serializers.IntegerField(required=False, min_value=1)
        start_date = serializers.DateTimeField(required=False)
        end_date = serializers.DateTimeField(required=False)

    def get(self, request, *args, **kwargs):
        params = self.FilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = params.validated_data
        logs = activity_service.filter_logs(
            action=data.get("action"),
            entity_type=data.get("entity_type"),
            actor_id=data.get("user_id"),
            start=data.get("start_date"),
            end=data.get("end_date"),
        )
        return paginated(request, logs, ActivityLogSerializer, default_limit=100)


class ActivityStatsView(APIView):
    permission_classes = [IsAdminRole]

    class InputSerializer(serializers.Serializer):
        days = serializers.IntegerField(required=False, min_value=1, max_value=366, default=7)

    def get(self, request, *args, **kwargs):
        params = self.InputSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        return success(activity_service.activity_stats(days=params.validated_data["days"]))


class ActivityExportView(APIView):
    """Download the activity log as a JSON or CSV attachment."""

    permission_classes = [IsAdminRole]

    class InputSerializer(serializers.Serializer):
        format = serializers.ChoiceField(choices=["json", "csv"], required=False, default="json")
        start_date = serializers.DateTimeField(required=False)
        end_date = serializers.DateTimeField(required=False)

    def get(self, request, *args, **kwargs):
        params = self.InputSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = params.validated_data
        logs = list(
            activity_service.filter_logs(start=data.get("start_date"), end=data.get("end_date"))
        )

        if data["format"] == "csv":
            response = HttpResponse(activity_service.export_csv(logs), content_type="text/csv")
            response["Content-Disposition"] = 'attachment; filename="activity-log.csv"'
            return response

        payload = {
            "exported_at": timezone.now().isoformat(),
            "count": len(logs),
            "logs": ActivityLogSerializer(logs, many=True, context={"request": request}).data,
        }
        response = HttpResponse(
            json.dumps(payload, cls=DjangoJSONEncoder), content_type="application/json"
        )
        response["Content-Disposition"] = 'attachment; filename="activity-log.json"'
        return response


class UserActivityView(APIView):
    """Activity of one user; users see their own, admins see anyone's."""

    permission_classes = [IsActiveUser]

    def get(self, request, user_id: int, *args, **kwargs):
        _ensure_self_or_admin(request.user, user_id)
        logs = activity_service.filter_logs(actor_id=user_id)
        return paginated(request, logs, ActivityLogSerializer, default_limit=50)


class EntityActivityView(APIView):
    """Every action recorded against one entity.

    ``User`` entities carry personal history (logins, deactivations) and follow
    the same self-or-admin rule as :class:`UserActivityView`.
    """

    permission_classes = [IsActiveUser]

    def get(self, request, entity_type: str, entity_id: str, *args, **kwargs):
        if entity_type == USER_ENTITY:
            _ensure_self_or_admin(request.user, entity_id)
        logs = activity_service.filter_logs(entity_type=entity_type).filter(entity_id=entity_id)
        return paginated(request, logs, ActivityLogSerializer, default_limit=50)
