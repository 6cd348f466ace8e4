from rest_framework.views import APIView

from activity.services import ActivityRecorder
from fypportal.api import paginated, success

from . import services as account_service
from .models import role_of
from .permissions import IsActiveUser, IsAdminRole
from .serializers import DeactivateInputSerializer, UserFilterSerializer, UserSerializer


class MeView(APIView):
    """Return the authenticated user together with the effective role."""

    permission_classes = [IsActiveUser]

    def get(self, request, *args, **kwargs):
        user = request.user
        profile = getattr(user, "profile", None)
        return success(
            {
                "id": user.pk,
                "username": user.username,
                "email": user.email,
                "full_name": profile.full_name if profile else "",
                "role": role_of(user),
            }
        )


class UserListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request, *args, **kwargs):
        params = UserFilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        users = account_service.list_users(
            role=params.validated_data.get("role"),
            status=params.validated_data["status"],
        )
        return paginated(request, users, UserSerializer, default_limit=50)


class UserDetailView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request, user_id: int, *args, **kwargs):
        return success(UserSerializer(account_service.get_user(user_id)).data)


class UserDeactivateView(APIView):
    permission_classes = [IsAdminRole]

    def post(self, request, user_id: int, *args, **kwargs):
        serializer = DeactivateInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = account_service.deactivate_user(
            request.user,
            user_id,
            serializer.validated_data.get("reason", ""),
            recorder=ActivityRecorder.for_request(request),
        )
        return success(UserSerializer(user).data)


class UserReactivateView(APIView):
    permission_classes = [IsAdminRole]

    def post(self, request, user_id: int, *args, **kwargs):
        user = account_service.reactivate_user(
            request.user, user_id, recorder=ActivityRecorder.for_request(request)
        )
        return success(UserSerializer(user).data)
