from rest_framework import serializers

from .models import Profile
from .services import AccountStatus


class UserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField()
    email = serializers.EmailField()
    is_active = serializers.BooleanField()
    date_joined = serializers.DateTimeField()
    full_name = serializers.CharField(source="profile.full_name", default="")
    role = serializers.CharField(source="profile.role", default="")
    concentration = serializers.CharField(source="profile.concentration", default="")
    phone = serializers.CharField(source="profile.phone", default="")
    office_hours = serializers.CharField(source="profile.office_hours", default="")
    deactivated_at = serializers.DateTimeField(source="profile.deactivated_at", default=None)


class UserFilterSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=Profile.Role.choices, required=False)
    status = serializers.ChoiceField(
        choices=AccountStatus.choices, required=False, default=AccountStatus.ACTIVE
    )


class DeactivateInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=1000)
