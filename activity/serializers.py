from functools import cached_property

from rest_framework import serializers

from accounts.models import Profile, role_of

from .models import ActivityLog


class ActorSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField()
    email = serializers.EmailField()


class ActivityLogSerializer(serializers.ModelSerializer):
    """Activity entry; contact data and IP stay visible to admins and the actor only."""

    actor = ActorSerializer(read_only=True)

    class Meta:
        model = ActivityLog
        fields = [
            "id",
            "actor",
            "action",
            "entity_type",
            "entity_id",
            "details",
            "timestamp",
            "ip_address",
        ]
        read_only_fields = fields

    @cached_property
    def _viewer(self):
        request = self.context.get("request")
        return getattr(request, "user", None)

    @cached_property
    def _viewer_is_admin(self) -> bool:
        return role_of(self._viewer) == Profile.Role.ADMIN

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not self._viewer_is_admin and getattr(self._viewer, "pk", None) != instance.actor_id:
            data.pop("ip_address", None)
            if data.get("actor"):
                data["actor"].pop("email", None)
        return data
