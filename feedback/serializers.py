from rest_framework import serializers

from topics.serializers import SupervisorSerializer

from .models import Feedback


class FeedbackSerializer(serializers.ModelSerializer):
    supervisor = SupervisorSerializer(read_only=True)
    submission = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Feedback
        fields = [
            "id",
            "submission",
            "supervisor",
            "text",
            "rating",
            "is_private",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "submission", "supervisor", "created_at", "updated_at"]
