from rest_framework import serializers

from assignments.models import Assignment

from .models import Application


class StudentSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField()
    email = serializers.EmailField()
    full_name = serializers.CharField(source="profile.full_name", default="")


class TopicSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    title = serializers.CharField()
    status = serializers.CharField()
    supervisor_id = serializers.IntegerField()


class ApplicationSerializer(serializers.ModelSerializer):
    student = StudentSerializer(read_only=True)
    topic = TopicSummarySerializer(read_only=True)

    class Meta:
        model = Application
        fields = [
            "id",
            "student",
            "topic",
            "preference_rank",
            "status",
            "supervisor_notes",
            "applied_at",
            "decided_at",
        ]
        read_only_fields = fields


class AssignmentSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Assignment
        fields = ["id", "status", "assigned_at"]
        read_only_fields = fields


class ApplyInputSerializer(serializers.Serializer):
    topic_id = serializers.IntegerField(min_value=1)
    # Range checks happen in the workflow so that every caller gets them.
    preference_rank = serializers.IntegerField()


class DecisionInputSerializer(serializers.Serializer):
    supervisor_notes = serializers.CharField(
        required=False, allow_blank=True, max_length=1000, default=""
    )


class StatusFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Application.Status.choices, required=False)
