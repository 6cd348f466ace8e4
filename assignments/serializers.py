from rest_framework import serializers

from applications.serializers import StudentSerializer, TopicSummarySerializer

from .models import Assignment


class AssignmentSerializer(serializers.ModelSerializer):
    student = StudentSerializer(read_only=True)
    supervisor = StudentSerializer(read_only=True)
    topic = TopicSummarySerializer(read_only=True)
    replaced_by = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Assignment
        fields = [
            "id",
            "student",
            "topic",
            "supervisor",
            "status",
            "assigned_at",
            "replaced_by",
            "updated_at",
        ]
        read_only_fields = fields


class StatusFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Assignment.Status.choices, required=False)


class ReassignInputSerializer(serializers.Serializer):
    topic_id = serializers.IntegerField(min_value=1)
