from rest_framework import serializers

from applications.serializers import StudentSerializer

from .models import Submission


class SubmissionSerializer(serializers.ModelSerializer):
    student = StudentSerializer(read_only=True)
    topic = serializers.PrimaryKeyRelatedField(read_only=True)
    topic_title = serializers.CharField(source="topic.title", read_only=True)

    class Meta:
        model = Submission
        fields = [
            "id",
            "student",
            "topic",
            "topic_title",
            "phase",
            "status",
            "due_date",
            "submitted_at",
            "document_url",
            "declaration_reason",
            "declared_at",
            "reminder_sent_at",
        ]
        read_only_fields = fields


class SubmitInputSerializer(serializers.Serializer):
    document_url = serializers.URLField(max_length=500)


class DeclareInputSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000)


class SupervisorFilterSerializer(serializers.Serializer):
    phase = serializers.ChoiceField(choices=Submission.Phase.choices, required=False)
    status = serializers.ChoiceField(choices=Submission.Status.choices, required=False)
