from rest_framework import serializers

from .models import Topic, TopicFlag


class SupervisorSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField()
    email = serializers.EmailField()
    full_name = serializers.CharField(source="profile.full_name", default="")
    office_hours = serializers.CharField(source="profile.office_hours", default="")


class TopicSerializer(serializers.ModelSerializer):
    supervisor = SupervisorSerializer(read_only=True)
    keywords = serializers.ListField(
        child=serializers.CharField(max_length=64), max_length=10, required=False
    )

    class Meta:
        model = Topic
        fields = [
            "id",
            "title",
            "description",
            "supervisor",
            "concentration",
            "academic_year",
            "keywords",
            "reference_documents",
            "status",
            "application_deadline",
            "max_applications",
            "created_at",
            "updated_at",
            "archived_at",
        ]
        read_only_fields = [
            "id",
            "supervisor",
            "status",
            "created_at",
            "updated_at",
            "archived_at",
        ]


class TopicFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Topic.Status.choices, required=False)
    concentration = serializers.ChoiceField(choices=Topic.Concentration.choices, required=False)
    academic_year = serializers.IntegerField(required=False, min_value=1, max_value=6)
    supervisor = serializers.IntegerField(required=False, min_value=1)
    search = serializers.CharField(required=False, max_length=200)


class TopicFlagSerializer(serializers.ModelSerializer):
    flagged_by = serializers.IntegerField(source="flagged_by_id", read_only=True)

    class Meta:
        model = TopicFlag
        fields = ["id", "reason", "flagged_by", "flagged_at"]
        read_only_fields = fields


class FlaggedTopicSerializer(TopicSerializer):
    flags = TopicFlagSerializer(many=True, read_only=True)
    flag_count = serializers.IntegerField(read_only=True)
    last_flagged_at = serializers.DateTimeField(read_only=True)

    class Meta(TopicSerializer.Meta):
        fields = TopicSerializer.Meta.fields + ["flags", "flag_count", "last_flagged_at"]


class ModerationReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=1000, default="")
