from django.core.validators import RegexValidator
from rest_framework import serializers

from .models import Profile


class ProfileSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source="user_id", read_only=True)

    class Meta:
        model = Profile
        fields = [
            "id",
            "email",
            "full_name",
            "exam_preparing_for",
            "is_admin",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.Serializer):
    full_name = serializers.CharField(
        required=False,
        min_length=2,
        max_length=100,
        error_messages={
            "min_length": "Name must be at least 2 characters",
            "max_length": "Name must not exceed 100 characters",
        },
        validators=[RegexValidator(r"^[a-zA-Z\s.'-]+$", "Name contains invalid characters")],
    )
    exam_preparing_for = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=100,
        error_messages={"max_length": "Exam name too long"},
    )


class AdminUserSerializer(ProfileSerializer):
    mains_evaluations_count = serializers.IntegerField(read_only=True)
    prelims_sessions_count = serializers.IntegerField(read_only=True)

    class Meta(ProfileSerializer.Meta):
        fields = ProfileSerializer.Meta.fields + ["mains_evaluations_count", "prelims_sessions_count"]
        read_only_fields = fields
