from rest_framework import serializers

from .models import Clinic, Reminder, Review, WhatsappMessage
from .services import is_valid_time_zone, normalize_times, normalize_working_days


class ClinicProfileSerializer(serializers.ModelSerializer):
    """Read / partial update of the clinic settings page."""

    class Meta:
        model = Clinic
        fields = [
            "id",
            "name",
            "address",
            "phone",
            "image_url",
            "is_active",
            "time_zone",
            "times",
            "working_days",
            "created_at",
        ]
        read_only_fields = ["id", "created_at"]

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Name must be at least 2 characters long.")
        return value

    def validate_time_zone(self, value):
        if not is_valid_time_zone(value):
            raise serializers.ValidationError("Unknown time zone.")
        return value

    def validate_times(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Expected a list of HH:MM labels.")
        try:
            return normalize_times(value)
        except ValueError as e:
            raise serializers.ValidationError(str(e))

    def validate_working_days(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Expected a list of weekday names.")
        try:
            return normalize_working_days(value)
        except ValueError as e:
            raise serializers.ValidationError(str(e))


class PublicClinicSerializer(serializers.ModelSerializer):
    class Meta:
        model = Clinic
        fields = [
            "id",
            "name",
            "address",
            "phone",
            "image_url",
            "time_zone",
            "times",
            "working_days",
        ]
        read_only_fields = fields


class WhatsappMessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = WhatsappMessage
        fields = ["confirmation_message", "cancellation_message", "updated_at"]
        read_only_fields = ["updated_at"]


class ReminderSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(
        source="created_by.name", read_only=True, default=None
    )

    class Meta:
        model = Reminder
        fields = ["id", "text", "created_by_name", "created_at"]
        read_only_fields = ["id", "created_by_name", "created_at"]

    def validate_text(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Reminder text is required.")
        return value


class ReviewCreateSerializer(serializers.Serializer):
    """
    Public review form. Every field is required.
    """

    name = serializers.CharField(max_length=255)
    rating = serializers.IntegerField(min_value=0, max_value=5)
    comment = serializers.CharField()

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Name must be at least 2 characters long.")
        return value

    def validate_comment(self, value):
        value = value.strip()
        if len(value) < 10:
            raise serializers.ValidationError(
                "Comment must be at least 10 characters long."
            )
        return value


class ReviewSerializer(serializers.ModelSerializer):
    class Meta:
        model = Review
        fields = ["id", "name", "rating", "comment", "created_at"]
        read_only_fields = fields
