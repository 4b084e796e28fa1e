from rest_framework import serializers

from clinics.services import normalize_times
from .models import Professional


class ProfessionalSerializer(serializers.ModelSerializer):
    """
    Professional create / update / list.

    available_times must be labels of the clinic grid; the view passes the
    clinic in the serializer context.
    """

    class Meta:
        model = Professional
        fields = [
            "id",
            "name",
            "image_url",
            "specialty",
            "available_times",
            "is_active",
            "created_at",
        ]
        read_only_fields = ["id", "created_at"]

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Name must be at least 2 characters long.")
        return value

    def validate_available_times(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Expected a list of HH:MM labels.")
        try:
            times = normalize_times(value)
        except ValueError as e:
            raise serializers.ValidationError(str(e))

        clinic = self.context.get("clinic")
        if clinic is not None:
            unknown = [t for t in times if t not in (clinic.times or [])]
            if unknown:
                raise serializers.ValidationError(
                    f"Not on the clinic schedule: {', '.join(unknown)}"
                )
        return times


class PublicProfessionalSerializer(serializers.ModelSerializer):
    class Meta:
        model = Professional
        fields = ["id", "name", "image_url", "specialty"]
        read_only_fields = fields


class SlotQuerySerializer(serializers.Serializer):
    """Query parameters of the public schedule endpoints."""

    date = serializers.DateField()
    service_ids = serializers.ListField(
        child=serializers.IntegerField(), required=False, default=list
    )
    professional_id = serializers.IntegerField(required=False, allow_null=True)
    time = serializers.CharField(required=False)


class AvailableSlotSerializer(serializers.Serializer):
    time = serializers.CharField()
    available = serializers.BooleanField()
