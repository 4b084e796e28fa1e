import re

from rest_framework import serializers

from clinics.services import TIME_LABEL_RE
from .models import Appointment, AppointmentProduct


class BookAppointmentSerializer(serializers.Serializer):
    """
    Request serializer for the public booking form.

    Validates the payload shape before the booking service checks the
    schedule.
    """

    clinic_id = serializers.IntegerField()
    service_ids = serializers.ListField(
        child=serializers.IntegerField(), allow_empty=False,
        error_messages={"empty": "Select at least one service."},
    )
    professional_id = serializers.IntegerField(required=False, allow_null=True)
    date = serializers.DateField(help_text="Desired day in YYYY-MM-DD format.")
    time = serializers.CharField(help_text='Start slot label, "HH:MM".')
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=20)

    def validate_time(self, value):
        value = value.strip()
        if not TIME_LABEL_RE.match(value):
            raise serializers.ValidationError("Time must be in HH:MM format.")
        return value

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Name must be at least 2 characters long.")
        return value

    def validate_phone(self, value):
        digits = re.sub(r"\D", "", value)
        if len(digits) < 10:
            raise serializers.ValidationError("Enter a phone number with area code.")
        return value.strip()


class AppointmentProductSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = AppointmentProduct
        fields = ["id", "product", "product_name", "quantity", "unit_price", "total_price"]
        read_only_fields = fields


class AppointmentSerializer(serializers.ModelSerializer):
    """
    Full appointment details for the panel and the booking response.
    """

    professional_name = serializers.CharField(
        source="professional.name", read_only=True, default=None
    )
    services = serializers.SerializerMethodField()
    products = AppointmentProductSerializer(
        source="product_lines", many=True, read_only=True
    )
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Appointment
        fields = [
            "id",
            "clinic",
            "professional",
            "professional_name",
            "client_name",
            "client_email",
            "client_phone",
            "date",
            "time",
            "status",
            "status_display",
            "total_price",
            "total_duration",
            "services",
            "products",
            "payment_status",
            "payment_method",
            "paid_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_services(self, obj):
        return [
            {
                "id": line.service_id,
                "name": line.service.name,
                "price": str(line.service.price),
                "duration_minutes": line.service.duration_minutes,
            }
            for line in obj.service_lines.all()
        ]


class CancelMultipleSerializer(serializers.Serializer):
    appointment_ids = serializers.ListField(
        child=serializers.IntegerField(), allow_empty=False
    )


class PaymentActionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=["mark_paid", "mark_overdue"])
    payment_method = serializers.ChoiceField(
        choices=Appointment.PaymentMethod.choices, required=False
    )

    def validate(self, attrs):
        if attrs["action"] == "mark_paid" and not attrs.get("payment_method"):
            raise serializers.ValidationError(
                {"payment_method": "A payment method is required."}
            )
        return attrs


class AddProductSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)
