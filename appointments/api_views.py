from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from clinics.permissions import IsClinicMember
from professionals.services import parse_day
from .serializers import (
    AddProductSerializer,
    AppointmentProductSerializer,
    AppointmentSerializer,
    BookAppointmentSerializer,
    CancelMultipleSerializer,
    PaymentActionSerializer,
)
from .services import (
    AppointmentActionError,
    AppointmentNotFoundError,
    BookingError,
    ClosedDayError,
    InvalidSlotError,
    PastDateError,
    PaymentError,
    SlotUnavailableError,
    add_product,
    book_appointment,
    cancel_appointment,
    cancel_multiple_appointments,
    confirm_appointment,
    get_appointment,
    get_day_appointments,
    list_appointments,
    mark_overdue,
    mark_paid,
    remove_product,
)


def _error(e, http_status):
    return Response({"detail": e.message, "code": e.code}, status=http_status)


def _action_error(e):
    if isinstance(e, AppointmentNotFoundError) or e.code == "not_found":
        return _error(e, status.HTTP_404_NOT_FOUND)
    if isinstance(e, PaymentError):
        return _error(e, status.HTTP_409_CONFLICT)
    return _error(e, status.HTTP_400_BAD_REQUEST)


class BookAppointmentAPIView(APIView):
    """
    POST /appointments/api/public/book/

    Book an appointment from the public clinic page.

    Request body:
        {
            "clinic_id": 1,
            "service_ids": [3, 4],
            "professional_id": 2,        (optional)
            "date": "2026-02-20",
            "time": "10:00",
            "name": "Maria Souza",
            "email": "maria@example.com",
            "phone": "(11) 98765-4321"
        }

    Success Response (201):
        Full appointment details via AppointmentSerializer.

    Error Responses:
        400: Validation errors or booking errors.
        403: Clinic closed that day, or the slot already passed.
        409: Slot no longer available (race condition).
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = BookAppointmentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            appointment = book_appointment(
                clinic_id=data["clinic_id"],
                service_ids=data["service_ids"],
                professional_id=data.get("professional_id"),
                appointment_date=data["date"],
                appointment_time=data["time"],
                client_name=data["name"],
                client_email=data["email"],
                client_phone=data["phone"],
            )
        except SlotUnavailableError as e:
            return _error(e, status.HTTP_409_CONFLICT)
        except (ClosedDayError, PastDateError) as e:
            return _error(e, status.HTTP_403_FORBIDDEN)
        except (InvalidSlotError, BookingError) as e:
            return _error(e, status.HTTP_400_BAD_REQUEST)

        appointment = get_appointment(appointment.clinic, appointment.id)
        return Response(
            AppointmentSerializer(appointment).data, status=status.HTTP_201_CREATED
        )


class DayAppointmentsAPIView(APIView):
    """
    GET /appointments/api/day/?date=YYYY-MM-DD

    The clinic's appointments of one day (defaults to the clinic's today).
    """

    permission_classes = [IsClinicMember]

    def get(self, request):
        date_param = request.query_params.get("date")
        try:
            day = parse_day(date_param) if date_param else request.clinic.local_today()
        except ValueError:
            return Response(
                {"detail": "Invalid date. Use YYYY-MM-DD.", "code": "invalid_date"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        appointments = get_day_appointments(request.clinic, day)
        return Response(
            {
                "date": day.isoformat(),
                "appointments": AppointmentSerializer(appointments, many=True).data,
            }
        )


class AppointmentListAPIView(APIView):
    """GET /appointments/api/?status=CONFIRMED   newest first"""

    permission_classes = [IsClinicMember]

    def get(self, request):
        appointments = list_appointments(
            request.clinic, status=request.query_params.get("status")
        )
        return Response(AppointmentSerializer(appointments, many=True).data)


class ConfirmAppointmentAPIView(APIView):
    """
    POST /appointments/api/<id>/confirm/

    Response: {"appointment": {...}, "message": "...", "whatsapp_url": "https://wa.me/..."}
    """

    permission_classes = [IsClinicMember]

    def post(self, request, appointment_id):
        try:
            result = confirm_appointment(request.clinic, appointment_id)
        except AppointmentActionError as e:
            return _action_error(e)

        return Response(
            {
                "appointment": AppointmentSerializer(result["appointment"]).data,
                "message": result["message"],
                "whatsapp_url": result["whatsapp_url"],
            }
        )


class CancelAppointmentAPIView(APIView):
    permission_classes = [IsClinicMember]

    def post(self, request, appointment_id):
        try:
            result = cancel_appointment(request.clinic, appointment_id)
        except AppointmentActionError as e:
            return _action_error(e)

        return Response(
            {
                "appointment": AppointmentSerializer(result["appointment"]).data,
                "message": result["message"],
                "whatsapp_url": result["whatsapp_url"],
            }
        )


class CancelMultipleAppointmentsAPIView(APIView):
    """
    POST /appointments/api/cancel-multiple/

    Request body: {"appointment_ids": [1, 2, 3]}
    """

    permission_classes = [IsClinicMember]

    def post(self, request):
        serializer = CancelMultipleSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = cancel_multiple_appointments(
                request.clinic, serializer.validated_data["appointment_ids"]
            )
        except AppointmentActionError as e:
            return _action_error(e)

        return Response(
            {
                "cancelled": len(result["appointments"]),
                "message": result["message"],
                "whatsapp_url": result["whatsapp_url"],
            }
        )


class AppointmentPaymentAPIView(APIView):
    """
    POST /appointments/api/<id>/payment/

    Request body:
        {"action": "mark_paid", "payment_method": "PIX"}
        {"action": "mark_overdue"}
    """

    permission_classes = [IsClinicMember]

    def post(self, request, appointment_id):
        serializer = PaymentActionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            if data["action"] == "mark_paid":
                appointment = mark_paid(
                    request.clinic, appointment_id, data["payment_method"]
                )
            else:
                appointment = mark_overdue(request.clinic, appointment_id)
        except AppointmentActionError as e:
            return _action_error(e)

        return Response(AppointmentSerializer(appointment).data)


class AppointmentProductAPIView(APIView):
    """
    POST   /appointments/api/<id>/products/             {"product_id": 7, "quantity": 2}
    DELETE /appointments/api/products/<line_id>/
    """

    permission_classes = [IsClinicMember]

    def post(self, request, appointment_id):
        serializer = AddProductSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            line = add_product(
                request.clinic,
                appointment_id,
                serializer.validated_data["product_id"],
                serializer.validated_data["quantity"],
            )
        except AppointmentActionError as e:
            return _action_error(e)

        return Response(
            AppointmentProductSerializer(line).data, status=status.HTTP_201_CREATED
        )


class RemoveAppointmentProductAPIView(APIView):
    permission_classes = [IsClinicMember]

    def delete(self, request, line_id):
        try:
            remove_product(request.clinic, line_id)
        except AppointmentActionError as e:
            return _action_error(e)
        return Response(status=status.HTTP_204_NO_CONTENT)
