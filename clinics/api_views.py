from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from catalog.serializers import ServiceSerializer
from .models import Clinic
from .permissions import IsClinicMember, IsClinicOwner
from .serializers import (
    ClinicProfileSerializer,
    PublicClinicSerializer,
    ReminderSerializer,
    ReviewCreateSerializer,
    ReviewSerializer,
    WhatsappMessageSerializer,
)
from .services import (
    create_reminder,
    create_review,
    delete_reminder,
    get_info_schedule,
    get_review_summary,
    get_whatsapp_messages,
    list_reminders,
    update_clinic_profile,
    upsert_whatsapp_messages,
)


def _summary_payload(summary):
    return {
        "reviews": ReviewSerializer(summary["reviews"], many=True).data,
        "average_rating": float(summary["average_rating"]),
        "total_reviews": summary["total_reviews"],
    }


class ClinicProfileAPIView(APIView):
    """
    GET   /clinics/api/profile/   current clinic settings
    PATCH /clinics/api/profile/   owner-only partial update
    """

    permission_classes = [IsClinicMember]

    def get_permissions(self):
        if self.request.method == "PATCH":
            return [IsClinicOwner()]
        return super().get_permissions()

    def get(self, request):
        return Response(ClinicProfileSerializer(request.clinic).data)

    def patch(self, request):
        serializer = ClinicProfileSerializer(
            request.clinic, data=request.data, partial=True
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        clinic = update_clinic_profile(request.clinic, **serializer.validated_data)
        return Response(ClinicProfileSerializer(clinic).data)


class WhatsappMessageAPIView(APIView):
    """
    GET /clinics/api/whatsapp-messages/   templates, or 404 when never saved
    PUT /clinics/api/whatsapp-messages/   create or replace the templates
    """

    permission_classes = [IsClinicMember]

    def get(self, request):
        message = get_whatsapp_messages(request.clinic)
        if message is None:
            return Response(
                {"detail": "No WhatsApp messages configured.", "code": "NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(WhatsappMessageSerializer(message).data)

    def put(self, request):
        serializer = WhatsappMessageSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        message = upsert_whatsapp_messages(request.clinic, **serializer.validated_data)
        return Response(WhatsappMessageSerializer(message).data)


class ReminderListCreateAPIView(APIView):
    permission_classes = [IsClinicMember]

    def get(self, request):
        reminders = list_reminders(request.clinic)
        return Response(ReminderSerializer(reminders, many=True).data)

    def post(self, request):
        serializer = ReminderSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        reminder = create_reminder(
            request.clinic, serializer.validated_data["text"], user=request.user
        )
        return Response(
            ReminderSerializer(reminder).data, status=status.HTTP_201_CREATED
        )


class ReminderDeleteAPIView(APIView):
    permission_classes = [IsClinicMember]

    def delete(self, request, reminder_id):
        if not delete_reminder(request.clinic, reminder_id):
            return Response(
                {"detail": "Reminder not found.", "code": "NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


class PublicClinicInfoAPIView(APIView):
    """
    GET /clinics/api/public/<clinic_id>/info/

    Clinic details, active services ordered by category, and reviews.
    """

    permission_classes = [AllowAny]

    def get(self, request, clinic_id):
        clinic = get_object_or_404(Clinic, id=clinic_id, is_active=True)
        info = get_info_schedule(clinic)

        return Response(
            {
                "clinic": PublicClinicSerializer(clinic).data,
                "services": ServiceSerializer(info["services"], many=True).data,
                **_summary_payload(info),
            }
        )


class PublicReviewAPIView(APIView):
    """
    GET  /clinics/api/public/<clinic_id>/reviews/
    POST /clinics/api/public/<clinic_id>/reviews/

    Request body (POST):
        {"name": "Ana", "rating": 5, "comment": "Great service, very kind."}
    """

    permission_classes = [AllowAny]

    def get(self, request, clinic_id):
        clinic = get_object_or_404(Clinic, id=clinic_id)
        return Response(_summary_payload(get_review_summary(clinic)))

    def post(self, request, clinic_id):
        clinic = get_object_or_404(Clinic, id=clinic_id)

        serializer = ReviewCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        review = create_review(clinic, **serializer.validated_data)
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)
