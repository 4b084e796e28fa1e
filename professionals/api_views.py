from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from catalog.models import Service
from clinics.models import Clinic
from clinics.permissions import IsClinicMember
from .models import Professional
from .serializers import (
    AvailableSlotSerializer,
    ProfessionalSerializer,
    PublicProfessionalSerializer,
    SlotQuerySerializer,
)
from .services import (
    ProfessionalError,
    create_professional,
    delete_professional,
    get_available_professionals,
    get_available_times,
    get_blocked_times,
    get_professional,
    list_professionals,
    toggle_professional_status,
    update_professional,
)


def _not_found(e):
    return Response(
        {"detail": e.message, "code": e.code}, status=status.HTTP_404_NOT_FOUND
    )


# ─── Panel ────────────────────────────────────────────────────────────────


class ProfessionalListCreateAPIView(APIView):
    """
    GET  /professionals/api/           newest first
    POST /professionals/api/

    Request body (POST):
        {
            "name": "Joana Lima",
            "specialty": "Manicure",
            "image_url": "https://...",        (optional)
            "available_times": ["09:00", "09:30"]
        }
    """

    permission_classes = [IsClinicMember]

    def get(self, request):
        professionals = list_professionals(request.clinic)
        return Response(ProfessionalSerializer(professionals, many=True).data)

    def post(self, request):
        serializer = ProfessionalSerializer(
            data=request.data, context={"clinic": request.clinic}
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        professional = create_professional(request.clinic, **serializer.validated_data)
        return Response(
            ProfessionalSerializer(professional).data, status=status.HTTP_201_CREATED
        )


class ProfessionalDetailAPIView(APIView):
    permission_classes = [IsClinicMember]

    def get(self, request, professional_id):
        try:
            professional = get_professional(request.clinic, professional_id)
        except ProfessionalError as e:
            return _not_found(e)
        return Response(ProfessionalSerializer(professional).data)

    def patch(self, request, professional_id):
        serializer = ProfessionalSerializer(
            data=request.data, partial=True, context={"clinic": request.clinic}
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            professional = update_professional(
                request.clinic, professional_id, **serializer.validated_data
            )
        except ProfessionalError as e:
            return _not_found(e)
        return Response(ProfessionalSerializer(professional).data)

    def delete(self, request, professional_id):
        try:
            delete_professional(request.clinic, professional_id)
        except ProfessionalError as e:
            return _not_found(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProfessionalToggleAPIView(APIView):
    """POST /professionals/api/<id>/toggle/   flips is_active"""

    permission_classes = [IsClinicMember]

    def post(self, request, professional_id):
        try:
            professional = toggle_professional_status(request.clinic, professional_id)
        except ProfessionalError as e:
            return _not_found(e)
        return Response(ProfessionalSerializer(professional).data)


# ─── Public schedule ──────────────────────────────────────────────────────


class _PublicScheduleAPIView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def _parse(self, request, clinic_id):
        """(clinic, query data, error response)"""
        clinic = get_object_or_404(Clinic, id=clinic_id, is_active=True)
        serializer = SlotQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return clinic, None, Response(
                serializer.errors, status=status.HTTP_400_BAD_REQUEST
            )
        return clinic, serializer.validated_data, None

    def _total_minutes(self, clinic, service_ids):
        services = Service.objects.filter(
            clinic=clinic, id__in=service_ids, is_active=True
        )
        return sum(s.duration_minutes for s in services)

    def _professional(self, clinic, professional_id):
        return get_object_or_404(
            Professional, id=professional_id, clinic=clinic, is_active=True
        )


class BlockedTimesAPIView(_PublicScheduleAPIView):
    """
    GET /professionals/api/public/<clinic_id>/blocked-times/?date=YYYY-MM-DD[&professional_id=N]

    Without professional_id every non-cancelled appointment of the clinic counts.
    """

    def get(self, request, clinic_id):
        clinic, data, error = self._parse(request, clinic_id)
        if error:
            return error

        professional = None
        if data.get("professional_id"):
            professional = self._professional(clinic, data["professional_id"])

        return Response(
            {
                "date": data["date"].isoformat(),
                "blocked_times": get_blocked_times(clinic, data["date"], professional),
            }
        )


class AvailableTimesAPIView(_PublicScheduleAPIView):
    """
    GET /professionals/api/public/<clinic_id>/available-times/?date=YYYY-MM-DD&service_ids=1&service_ids=2[&professional_id=N]

    Response:
        {"date": "...", "total_minutes": 60, "required_slots": 2,
         "times": [{"time": "09:00", "available": true}, ...]}
    """

    def get(self, request, clinic_id):
        clinic, data, error = self._parse(request, clinic_id)
        if error:
            return error

        professional = None
        if data.get("professional_id"):
            professional = self._professional(clinic, data["professional_id"])

        total_minutes = self._total_minutes(clinic, data["service_ids"])
        slots = get_available_times(clinic, data["date"], total_minutes, professional)

        return Response(
            {
                "date": data["date"].isoformat(),
                "total_minutes": total_minutes,
                "times": AvailableSlotSerializer(slots, many=True).data,
            }
        )


class AvailableProfessionalsAPIView(_PublicScheduleAPIView):
    """
    GET /professionals/api/public/<clinic_id>/available-professionals/?date=YYYY-MM-DD&time=HH:MM&service_ids=1
    """

    def get(self, request, clinic_id):
        clinic, data, error = self._parse(request, clinic_id)
        if error:
            return error

        if not data.get("time"):
            return Response(
                {"time": ["This query parameter is required."]},
                status=status.HTTP_400_BAD_REQUEST,
            )

        total_minutes = self._total_minutes(clinic, data["service_ids"])
        professionals = get_available_professionals(
            clinic, data["date"], data["time"], total_minutes
        )
        return Response(
            {"results": PublicProfessionalSerializer(professionals, many=True).data}
        )
