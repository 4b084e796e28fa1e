from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from clinics.permissions import IsClinicMember
from professionals.serializers import PublicProfessionalSerializer
from .serializers import (
    ChartPointSerializer,
    FinanceQuerySerializer,
    MetricsSerializer,
    ServiceRankingSerializer,
)
from .services import get_finance_report, list_filter_professionals


class _FinanceAPIView(APIView):
    permission_classes = [IsClinicMember]

    def _report(self, request):
        """(report, error response)"""
        serializer = FinanceQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return None, Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        report = get_finance_report(
            request.clinic,
            period=data["period"],
            custom_from=data.get("custom_from"),
            custom_to=data.get("custom_to"),
            professional_id=data.get("professional_id"),
        )
        return report, None


class FinanceMetricsAPIView(_FinanceAPIView):
    """
    GET /finance/api/metrics/?period=4_weeks[&professional_id=N]
    GET /finance/api/metrics/?period=custom&custom_from=2026-01-01&custom_to=2026-01-31

    Response:
        {"first_day": "...", "last_day": "...",
         "gross_revenue": "350.00", "completed_services": 7, "unique_clients": 5}
    """

    def get(self, request):
        report, error = self._report(request)
        if error:
            return error
        return Response(
            {
                "period": report["period"],
                "first_day": report["first_day"].isoformat(),
                "last_day": report["last_day"].isoformat(),
                **MetricsSerializer(report["metrics"]).data,
            }
        )


class RevenueChartAPIView(_FinanceAPIView):
    """GET /finance/api/revenue-chart/   [{"date": "dd/mm", "revenue": "0.00"}, ...]"""

    def get(self, request):
        report, error = self._report(request)
        if error:
            return error
        return Response(ChartPointSerializer(report["revenue_chart"], many=True).data)


class ServicesRankingAPIView(_FinanceAPIView):
    def get(self, request):
        report, error = self._report(request)
        if error:
            return error
        return Response(
            ServiceRankingSerializer(report["services_ranking"], many=True).data
        )


class FinanceProfessionalsAPIView(APIView):
    """Professionals offered in the finance filter."""

    permission_classes = [IsClinicMember]

    def get(self, request):
        professionals = list_filter_professionals(request.clinic)
        return Response(PublicProfessionalSerializer(professionals, many=True).data)
