from rest_framework import serializers

from .services import PERIOD_FILTERS, PERIOD_WEEK


class FinanceQuerySerializer(serializers.Serializer):
    period = serializers.ChoiceField(
        choices=list(PERIOD_FILTERS), required=False, default=PERIOD_WEEK
    )
    custom_from = serializers.DateField(required=False, allow_null=True)
    custom_to = serializers.DateField(required=False, allow_null=True)
    professional_id = serializers.IntegerField(required=False, allow_null=True)


class MetricsSerializer(serializers.Serializer):
    gross_revenue = serializers.DecimalField(max_digits=12, decimal_places=2)
    completed_services = serializers.IntegerField()
    unique_clients = serializers.IntegerField()


class ChartPointSerializer(serializers.Serializer):
    date = serializers.CharField()
    revenue = serializers.DecimalField(max_digits=12, decimal_places=2)


class ServiceRankingSerializer(serializers.Serializer):
    name = serializers.CharField()
    count = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=12, decimal_places=2)
    color = serializers.CharField()
