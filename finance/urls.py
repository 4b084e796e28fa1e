from django.urls import path

from . import api_views, views

app_name = "finance"

urlpatterns = [
    path("", views.finance_view, name="finance"),
    path("api/metrics/", api_views.FinanceMetricsAPIView.as_view(), name="api_metrics"),
    path("api/revenue-chart/", api_views.RevenueChartAPIView.as_view(), name="api_revenue_chart"),
    path("api/services-ranking/", api_views.ServicesRankingAPIView.as_view(), name="api_services_ranking"),
    path("api/professionals/", api_views.FinanceProfessionalsAPIView.as_view(), name="api_professionals"),
]
