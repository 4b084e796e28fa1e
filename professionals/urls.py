from django.urls import path

from . import api_views

app_name = "professionals"

urlpatterns = [
    path("api/", api_views.ProfessionalListCreateAPIView.as_view(), name="api_list"),
    path("api/<int:professional_id>/", api_views.ProfessionalDetailAPIView.as_view(), name="api_detail"),
    path("api/<int:professional_id>/toggle/", api_views.ProfessionalToggleAPIView.as_view(), name="api_toggle"),

    # Public schedule
    path("api/public/<int:clinic_id>/blocked-times/", api_views.BlockedTimesAPIView.as_view(), name="api_blocked_times"),
    path("api/public/<int:clinic_id>/available-times/", api_views.AvailableTimesAPIView.as_view(), name="api_available_times"),
    path(
        "api/public/<int:clinic_id>/available-professionals/",
        api_views.AvailableProfessionalsAPIView.as_view(),
        name="api_available_professionals",
    ),
]
