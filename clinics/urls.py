from django.urls import path

from . import api_views, views

app_name = "clinics"

urlpatterns = [
    path("", views.dashboard, name="dashboard"),
    path("settings/", views.clinic_settings, name="settings"),
    path("reminders/add/", views.add_reminder, name="add_reminder"),
    path("reminders/<int:reminder_id>/delete/", views.remove_reminder, name="remove_reminder"),

    # API
    path("api/profile/", api_views.ClinicProfileAPIView.as_view(), name="api_profile"),
    path("api/whatsapp-messages/", api_views.WhatsappMessageAPIView.as_view(), name="api_whatsapp_messages"),
    path("api/reminders/", api_views.ReminderListCreateAPIView.as_view(), name="api_reminders"),
    path("api/reminders/<int:reminder_id>/", api_views.ReminderDeleteAPIView.as_view(), name="api_reminder_delete"),
    path("api/public/<int:clinic_id>/info/", api_views.PublicClinicInfoAPIView.as_view(), name="api_public_info"),
    path("api/public/<int:clinic_id>/reviews/", api_views.PublicReviewAPIView.as_view(), name="api_public_reviews"),
]
