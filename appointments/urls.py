from django.urls import path

from . import api_views, views

app_name = "appointments"

urlpatterns = [
    # Public booking
    path("public/<int:clinic_id>/book/", views.book_appointment_view, name="book"),
    path("public/<int:clinic_id>/htmx/times/", views.load_available_times, name="load_available_times"),
    path(
        "public/<int:clinic_id>/htmx/professionals/",
        views.load_available_professionals,
        name="load_available_professionals",
    ),
    path("public/confirmation/<int:appointment_id>/", views.booking_confirmation, name="booking_confirmation"),

    # Panel
    path("payments/", views.payments_view, name="payments"),
    path("<int:appointment_id>/confirm/", views.confirm_appointment_view, name="confirm"),
    path("<int:appointment_id>/cancel/", views.cancel_appointment_view, name="cancel"),
    path("cancel-multiple/", views.cancel_multiple_view, name="cancel_multiple"),

    # API
    path("api/public/book/", api_views.BookAppointmentAPIView.as_view(), name="api_book"),
    path("api/", api_views.AppointmentListAPIView.as_view(), name="api_list"),
    path("api/day/", api_views.DayAppointmentsAPIView.as_view(), name="api_day"),
    path("api/cancel-multiple/", api_views.CancelMultipleAppointmentsAPIView.as_view(), name="api_cancel_multiple"),
    path("api/<int:appointment_id>/confirm/", api_views.ConfirmAppointmentAPIView.as_view(), name="api_confirm"),
    path("api/<int:appointment_id>/cancel/", api_views.CancelAppointmentAPIView.as_view(), name="api_cancel"),
    path("api/<int:appointment_id>/payment/", api_views.AppointmentPaymentAPIView.as_view(), name="api_payment"),
    path("api/<int:appointment_id>/products/", api_views.AppointmentProductAPIView.as_view(), name="api_add_product"),
    path("api/products/<int:line_id>/", api_views.RemoveAppointmentProductAPIView.as_view(), name="api_remove_product"),
]
