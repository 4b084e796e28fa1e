from django.contrib import admin
from .models import Appointment, AppointmentProduct, AppointmentService


class AppointmentServiceInline(admin.TabularInline):
    model = AppointmentService
    extra = 0
    raw_id_fields = ["service"]


class AppointmentProductInline(admin.TabularInline):
    model = AppointmentProduct
    extra = 0
    raw_id_fields = ["product"]
    readonly_fields = ["created_at"]


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "client_name",
        "client_phone",
        "professional",
        "clinic",
        "date",
        "time",
        "status",
        "payment_status",
        "total_price",
    ]
    list_filter = ["status", "payment_status", "clinic", "date"]
    search_fields = ["client_name", "client_email", "client_phone", "clinic__name"]
    raw_id_fields = ["clinic", "professional"]
    readonly_fields = ["created_at", "updated_at", "paid_at"]
    date_hierarchy = "date"
    inlines = [AppointmentServiceInline, AppointmentProductInline]

    fieldsets = (
        (None, {"fields": ("clinic", "professional", "date", "time", "status")}),
        ("Client", {"fields": ("client_name", "client_email", "client_phone")}),
        ("Totals", {"fields": ("total_price", "total_duration")}),
        ("Payment", {"fields": ("payment_status", "payment_method", "paid_at")}),
        ("Metadata", {"fields": ("created_at", "updated_at")}),
    )
