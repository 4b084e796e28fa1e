from django.contrib import admin
from .models import Clinic, ClinicStaff, Reminder, Review, WhatsappMessage


@admin.register(Clinic)
class ClinicAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'phone', 'time_zone', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'owner__name', 'owner__phone']
    readonly_fields = ['created_at']

    fieldsets = (
        ('Clinic Information', {
            'fields': ('name', 'address', 'phone', 'image_url')
        }),
        ('Schedule', {
            'fields': ('time_zone', 'working_days', 'times')
        }),
        ('Management', {
            'fields': ('owner', 'is_active')
        }),
        ('Metadata', {
            'fields': ('created_at',)
        }),
    )


@admin.register(ClinicStaff)
class ClinicStaffAdmin(admin.ModelAdmin):
    list_display = ['user', 'clinic', 'role', 'added_by', 'is_active', 'added_at']
    list_filter = ['role', 'is_active', 'clinic', 'added_at']
    search_fields = ['user__name', 'user__phone', 'clinic__name']
    readonly_fields = ['added_at']

    fieldsets = (
        ('Staff Information', {
            'fields': ('clinic', 'user', 'role', 'is_active')
        }),
        ('Metadata', {
            'fields': ('added_by', 'added_at')
        }),
    )


@admin.register(WhatsappMessage)
class WhatsappMessageAdmin(admin.ModelAdmin):
    list_display = ['clinic', 'updated_at']
    search_fields = ['clinic__name']
    readonly_fields = ['updated_at']


@admin.register(Reminder)
class ReminderAdmin(admin.ModelAdmin):
    list_display = ['text', 'clinic', 'created_by', 'created_at']
    list_filter = ['clinic']
    search_fields = ['text', 'clinic__name']
    readonly_fields = ['created_at']


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ['name', 'clinic', 'rating', 'created_at']
    list_filter = ['rating', 'clinic']
    search_fields = ['name', 'comment', 'clinic__name']
    readonly_fields = ['created_at']
