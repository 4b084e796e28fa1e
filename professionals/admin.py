from django.contrib import admin
from .models import Professional


@admin.register(Professional)
class ProfessionalAdmin(admin.ModelAdmin):
    list_display = ['name', 'specialty', 'clinic', 'is_active', 'created_at']
    list_filter = ['is_active', 'clinic', 'created_at']
    search_fields = ['name', 'specialty', 'clinic__name']
    readonly_fields = ['created_at']

    fieldsets = (
        ('Professional', {
            'fields': ('clinic', 'name', 'specialty', 'image_url', 'is_active')
        }),
        ('Schedule', {
            'fields': ('available_times',)
        }),
        ('Metadata', {
            'fields': ('created_at',)
        }),
    )
