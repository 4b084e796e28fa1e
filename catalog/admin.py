from django.contrib import admin
from .models import Category, Product, Service


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'clinic', 'order', 'created_at']
    list_filter = ['clinic']
    search_fields = ['name', 'clinic__name']
    ordering = ['clinic', 'order', 'name']


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ['name', 'clinic', 'category', 'price', 'duration_minutes', 'is_active']
    list_filter = ['is_active', 'clinic']
    search_fields = ['name', 'clinic__name', 'category__name']
    raw_id_fields = ['clinic', 'category']
    readonly_fields = ['created_at']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'clinic', 'price', 'is_active', 'created_at']
    list_filter = ['is_active', 'clinic']
    search_fields = ['name', 'clinic__name']
    readonly_fields = ['created_at']
