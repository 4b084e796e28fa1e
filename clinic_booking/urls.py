"""
URL configuration for clinic_booking project.

Panel pages and APIs are mounted per app; public booking routes contain
"/public/" and need no login.
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("accounts.urls")),
    path("clinics/", include("clinics.urls")),
    path("catalog/", include("catalog.urls")),
    path("professionals/", include("professionals.urls")),
    path("appointments/", include("appointments.urls")),
    path("finance/", include("finance.urls")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
