from django.urls import path
from . import views, api_views
from rest_framework_simplejwt.views import TokenRefreshView

app_name = "accounts"

urlpatterns = [
    path("", views.home_redirect, name="home"),
    path("login/", views.login_view, name="login"),
    path("logout/", views.logout_view, name="logout"),

    # Clinic owner registration (3 steps)
    path("register/", views.register_phone, name="register_phone"),
    path("register/verify/", views.register_verify, name="register_verify"),
    path("register/details/", views.register_details, name="register_details"),

    # API Endpoints
    path("api/login/", api_views.PhoneTokenObtainPairView.as_view(), name="api_login"),
    path("api/logout/", api_views.LogoutAPIView.as_view(), name="api_logout"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
]
