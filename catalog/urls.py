from django.urls import path

from . import api_views

app_name = "catalog"

urlpatterns = [
    path("api/categories/", api_views.CategoryListCreateAPIView.as_view(), name="api_categories"),
    path("api/categories/<int:category_id>/", api_views.CategoryDetailAPIView.as_view(), name="api_category_detail"),
    path("api/services/", api_views.ServiceListCreateAPIView.as_view(), name="api_services"),
    path("api/services/<int:service_id>/", api_views.ServiceDetailAPIView.as_view(), name="api_service_detail"),
    path("api/check-image/", api_views.ImageCheckAPIView.as_view(), name="api_check_image"),
    path("api/products/", api_views.ProductListCreateAPIView.as_view(), name="api_products"),
    path("api/products/<int:product_id>/", api_views.ProductDetailAPIView.as_view(), name="api_product_detail"),
]
