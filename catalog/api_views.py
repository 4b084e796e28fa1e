from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from clinics.permissions import IsClinicMember
from .serializers import (
    CategorySerializer,
    ImageCheckSerializer,
    ProductSerializer,
    ServiceSerializer,
)
from .services import (
    CatalogError,
    create_category,
    create_product,
    create_service,
    delete_category,
    get_category,
    get_product,
    get_service,
    is_valid_image_url,
    list_categories,
    list_products,
    list_services,
    update_category,
    update_product,
    update_service,
)


def _catalog_error(e):
    http_status = (
        status.HTTP_404_NOT_FOUND if e.code == "NOT_FOUND" else status.HTTP_400_BAD_REQUEST
    )
    return Response({"detail": e.message, "code": e.code}, status=http_status)


# ─── Categories ───────────────────────────────────────────────────────────


class CategoryListCreateAPIView(APIView):
    """
    GET  /catalog/api/categories/
    POST /catalog/api/categories/   {"name": "Hair", "order": 2}   order optional
    """

    permission_classes = [IsClinicMember]

    def get(self, request):
        categories = list_categories(request.clinic)
        return Response(CategorySerializer(categories, many=True).data)

    def post(self, request):
        serializer = CategorySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        category = create_category(
            request.clinic,
            serializer.validated_data["name"],
            order=serializer.validated_data.get("order"),
        )
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)


class CategoryDetailAPIView(APIView):
    permission_classes = [IsClinicMember]

    def get(self, request, category_id):
        try:
            category = get_category(request.clinic, category_id)
        except CatalogError as e:
            return _catalog_error(e)
        return Response(CategorySerializer(category).data)

    def patch(self, request, category_id):
        serializer = CategorySerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            category = update_category(
                request.clinic, category_id, **serializer.validated_data
            )
        except CatalogError as e:
            return _catalog_error(e)
        return Response(CategorySerializer(category).data)

    def delete(self, request, category_id):
        try:
            delete_category(request.clinic, category_id)
        except CatalogError as e:
            return _catalog_error(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ─── Services ─────────────────────────────────────────────────────────────


class ServiceListCreateAPIView(APIView):
    """
    GET  /catalog/api/services/
    POST /catalog/api/services/

    Request body (POST):
        {
            "name": "Haircut",
            "price": "45.00",
            "duration_minutes": 40,
            "category_id": 3,           (optional)
            "image_url": "https://..."  (optional)
        }
    """

    permission_classes = [IsClinicMember]

    def get(self, request):
        services = list_services(request.clinic)
        return Response(ServiceSerializer(services, many=True).data)

    def post(self, request):
        serializer = ServiceSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            service = create_service(request.clinic, **serializer.validated_data)
        except CatalogError as e:
            return _catalog_error(e)
        return Response(ServiceSerializer(service).data, status=status.HTTP_201_CREATED)


class ServiceDetailAPIView(APIView):
    permission_classes = [IsClinicMember]

    def get(self, request, service_id):
        try:
            service = get_service(request.clinic, service_id)
        except CatalogError as e:
            return _catalog_error(e)
        return Response(ServiceSerializer(service).data)

    def patch(self, request, service_id):
        serializer = ServiceSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            service = update_service(
                request.clinic, service_id, **serializer.validated_data
            )
        except CatalogError as e:
            return _catalog_error(e)
        return Response(ServiceSerializer(service).data)


class ImageCheckAPIView(APIView):
    """POST /catalog/api/check-image/   {"url": "https://..."} -> {"valid": bool}"""

    permission_classes = [IsClinicMember]

    def post(self, request):
        serializer = ImageCheckSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response({"valid": is_valid_image_url(serializer.validated_data["url"])})


# ─── Products ─────────────────────────────────────────────────────────────


class ProductListCreateAPIView(APIView):
    """
    GET  /catalog/api/products/            active products by name
    GET  /catalog/api/products/?all=1      inactive ones too
    POST /catalog/api/products/
    """

    permission_classes = [IsClinicMember]

    def get(self, request):
        active_only = request.query_params.get("all") != "1"
        products = list_products(request.clinic, active_only=active_only)
        return Response(ProductSerializer(products, many=True).data)

    def post(self, request):
        serializer = ProductSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        product = create_product(request.clinic, **serializer.validated_data)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)


class ProductDetailAPIView(APIView):
    permission_classes = [IsClinicMember]

    def get(self, request, product_id):
        try:
            product = get_product(request.clinic, product_id)
        except CatalogError as e:
            return _catalog_error(e)
        return Response(ProductSerializer(product).data)

    def patch(self, request, product_id):
        serializer = ProductSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            product = update_product(
                request.clinic, product_id, **serializer.validated_data
            )
        except CatalogError as e:
            return _catalog_error(e)
        return Response(ProductSerializer(product).data)
