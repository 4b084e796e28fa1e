from rest_framework import serializers

from .models import Category, Product, Service


class CategorySerializer(serializers.ModelSerializer):
    order = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    service_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ["id", "name", "order", "service_count", "created_at"]
        read_only_fields = ["id", "service_count", "created_at"]

    def get_service_count(self, obj):
        return obj.services.count()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Category name is required.")
        return value


class ServiceSerializer(serializers.ModelSerializer):
    """
    Service as shown on the panel and on the public page.

    display_image_url falls back to the generic picture when none is set.
    """

    category_id = serializers.IntegerField(required=False, allow_null=True)
    category_name = serializers.CharField(
        source="category.name", read_only=True, default=None
    )
    display_image_url = serializers.CharField(read_only=True)

    class Meta:
        model = Service
        fields = [
            "id",
            "category_id",
            "category_name",
            "name",
            "description",
            "price",
            "duration_minutes",
            "image_url",
            "display_image_url",
            "is_active",
        ]
        read_only_fields = ["id", "category_name", "display_image_url"]

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Name must be at least 2 characters long.")
        return value


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "name", "description", "price", "is_active", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Product name is required.")
        return value


class ImageCheckSerializer(serializers.Serializer):
    url = serializers.URLField(max_length=500)
