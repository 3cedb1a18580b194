from rest_framework import serializers


class ProductReadSerializer(serializers.Serializer):
    # Matches ProductDTO shapes used for responses
    id = serializers.CharField()
    name = serializers.CharField()
    description = serializers.CharField(allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=True)
    image_url = serializers.CharField(allow_blank=True)
    category = serializers.CharField()
    stock_quantity = serializers.IntegerField()
    low_stock = serializers.BooleanField()
    created_at = serializers.CharField(allow_null=True, required=False)


class ProductControlsSerializer(serializers.Serializer):
    can_add = serializers.BooleanField()
    can_increment = serializers.BooleanField()
    can_decrement = serializers.BooleanField()
    pending = serializers.BooleanField()


class StorefrontItemSerializer(serializers.Serializer):
    product = ProductReadSerializer()
    quantity = serializers.IntegerField()
    controls = ProductControlsSerializer()


class NotificationSerializer(serializers.Serializer):
    title = serializers.CharField()
    message = serializers.CharField()
    severity = serializers.CharField()

    def to_representation(self, instance):
        if hasattr(instance, "__dataclass_fields__"):
            severity = getattr(instance, "severity")
            return {
                "title": getattr(instance, "title"),
                "message": getattr(instance, "message"),
                "severity": getattr(severity, "value", severity),
            }
        return super().to_representation(instance)


class CatalogCriteriaSerializer(serializers.Serializer):
    search = serializers.CharField(allow_blank=True)
    category = serializers.CharField()
    sort = serializers.CharField()

    def to_representation(self, instance):
        if hasattr(instance, "__dataclass_fields__"):
            sort = getattr(instance, "sort")
            return {
                "search": getattr(instance, "search"),
                "category": getattr(instance, "category"),
                "sort": getattr(sort, "value", sort),
            }
        return super().to_representation(instance)


class StorefrontListSerializer(serializers.Serializer):
    criteria = CatalogCriteriaSerializer()
    categories = serializers.ListField(child=serializers.CharField())
    total_count = serializers.IntegerField()
    shown_count = serializers.IntegerField()
    items = StorefrontItemSerializer(many=True)
    cart_available = serializers.BooleanField()
    notifications = NotificationSerializer(many=True)
