from rest_framework import serializers

from apps.catalog.serializers import NotificationSerializer


class CartEntrySerializer(serializers.Serializer):
    product_id = serializers.CharField()
    quantity = serializers.IntegerField()


class CartReadSerializer(serializers.Serializer):
    items = CartEntrySerializer(many=True)
    notifications = NotificationSerializer(many=True)

    def to_representation(self, instance):
        index = instance.get("index") or {}
        return {
            "items": [
                {"product_id": product_id, "quantity": quantity}
                for product_id, quantity in index.items()
            ],
            "notifications": NotificationSerializer(
                instance.get("notifications") or [], many=True
            ).data,
        }


class CartItemAddSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    # Quantity the shopper currently sees; defaults to the stored quantity
    current_quantity = serializers.IntegerField(min_value=0, required=False)


class CartItemQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0)


class CartMutationSerializer(serializers.Serializer):
    product_id = serializers.CharField()
    quantity = serializers.IntegerField()
    cart = CartEntrySerializer(many=True)
    notifications = NotificationSerializer(many=True)
