from rest_framework import serializers

from apps.catalog.serializers import NotificationSerializer


class ErrorExtraSerializer(serializers.Serializer):
    notifications = NotificationSerializer(many=True, required=False)


class ErrorDetailSerializer(serializers.Serializer):
    code = serializers.CharField()
    message = serializers.CharField()
    status = serializers.IntegerField()
    details = serializers.JSONField(required=False)
    extra = ErrorExtraSerializer(required=False)


class ErrorResponseSerializer(serializers.Serializer):
    error = ErrorDetailSerializer()
