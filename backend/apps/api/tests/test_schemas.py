from apps.api.schemas import ErrorExtraSerializer
from apps.catalog.serializers import NotificationSerializer
from apps.common.notifications import Notification, Severity


def test_error_extra_reuses_notification_serializer():
    field = ErrorExtraSerializer().fields["notifications"]
    assert isinstance(field.child, NotificationSerializer)


def test_error_extra_renders_notification_dataclasses():
    note = Notification("Please sign in", "Log in first", Severity.ERROR)
    data = ErrorExtraSerializer({"notifications": [note]}).data
    assert data["notifications"] == [
        {"title": "Please sign in", "message": "Log in first", "severity": "error"}
    ]
