from __future__ import annotations

from typing import Optional

from apps.common.conf import get_low_stock_threshold
from apps.common.notifications import LoggingNotificationSink, NotificationSinkProtocol

from .mappers import ProductMapper
from .repositories import ProductRepository
from .services import CatalogService


def build_catalog_service(
    notifier: Optional[NotificationSinkProtocol] = None,
) -> CatalogService:
    return CatalogService(
        products=ProductRepository(),
        notifier=notifier or LoggingNotificationSink(),
        product_mapper=ProductMapper(get_low_stock_threshold()),
    )
