from __future__ import annotations

from typing import Optional

from apps.common.conf import stock_limit_enforced
from apps.common.notifications import LoggingNotificationSink, NotificationSinkProtocol

from .mappers import CartEntryMapper
from .repositories import CartItemRepository
from .services import CartService


def build_cart_service(
    notifier: Optional[NotificationSinkProtocol] = None,
) -> CartService:
    return CartService(
        cart_items=CartItemRepository(),
        notifier=notifier or LoggingNotificationSink(),
        enforce_stock_limit=stock_limit_enforced(),
        entry_mapper=CartEntryMapper(),
    )
