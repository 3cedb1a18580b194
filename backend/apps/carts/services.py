from __future__ import annotations

from collections import Counter
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from apps.catalog.dtos import ProductDTO
from apps.catalog.filters import cart_quantity
from apps.common import get_logger
from apps.common.exceptions import (
    ErrorTuple,
    InvalidQuantity,
    StockLimitExceeded,
    StoreReadFailure,
    StoreWriteFailure,
    Unauthenticated,
)
from apps.common.notifications import NotificationSinkProtocol, Severity

from .dtos import ProductControlsDTO
from .mappers import CartEntryMapper
from .protocols import CartItemRepositoryProtocol

logger = get_logger(__name__).bind(component="carts", layer="service")


class CartService:
    """Reconciles one shopper's local cart index with the stored cart rows.

    The local index is never written optimistically: every confirmed write is
    followed by a full refresh that replaces the index wholesale. Concurrent
    mutations on the same product are not serialized; whichever refresh lands
    last decides the index. ``controls`` reports in-flight products so callers
    can disable their inputs meanwhile.
    """

    def __init__(
        self,
        cart_items: CartItemRepositoryProtocol,
        notifier: NotificationSinkProtocol,
        *,
        enforce_stock_limit: bool = True,
        entry_mapper: Optional[CartEntryMapper] = None,
    ):
        self.cart_items = cart_items
        self.notifier = notifier
        self.enforce_stock_limit = enforce_stock_limit
        self.entry_mapper = entry_mapper or CartEntryMapper()
        self.logger = logger.bind(service="CartService")
        self._index: Dict[str, int] = {}
        self._in_flight: Counter = Counter()

    @property
    def index(self) -> Dict[str, int]:
        return dict(self._index)

    def get_quantity(self, product_id: str) -> int:
        return cart_quantity(product_id, self._index)

    def is_pending(self, product_id: str) -> bool:
        return self._in_flight[str(product_id)] > 0

    def controls(
        self, product: ProductDTO, quantity: Optional[int] = None
    ) -> ProductControlsDTO:
        current = self.get_quantity(product.id) if quantity is None else quantity
        pending = self.is_pending(product.id)
        return ProductControlsDTO(
            can_add=not pending and current == 0 and product.stock_quantity > 0,
            can_increment=(
                not pending and current > 0 and current < product.stock_quantity
            ),
            can_decrement=not pending and current > 0,
            pending=pending,
        )

    async def refresh(
        self, user_id: Optional[int]
    ) -> Tuple[Optional[Dict[str, int]], Optional[ErrorTuple]]:
        if user_id is None:
            self.logger.warning("Cart refresh without signed-in user")
            return None, Unauthenticated().as_error()
        try:
            rows = await self.cart_items.list_for_user(user_id)
        except StoreReadFailure as exc:
            self.logger.error(
                "Cart refresh failed; keeping previous index",
                user_id=user_id,
                error=str(exc),
            )
            self.notifier.notify("Error", "Failed to load cart", Severity.ERROR)
            return None, exc.as_error()
        index: Dict[str, int] = {}
        for entry in self.entry_mapper.many_to_dto(rows):
            if entry.quantity <= 0:
                self.logger.warning(
                    "Ignoring non-positive cart row",
                    user_id=user_id,
                    product_id=entry.product_id,
                    quantity=entry.quantity,
                )
                continue
            index[entry.product_id] = entry.quantity
        self._index = index
        self.logger.debug("Cart index rebuilt", user_id=user_id, entries=len(index))
        return dict(index), None

    async def add(
        self, user_id: Optional[int], product: ProductDTO, current_quantity: int
    ) -> Tuple[Optional[int], Optional[ErrorTuple]]:
        if user_id is None:
            self.logger.warning("Add to cart rejected: not signed in", product_id=product.id)
            self.notifier.notify(
                "Please sign in",
                "You need to be logged in to add items to cart",
                Severity.ERROR,
            )
            return None, Unauthenticated().as_error()
        if product.stock_quantity <= 0:
            self.logger.warning("Add to cart rejected: out of stock", product_id=product.id)
            return None, StockLimitExceeded(
                f"{product.name} is out of stock",
                details={"productId": product.id, "stock": product.stock_quantity},
            ).as_error()
        target = int(current_quantity) + 1
        error = self._check_quantity(product, target)
        if error:
            return None, error

        write = partial(self.cart_items.upsert, user_id, product.id, target)
        quantity, error = await self._mutate(
            user_id, product, target, write, failure_message="Failed to add item to cart"
        )
        if error is None:
            self.notifier.notify(
                "Added to cart", f"{product.name} has been added to your cart"
            )
        return quantity, error

    async def set_quantity(
        self, user_id: Optional[int], product: ProductDTO, new_quantity: int
    ) -> Tuple[Optional[int], Optional[ErrorTuple]]:
        if user_id is None:
            self.logger.warning("Cart update rejected: not signed in", product_id=product.id)
            return None, Unauthenticated().as_error()
        new_quantity = int(new_quantity)
        error = self._check_quantity(product, new_quantity)
        if error:
            return None, error

        if new_quantity == 0:
            write = partial(self.cart_items.delete_entry, user_id, product.id)
        else:
            write = partial(
                self.cart_items.update_quantity, user_id, product.id, new_quantity
            )
        return await self._mutate(
            user_id, product, new_quantity, write, failure_message="Failed to update cart"
        )

    async def increment(
        self, user_id: Optional[int], product: ProductDTO
    ) -> Tuple[Optional[int], Optional[ErrorTuple]]:
        return await self.set_quantity(user_id, product, self.get_quantity(product.id) + 1)

    async def decrement(
        self, user_id: Optional[int], product: ProductDTO
    ) -> Tuple[Optional[int], Optional[ErrorTuple]]:
        if user_id is None:
            self.logger.warning("Cart update rejected: not signed in", product_id=product.id)
            return None, Unauthenticated().as_error()
        current = self.get_quantity(product.id)
        if current == 0:
            return 0, None
        return await self.set_quantity(user_id, product, current - 1)

    async def remove(
        self, user_id: Optional[int], product: ProductDTO
    ) -> Tuple[Optional[int], Optional[ErrorTuple]]:
        return await self.set_quantity(user_id, product, 0)

    def _check_quantity(self, product: ProductDTO, quantity: int) -> Optional[ErrorTuple]:
        if quantity < 0:
            self.logger.warning(
                "Rejecting negative quantity", product_id=product.id, quantity=quantity
            )
            return InvalidQuantity(details={"quantity": quantity}).as_error()
        if (
            self.enforce_stock_limit
            and quantity > 0
            and quantity > product.stock_quantity
            and quantity > self.get_quantity(product.id)
        ):
            self.logger.warning(
                "Rejecting quantity above stock",
                product_id=product.id,
                quantity=quantity,
                stock=product.stock_quantity,
            )
            return StockLimitExceeded(
                f"Only {product.stock_quantity} of {product.name} available",
                details={
                    "productId": product.id,
                    "quantity": quantity,
                    "stock": product.stock_quantity,
                },
            ).as_error()
        return None

    async def _mutate(
        self,
        user_id: int,
        product: ProductDTO,
        quantity: int,
        write: Callable[[], Awaitable[Any]],
        *,
        failure_message: str,
    ) -> Tuple[Optional[int], Optional[ErrorTuple]]:
        self.logger.info(
            "Writing cart entry", user_id=user_id, product_id=product.id, quantity=quantity
        )
        self._in_flight[product.id] += 1
        try:
            try:
                await write()
            except StoreWriteFailure as exc:
                self.logger.error(
                    "Cart write failed",
                    user_id=user_id,
                    product_id=product.id,
                    quantity=quantity,
                    error=str(exc),
                )
                self.notifier.notify("Error", failure_message, Severity.ERROR)
                return None, exc.as_error()
            # the product stays pending until the confirming refresh lands
            index, error = await self.refresh(user_id)
        finally:
            self._in_flight[product.id] -= 1
            if self._in_flight[product.id] <= 0:
                del self._in_flight[product.id]
        if error:
            # The write is confirmed; the previous index stays until the next refresh.
            self.logger.warning(
                "Cart write confirmed but refresh failed",
                user_id=user_id,
                product_id=product.id,
                quantity=quantity,
            )
            return quantity, None
        return cart_quantity(product.id, index), None

