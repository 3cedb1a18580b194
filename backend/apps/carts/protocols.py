from __future__ import annotations

from typing import Iterable, Protocol

from .models import CartItem


class CartItemRepositoryProtocol(Protocol):
    async def list_for_user(self, user_id: int) -> Iterable[CartItem]:
        ...

    async def upsert(self, user_id: int, product_id: str, quantity: int) -> None:
        ...

    async def update_quantity(self, user_id: int, product_id: str, quantity: int) -> int:
        ...

    async def delete_entry(self, user_id: int, product_id: str) -> int:
        ...
