from typing import List

from django.db import DatabaseError

from apps.common.exceptions import StoreReadFailure, StoreWriteFailure
from apps.common.repository import GenericRepository

from .models import CartItem


class CartItemRepository(GenericRepository[CartItem]):
    """Cart rows keyed by (user, product). Database errors surface as store failures."""

    def __init__(self):
        super().__init__(CartItem)

    async def list_for_user(self, user_id: int) -> List[CartItem]:
        try:
            return await self.list(user_id=user_id)
        except DatabaseError as exc:
            raise StoreReadFailure(
                "Failed to load cart items", details={"userId": str(user_id)}
            ) from exc

    async def upsert(self, user_id: int, product_id: str, quantity: int) -> None:
        try:
            await self.model.objects.aupdate_or_create(
                user_id=user_id,
                product_id=product_id,
                defaults={"quantity": quantity},
            )
        except DatabaseError as exc:
            raise StoreWriteFailure(
                "Failed to add item to cart", details={"productId": str(product_id)}
            ) from exc

    async def update_quantity(self, user_id: int, product_id: str, quantity: int) -> int:
        try:
            return await self.model.objects.filter(
                user_id=user_id, product_id=product_id
            ).aupdate(quantity=quantity)
        except DatabaseError as exc:
            raise StoreWriteFailure(
                "Failed to update cart", details={"productId": str(product_id)}
            ) from exc

    async def delete_entry(self, user_id: int, product_id: str) -> int:
        try:
            deleted, _ = await self.model.objects.filter(
                user_id=user_id, product_id=product_id
            ).adelete()
        except DatabaseError as exc:
            raise StoreWriteFailure(
                "Failed to update cart", details={"productId": str(product_id)}
            ) from exc
        return deleted
