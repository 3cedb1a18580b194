from typing import List, Optional

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from apps.common.exceptions import StoreReadFailure
from apps.common.repository import GenericRepository

from .models import Product


class ProductRepository(GenericRepository[Product]):
    def __init__(self):
        super().__init__(Product)

    async def list_newest_first(self) -> List[Product]:
        try:
            return [p async for p in self.model.objects.order_by("-created_at")]
        except DatabaseError as exc:
            raise StoreReadFailure("Failed to load products") from exc

    async def get(self, **filters) -> Optional[Product]:
        try:
            return await super().get(**filters)
        except ValidationError:
            # malformed UUID lookups behave like a miss
            return None
        except DatabaseError as exc:
            raise StoreReadFailure("Failed to load product") from exc
