from __future__ import annotations

from typing import Iterable, Optional, Protocol

from .models import Product


class ProductRepositoryProtocol(Protocol):
    async def list_newest_first(self) -> Iterable[Product]:
        ...

    async def get(self, **filters) -> Optional[Product]:
        ...
