from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional


@dataclass(frozen=True)
class ProductDTO:
    id: str
    name: str
    description: str
    price: Decimal
    image_url: str
    category: str
    stock_quantity: int
    created_at: Optional[str] = None
    low_stock: bool = False

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0


@dataclass(frozen=True)
class CatalogViewDTO:
    """Derived product list plus the counts shown above it."""

    products: List[ProductDTO]
    total_count: int

    @property
    def shown_count(self) -> int:
        return len(self.products)
