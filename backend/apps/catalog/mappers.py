from decimal import Decimal
from typing import Iterable, List, Optional

from .dtos import ProductDTO
from .models import Product


class ProductMapper:
    def __init__(self, low_stock_threshold: Optional[int] = None) -> None:
        self.low_stock_threshold = low_stock_threshold

    def to_dto(self, product: Product) -> ProductDTO:
        stock = int(product.stock_quantity or 0)
        created_at = getattr(product, "created_at", None)
        return ProductDTO(
            id=str(product.id),
            name=product.name,
            description=product.description or "",
            price=Decimal(str(product.price)),
            image_url=product.image_url or "",
            category=product.category,
            stock_quantity=stock,
            created_at=created_at.isoformat() if created_at else None,
            low_stock=(
                self.low_stock_threshold is not None
                and stock < self.low_stock_threshold
            ),
        )

    def many_to_dto(self, products: Iterable[Product]) -> List[ProductDTO]:
        return [self.to_dto(p) for p in products]
