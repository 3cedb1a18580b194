from dataclasses import dataclass

from apps.catalog.dtos import ProductDTO


@dataclass(frozen=True)
class CartEntryDTO:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class ProductControlsDTO:
    """Which cart controls a product card may offer right now."""

    can_add: bool
    can_increment: bool
    can_decrement: bool
    pending: bool = False


@dataclass(frozen=True)
class StorefrontItemDTO:
    product: ProductDTO
    quantity: int
    controls: ProductControlsDTO
