from typing import Iterable, List

from .dtos import CartEntryDTO
from .models import CartItem


class CartEntryMapper:
    @staticmethod
    def to_dto(item: CartItem) -> CartEntryDTO:
        return CartEntryDTO(product_id=str(item.product_id), quantity=int(item.quantity))

    @staticmethod
    def many_to_dto(items: Iterable[CartItem]) -> List[CartEntryDTO]:
        return [CartEntryMapper.to_dto(i) for i in items]
