"""Pure filter/sort pipeline turning a catalog snapshot into the displayed list.

Nothing in here performs I/O or mutates its inputs, so the pipeline can be
re-run on every criteria change.
"""
import unicodedata
from typing import Iterable, List, Mapping, Sequence, Tuple

from apps.common.conf import ALL_CATEGORIES

from .criteria import SortKey, ViewCriteria
from .dtos import ProductDTO


def matches_search(product: ProductDTO, search: str) -> bool:
    if not search:
        return True
    needle = search.lower()
    return needle in product.name.lower() or needle in product.description.lower()


def matches_category(product: ProductDTO, category: str) -> bool:
    return category == ALL_CATEGORIES or product.category == category


def collation_key(name: str) -> Tuple[str, str]:
    # Accents and case are ignored first; lowercase sorts before uppercase on ties.
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), base.swapcase()


def filter_products(
    products: Iterable[ProductDTO], criteria: ViewCriteria
) -> List[ProductDTO]:
    return [
        p
        for p in products
        if matches_search(p, criteria.search)
        and matches_category(p, criteria.category)
    ]


def sort_products(products: Sequence[ProductDTO], sort: SortKey) -> List[ProductDTO]:
    if sort is SortKey.PRICE_LOW:
        return sorted(products, key=lambda p: p.price)
    if sort is SortKey.PRICE_HIGH:
        # reverse=True keeps ties in their original relative order
        return sorted(products, key=lambda p: p.price, reverse=True)
    return sorted(products, key=lambda p: collation_key(p.name))


def derive_product_list(
    catalog: Sequence[ProductDTO], criteria: ViewCriteria
) -> List[ProductDTO]:
    return sort_products(filter_products(catalog, criteria), criteria.sort)


def cart_quantity(product_id: str, cart_index: Mapping[str, int]) -> int:
    return cart_index.get(str(product_id), 0)
