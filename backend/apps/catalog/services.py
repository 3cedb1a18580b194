from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple

from apps.common import get_logger
from apps.common.exceptions import StoreReadFailure
from apps.common.notifications import NotificationSinkProtocol, Severity

from .criteria import ViewCriteria
from .dtos import CatalogViewDTO, ProductDTO
from .filters import cart_quantity, derive_product_list
from .mappers import ProductMapper
from .protocols import ProductRepositoryProtocol

logger = get_logger(__name__).bind(component="catalog", layer="service")


class CatalogService:
    """Holds the session's catalog snapshot and derives the displayed list.

    The snapshot is replaced wholesale by ``load_catalog``; everything else
    reads it synchronously.
    """

    def __init__(
        self,
        products: ProductRepositoryProtocol,
        notifier: NotificationSinkProtocol,
        product_mapper: Optional[ProductMapper] = None,
    ):
        self.products = products
        self.notifier = notifier
        self.product_mapper = product_mapper or ProductMapper()
        self.logger = logger.bind(service="CatalogService")
        self._catalog: Tuple[ProductDTO, ...] = ()
        self._by_id: Dict[str, ProductDTO] = {}

    @property
    def catalog(self) -> Tuple[ProductDTO, ...]:
        return self._catalog

    async def load_catalog(self) -> List[ProductDTO]:
        self.logger.debug("Loading catalog")
        try:
            rows = await self.products.list_newest_first()
        except StoreReadFailure as exc:
            self.logger.error("Catalog load failed", error=str(exc))
            self.notifier.notify("Error", "Failed to load products", Severity.ERROR)
            self._replace_snapshot([])
            return []
        dtos = self.product_mapper.many_to_dto(rows)
        self._replace_snapshot(dtos)
        self.logger.info("Catalog loaded", count=len(dtos))
        return list(dtos)

    def _replace_snapshot(self, products: List[ProductDTO]) -> None:
        self._catalog = tuple(products)
        self._by_id = {p.id: p for p in self._catalog}

    async def get_product(self, product_id: str) -> Optional[ProductDTO]:
        cached = self._by_id.get(str(product_id))
        if cached is not None:
            return cached
        self.logger.debug("Fetching product", product_id=product_id)
        product = await self.products.get(id=product_id)
        if not product:
            self.logger.info("Product not found", product_id=product_id)
            return None
        return self.product_mapper.to_dto(product)

    def derive(self, criteria: ViewCriteria) -> CatalogViewDTO:
        products = derive_product_list(self._catalog, criteria)
        self.logger.debug(
            "Derived product list",
            search=criteria.search,
            category=criteria.category,
            sort=criteria.sort,
            shown=len(products),
            total=len(self._catalog),
        )
        return CatalogViewDTO(products=products, total_count=len(self._catalog))

    @staticmethod
    def cart_quantity(product_id: str, cart_index: Mapping[str, int]) -> int:
        return cart_quantity(product_id, cart_index)
