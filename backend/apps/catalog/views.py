from typing import Any, Dict, Optional

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema, OpenApiParameter
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.carts.container import build_cart_service
from apps.carts.dtos import ProductControlsDTO, StorefrontItemDTO
from apps.common import get_logger
from apps.common.conf import get_categories
from apps.common.notifications import CollectingNotificationSink

from .container import build_catalog_service
from .criteria import SortKey, ViewCriteria
from .serializers import StorefrontListSerializer

logger = get_logger(__name__).bind(component="catalog", layer="view")

LOCKED_CONTROLS = ProductControlsDTO(can_add=False, can_increment=False, can_decrement=False)


def current_user_id(request) -> Optional[int]:
    user = getattr(request, "user", None)
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return getattr(user, "id", None)


@extend_schema(tags=["Catalog"])
class ProductListView(APIView):
    permission_classes = [AllowAny]
    catalog_factory = staticmethod(build_catalog_service)
    cart_factory = staticmethod(build_cart_service)
    log = logger.bind(view="ProductListView")

    @extend_schema(
        operation_id="products_list",
        summary="Browse products",
        description=(
            "Loads the catalog newest first, then filters by search term and category "
            "and sorts by the requested key. Signed-in shoppers get each product "
            "annotated with its cart quantity and which cart controls are enabled."
        ),
        parameters=[
            OpenApiParameter(
                name="search",
                description="Case-insensitive substring of name or description",
                required=False,
                type=str,
            ),
            OpenApiParameter(
                name="category",
                description="Category name, or 'all'",
                required=False,
                type=str,
            ),
            OpenApiParameter(
                name="sort",
                description="Sort key",
                required=False,
                type=str,
                enum=[key.value for key in SortKey],
            ),
        ],
        responses={200: StorefrontListSerializer},
    )
    def get(self, request):
        criteria = ViewCriteria.from_raw(request.query_params)
        user_id = current_user_id(request)
        self.log.debug(
            "Handling product list request",
            user_id=user_id,
            search=criteria.search,
            category=criteria.category,
            sort=criteria.sort,
        )
        notifier = CollectingNotificationSink()
        payload = async_to_sync(self._build_listing)(criteria, user_id, notifier)
        payload["notifications"] = notifier.drain()
        return Response(StorefrontListSerializer(payload).data)

    async def _build_listing(
        self, criteria: ViewCriteria, user_id: Optional[int], notifier
    ) -> Dict[str, Any]:
        catalog = self.catalog_factory(notifier)
        cart = self.cart_factory(notifier)
        await catalog.load_catalog()
        cart_error = None
        if user_id is not None:
            _, cart_error = await cart.refresh(user_id)
        view = catalog.derive(criteria)
        items = [
            StorefrontItemDTO(
                product=product,
                quantity=cart.get_quantity(product.id),
                # quantities are unknown, so no control may act on them
                controls=LOCKED_CONTROLS if cart_error else cart.controls(product),
            )
            for product in view.products
        ]
        if cart_error:
            self.log.warning("Listing without cart state", user_id=user_id, code=cart_error[0])
        return {
            "criteria": criteria,
            "categories": get_categories(),
            "total_count": view.total_count,
            "shown_count": view.shown_count,
            "items": items,
            "cart_available": cart_error is None,
        }
