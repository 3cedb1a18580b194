from typing import Dict, Optional, Tuple

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.schemas import ErrorResponseSerializer
from apps.api.utils import error_response
from apps.catalog.container import build_catalog_service
from apps.catalog.serializers import NotificationSerializer
from apps.catalog.views import current_user_id
from apps.common import get_logger
from apps.common.exceptions import ErrorTuple, StorefrontError
from apps.common.notifications import CollectingNotificationSink

from .container import build_cart_service
from .serializers import (
    CartItemAddSerializer,
    CartItemQuantitySerializer,
    CartMutationSerializer,
    CartReadSerializer,
)

logger = get_logger(__name__).bind(component="carts", layer="view")

MutationOutcome = Tuple[Optional[int], Optional[ErrorTuple], Dict[str, int]]


def _entries(index: Dict[str, int]):
    return [
        {"product_id": product_id, "quantity": quantity}
        for product_id, quantity in index.items()
    ]


class CartEndpointMixin:
    # Anonymous requests reach the cart service, which answers UNAUTHENTICATED.
    permission_classes = [AllowAny]
    catalog_factory = staticmethod(build_catalog_service)
    cart_factory = staticmethod(build_cart_service)

    def error_with_notifications(
        self, error: ErrorTuple, notifier: CollectingNotificationSink
    ):
        code, message, details = error
        return error_response(
            code,
            message,
            details,
            extra={
                "notifications": NotificationSerializer(notifier.drain(), many=True).data
            },
        )

    def mutation_response(
        self,
        product_id: str,
        outcome: MutationOutcome,
        notifier: CollectingNotificationSink,
    ):
        quantity, error, index = outcome
        if error:
            return self.error_with_notifications(error, notifier)
        payload = {
            "product_id": product_id,
            "quantity": quantity,
            "cart": _entries(index),
            "notifications": notifier.drain(),
        }
        return Response(CartMutationSerializer(payload).data)

    async def _set_quantity(
        self,
        user_id: Optional[int],
        product_id: str,
        quantity: int,
        notifier: CollectingNotificationSink,
    ) -> MutationOutcome:
        catalog = self.catalog_factory(notifier)
        cart = self.cart_factory(notifier)
        try:
            product = await catalog.get_product(product_id)
        except StorefrontError as exc:
            return None, exc.as_error(), {}
        if product is None:
            return None, ("NOT_FOUND", "Product not found", {"id": product_id}), {}
        if user_id is not None:
            _, error = await cart.refresh(user_id)
            if error:
                return None, error, {}
        new_quantity, error = await cart.set_quantity(user_id, product, quantity)
        return new_quantity, error, cart.index


@extend_schema(tags=["Cart"])
class CartView(CartEndpointMixin, APIView):
    log = logger.bind(view="CartView")

    @extend_schema(
        summary="Get cart",
        description="Refetches the signed-in shopper's cart rows.",
        responses={
            200: CartReadSerializer,
            401: OpenApiResponse(response=ErrorResponseSerializer),
            503: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request):
        user_id = current_user_id(request)
        notifier = CollectingNotificationSink()
        cart = self.cart_factory(notifier)
        index, error = async_to_sync(cart.refresh)(user_id)
        if error:
            return self.error_with_notifications(error, notifier)
        self.log.debug("Returning cart", user_id=user_id, entries=len(index))
        return Response(
            CartReadSerializer({"index": index, "notifications": notifier.drain()}).data
        )


@extend_schema(tags=["Cart"])
class CartItemListView(CartEndpointMixin, APIView):
    log = logger.bind(view="CartItemListView")

    @extend_schema(
        summary="Add product to cart",
        description=(
            "Upserts the cart row with current_quantity + 1. When current_quantity is "
            "omitted the stored quantity is used."
        ),
        request=CartItemAddSerializer,
        responses={
            200: CartMutationSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            401: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
            409: OpenApiResponse(response=ErrorResponseSerializer),
            503: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def post(self, request):
        serializer = CartItemAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id = current_user_id(request)
        product_id = str(serializer.validated_data["product_id"])
        current = serializer.validated_data.get("current_quantity")
        notifier = CollectingNotificationSink()
        self.log.info("Adding product via API", user_id=user_id, product_id=product_id)
        outcome = async_to_sync(self._add)(user_id, product_id, current, notifier)
        return self.mutation_response(product_id, outcome, notifier)

    async def _add(
        self,
        user_id: Optional[int],
        product_id: str,
        current: Optional[int],
        notifier: CollectingNotificationSink,
    ) -> MutationOutcome:
        catalog = self.catalog_factory(notifier)
        cart = self.cart_factory(notifier)
        try:
            product = await catalog.get_product(product_id)
        except StorefrontError as exc:
            return None, exc.as_error(), {}
        if product is None:
            return None, ("NOT_FOUND", "Product not found", {"id": product_id}), {}
        if user_id is not None:
            _, error = await cart.refresh(user_id)
            if error:
                return None, error, {}
            if current is None:
                current = cart.get_quantity(product.id)
        quantity, error = await cart.add(user_id, product, current or 0)
        return quantity, error, cart.index


@extend_schema(tags=["Cart"])
class CartItemDetailView(CartEndpointMixin, APIView):
    log = logger.bind(view="CartItemDetailView")

    @extend_schema(
        summary="Set cart quantity",
        description="Quantity 0 deletes the cart row.",
        parameters=[OpenApiParameter("product_id", str, OpenApiParameter.PATH)],
        request=CartItemQuantitySerializer,
        responses={
            200: CartMutationSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            401: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
            409: OpenApiResponse(response=ErrorResponseSerializer),
            503: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def patch(self, request, product_id):
        serializer = CartItemQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quantity = serializer.validated_data["quantity"]
        return self._dispatch_quantity(request, str(product_id), quantity)

    @extend_schema(
        summary="Remove product from cart",
        parameters=[OpenApiParameter("product_id", str, OpenApiParameter.PATH)],
        responses={
            200: CartMutationSerializer,
            401: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
            503: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def delete(self, request, product_id):
        return self._dispatch_quantity(request, str(product_id), 0)

    def _dispatch_quantity(self, request, product_id: str, quantity: int):
        user_id = current_user_id(request)
        notifier = CollectingNotificationSink()
        self.log.info(
            "Setting cart quantity via API",
            user_id=user_id,
            product_id=product_id,
            quantity=quantity,
        )
        outcome = async_to_sync(self._set_quantity)(
            user_id, product_id, quantity, notifier
        )
        return self.mutation_response(product_id, outcome, notifier)
