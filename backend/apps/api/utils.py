from collections.abc import Mapping
from typing import Any, Dict, Optional

from rest_framework import status
from rest_framework.response import Response

# Engine codes first, then the generic codes produced by the exception handler.
STATUS_BY_CODE: Dict[str, int] = {
    "UNAUTHENTICATED": status.HTTP_401_UNAUTHORIZED,
    "INVALID_QUANTITY": status.HTTP_400_BAD_REQUEST,
    "STOCK_LIMIT_EXCEEDED": status.HTTP_409_CONFLICT,
    "STORE_READ_FAILURE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "STORE_WRITE_FAILURE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "SERVER_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(code: str) -> int:
    return STATUS_BY_CODE.get(code, status.HTTP_400_BAD_REQUEST)


def error_response(
    code: str,
    message: str,
    details: Optional[Any] = None,
    http_status: Optional[int] = None,
    *,
    extra: Optional[Mapping[str, Any]] = None,
) -> Response:
    """
    Build the ``{"error": {...}}`` body shared by every storefront endpoint.

    ``http_status`` overrides the status derived from ``code``; ``extra``
    carries side data such as the notifications raised while serving the
    request.
    """

    code = code.strip().upper()
    status_code = int(http_status) if http_status is not None else status_for(code)
    body: Dict[str, Any] = {"code": code, "message": message, "status": status_code}
    if details is not None:
        body["details"] = dict(details) if isinstance(details, Mapping) else details
    if extra:
        body["extra"] = dict(extra)
    return Response({"error": body}, status=status_code)
