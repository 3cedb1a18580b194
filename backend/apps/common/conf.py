"""Storefront policy settings with defaults."""
from typing import Any, Dict, List

from django.conf import settings

ALL_CATEGORIES = "all"

DEFAULTS: Dict[str, Any] = {
    "CATEGORIES": [
        "Electronics",
        "Fashion",
        "Sports",
        "Home",
        "Travel",
        "Beauty",
        "Kitchen",
        "Office",
        "Games",
    ],
    "LOW_STOCK_THRESHOLD": 10,
    "ENFORCE_STOCK_LIMIT": True,
}


def get_config() -> Dict[str, Any]:
    user_config = getattr(settings, "STOREFRONT", None) or {}
    return {**DEFAULTS, **user_config}


def get_setting(name: str) -> Any:
    return get_config()[name]


def get_categories() -> List[str]:
    """Configured categories, prefixed with the ``all`` sentinel."""
    return [ALL_CATEGORIES, *get_setting("CATEGORIES")]


def get_low_stock_threshold() -> int:
    return int(get_setting("LOW_STOCK_THRESHOLD"))


def stock_limit_enforced() -> bool:
    return bool(get_setting("ENFORCE_STOCK_LIMIT"))
