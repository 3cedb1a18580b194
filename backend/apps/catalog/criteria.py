from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Mapping, Optional

from apps.common.conf import ALL_CATEGORIES


class SortKey(str, Enum):
    NAME = "name"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"

    @classmethod
    def parse(cls, raw: Any) -> "SortKey":
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.NAME


@dataclass(frozen=True)
class ViewCriteria:
    search: str = ""
    category: str = ALL_CATEGORIES
    sort: SortKey = SortKey.NAME

    @staticmethod
    def _normalize_category(raw: Optional[Any]) -> str:
        if raw is None:
            return ALL_CATEGORIES
        value = str(raw).strip()
        if not value or value.lower() == ALL_CATEGORIES:
            return ALL_CATEGORIES
        return value

    @staticmethod
    def from_raw(payload: Optional[Mapping[str, Any]]):
        data = payload or {}
        search = data.get("search")
        if search is None:
            search = data.get("q", "")
        return ViewCriteria(
            search=str(search or ""),
            category=ViewCriteria._normalize_category(data.get("category")),
            sort=SortKey.parse(data.get("sort") or data.get("sortBy")),
        )

    @property
    def is_filtered(self) -> bool:
        return bool(self.search) or self.category != ALL_CATEGORIES

    def cleared(self) -> "ViewCriteria":
        """Drop search and category filters; the sort key is kept."""
        return replace(self, search="", category=ALL_CATEGORIES)
