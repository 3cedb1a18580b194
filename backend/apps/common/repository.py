from typing import Generic, List, Optional, Type, TypeVar

from django.db import models

T = TypeVar("T", bound=models.Model)


class GenericRepository(Generic[T]):
    """Async read helpers over a model's default manager."""

    def __init__(self, model: Type[T]):
        self.model = model

    async def get(self, **filters) -> Optional[T]:
        return await self.model.objects.filter(**filters).afirst()

    async def list(self, **filters) -> List[T]:
        return [obj async for obj in self.model.objects.filter(**filters)]

