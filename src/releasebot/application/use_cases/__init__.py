"""Application use cases - Business logic orchestration."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

# Type variables for generic use case pattern
TRequest = TypeVar("TRequest")
TResponse = TypeVar("TResponse")


class UseCase(ABC, Generic[TRequest, TResponse]):
    """Base class for all use cases following command pattern."""

    @abstractmethod
    async def execute(self, request: TRequest) -> TResponse:
        """Execute the use case with the given request."""
        pass


# Import concrete use cases (after UseCase definition to avoid circular imports)
from releasebot.application.use_cases.discover_releases import (  # noqa: E402
    DiscoverReleasesRequest,
    DiscoverReleasesResponse,
    DiscoverReleasesUseCase,
)

__all__ = [
    "UseCase",
    "DiscoverReleasesRequest",
    "DiscoverReleasesResponse",
    "DiscoverReleasesUseCase",
]
