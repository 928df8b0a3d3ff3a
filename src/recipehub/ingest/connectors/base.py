"""Shared types for outbound recipe-data API connectors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

# Spoonacular reports point usage on every response
QUOTA_USED_HEADER = "x-api-quota-used"
QUOTA_LEFT_HEADER = "x-api-quota-left"

# Statuses Spoonacular uses when the daily point quota is spent
QUOTA_EXHAUSTED_STATUSES = (402, 429)


def _header_float(headers: dict[str, str], name: str) -> float | None:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


@dataclass
class ConnectorResponse:
    """Decoded upstream response."""

    data: Any
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def quota_used(self) -> float | None:
        """API points spent today, when the upstream reports them."""
        return _header_float(self.headers, QUOTA_USED_HEADER)

    @property
    def quota_left(self) -> float | None:
        return _header_float(self.headers, QUOTA_LEFT_HEADER)


class ConnectorError(Exception):
    """
    An upstream call failed.

    ``status_code`` is the upstream HTTP status, or None when no response was
    received at all (timeouts, connection failures).
    """

    def __init__(self, message: str, status_code: int | None = None, response: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response

    @property
    def is_quota_exhausted(self) -> bool:
        return self.status_code in QUOTA_EXHAUSTED_STATUSES


class RecipeSourceConnector(ABC):
    """Interface for third-party recipe APIs proxied by the service."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in logs."""

    @abstractmethod
    async def search_recipes(self, params: dict[str, Any]) -> Any:
        """
        Search the provider's catalogue.

        Args:
            params: Filters under the provider's own parameter names. Unset
                values are dropped before the call.

        Returns:
            The provider's search payload, unmodified.
        """

    @abstractmethod
    async def get_recipe(self, recipe_id: int) -> Any:
        """Full information for one provider recipe."""

    @abstractmethod
    async def close(self) -> None:
        """Release the HTTP client."""
