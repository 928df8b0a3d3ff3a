"""Connector interfaces for third-party recipe integrations."""

from recipehub.ingest.connectors.base import (
    ConnectorError,
    ConnectorResponse,
    RecipeSourceConnector,
)
from recipehub.ingest.connectors.spoonacular import SpoonacularConnector

__all__ = [
    "ConnectorError",
    "ConnectorResponse",
    "RecipeSourceConnector",
    "SpoonacularConnector",
]
