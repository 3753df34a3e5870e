"""Shared models, configuration and logging for API discovery."""

from shared.models import (
    APIDescriptor,
    APIRequestParams,
    DiscoveryList,
    DiscoveryOptions,
    MethodSchema,
    ParameterSchema,
    ResourceSchema,
    SchemaModel,
    TransportResponse,
)
from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "APIDescriptor",
    "APIRequestParams",
    "DiscoveryList",
    "DiscoveryOptions",
    "MethodSchema",
    "ParameterSchema",
    "ResourceSchema",
    "SchemaModel",
    "TransportResponse",
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
