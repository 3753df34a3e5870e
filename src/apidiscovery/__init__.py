"""API discovery - runtime clients from discovery documents.

Resolves discovery documents from the network, local files or dynamic
discovery calls, and materializes them into read-only endpoint trees whose
methods can be awaited directly.
"""

from apidiscovery.client import Discovery
from apidiscovery.endpoint import (
    Endpoint,
    EndpointCreator,
    Method,
    Namespace,
    iter_methods,
    iter_namespaces,
)
from apidiscovery.errors import (
    ArgumentError,
    DiscoveryError,
    EndpointBuildError,
    EndpointSelectionError,
    ParseError,
    ReadOnlyEndpointError,
    RequestValidationError,
    TransportError,
)
from apidiscovery.index import APIIndex, VersionSelector
from apidiscovery.request import HttpRequestExecutor, RequestExecutor
from apidiscovery.transport import HttpTransporter, Transporter

__all__ = [
    "Discovery",
    "Endpoint",
    "EndpointCreator",
    "Method",
    "Namespace",
    "iter_methods",
    "iter_namespaces",
    "APIIndex",
    "VersionSelector",
    "HttpRequestExecutor",
    "RequestExecutor",
    "HttpTransporter",
    "Transporter",
    "ArgumentError",
    "DiscoveryError",
    "EndpointBuildError",
    "EndpointSelectionError",
    "ParseError",
    "ReadOnlyEndpointError",
    "RequestValidationError",
    "TransportError",
]
