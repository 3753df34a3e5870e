"""Exceptions raised while discovering APIs and building endpoints.

Local discovery documents that cannot be read raise the built-in
``FileNotFoundError`` / ``OSError`` unchanged.
"""

from typing import Optional


class DiscoveryError(Exception):
    """Base exception for API discovery errors."""
    pass


class TransportError(DiscoveryError):
    """A discovery document or API call could not be fetched."""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class ParseError(DiscoveryError, ValueError):
    """Fetched or read content is not a valid discovery document."""

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


class EndpointBuildError(DiscoveryError):
    """A discovery document is structurally insufficient to build an endpoint."""

    def __init__(self, api_name: str, version: str, cause: BaseException) -> None:
        super().__init__(f'Unable to build endpoint {api_name}("{version}"): {cause}')
        self.api_name = api_name
        self.version = version
        self.cause = cause


class ArgumentError(DiscoveryError, TypeError):
    """An argument of an unsupported type or shape was passed."""
    pass


class EndpointSelectionError(DiscoveryError):
    """The requested API version is unknown or could not be constructed."""

    def __init__(self, api_name: str, version: Optional[str], reason: str) -> None:
        super().__init__(f'Unable to load endpoint {api_name}("{version}"): {reason}')
        self.api_name = api_name
        self.version = version


class RequestValidationError(DiscoveryError, ValueError):
    """Call parameters do not satisfy the method definition."""

    def __init__(self, message: str, errors: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or [message]


class ReadOnlyEndpointError(DiscoveryError, AttributeError):
    """An attempt was made to mutate a built endpoint."""
    pass
