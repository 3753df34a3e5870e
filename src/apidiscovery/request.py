"""Request execution for endpoint methods.

Turns an ``APIRequestParams`` bundle into a single HTTP call: checks
required parameters, expands path templates, splits body from query
parameters and hands the result to a transporter.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Mapping
from urllib.parse import quote

from apidiscovery.errors import RequestValidationError
from apidiscovery.transport import Transporter
from shared.logging import get_logger
from shared.models import APIRequestParams, TransportResponse

logger = get_logger(__name__)


# {name} or {+name} as used by discovery path templates
PATH_TEMPLATE = re.compile(r"\{(\+?)([^}]+)\}")

# Keys that carry the request body rather than query parameters
BODY_KEYS = ("requestBody", "resource")


class RequestExecutor(ABC):
    """Capability for executing one API request."""

    @abstractmethod
    async def execute(self, params: APIRequestParams) -> TransportResponse:
        """
        Execute the request described by ``params``.

        Raises:
            RequestValidationError: If required parameters are missing
            TransportError: If the call fails
        """
        pass


def expand_path(template: str, values: Mapping[str, Any]) -> str:
    """
    Substitute path parameters into a URL template.

    ``{name}`` is fully percent-encoded; ``{+name}`` keeps reserved
    characters such as ``/``. Unknown placeholders expand to an empty
    string.
    """
    def replace(match: re.Match) -> str:
        reserved, name = match.group(1), match.group(2)
        value = values.get(name)
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        return quote(str(value), safe="/:@!$&'()*+,;=" if reserved else "")

    return PATH_TEMPLATE.sub(replace, template)


def missing_params(required: list[str], values: Mapping[str, Any]) -> list[str]:
    """Return the required parameter names that have no value."""
    return [name for name in required if values.get(name) is None]


class HttpRequestExecutor(RequestExecutor):
    """
    Default request executor.

    Endpoint-level options are read from ``context["options"]``:
    ``params`` (default parameters), ``headers``, and ``root_url`` /
    ``rootUrl`` (replaces the document's root URL).
    """

    def __init__(self, transporter: Transporter) -> None:
        self.transporter = transporter

    async def execute(self, params: APIRequestParams) -> TransportResponse:
        options = params.context.get("options") or {}
        values = {**(options.get("params") or {}), **params.params}

        missing = missing_params(params.required_params, values)
        if missing:
            raise RequestValidationError(
                f"Missing required parameters: {', '.join(missing)}",
                errors=[f"{name}: required" for name in missing]
            )

        body = None
        for key in BODY_KEYS:
            if key in values:
                body = values.pop(key)
                break

        path_values = {name: values.pop(name) for name in params.path_params if name in values}
        url = expand_path(self._resolve_url(params, options), path_values)
        query = {key: value for key, value in values.items() if value is not None}

        logger.debug(
            "Executing request",
            method=params.options.method,
            url=url
        )

        return await self.transporter.request(
            url,
            method=params.options.method,
            headers=dict(options.get("headers") or {}),
            params=query or None,
            json=body
        )

    def _resolve_url(self, params: APIRequestParams, options: Mapping[str, Any]) -> str:
        """Apply a ``root_url`` override from endpoint options."""
        url = params.options.url
        override = options.get("root_url") or options.get("rootUrl")
        root_url = params.options.root_url
        if override and root_url and url.startswith(root_url):
            return override + url[len(root_url):]
        return url
