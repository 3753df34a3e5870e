"""Discovery document resolution.

Fetches or reads exactly one discovery document and parses it into a
``SchemaModel``.
"""

import json
from typing import Any, Mapping, Union

from pydantic import ValidationError

from apidiscovery.errors import ParseError
from apidiscovery.request import RequestExecutor
from apidiscovery.sources import (
    DiscoverySource,
    FileSource,
    InlineSource,
    UrlSource,
    classify_source,
    read_text,
)
from apidiscovery.transport import Transporter
from shared.logging import get_logger
from shared.models import APIRequestParams, DiscoveryOptions, RequestOptions, SchemaModel

logger = get_logger(__name__)


def parse_schema(data: Any, source: str) -> SchemaModel:
    """
    Parse decoded discovery data into a ``SchemaModel``.

    Raises:
        ParseError: If the data is not a discovery document
    """
    if not isinstance(data, Mapping):
        raise ParseError(
            f"Discovery document from {source} is not an object",
            source=source
        )
    try:
        return SchemaModel.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Invalid discovery document from {source}: {e}", source=source) from e


class DiscoveryResolver:
    """
    Resolves a discovery source into a parsed document.

    URL sources go through the transporter, file sources through a text
    read, and inline sources through the request executor.
    """

    def __init__(
        self,
        transporter: Transporter,
        request_executor: RequestExecutor,
        options: DiscoveryOptions
    ) -> None:
        self.transporter = transporter
        self.request_executor = request_executor
        self.options = options

    def _trace(self, event: str, **kwargs: Any) -> None:
        if self.options.debug:
            logger.info(event, **kwargs)

    async def resolve(self, source: Union[str, Mapping[str, Any], DiscoverySource]) -> SchemaModel:
        """
        Resolve one discovery document.

        Args:
            source: URL, local path, or ``{"url": ..., **params}`` mapping

        Returns:
            The parsed discovery document

        Raises:
            ArgumentError: If the source has an unsupported shape
            TransportError: If fetching fails
            FileNotFoundError: If a local document does not exist
            ParseError: If the content is not a discovery document
        """
        source = classify_source(source)

        if isinstance(source, FileSource):
            return await self._read_file(source)
        if isinstance(source, UrlSource):
            return await self._fetch(source)
        return await self._request(source)

    async def _read_file(self, source: FileSource) -> SchemaModel:
        self._trace("Reading from file", path=source.path)
        text = await read_text(source.path, encoding="utf-8")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"{source.path} is not valid JSON: {e}", source=source.path) from e
        return parse_schema(data, source.path)

    async def _fetch(self, source: UrlSource) -> SchemaModel:
        self._trace("Requesting", url=source.url)
        response = await self.transporter.request(source.url)
        return parse_schema(response.data, source.url)

    async def _request(self, source: InlineSource) -> SchemaModel:
        self._trace("Requesting", url=source.url, params=source.params)
        params = APIRequestParams(
            options=RequestOptions(url=source.url, method="GET"),
            params=dict(source.params),
            required_params=[],
            path_params=[],
            context={"options": {}}
        )
        response = await self.request_executor.execute(params)
        return parse_schema(response.data, source.url)
