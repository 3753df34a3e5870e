"""Discovery sources.

A discovery source is classified once, at the boundary, into one of three
variants: a URL to fetch, a local file to read, or an inline discovery
request whose extra fields become request parameters.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Union
from urllib.parse import urlparse

import aiofiles

from apidiscovery.errors import ArgumentError


@dataclass(frozen=True)
class UrlSource:
    """Discovery document fetched over the network."""
    url: str


@dataclass(frozen=True)
class FileSource:
    """Discovery document read from the local filesystem."""
    path: str


@dataclass(frozen=True)
class InlineSource:
    """Discovery document produced by a dynamic discovery call."""
    url: str
    params: dict[str, Any] = field(default_factory=dict)


DiscoverySource = Union[UrlSource, FileSource, InlineSource]


def is_url(value: str) -> bool:
    """
    Report whether a string carries a URL scheme.

    Classification is purely syntactic. Strings without a scheme, including
    protocol-relative and malformed URLs, are not URLs.
    """
    return bool(urlparse(value).scheme)


def classify_source(source: Union[str, Mapping[str, Any], DiscoverySource]) -> DiscoverySource:
    """
    Turn a caller-supplied discovery source into a tagged variant.

    Args:
        source: URL string, local path string, ``{"url": ..., **params}``
            mapping, or an already classified source

    Returns:
        The matching source variant

    Raises:
        ArgumentError: If a mapping source lacks a url, or the source has
            an unsupported type
    """
    if isinstance(source, (UrlSource, FileSource, InlineSource)):
        return source

    if isinstance(source, str):
        if is_url(source):
            return UrlSource(url=source)
        return FileSource(path=source)

    if isinstance(source, Mapping):
        params = dict(source)
        url = params.pop("url", None)
        if not url or not isinstance(url, str):
            raise ArgumentError("Inline discovery source requires a 'url' string")
        return InlineSource(url=url, params=params)

    raise ArgumentError(
        f"Discovery source must be a string or a mapping, not {type(source).__name__}"
    )


async def read_text(path: str, encoding: str = "utf-8") -> str:
    """Read a whole text file without blocking the event loop."""
    async with aiofiles.open(path, mode="r", encoding=encoding) as f:
        return await f.read()
