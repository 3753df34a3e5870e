"""Catalog-wide API index.

Fetches the discovery list, resolves every listed document concurrently,
and folds the results into ``name -> version -> EndpointCreator``. Callers
see a narrow ``name -> selector`` surface; selecting a version is a dict
lookup once the catalog is loaded.
"""

import asyncio
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Iterator, Mapping, Optional, Union

from pydantic import ValidationError

from apidiscovery.endpoint import Endpoint, EndpointCreator
from apidiscovery.errors import ArgumentError, EndpointSelectionError, ParseError
from apidiscovery.transport import Transporter
from shared.logging import get_logger
from shared.models import APIDescriptor, DiscoveryList, DiscoveryOptions

logger = get_logger(__name__)


# Header that hides private/internal APIs from the listing
PUBLIC_ONLY_HEADERS = {"X-User-Ip": "0.0.0.0"}


class VersionSelector:
    """
    Selects and builds one version of a named API.

    Call with a version string (``selector("v2")``) or an options mapping
    carrying a ``version`` key (``selector({"version": "v2", ...})``); the
    remaining keys become the endpoint's options.
    """

    def __init__(
        self,
        name: str,
        versions: Mapping[str, EndpointCreator],
        context: Any = None
    ) -> None:
        self.name = name
        self._versions = versions
        self._context = context

    @property
    def versions(self) -> list[str]:
        """All known versions of this API."""
        return sorted(self._versions)

    def __call__(self, options: Union[str, Mapping[str, Any]]) -> Endpoint:
        """
        Build the requested version.

        Raises:
            ArgumentError: If ``options`` is neither a string nor a mapping
            EndpointSelectionError: If the version is unknown or cannot be built
        """
        if isinstance(options, str):
            version: Optional[str] = options
            endpoint_options: dict[str, Any] = {}
        elif isinstance(options, Mapping):
            endpoint_options = dict(options)
            version = endpoint_options.pop("version", None)
        else:
            raise ArgumentError("Argument error: Accepts only string or object")

        creator = self._versions.get(version) if isinstance(version, str) else None
        if creator is None:
            raise EndpointSelectionError(
                self.name,
                version,
                f"unknown version; available: {', '.join(self.versions) or 'none'}"
            )

        try:
            return creator(endpoint_options, self._context)
        except Exception as e:
            raise EndpointSelectionError(self.name, version, str(e)) from e

    def __repr__(self) -> str:
        return f"<VersionSelector {self.name} versions={self.versions}>"


class APIIndex(Mapping[str, VersionSelector]):
    """
    Read-only mapping of API name to version selector.

    Selectors are also reachable as attributes (``apis.drive("v3")``) when
    the name does not clash with a mapping method.
    """

    def __init__(
        self,
        version_index: Mapping[str, Mapping[str, EndpointCreator]],
        context: Any = None
    ) -> None:
        self._version_index = MappingProxyType({
            name: MappingProxyType(dict(versions))
            for name, versions in version_index.items()
        })
        self._selectors = {
            name: VersionSelector(name, versions, context)
            for name, versions in self._version_index.items()
        }

    @property
    def version_index(self) -> Mapping[str, Mapping[str, EndpointCreator]]:
        """Every discovered ``name -> version -> creator`` entry."""
        return self._version_index

    def __getitem__(self, name: str) -> VersionSelector:
        return self._selectors[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._selectors)

    def __len__(self) -> int:
        return len(self._selectors)

    def __getattr__(self, name: str) -> VersionSelector:
        selectors = self.__dict__.get("_selectors", {})
        if name.startswith("_") or name not in selectors:
            raise AttributeError(f"No API named '{name}'")
        return selectors[name]

    def __repr__(self) -> str:
        return f"<APIIndex apis={len(self)}>"


def fold_index(
    results: list[tuple[APIDescriptor, EndpointCreator]]
) -> dict[str, dict[str, EndpointCreator]]:
    """Fold resolved descriptors into ``name -> version -> creator``."""
    version_index: dict[str, dict[str, EndpointCreator]] = {}
    for api, creator in results:
        version_index.setdefault(api.name, {})[api.version] = creator
    return version_index


async def gather_all(awaitables: list[Awaitable[Any]]) -> list[Any]:
    """
    Await every awaitable concurrently, failing fast.

    On the first failure the remaining tasks are cancelled and the
    failure propagates unchanged.
    """
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class APIIndexBuilder:
    """Builds an ``APIIndex`` from a discovery list URL."""

    def __init__(
        self,
        transporter: Transporter,
        discover_api: Callable[[str], Awaitable[EndpointCreator]],
        options: DiscoveryOptions
    ) -> None:
        """
        Initialize the builder.

        Args:
            transporter: Used to fetch the discovery list
            discover_api: Resolves one document URL into a creator
            options: Discovery options (private APIs, debug tracing)
        """
        self.transporter = transporter
        self.discover_api = discover_api
        self.options = options

    async def fetch_listing(self, discovery_url: str) -> DiscoveryList:
        """
        Fetch the master list of APIs.

        Raises:
            TransportError: If the list cannot be fetched
            ParseError: If the response is not a discovery list
        """
        headers = {} if self.options.include_private else dict(PUBLIC_ONLY_HEADERS)
        if self.options.debug:
            logger.info("Requesting discovery list", url=discovery_url)

        response = await self.transporter.request(discovery_url, headers=headers)
        if not isinstance(response.data, Mapping):
            raise ParseError(f"Discovery list from {discovery_url} is not an object", source=discovery_url)
        try:
            return DiscoveryList.model_validate(response.data)
        except ValidationError as e:
            raise ParseError(f"Invalid discovery list from {discovery_url}: {e}", source=discovery_url) from e

    async def build(self, discovery_url: str, context: Any = None) -> APIIndex:
        """
        Discover every listed API and index it by name and version.

        All-or-nothing: any failing resolution fails the whole call.

        Args:
            discovery_url: URL of the discovery list
            context: Passed to every endpoint built through the index

        Returns:
            The complete index
        """
        listing = await self.fetch_listing(discovery_url)

        async def resolve(api: APIDescriptor) -> tuple[APIDescriptor, EndpointCreator]:
            return api, await self.discover_api(api.discovery_rest_url)

        results = await gather_all([resolve(api) for api in listing.items])
        index = APIIndex(fold_index(results), context)

        if self.options.debug:
            logger.info(
                "Discovery list resolved",
                url=discovery_url,
                api_count=len(index),
                document_count=len(results)
            )
        return index
