"""Discovery orchestrator.

``Discovery`` is the public entry point: it holds the discovery options
and the transport/request collaborators, and composes document resolution,
endpoint building and catalog indexing.
"""

from typing import Any, Mapping, Optional, Union

from apidiscovery.endpoint import EndpointCreator, make_endpoint_creator
from apidiscovery.index import APIIndex, APIIndexBuilder
from apidiscovery.request import HttpRequestExecutor, RequestExecutor
from apidiscovery.resolver import DiscoveryResolver
from apidiscovery.sources import DiscoverySource
from apidiscovery.transport import HttpTransporter, Transporter
from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging
from shared.models import DiscoveryOptions

logger = get_logger(__name__)


class Discovery:
    """
    Discovers APIs and materializes callable endpoints.

    Each instance is configured independently; options are fixed for the
    lifetime of the instance.

    Example:
        async with Discovery({"debug": True}) as discovery:
            apis = await discovery.discover_all_apis()
            drive = apis["drive"]("v3")
            files = await drive.files.list(pageSize=10)
    """

    def __init__(
        self,
        options: Union[DiscoveryOptions, Mapping[str, Any], None] = None,
        transporter: Optional[Transporter] = None,
        request_executor: Optional[RequestExecutor] = None,
        settings: Optional[Settings] = None,
        configure_logging: bool = False
    ) -> None:
        """
        Initialize discovery.

        Args:
            options: Discovery options; defaults come from ``settings``
            transporter: HTTP transport; defaults to ``HttpTransporter``
            request_executor: Executes method calls; defaults to
                ``HttpRequestExecutor`` over the same transporter
            settings: Application settings; defaults to ``get_settings()``
            configure_logging: Configure structlog from ``settings`` (log level,
                JSON output when ``json_logs`` is set or in production)
        """
        self.settings = settings or get_settings()
        if configure_logging:
            setup_logging(
                self.settings.log_level,
                json_output=self.settings.json_logs or self.settings.environment == "production"
            )

        if options is None:
            options = self.settings.discovery_options()
        elif not isinstance(options, DiscoveryOptions):
            options = DiscoveryOptions.model_validate(dict(options))
        self._options = options

        self._owns_transporter = transporter is None
        self._transporter = transporter or HttpTransporter(self.settings.transport)
        self._request_executor = request_executor or HttpRequestExecutor(self._transporter)

        self._resolver = DiscoveryResolver(
            self._transporter,
            self._request_executor,
            self._options
        )
        self._index_builder = APIIndexBuilder(
            self._transporter,
            self.discover_api,
            self._options
        )

    @property
    def options(self) -> DiscoveryOptions:
        return self._options

    @property
    def transporter(self) -> Transporter:
        return self._transporter

    @property
    def request_executor(self) -> RequestExecutor:
        return self._request_executor

    async def close(self) -> None:
        """Close the transporter if this instance created it."""
        if self._owns_transporter and isinstance(self._transporter, HttpTransporter):
            await self._transporter.close()

    async def __aenter__(self) -> "Discovery":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def discover_api(
        self,
        source: Union[str, Mapping[str, Any], DiscoverySource]
    ) -> EndpointCreator:
        """
        Resolve one discovery document and return its endpoint creator.

        Args:
            source: URL or local path of the document, or a
                ``{"url": ..., **params}`` mapping for a dynamic discovery call

        Returns:
            A creator; call it with endpoint options and this instance
            (``creator({}, discovery)``) to build an endpoint
        """
        schema = await self._resolver.resolve(source)
        return make_endpoint_creator(schema)

    async def discover_all_apis(self, discovery_url: Optional[str] = None) -> APIIndex:
        """
        Discover every API in a discovery list.

        Args:
            discovery_url: URL of the discovery list; defaults to
                ``settings.discovery_url``

        Returns:
            Index of API name to version selector
        """
        url = discovery_url or self.settings.discovery_url
        return await self._index_builder.build(url, context=self)
