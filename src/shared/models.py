"""Core data models for API discovery.

This module defines the typed representation of discovery documents,
discovery listings, and the request/response shapes exchanged with the
transport layer. Field aliases follow the camelCase keys used by the
discovery format; snake_case names are accepted as well.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DiscoveryOptions(BaseModel):
    """Process-wide discovery configuration. Immutable once created."""
    include_private: bool = Field(default=False, description="Include private/internal APIs in listings")
    debug: bool = Field(default=False, description="Emit debug tracing")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class _DiscoveryModel(BaseModel):
    """Base for models parsed from discovery data."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class ParameterSchema(_DiscoveryModel):
    """Definition of a single method or global parameter."""
    type: Optional[str] = None
    format: Optional[str] = None
    location: Optional[str] = None
    required: bool = False
    repeated: bool = False
    enum: Optional[list[Any]] = None
    pattern: Optional[str] = None
    minimum: Any = None
    maximum: Any = None
    default: Any = None
    description: Optional[str] = None


class MethodSchema(_DiscoveryModel):
    """
    A single invocable operation.

    ``request`` and ``response`` hold ``{"$ref": "<SchemaName>"}`` pointers
    into the root document's ``schemas``.
    """
    id: Optional[str] = None
    path: str = ""
    flat_path: Optional[str] = Field(default=None, alias="flatPath")
    http_method: str = Field(default="GET", alias="httpMethod")
    parameters: dict[str, ParameterSchema] = Field(default_factory=dict)
    parameter_order: list[str] = Field(default_factory=list, alias="parameterOrder")
    request: Optional[dict[str, Any]] = None
    response: Optional[dict[str, Any]] = None
    scopes: list[str] = Field(default_factory=list)
    supports_media_download: bool = Field(default=False, alias="supportsMediaDownload")
    media_upload: Optional[dict[str, Any]] = Field(default=None, alias="mediaUpload")
    api_version: Optional[str] = Field(default=None, alias="apiVersion")
    description: Optional[str] = None

    @field_validator("parameters", mode="before")
    @classmethod
    def _null_parameters_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("parameter_order", "scopes", mode="before")
    @classmethod
    def _null_lists_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def required_params(self) -> list[str]:
        return list(self.parameter_order)

    @property
    def path_params(self) -> list[str]:
        """Names of parameters substituted into the URL path."""
        return [name for name, param in self.parameters.items() if param.location == "path"]

    @property
    def request_ref(self) -> Optional[str]:
        return (self.request or {}).get("$ref")

    @property
    def response_ref(self) -> Optional[str]:
        return (self.response or {}).get("$ref")

    @property
    def simple_upload_path(self) -> Optional[str]:
        """Path for simple media uploads, if the method supports them."""
        protocols = (self.media_upload or {}).get("protocols") or {}
        simple = protocols.get("simple") or {}
        return simple.get("path")


class ResourceSchema(_DiscoveryModel):
    """
    A namespace node in the discovery tree.

    Method bodies are kept raw and only parsed when an endpoint is built,
    so a broken method entry surfaces at construction time.
    """
    resources: dict[str, "ResourceSchema"] = Field(default_factory=dict)
    methods: dict[str, Any] = Field(default_factory=dict)

    @field_validator("resources", "methods", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    def count_resources(self) -> int:
        """Count every nested resource below this node."""
        return sum(1 + child.count_resources() for child in self.resources.values())

    def count_methods(self) -> int:
        """Count every method at or below this node."""
        return len(self.methods) + sum(child.count_methods() for child in self.resources.values())


class SchemaModel(ResourceSchema):
    """
    A parsed discovery document for one API version.

    Holds API metadata, global parameters, named type definitions,
    and the recursive resource/method tree.
    """
    kind: Optional[str] = None
    id: Optional[str] = None
    name: str = ""
    version: str = ""
    title: Optional[str] = None
    description: Optional[str] = None
    revision: Optional[str] = None
    discovery_version: Optional[str] = Field(default=None, alias="discoveryVersion")
    discovery_rest_url: Optional[str] = Field(default=None, alias="discoveryRestUrl")

    # URL composition
    root_url: str = Field(default="", alias="rootUrl")
    service_path: str = Field(default="", alias="servicePath")
    base_url: Optional[str] = Field(default=None, alias="baseUrl")
    base_path: Optional[str] = Field(default=None, alias="basePath")
    batch_path: Optional[str] = Field(default=None, alias="batchPath")

    # Shared definitions
    parameters: dict[str, ParameterSchema] = Field(default_factory=dict)
    schemas: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @field_validator("parameters", "schemas", mode="before")
    @classmethod
    def _null_definitions_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def service_url(self) -> str:
        """Base URL that method paths are appended to."""
        if self.root_url:
            return self.root_url + self.service_path
        return self.base_url or ""


class APIDescriptor(_DiscoveryModel):
    """One entry of the discovery list."""
    name: str
    version: str
    discovery_rest_url: str = Field(..., alias="discoveryRestUrl")
    id: Optional[str] = None
    kind: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    preferred: bool = False
    discovery_link: Optional[str] = Field(default=None, alias="discoveryLink")
    documentation_link: Optional[str] = Field(default=None, alias="documentationLink")


class DiscoveryList(_DiscoveryModel):
    """The master list of all known APIs."""
    kind: Optional[str] = None
    discovery_version: Optional[str] = Field(default=None, alias="discoveryVersion")
    items: list[APIDescriptor] = Field(default_factory=list)


class RequestOptions(BaseModel):
    """Target of a single API request."""
    url: str
    method: str = "GET"
    api_version: Optional[str] = None
    root_url: Optional[str] = None


class APIRequestParams(BaseModel):
    """Everything a request executor needs to perform one API call."""
    options: RequestOptions
    params: dict[str, Any] = Field(default_factory=dict)
    required_params: list[str] = Field(default_factory=list)
    path_params: list[str] = Field(default_factory=list)
    media_url: Optional[str] = None
    context: dict[str, Any] = Field(default_factory=dict)


class TransportResponse(BaseModel):
    """Response returned by a transporter."""
    data: Any = None
    status: int = 200
    headers: dict[str, str] = Field(default_factory=dict)
    url: Optional[str] = None
