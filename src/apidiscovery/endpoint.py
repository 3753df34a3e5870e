"""Endpoint construction from discovery documents.

An endpoint is a read-only tree: ``Namespace`` nodes for resources and
``Method`` leaves that delegate to the request executor of the context
the endpoint was built with. Building is pure structural assembly; no I/O
happens until a method is awaited.

Every method is bound against the root document, so URLs and ``$ref``
lookups resolve the same way however deeply the resource is nested.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional
from urllib.parse import urljoin

from pydantic import ValidationError

from apidiscovery.errors import (
    DiscoveryError,
    EndpointBuildError,
    ReadOnlyEndpointError,
    RequestValidationError,
)
from shared.models import (
    APIRequestParams,
    MethodSchema,
    RequestOptions,
    ResourceSchema,
    SchemaModel,
    TransportResponse,
)
from shared.logging import get_logger
from shared.schema import create_parameters_schema, validate_schema

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Binding:
    """Per-endpoint state shared by all of its methods."""
    options: Mapping[str, Any]
    context: Any

    @property
    def request_executor(self):
        return getattr(self.context, "request_executor", None)


class Namespace:
    """
    Read-only group of endpoint members.

    Members are reachable as attributes (``ep.files``) or items
    (``ep["files"]``). Any attempt to add, replace or delete an attribute
    raises ``ReadOnlyEndpointError``.
    """

    def __init__(self, path: str, members: Mapping[str, "Namespace"]) -> None:
        object.__setattr__(self, "_path", path)
        object.__setattr__(self, "_members", MappingProxyType(dict(members)))

    def __getattr__(self, name: str) -> "Namespace":
        members = self.__dict__.get("_members", {})
        if name.startswith("__") or name not in members:
            where = self.__dict__.get("_path") or "endpoint"
            raise AttributeError(f"'{where}' has no member '{name}'")
        return members[name]

    def __getitem__(self, name: str) -> "Namespace":
        return self._members[name]

    def __contains__(self, name: object) -> bool:
        return name in self._members

    def __iter__(self) -> Iterator[str]:
        return iter(self._members)

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._members))

    def __setattr__(self, name: str, value: Any) -> None:
        raise ReadOnlyEndpointError(f"Cannot set '{name}': endpoint is read-only")

    def __delattr__(self, name: str) -> None:
        raise ReadOnlyEndpointError(f"Cannot delete '{name}': endpoint is read-only")

    def __setitem__(self, name: str, value: Any) -> None:
        raise ReadOnlyEndpointError(f"Cannot set '{name}': endpoint is read-only")

    def __delitem__(self, name: str) -> None:
        raise ReadOnlyEndpointError(f"Cannot delete '{name}': endpoint is read-only")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._path or '<root>'} members={sorted(self._members)}>"


class Method(Namespace):
    """
    An invocable endpoint leaf.

    Awaiting the method validates the call parameters against the method's
    parameter definitions and hands an ``APIRequestParams`` bundle to the
    request executor.
    """

    def __init__(
        self,
        path: str,
        schema: MethodSchema,
        root: SchemaModel,
        binding: _Binding,
        members: Optional[Mapping[str, Namespace]] = None
    ) -> None:
        super().__init__(path, members or {})
        fields = {
            "method_id": schema.id or path,
            "http_method": schema.http_method.upper(),
            "url": root.service_url + schema.path,
            "api_version": schema.api_version,
            "description": schema.description,
            "required_params": tuple(schema.required_params),
            "path_params": tuple(schema.path_params),
            "media_url": urljoin(root.root_url, schema.simple_upload_path) if schema.simple_upload_path else None,
            "request_schema": _resolve_ref(root, schema.request_ref, path),
            "response_schema": _resolve_ref(root, schema.response_ref, path),
            "parameters_schema": create_parameters_schema(schema.parameters, root.parameters),
            "_root_url": root.root_url or None,
            "_binding": binding,
        }
        for name, value in fields.items():
            object.__setattr__(self, name, value)

    async def __call__(
        self,
        params: Optional[Mapping[str, Any]] = None,
        **kwargs: Any
    ) -> TransportResponse:
        """
        Invoke the method.

        Args:
            params: Call parameters; ``requestBody`` carries the body
            **kwargs: Additional call parameters, merged over ``params``

        Returns:
            The executor's response

        Raises:
            RequestValidationError: If parameters do not match their definitions
        """
        values = {**(params or {}), **kwargs}

        is_valid, errors = validate_schema(values, self.parameters_schema)
        if not is_valid:
            raise RequestValidationError(
                f"Invalid parameters for {self.method_id}: {'; '.join(errors)}",
                errors=errors
            )

        executor = self._binding.request_executor
        if executor is None:
            raise DiscoveryError(f"No request executor bound to {self.method_id}")

        request = APIRequestParams(
            options=RequestOptions(
                url=self.url,
                method=self.http_method,
                api_version=self.api_version,
                root_url=self._root_url
            ),
            params=values,
            required_params=list(self.required_params),
            path_params=list(self.path_params),
            media_url=self.media_url,
            context={"options": dict(self._binding.options)}
        )
        return await executor.execute(request)


class Endpoint(Namespace):
    """The materialized, read-only call tree for one API version."""

    def __init__(
        self,
        schema: SchemaModel,
        binding: _Binding,
        members: Mapping[str, Namespace]
    ) -> None:
        super().__init__("", members)
        object.__setattr__(self, "_schema", schema)
        object.__setattr__(self, "_options", binding.options)
        object.__setattr__(self, "_context", binding.context)

    def __repr__(self) -> str:
        return f"<Endpoint {self._schema.name}:{self._schema.version} members={sorted(self._members)}>"


class EndpointCreator:
    """
    Builds endpoints for one resolved discovery document.

    Stateless and reusable: every call returns a new, independent endpoint.
    """

    def __init__(self, schema: SchemaModel) -> None:
        self.schema = schema

    @property
    def api_name(self) -> str:
        return self.schema.name

    @property
    def version(self) -> str:
        return self.schema.version

    def __call__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        context: Any = None
    ) -> Endpoint:
        """
        Build an endpoint.

        Args:
            options: Per-call options, exposed read-only as ``endpoint._options``
                and passed to the request executor
            context: Object exposing ``request_executor`` (usually ``Discovery``)

        Raises:
            EndpointBuildError: If the document cannot be turned into a call tree
        """
        binding = _Binding(options=MappingProxyType(dict(options or {})), context=context)
        try:
            members = _build_members(self.schema, self.schema, "", binding)
        except (ValidationError, TypeError, ValueError, AttributeError, KeyError) as e:
            raise EndpointBuildError(self.schema.name, self.schema.version, e) from e
        return Endpoint(self.schema, binding, members)

    def __repr__(self) -> str:
        return f"<EndpointCreator {self.api_name}:{self.version}>"


def make_endpoint_creator(schema: SchemaModel) -> EndpointCreator:
    """Return a creator that builds endpoints from ``schema``."""
    return EndpointCreator(schema)


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _resolve_ref(root: SchemaModel, ref: Optional[str], path: str) -> Optional[dict[str, Any]]:
    """Look up a ``$ref`` in the root document's schemas."""
    if ref is None:
        return None
    if ref not in root.schemas:
        logger.debug("Unknown schema reference", method=path, ref=ref)
        return None
    return root.schemas[ref]


def _build_members(
    root: SchemaModel,
    node: ResourceSchema,
    prefix: str,
    binding: _Binding
) -> dict[str, Namespace]:
    """Recursively build the members of one resource node."""
    children = {
        name: _build_members(root, resource, _join(prefix, name), binding)
        for name, resource in node.resources.items()
    }

    members: dict[str, Namespace] = {}
    for name, raw in node.methods.items():
        path = _join(prefix, name)
        if not isinstance(raw, Mapping):
            raise TypeError(f"method '{path}' has no definition")
        # A resource sharing the method's name hangs off the method node
        members[name] = Method(
            path,
            MethodSchema.model_validate(raw),
            root,
            binding,
            members=children.pop(name, None)
        )

    for name, resource_members in children.items():
        members[name] = Namespace(_join(prefix, name), resource_members)

    return members


def iter_namespaces(node: Namespace, prefix: str = "") -> Iterator[str]:
    """Yield the dotted path of every namespace below ``node``."""
    for name in node:
        member = node[name]
        path = _join(prefix, name)
        if not isinstance(member, Method):
            yield path
        yield from iter_namespaces(member, path)


def iter_methods(node: Namespace, prefix: str = "") -> Iterator[str]:
    """Yield the dotted path of every invocable method below ``node``."""
    for name in node:
        member = node[name]
        path = _join(prefix, name)
        if isinstance(member, Method):
            yield path
        yield from iter_methods(member, path)
