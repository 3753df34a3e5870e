"""Tests for the catalog-wide API index."""

import asyncio
import copy
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.models import APIDescriptor, DiscoveryOptions, SchemaModel, TransportResponse


LISTING = {
    "kind": "discovery#directoryList",
    "items": [
        {"name": "x", "version": "v1", "discoveryRestUrl": "https://d.example.com/x/v1/rest"},
        {"name": "x", "version": "v2", "discoveryRestUrl": "https://d.example.com/x/v2/rest"},
        {"name": "y", "version": "v1", "discoveryRestUrl": "https://d.example.com/y/v1/rest"},
    ],
}


def creator_for(document, name, version):
    from apidiscovery.endpoint import make_endpoint_creator

    doc = copy.deepcopy(document)
    doc["name"], doc["version"] = name, version
    return make_endpoint_creator(SchemaModel.model_validate(doc))


def make_builder(document, listing=LISTING, include_private=False, fail_url=None):
    from apidiscovery.errors import TransportError
    from apidiscovery.index import APIIndexBuilder

    transporter = AsyncMock()
    transporter.request = AsyncMock(return_value=TransportResponse(data=copy.deepcopy(listing)))

    async def discover_api(url):
        if url == fail_url:
            raise TransportError(f"Request to {url} failed", url=url, status=503)
        parts = url.split("/")
        return creator_for(document, parts[-3], parts[-2])

    builder = APIIndexBuilder(transporter, discover_api, DiscoveryOptions(include_private=include_private))
    return builder, transporter


class TestAPIIndexBuilder:
    """Tests for APIIndexBuilder."""

    @pytest.mark.asyncio
    async def test_indexes_every_version(self, document, context):
        """Test that every listed name/version pair is selectable."""
        from apidiscovery.endpoint import Endpoint

        builder, _ = make_builder(document)

        apis = await builder.build("https://d.example.com/apis", context)

        assert sorted(apis) == ["x", "y"]
        assert apis["x"].versions == ["v1", "v2"]
        assert sorted(apis.version_index["x"]) == ["v1", "v2"]

        v1 = apis["x"]("v1")
        v2 = apis["x"]("v2")
        assert isinstance(v1, Endpoint)
        assert v1._schema.version == "v1"
        assert v2._schema.version == "v2"
        assert v1 is not v2

    @pytest.mark.asyncio
    async def test_hides_private_apis_by_default(self, document):
        builder, transporter = make_builder(document)

        await builder.build("https://d.example.com/apis")

        transporter.request.assert_awaited_once_with(
            "https://d.example.com/apis",
            headers={"X-User-Ip": "0.0.0.0"}
        )

    @pytest.mark.asyncio
    async def test_include_private_omits_header(self, document):
        builder, transporter = make_builder(document, include_private=True)

        await builder.build("https://d.example.com/apis")

        transporter.request.assert_awaited_once_with("https://d.example.com/apis", headers={})

    @pytest.mark.asyncio
    async def test_one_failure_fails_all(self, document):
        """Test that a failing document rejects the whole index."""
        from apidiscovery.errors import TransportError

        builder, _ = make_builder(document, fail_url="https://d.example.com/x/v2/rest")

        with pytest.raises(TransportError) as exc_info:
            await builder.build("https://d.example.com/apis")

        assert exc_info.value.url == "https://d.example.com/x/v2/rest"

    @pytest.mark.asyncio
    async def test_empty_listing(self, document):
        builder, _ = make_builder(document, listing={"kind": "discovery#directoryList"})

        apis = await builder.build("https://d.example.com/apis")

        assert len(apis) == 0

    @pytest.mark.asyncio
    async def test_invalid_listing(self, document):
        from apidiscovery.errors import ParseError

        builder, _ = make_builder(document, listing={"items": [{"name": "x"}]})

        with pytest.raises(ParseError):
            await builder.build("https://d.example.com/apis")

    @pytest.mark.asyncio
    async def test_non_object_listing(self, document):
        from apidiscovery.errors import ParseError

        builder, _ = make_builder(document, listing="not a listing")

        with pytest.raises(ParseError):
            await builder.build("https://d.example.com/apis")

    @pytest.mark.asyncio
    async def test_attribute_access(self, document):
        builder, _ = make_builder(document)

        apis = await builder.build("https://d.example.com/apis")

        assert apis.x is apis["x"]
        with pytest.raises(AttributeError):
            apis.z


class TestVersionSelector:
    """Tests for VersionSelector."""

    def _selector(self, document, context=None):
        from apidiscovery.index import VersionSelector

        versions = {
            "v1": creator_for(document, "x", "v1"),
            "v2": creator_for(document, "x", "v2"),
        }
        return VersionSelector("x", versions, context)

    def test_string_and_mapping_are_equivalent(self, document):
        """Test that "v2" and {"version": "v2"} select the same thing."""
        from apidiscovery.endpoint import iter_methods

        selector = self._selector(document)

        by_string = selector("v2")
        by_mapping = selector({"version": "v2"})

        assert by_string._schema is by_mapping._schema
        assert dict(by_string._options) == dict(by_mapping._options) == {}
        assert list(iter_methods(by_string)) == list(iter_methods(by_mapping))

    def test_mapping_remainder_becomes_options(self, document):
        selector = self._selector(document)
        options = {"version": "v1", "rootUrl": "https://proxy.example.com/"}

        ep = selector(options)

        assert dict(ep._options) == {"rootUrl": "https://proxy.example.com/"}
        assert options["version"] == "v1"

    def test_context_is_bound(self, document, context):
        selector = self._selector(document, context)

        ep = selector("v1")

        assert ep._context is context

    @pytest.mark.parametrize("value", [2, 2.5, None, ["v1"]])
    def test_unsupported_argument(self, value):
        """Test that non-string, non-mapping arguments never build anything."""
        from apidiscovery.errors import ArgumentError
        from apidiscovery.index import VersionSelector

        creator = MagicMock()
        selector = VersionSelector("x", {"v1": creator})

        with pytest.raises(ArgumentError):
            selector(value)
        creator.assert_not_called()

    def test_unknown_version(self, document):
        from apidiscovery.errors import EndpointSelectionError

        selector = self._selector(document)

        with pytest.raises(EndpointSelectionError) as exc_info:
            selector("v9")

        assert 'x("v9")' in str(exc_info.value)
        assert "v1, v2" in str(exc_info.value)
        assert exc_info.value.api_name == "x"
        assert exc_info.value.version == "v9"

    def test_mapping_without_version(self, document):
        from apidiscovery.errors import EndpointSelectionError

        selector = self._selector(document)

        with pytest.raises(EndpointSelectionError):
            selector({"rootUrl": "https://proxy.example.com/"})

    def test_build_failure_is_wrapped(self, document):
        """Test that construction failures name the API, version and cause."""
        from apidiscovery.errors import EndpointBuildError, EndpointSelectionError

        document["resources"]["about"]["methods"]["get"] = None
        selector = self._selector(document)

        with pytest.raises(EndpointSelectionError) as exc_info:
            selector("v1")

        message = str(exc_info.value)
        assert message.startswith('Unable to load endpoint x("v1")')
        assert "about.get" in message
        assert isinstance(exc_info.value.__cause__, EndpointBuildError)

    def test_endpoints_are_read_only(self, document):
        from apidiscovery.errors import ReadOnlyEndpointError

        selector = self._selector(document)
        first = selector("v1")
        second = selector("v1")

        with pytest.raises(ReadOnlyEndpointError):
            first.files = None
        assert first is not second
        assert "files" in first


class TestIndexHelpers:
    """Tests for index folding and fan-out helpers."""

    def test_fold_index(self, document):
        from apidiscovery.index import fold_index

        results = [
            (APIDescriptor(name="x", version="v1", discoveryRestUrl="u1"), creator_for(document, "x", "v1")),
            (APIDescriptor(name="x", version="v2", discoveryRestUrl="u2"), creator_for(document, "x", "v2")),
            (APIDescriptor(name="y", version="v1", discoveryRestUrl="u3"), creator_for(document, "y", "v1")),
        ]

        index = fold_index(results)

        assert {name: sorted(versions) for name, versions in index.items()} == {
            "x": ["v1", "v2"],
            "y": ["v1"],
        }

    @pytest.mark.asyncio
    async def test_gather_all_preserves_order(self):
        from apidiscovery.index import gather_all

        async def value(n, delay):
            await asyncio.sleep(delay)
            return n

        assert await gather_all([value(1, 0.02), value(2, 0), value(3, 0.01)]) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_gather_all_cancels_on_failure(self):
        """Test that the first failure cancels the remaining work."""
        from apidiscovery.index import gather_all

        events = []

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                events.append("cancelled")
                raise

        async def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await gather_all([slow(), fail()])

        assert events == ["cancelled"]
