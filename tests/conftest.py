"""Shared fixtures for discovery tests."""

import copy
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.models import TransportResponse


SAMPLE_DOCUMENT = {
    "kind": "discovery#restDescription",
    "discoveryVersion": "v1",
    "id": "storage:v1",
    "name": "storage",
    "version": "v1",
    "title": "Storage API",
    "rootUrl": "https://storage.example.com/",
    "servicePath": "storage/v1/",
    "parameters": {
        "key": {"type": "string", "location": "query"},
        "alt": {"type": "string", "enum": ["json", "media"], "location": "query"},
    },
    "schemas": {
        "File": {"id": "File", "type": "object"},
        "FileList": {"id": "FileList", "type": "object"},
        "About": {"id": "About", "type": "object"},
    },
    "resources": {
        "files": {
            "methods": {
                "get": {
                    "id": "storage.files.get",
                    "path": "files/{fileId}",
                    "httpMethod": "GET",
                    "parameters": {
                        "fileId": {"type": "string", "required": True, "location": "path"},
                    },
                    "parameterOrder": ["fileId"],
                    "response": {"$ref": "File"},
                },
                "list": {
                    "id": "storage.files.list",
                    "path": "files",
                    "httpMethod": "GET",
                    "parameters": {
                        "pageSize": {"type": "integer", "format": "int32", "location": "query"},
                        "orderBy": {
                            "type": "string",
                            "enum": ["name", "modifiedTime"],
                            "location": "query",
                        },
                        "labels": {"type": "string", "repeated": True, "location": "query"},
                    },
                    "response": {"$ref": "FileList"},
                },
                "insert": {
                    "id": "storage.files.insert",
                    "path": "files",
                    "httpMethod": "POST",
                    "request": {"$ref": "File"},
                    "response": {"$ref": "File"},
                    "mediaUpload": {
                        "protocols": {"simple": {"multipart": True, "path": "/upload/storage/v1/files"}},
                    },
                },
            },
            "resources": {
                "permissions": {
                    "methods": {
                        "delete": {
                            "id": "storage.files.permissions.delete",
                            "path": "files/{fileId}/permissions/{permissionId}",
                            "httpMethod": "DELETE",
                            "parameters": {
                                "fileId": {"type": "string", "required": True, "location": "path"},
                                "permissionId": {"type": "string", "required": True, "location": "path"},
                            },
                            "parameterOrder": ["fileId", "permissionId"],
                        },
                    },
                },
            },
        },
        "about": {
            "methods": {
                "get": {
                    "id": "storage.about.get",
                    "path": "about",
                    "httpMethod": "GET",
                    "response": {"$ref": "About"},
                },
            },
        },
    },
}

HEALTH_DOCUMENT = {
    "name": "health",
    "version": "v1",
    "rootUrl": "https://health.example.com/",
    "servicePath": "",
    "resources": {
        "health": {
            "methods": {
                "ping": {"id": "health.ping", "path": "ping", "httpMethod": "GET"},
            },
        },
    },
}


@pytest.fixture
def document() -> dict:
    """A fresh copy of the sample discovery document."""
    return copy.deepcopy(SAMPLE_DOCUMENT)


@pytest.fixture
def health_document() -> dict:
    return copy.deepcopy(HEALTH_DOCUMENT)


@pytest.fixture
def executor() -> AsyncMock:
    """Request executor double returning an empty JSON object."""
    mock = AsyncMock()
    mock.execute = AsyncMock(return_value=TransportResponse(data={}))
    return mock


@pytest.fixture
def context(executor) -> MagicMock:
    """Stand-in for the orchestrator an endpoint is built with."""
    ctx = MagicMock()
    ctx.request_executor = executor
    return ctx
