"""Shared plumbing for catalog services."""

from ..client import DevOpsClient
from ..consts import JSON_PATCH_CONTENT_TYPE


class BaseService:
    """Base class for services that wrap one area of the REST API."""

    def __init__(self, client: DevOpsClient):
        self.client = client

    async def _patch_document(self, method: str, path: str, operations: list[dict]):
        """Send a JSON patch document (work item create/update)."""
        return await self.client.request(
            method, path, json=operations, content_type=JSON_PATCH_CONTENT_TYPE
        )


def field_operations(fields: dict | None) -> list[dict]:
    """Build JSON patch ``add`` operations for work item fields."""
    return [
        {"op": "add", "path": f"/fields/{name}", "value": value}
        for name, value in (fields or {}).items()
    ]
