"""API Endpoint Wrappers - Type-safe API calls"""

from typing import Any

from .base import APIClient, SynapseError
from ..utils.config_manager import config

__all__ = ["SynapseClient", "SynapseError"]


class SynapseClient:
    """High-level client with typed endpoint methods"""

    def __init__(
        self,
        base_url: str | None = None,
        headers: dict[str, str] | None = None
    ):
        # Use config values if not provided
        api_config = config.load_config().get("api", {})
        final_base_url = base_url or api_config.get("base_url", "http://localhost:8000")
        final_headers = headers or api_config.get("headers", {})

        self.api = APIClient(
            base_url=final_base_url,
            timeout=int(api_config.get("timeout", 30)),
            headers=final_headers
        )

    def __enter__(self):
        self.api.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.api.__exit__(exc_type, exc_val, exc_tb)

    # Health Check
    def health_check(self) -> dict[str, Any]:
        """Check API health status"""
        return self.api.get("/healthz")

    # Search Endpoints
    def search(
        self,
        query: str,
        content_type: str | None = None,
        tags: list[str] | None = None,
        is_favorite: bool | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Run a natural-language search"""
        data: dict[str, Any] = {"query": query}
        filters: dict[str, Any] = {}
        if content_type:
            filters["contentType"] = content_type
        if tags:
            filters["tags"] = tags
        if is_favorite is not None:
            filters["isFavorite"] = is_favorite
        if filters:
            data["filters"] = filters
        if limit:
            data["limit"] = limit
        return self.api.post("/search", data)

    def suggestions(self, query: str = "") -> dict[str, Any]:
        """Get query suggestions for a partial query"""
        return self.api.get("/search/suggestions", {"q": query})

    def similar(self, item_id: str, limit: int = 5) -> dict[str, Any]:
        """Find items similar to a stored item"""
        return self.api.get(f"/search/similar/{item_id}", {"limit": limit})

    def chat_context(self, message: str, limit: int = 5) -> dict[str, Any]:
        """Build a retrieval context block for a chat message"""
        return self.api.post("/chat/context", {"message": message, "limit": limit})

    # Items Endpoints
    def list_items(
        self,
        content_type: str | None = None,
        tags: list[str] | None = None,
        is_favorite: bool | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> dict[str, Any]:
        """List items with filters"""
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if content_type:
            params["content_type"] = content_type
        if tags:
            params["tags"] = tags
        if is_favorite is not None:
            params["is_favorite"] = is_favorite
        return self.api.get("/items", params)

    def get_item(self, item_id: str) -> dict[str, Any]:
        """Get specific item by ID"""
        return self.api.get(f"/items/{item_id}")

    def create_item(self, item: dict[str, Any]) -> dict[str, Any]:
        """Save a new item"""
        return self.api.post("/items", item)

    def update_item(self, item_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        """Apply a partial update to an item"""
        return self.api.patch(f"/items/{item_id}", changes)

    def delete_item(self, item_id: str) -> dict[str, Any]:
        """Delete an item"""
        return self.api.delete(f"/items/{item_id}")

    def embedding_stats(self) -> dict[str, Any]:
        """Get embedding coverage for the caller's items"""
        return self.api.get("/items/embedding-stats")
