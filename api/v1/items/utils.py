from typing import Any
from urllib.parse import urlparse

EMBEDDING_TEXT_MAX_CHARS = 1000


def embedding_text(item: Any) -> str:
    """
    Build the text an item is embedded from.

    Args:
        item: Item (or anything with title/description/content/tags)

    Returns:
        Title, description, content and tags joined by spaces, truncated to
        1000 characters. Empty when the item has no text at all.
    """
    parts = [
        getattr(item, "title", None) or "",
        getattr(item, "description", None) or "",
        getattr(item, "content", None) or "",
        " ".join(getattr(item, "tags", None) or []),
    ]
    text = " ".join(part for part in parts if part).strip()
    return text[:EMBEDDING_TEXT_MAX_CHARS]


def source_domain(url: str | None) -> str | None:
    """Extract the host of a URL without a leading ``www.``."""
    if not url:
        return None
    host = urlparse(url).netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    return host or None


def normalize_tags(tags: list[str] | None) -> list[str]:
    """
    Normalize tags for consistent storage.

    Args:
        tags: List of tag strings

    Returns:
        Normalized list of unique, non-empty tags
    """
    if not tags:
        return []

    normalized = []
    seen = set()

    for tag in tags:
        if isinstance(tag, str):
            clean_tag = tag.strip().lower()
            if clean_tag and clean_tag not in seen:
                normalized.append(clean_tag)
                seen.add(clean_tag)

    return sorted(normalized)
