"""Prompt context assembled from retrieved items."""

from typing import Any

DEFAULT_EXCERPT_CHARS = 500


def build_context(
    items: list[Any], total_count: int | None = None, excerpt_chars: int = DEFAULT_EXCERPT_CHARS
) -> str:
    """
    Render retrieved items as a text block for a chat responder.

    One labeled section per item (type, title, optional description and a
    bounded content excerpt), preceded by how many items exist in total
    versus how many are shown.
    """
    if not items:
        if total_count:
            return (
                f"The user has {total_count} total items in their knowledge base, "
                "but no items are relevant to this query."
            )
        return "No relevant content found in knowledge base."

    lines: list[str] = []
    if total_count:
        lines.append(
            f"The user has {total_count} total items in their knowledge base. "
            f"You are provided with the {len(items)} most relevant items for this conversation."
        )
        lines.append("")

    lines.append("Here is relevant content from the user's knowledge base:")
    lines.append("")

    for index, item in enumerate(items, start=1):
        lines.append(f"[Item {index}: {item.content_type}]")
        lines.append(f"Title: {item.title or 'Untitled'}")
        if item.description:
            lines.append(f"Description: {item.description}")
        if item.content:
            excerpt = item.content[:excerpt_chars]
            suffix = "..." if len(item.content) > excerpt_chars else ""
            lines.append(f"Content: {excerpt}{suffix}")
        lines.append("")

    return "\n".join(lines)
