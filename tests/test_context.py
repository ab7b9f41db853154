from fakes import make_item

from api.v1.search.context import build_context


def test_no_items_without_total():
    assert build_context([]) == "No relevant content found in knowledge base."


def test_no_relevant_items_mentions_total():
    context = build_context([], total_count=12)

    assert context == (
        "The user has 12 total items in their knowledge base, "
        "but no items are relevant to this query."
    )


def test_sections_per_item():
    items = [
        make_item("Attention is all you need", description="The transformer paper"),
        make_item(None, content_type="note", content="Remember to read it"),
    ]

    context = build_context(items, total_count=40)
    lines = context.split("\n")

    assert lines[0] == (
        "The user has 40 total items in their knowledge base. "
        "You are provided with the 2 most relevant items for this conversation."
    )
    assert "[Item 1: article]" in lines
    assert "Title: Attention is all you need" in lines
    assert "Description: The transformer paper" in lines
    assert "[Item 2: note]" in lines
    assert "Title: Untitled" in lines
    assert "Content: Remember to read it" in lines


def test_header_omitted_without_total():
    context = build_context([make_item("Garden plan")])

    assert context.startswith("Here is relevant content from the user's knowledge base:")


def test_content_excerpt_is_bounded():
    item = make_item("Long read", content="a" * 30)

    context = build_context([item], excerpt_chars=10)

    assert f"Content: {'a' * 10}..." in context
    assert "a" * 11 not in context


def test_short_content_has_no_ellipsis():
    context = build_context([make_item("Short", content="tiny")], excerpt_chars=10)

    assert "Content: tiny\n" in context
