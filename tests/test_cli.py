"""Tests for CLI commands"""

from unittest.mock import Mock, patch

import pytest
from typer.testing import CliRunner

from cli.client.base import SynapseError
from cli.main import app
from cli.utils.config_manager import ConfigManager


@pytest.fixture
def runner():
    """CLI test runner"""
    return CliRunner()


def client_returning(mock_client_class, **methods):
    """Configure the patched client class; values are return values or exceptions."""
    mock_client = Mock()
    mock_client.__enter__ = Mock(return_value=mock_client)
    mock_client.__exit__ = Mock(return_value=None)
    for name, value in methods.items():
        if isinstance(value, Exception):
            getattr(mock_client, name).side_effect = value
        else:
            getattr(mock_client, name).return_value = value
    mock_client_class.return_value = mock_client
    return mock_client


SEARCH_RESPONSE = {
    "query": "transformer architecture",
    "search_text": "transformer architecture",
    "results": [
        {
            "id": "abc12345-0000-0000-0000-000000000000",
            "content_type": "article",
            "title": "Attention",
            "similarity_score": 0.912,
            "relevance_label": "Highly Relevant",
        }
    ],
    "semantic_analysis": {
        "intent": "general",
        "query_type": "general",
        "keywords": ["transformer", "architecture"],
        "expansions": [],
    },
    "filters": {},
    "recommendations": None,
    "message": None,
    "performance": {"initial_results": 4, "reranked_results": 1, "top_relevance": 0.912},
}


class TestMainCommands:
    """Test main CLI commands"""

    def test_version_flag(self, runner):
        """Test --version flag"""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "Synapse CLI v1.0.0" in result.stdout

    def test_quickstart(self, runner):
        """Test quickstart command"""
        result = runner.invoke(app, ["quickstart"])
        assert result.exit_code == 0
        assert "Quick Start Guide" in result.stdout
        assert "synapse status" in result.stdout

    @patch("cli.main.SynapseClient")
    def test_status_success(self, mock_client_class, runner):
        """Test status command with successful connection"""
        client_returning(
            mock_client_class,
            health_check={
                "version": "1.0.0",
                "environment": "development",
                "database": {"connected": True},
                "embedding_model": {"model_version": "stub-hashing-v2"},
            },
        )

        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "Connected Successfully" in result.stdout
        assert "stub-hashing-v2" in result.stdout

    @patch("cli.main.SynapseClient")
    def test_status_failure(self, mock_client_class, runner):
        """Test status command with connection failure"""
        client_returning(mock_client_class, health_check=SynapseError("Connection failed"))

        result = runner.invoke(app, ["status"])
        assert result.exit_code == 1
        assert "Connection Failed" in result.stdout


class TestSearchCommands:
    """Test search, suggest, similar and context commands"""

    @patch("cli.commands.search.SynapseClient")
    def test_search_results(self, mock_client_class, runner):
        client = client_returning(mock_client_class, search=SEARCH_RESPONSE)

        result = runner.invoke(
            app, ["search", "transformer architecture", "--type", "article", "--limit", "5"]
        )

        assert result.exit_code == 0
        assert "abc12345" in result.stdout
        assert "0.912" in result.stdout
        assert "1 results from 4 candidates" in result.stdout
        client.search.assert_called_once_with(
            "transformer architecture",
            content_type="article",
            tags=None,
            is_favorite=None,
            limit=5,
        )

    @patch("cli.commands.search.SynapseClient")
    def test_search_explain(self, mock_client_class, runner):
        client_returning(mock_client_class, search=SEARCH_RESPONSE)

        result = runner.invoke(app, ["search", "transformer architecture", "--explain"])

        assert result.exit_code == 0
        assert "Query Analysis" in result.stdout
        assert "transformer, architecture" in result.stdout

    @patch("cli.commands.search.SynapseClient")
    def test_search_without_results_shows_recommendations(self, mock_client_class, runner):
        client_returning(
            mock_client_class,
            search={
                **SEARCH_RESPONSE,
                "results": [],
                "message": "No results found.",
                "recommendations": {
                    "suggestions": [],
                    "related_searches": [],
                    "trending": [{"text": "recent saves", "type": "trending", "confidence": 0.9}],
                    "content_based": [],
                },
            },
        )

        result = runner.invoke(app, ["search", "quantum gardening"])

        assert result.exit_code == 0
        assert "No results found." in result.stdout
        assert "Trending" in result.stdout
        assert "recent saves" in result.stdout

    @patch("cli.commands.search.SynapseClient")
    def test_search_error(self, mock_client_class, runner):
        client_returning(mock_client_class, search=SynapseError("Query is required"))

        result = runner.invoke(app, ["search", " "])

        assert result.exit_code == 1
        assert "Search failed: Query is required" in result.stdout

    @patch("cli.commands.search.SynapseClient")
    def test_suggest_empty_state(self, mock_client_class, runner):
        client_returning(
            mock_client_class,
            suggestions={
                "query": "",
                "empty_state": {
                    "quick_actions": [{"text": "Save your first article", "action": "save"}],
                    "example_queries": [{"text": 'Try: "articles about AI"', "type": "example"}],
                },
                "has_content": False,
                "total_items": 0,
            },
        )

        result = runner.invoke(app, ["suggest"])

        assert result.exit_code == 0
        assert "Get Started" in result.stdout
        assert "Save your first article" in result.stdout

    @patch("cli.commands.search.SynapseClient")
    def test_suggest_partial_query(self, mock_client_class, runner):
        client = client_returning(
            mock_client_class,
            suggestions={
                "query": "ar",
                "recommendations": {
                    "suggestions": [{"text": "argon", "type": "autocomplete", "confidence": 0.8}],
                    "related_searches": [],
                    "trending": [],
                    "content_based": [],
                },
                "popular_tags": [{"tag": "architecture", "count": 3}],
                "has_content": True,
                "total_items": 3,
            },
        )

        result = runner.invoke(app, ["suggest", "ar"])

        assert result.exit_code == 0
        assert "argon" in result.stdout
        assert "architecture (3)" in result.stdout
        client.suggestions.assert_called_once_with("ar")

    @patch("cli.commands.search.SynapseClient")
    def test_similar_none_found(self, mock_client_class, runner):
        client_returning(
            mock_client_class,
            similar={"source_item_id": "item1", "similar_items": [], "count": 0},
        )

        result = runner.invoke(app, ["similar", "item1"])

        assert result.exit_code == 0
        assert "No similar items found" in result.stdout

    @patch("cli.commands.search.SynapseClient")
    def test_context(self, mock_client_class, runner):
        client = client_returning(
            mock_client_class,
            chat_context={
                "context": "Here is relevant content",
                "sources": [{"id": "item1"}],
                "total_items": 12,
            },
        )

        result = runner.invoke(app, ["context", "what did I save about rust", "--limit", "3"])

        assert result.exit_code == 0
        assert "Here is relevant content" in result.stdout
        assert "1 sources of 12 saved items" in result.stdout
        client.chat_context.assert_called_once_with("what did I save about rust", limit=3)


class TestItemsCommands:
    """Test items commands"""

    @patch("cli.commands.items.SynapseClient")
    def test_list_items(self, mock_client_class, runner):
        """Test listing items"""
        client_returning(
            mock_client_class,
            list_items={
                "items": [
                    {
                        "id": "item1234-0000",
                        "content_type": "note",
                        "title": "Ideas",
                        "tags": ["test"],
                    }
                ],
                "total": 1,
                "has_more": False,
            },
        )

        result = runner.invoke(app, ["items", "list"])
        assert result.exit_code == 0
        assert "item1234" in result.stdout
        assert "Showing 1 of 1 items" in result.stdout

    @patch("cli.commands.items.SynapseClient")
    def test_list_items_empty(self, mock_client_class, runner):
        client_returning(mock_client_class, list_items={"items": [], "total": 0})

        result = runner.invoke(app, ["items", "list", "--type", "video"])
        assert result.exit_code == 0
        assert "No items found!" in result.stdout

    @patch("cli.commands.items.SynapseClient")
    def test_show_item(self, mock_client_class, runner):
        """Test showing specific item"""
        client_returning(
            mock_client_class,
            get_item={
                "id": "item1",
                "content_type": "article",
                "title": "Attention",
                "description": "The transformer paper",
                "tags": ["ai"],
                "is_favorite": True,
                "created_at": "2026-01-01T00:00:00Z",
                "metadata": {"kind": "article"},
            },
        )

        result = runner.invoke(app, ["items", "show", "item1"])
        assert result.exit_code == 0
        assert "The transformer paper" in result.stdout
        assert "Metadata" in result.stdout

    @patch("cli.commands.items.SynapseClient")
    def test_add_item(self, mock_client_class, runner):
        client = client_returning(
            mock_client_class, create_item={"id": "new-item", "content_type": "article"}
        )

        result = runner.invoke(
            app, ["items", "add", "--type", "article", "--title", "Attention", "--tag", "ai"]
        )

        assert result.exit_code == 0
        assert "Saved article" in result.stdout
        payload = client.create_item.call_args.args[0]
        assert payload["title"] == "Attention"
        assert payload["tags"] == ["ai"]

    def test_add_item_requires_text(self, runner):
        result = runner.invoke(app, ["items", "add"])

        assert result.exit_code == 1
        assert "Provide at least one of" in result.stdout

    @patch("cli.commands.items.SynapseClient")
    def test_favorite_off(self, mock_client_class, runner):
        client = client_returning(mock_client_class, update_item={})

        result = runner.invoke(app, ["items", "favorite", "item1", "--off"])

        assert result.exit_code == 0
        client.update_item.assert_called_once_with("item1", {"is_favorite": False})

    @patch("cli.commands.items.SynapseClient")
    def test_delete_item(self, mock_client_class, runner):
        client = client_returning(mock_client_class, delete_item={})

        result = runner.invoke(app, ["items", "delete", "item1", "--yes"])

        assert result.exit_code == 0
        client.delete_item.assert_called_once_with("item1")

    @patch("cli.commands.items.SynapseClient")
    def test_stats(self, mock_client_class, runner):
        client_returning(
            mock_client_class,
            embedding_stats={
                "total_items": 4,
                "items_with_embeddings": 3,
                "coverage_rate": 0.75,
                "current_model_version": "stub-hashing-v2",
                "missing_embeddings": 1,
            },
        )

        result = runner.invoke(app, ["items", "stats"])

        assert result.exit_code == 0
        assert "75.0%" in result.stdout
        assert "backfill" in result.stdout


class TestConfigCommands:
    """Test configuration commands"""

    @patch("cli.commands.config.config")
    def test_set_config(self, mock_config, runner):
        """Test setting configuration"""
        result = runner.invoke(app, ["config", "set", "api.base_url", "http://localhost:8000"])
        assert result.exit_code == 0
        mock_config.set.assert_called_once_with("api.base_url", "http://localhost:8000")

    @patch("cli.commands.config.config")
    def test_set_numeric_value(self, mock_config, runner):
        result = runner.invoke(app, ["config", "set", "api.timeout", "60"])
        assert result.exit_code == 0
        mock_config.set.assert_called_once_with("api.timeout", 60)

    def test_set_config_invalid_url(self, runner):
        """Test setting invalid URL"""
        result = runner.invoke(app, ["config", "set", "api.base_url", "invalid-url"])
        assert result.exit_code == 1
        assert "must start with http" in result.stdout

    @patch("cli.commands.config.config")
    def test_get_config(self, mock_config, runner):
        """Test getting configuration"""
        mock_config.get.return_value = "http://localhost:8000"

        result = runner.invoke(app, ["config", "get", "api.base_url"])
        assert result.exit_code == 0
        assert "http://localhost:8000" in result.stdout

    @patch("cli.commands.config.config")
    def test_dev_mode(self, mock_config, runner):
        result = runner.invoke(app, ["config", "dev-mode", "alice"])
        assert result.exit_code == 0
        mock_config.set.assert_called_once_with("api.headers.X-User-ID", "alice")


class TestConfigManager:
    """Test the YAML configuration store"""

    def test_defaults_and_dot_notation(self, tmp_path):
        manager = ConfigManager(config_dir=tmp_path)

        assert manager.get("display.results_per_page") == 10
        assert manager.get("missing.key", "fallback") == "fallback"

        manager.set("display.results_per_page", 25)

        reloaded = ConfigManager(config_dir=tmp_path)
        assert reloaded.get("display.results_per_page") == 25
        assert reloaded.get("display.show_scores") is True

    def test_reset(self, tmp_path):
        manager = ConfigManager(config_dir=tmp_path)
        manager.set("api.timeout", 5)
        manager.reset()

        assert manager.get("api.timeout") == 30


class TestErrorHandling:
    """Test error handling scenarios"""

    def test_invalid_command(self, runner):
        """Test invalid command handling"""
        result = runner.invoke(app, ["invalid-command"])
        assert result.exit_code != 0
