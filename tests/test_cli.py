"""Tests for CLI interface"""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import click
import pytest
from click.testing import CliRunner

from notionlite.cli import _die, cli, parse_json_option, setup_logging
from notionlite.infrastructure.http_client import RetryPolicy
from notionlite.infrastructure.notion.errors import NotionBadRequestError


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for name in ("NOTION_API_KEY", "NOTION_BASE_URL", "NOTION_VERSION"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def mock_client():
    with patch("notionlite.cli.NotionClient") as mock_client_class:
        client = MagicMock()
        client.__enter__.return_value = client
        mock_client_class.return_value = client
        client.client_class = mock_client_class
        yield client


class TestSetupLogging:
    """Tests for setup_logging function"""

    def test_setup_logging_info_level(self):
        setup_logging(verbose=False)
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug_level(self):
        setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG


class TestDie:
    """Tests for _die function"""

    def test_die_without_exception(self):
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=False)

    def test_die_with_exception_verbose(self):
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=True, exc=ValueError("Test exception"))


class TestParseJsonOption:
    """Tests for parse_json_option function"""

    def test_none(self):
        assert parse_json_option(None, "--filter") is None

    def test_inline_json(self):
        assert parse_json_option('{"a": 1}', "--filter") == {"a": 1}

    def test_json_from_file(self, tmp_path):
        path = tmp_path / "props.json"
        path.write_text('{"Name": {"title": []}}', encoding="utf-8")
        assert parse_json_option(f"@{path}", "--properties") == {"Name": {"title": []}}

    def test_missing_file(self, tmp_path):
        with pytest.raises(click.BadParameter, match="cannot read"):
            parse_json_option(f"@{tmp_path / 'missing.json'}", "--properties")

    def test_invalid_json(self):
        with pytest.raises(click.BadParameter, match="invalid JSON"):
            parse_json_option("{bad", "--filter")

    def test_non_object_json(self):
        with pytest.raises(click.BadParameter, match="JSON object"):
            parse_json_option("[1, 2]", "--filter")


class TestCommands:
    """Tests for CLI commands"""

    def test_properties_command(self, mock_client):
        mock_client.query_database_properties.return_value = {"object": "database", "id": "db1"}

        result = CliRunner().invoke(cli, ["--api-key", "secret_cli", "properties", "db1"], obj={})

        assert result.exit_code == 0, result.output
        assert '"id": "db1"' in result.output
        mock_client.query_database_properties.assert_called_once_with("db1")
        kwargs = mock_client.client_class.call_args.kwargs
        assert kwargs["api_key"] == "secret_cli"
        assert kwargs["base_url"] == "https://api.notion.com/v1"
        assert isinstance(kwargs["retry_policy"], RetryPolicy)

    def test_api_key_from_env(self, mock_client, monkeypatch):
        monkeypatch.setenv("NOTION_API_KEY", "secret_env")
        mock_client.query_database_properties.return_value = {}

        result = CliRunner().invoke(cli, ["properties", "db1"], obj={})

        assert result.exit_code == 0, result.output
        assert mock_client.client_class.call_args.kwargs["api_key"] == "secret_env"

    def test_config_file_option(self, mock_client, tmp_path):
        config_path = tmp_path / "custom.yml"
        config_path.write_text(
            "notion:\n  api_key: secret_file\n  timeout: 3\nretry:\n  max_attempts: 2\n",
            encoding="utf-8",
        )
        mock_client.query_database_properties.return_value = {}

        result = CliRunner().invoke(cli, ["--config", str(config_path), "properties", "db1"], obj={})

        assert result.exit_code == 0, result.output
        kwargs = mock_client.client_class.call_args.kwargs
        assert kwargs["api_key"] == "secret_file"
        assert kwargs["timeout"] == 3.0
        assert kwargs["retry_policy"].max_attempts == 2

    def test_query_command(self, mock_client):
        mock_client.query_database.return_value = {"object": "list", "results": []}

        result = CliRunner().invoke(
            cli,
            [
                "--api-key", "k",
                "query", "db1",
                "--filter", '{"property": "Status", "select": {"equals": "Done"}}',
                "--page-size", "10",
                "--start-cursor", "cursor-1",
            ],
            obj={},
        )

        assert result.exit_code == 0, result.output
        mock_client.query_database.assert_called_once_with(
            "db1",
            filter={"property": "Status", "select": {"equals": "Done"}},
            page_size=10,
            start_cursor="cursor-1",
        )

    def test_query_command_rejects_invalid_page_size(self, mock_client):
        result = CliRunner().invoke(cli, ["--api-key", "k", "query", "db1", "--page-size", "0"], obj={})

        assert result.exit_code == 2
        mock_client.query_database.assert_not_called()

    def test_query_command_rejects_invalid_filter(self, mock_client):
        result = CliRunner().invoke(cli, ["--api-key", "k", "query", "db1", "--filter", "{bad"], obj={})

        assert result.exit_code == 2
        assert "invalid JSON" in result.output
        mock_client.query_database.assert_not_called()

    def test_create_command(self, mock_client):
        mock_client.create_database_entry.return_value = {"object": "page", "id": "p1"}

        result = CliRunner().invoke(
            cli,
            ["--api-key", "k", "create", "db1", "--properties", '{"Name": {"title": []}}'],
            obj={},
        )

        assert result.exit_code == 0, result.output
        mock_client.create_database_entry.assert_called_once_with("db1", {"Name": {"title": []}})
        assert '"id": "p1"' in result.output

    def test_update_command(self, mock_client):
        mock_client.update_database_entry.return_value = {"object": "page", "id": "p1"}

        result = CliRunner().invoke(
            cli,
            ["--api-key", "k", "update", "p1", "--properties", '{"Done": {"checkbox": true}}'],
            obj={},
        )

        assert result.exit_code == 0, result.output
        mock_client.update_database_entry.assert_called_once_with("p1", {"Done": {"checkbox": True}})

    def test_create_command_requires_properties(self, mock_client):
        result = CliRunner().invoke(cli, ["--api-key", "k", "create", "db1"], obj={})

        assert result.exit_code == 2
        mock_client.create_database_entry.assert_not_called()

    def test_request_failure_exits_with_message(self, mock_client):
        mock_client.query_database_properties.side_effect = NotionBadRequestError(
            "Notion API request failed with status code 400",
            reason="HTTP 400 validation_error: bad id",
            status_code=400,
            attempts=1,
        )

        result = CliRunner().invoke(cli, ["--api-key", "k", "properties", "db1"], obj={})

        assert result.exit_code == 1
        assert "status code 400" in result.output
        assert "bad id" in result.output
        mock_client.__exit__.assert_called_once()

    def test_missing_api_key(self):
        result = CliRunner().invoke(cli, ["properties", "db1"], obj={})

        assert result.exit_code == 1
        assert "Notion API key is required" in result.output

    def test_invalid_config_file(self, tmp_path):
        config_path = tmp_path / "bad.yml"
        config_path.write_text("retry:\n  max_attempts: 0\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["--config", str(config_path), "properties", "db1"], obj={})

        assert result.exit_code == 1
        assert "Configuration validation failed" in result.output
