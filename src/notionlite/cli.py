"""CLI interface for notionlite"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click

from notionlite.infrastructure.config.config_manager import ConfigManager, ConfigurationError
from notionlite.infrastructure.notion.client import NotionClient
from notionlite.infrastructure.notion.errors import NotionRequestError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)
    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.INFO if verbose else logging.WARNING)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def parse_json_option(value: Optional[str], option_name: str) -> Optional[Dict[str, Any]]:
    """Parse a JSON object passed on the command line

    Args:
        value: Raw option value, or "@path" to read the JSON from a file
        option_name: Option name for error messages

    Returns:
        Parsed object or None if value is None
    """
    if value is None:
        return None
    if value.startswith("@"):
        path = Path(value[1:])
        try:
            value = path.read_text(encoding="utf-8")
        except OSError as e:
            raise click.BadParameter(f"cannot read {path}: {e}", param_hint=option_name) from e
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint=option_name) from e
    if not isinstance(parsed, dict):
        raise click.BadParameter("must be a JSON object", param_hint=option_name)
    return parsed


def _create_client(ctx: click.Context) -> NotionClient:
    """Create Notion client from config and CLI overrides"""
    verbose = ctx.obj.get("verbose", False)
    try:
        config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)

    notion_config = config_manager.get_notion_config()
    api_key = ctx.obj.get("api_key") or notion_config.api_key
    try:
        return NotionClient(
            api_key=api_key,
            base_url=notion_config.base_url,
            notion_version=notion_config.version,
            timeout=notion_config.timeout,
            retry_policy=config_manager.get_retry_policy(),
        )
    except ValueError as e:
        _die(str(e), verbose=verbose, exc=e)


def _run(ctx: click.Context, request) -> None:
    """Run one client request and print its JSON result"""
    verbose = ctx.obj.get("verbose", False)
    client = _create_client(ctx)
    try:
        with client:
            result = request(client)
    except NotionRequestError as e:
        _die(f"{e} ({e.reason}, {e.attempts} attempts)", verbose=verbose, exc=e)
    except ValueError as e:
        _die(str(e), verbose=verbose, exc=e)
    click.echo(json.dumps(result, indent=2, ensure_ascii=False))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .notion.yml config file",
)
@click.option(
    "--api-key",
    type=str,
    help="Notion integration token (default: from NOTION_API_KEY env or config)",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path, api_key: str):
    """notionlite - minimal Notion API client"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["api_key"] = api_key


@cli.command()
@click.argument("database_id", type=str)
@click.pass_context
def properties(ctx, database_id: str):
    """Show a database and its property schema.

    DATABASE_ID: Notion database ID
    """
    _run(ctx, lambda client: client.query_database_properties(database_id))


@cli.command()
@click.argument("database_id", type=str)
@click.option("--filter", "filter_", type=str, help="Filter object as JSON (or @file.json)")
@click.option("--page-size", type=click.IntRange(1, 100), help="Number of results (default: 100)")
@click.option("--start-cursor", type=str, help="Cursor returned by a previous query")
@click.pass_context
def query(ctx, database_id: str, filter_: str, page_size: int, start_cursor: str):
    """Query the entries of a database.

    DATABASE_ID: Notion database ID
    """
    filter_obj = parse_json_option(filter_, "--filter")
    _run(
        ctx,
        lambda client: client.query_database(
            database_id,
            filter=filter_obj,
            page_size=page_size,
            start_cursor=start_cursor,
        ),
    )


@cli.command()
@click.argument("database_id", type=str)
@click.option("--properties", "properties_", required=True, help="Property values as JSON (or @file.json)")
@click.pass_context
def create(ctx, database_id: str, properties_: str):
    """Create an entry (page) in a database.

    DATABASE_ID: Parent database ID
    """
    values = parse_json_option(properties_, "--properties")
    _run(ctx, lambda client: client.create_database_entry(database_id, values))


@cli.command()
@click.argument("entry_id", type=str)
@click.option("--properties", "properties_", required=True, help="Property values as JSON (or @file.json)")
@click.pass_context
def update(ctx, entry_id: str, properties_: str):
    """Update the properties of a database entry (page).

    ENTRY_ID: Page ID
    """
    values = parse_json_option(properties_, "--properties")
    _run(ctx, lambda client: client.update_database_entry(entry_id, values))


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
