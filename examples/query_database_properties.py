"""Print the property schema of a Notion database.

Usage:
    python examples/query_database_properties.py --api-key secret_xxx --database-id <id>
"""

import json

import click

from notionlite.infrastructure.notion.client import NotionClient


@click.command()
@click.option("--api-key", required=True, envvar="NOTION_API_KEY")
@click.option("--database-id", required=True)
def main(api_key: str, database_id: str):
    with NotionClient(api_key) as client:
        database = client.query_database_properties(database_id)

    click.echo(f"Title      : {''.join(t.get('plain_text', '') for t in database.get('title', []))}")
    click.echo(f"Properties : {json.dumps(database.get('properties', {}), indent=2)}")


if __name__ == "__main__":
    main()
