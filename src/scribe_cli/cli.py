"""Command-line interface for publishing Markdown pages to a wiki."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import ProviderType, ensure_config
from .confluence import ListOptions, Page, ScribeClient, Space, create_client
from .convert import ContentConverter
from .errors import DocumentError, ScribeError
from .local import DocumentMetadata, load_document, save_document, validate_path

app = typer.Typer(help="Documentation CLI for publishing Markdown pages to Confluence-style wikis.")
spaces_app = typer.Typer(help="Manage wiki spaces")
page_app = typer.Typer(help="Manage wiki pages")
convert_app = typer.Typer(help="Convert documents without contacting the wiki")
app.add_typer(spaces_app, name="spaces")
app.add_typer(page_app, name="page")
app.add_typer(convert_app, name="convert")

console = Console()
err_console = Console(stderr=True)
converter = ContentConverter()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    app_logger = logging.getLogger("scribe_cli")
    app_logger.setLevel(level)
    # Repeated invocations in one process must not stack handlers.
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
    handler = RichHandler(console=err_console, show_path=False, log_time_format="[%X]")
    handler.setLevel(level)
    app_logger.addHandler(handler)


@contextmanager
def _reporting_errors() -> Iterator[None]:
    try:
        yield
    except (ScribeError, httpx.HTTPError) as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


@contextmanager
def _open_client(ctx: typer.Context) -> Iterator[ScribeClient]:
    options = ctx.obj or {}
    config = ensure_config(
        url=options.get("url"),
        username=options.get("username"),
        api_token=options.get("api_token"),
        provider=options.get("provider"),
        config_path=options.get("config_path"),
    )
    client = create_client(config)
    try:
        yield client
    finally:
        client.close()


def _print_json(data: object) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _print_pages_table(pages: Iterable[Page], *, title: str) -> None:
    table = Table(title=title)
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Space")
    table.add_column("Version", justify="right")
    for page in pages:
        table.add_row(page.id, page.title, page.space_key or "", str(page.version))
    console.print(table)


def _print_spaces_table(spaces: Iterable[Space]) -> None:
    table = Table(title="Spaces")
    table.add_column("Key")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("ID", justify="right")
    for space in spaces:
        table.add_row(space.key, space.name, space.type, str(space.id))
    console.print(table)


def _read_source(source: str) -> str:
    if source == "-":
        return typer.get_text_stream("stdin").read()
    path = validate_path(Path(source))
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentError(path, f"failed to read file: {exc}") from exc


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a configuration TOML file",
    ),
    url: Optional[str] = typer.Option(None, "--url", help="Base URL of the wiki instance"),
    username: Optional[str] = typer.Option(None, "--username", help="Account name for basic authentication"),
    api_token: Optional[str] = typer.Option(None, "--api-token", help="API token"),
    provider: Optional[ProviderType] = typer.Option(
        None,
        "--provider",
        help="Wiki provider; detected from the credentials when omitted",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log HTTP traffic and conversion details"),
) -> None:
    _configure_logging(verbose)
    ctx.obj = {
        "config_path": config_path,
        "url": url,
        "username": username,
        "api_token": api_token,
        "provider": provider.value if provider else None,
    }


@spaces_app.command("list")
def list_spaces(
    ctx: typer.Context,
    limit: int = typer.Option(50, "--limit", min=1, help="Limit the number of results"),
    offset: int = typer.Option(0, "--offset", min=0, help="Starting offset for results"),
    table: bool = typer.Option(False, "--table", help="Render a table instead of JSON"),
) -> None:
    """List all spaces."""

    with _reporting_errors(), _open_client(ctx) as client:
        spaces = client.list_spaces(ListOptions(limit=limit, offset=offset))

    if table:
        _print_spaces_table(spaces)
    else:
        _print_json([space.to_dict() for space in spaces])


@page_app.command("create")
def create_page(
    ctx: typer.Context,
    file: Path = typer.Option(..., "--file", "-f", help="Markdown file path"),
    space_key: Optional[str] = typer.Option(
        None, "--space", "-s", help="Space key; defaults to the file's space_key frontmatter"
    ),
    title: Optional[str] = typer.Option(
        None, "--title", "-t", help="Page title; defaults to the file's title frontmatter"
    ),
    parent_id: Optional[str] = typer.Option(None, "--parent", help="Parent page ID"),
) -> None:
    """Create a new page from a Markdown file."""

    with _reporting_errors():
        document = load_document(file)
        space_key = space_key or document.metadata.space_key
        title = title or document.metadata.title
        parent_id = parent_id or document.metadata.parent_id
        if not space_key:
            raise typer.BadParameter("A space key is required (--space or space_key frontmatter)")
        if not title:
            raise typer.BadParameter("A page title is required (--title or title frontmatter)")

        storage = converter.markdown_to_storage(document.content)
        with _open_client(ctx) as client:
            page = client.create_page(
                space_key=space_key,
                title=title,
                storage=storage,
                parent_id=parent_id,
            )

    _print_json(page.to_dict())


@page_app.command("update")
def update_page(
    ctx: typer.Context,
    file: Path = typer.Option(..., "--file", "-f", help="Markdown file path"),
    page_id: Optional[str] = typer.Option(
        None, "--id", help="Page ID; defaults to the file's page_id frontmatter"
    ),
) -> None:
    """Replace the body of an existing page with a Markdown file."""

    with _reporting_errors():
        document = load_document(file)
        page_id = page_id or document.metadata.page_id
        if not page_id:
            raise typer.BadParameter("A page ID is required (--id or page_id frontmatter)")

        storage = converter.markdown_to_storage(document.content)
        with _open_client(ctx) as client:
            page = client.update_page(page_id, storage)

    _print_json(page.to_dict())


@page_app.command("get")
def get_page(
    ctx: typer.Context,
    page_id: str = typer.Option(..., "--id", help="Page ID"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the page to this Markdown file (with frontmatter) instead of stdout",
    ),
) -> None:
    """Fetch a page and print it as Markdown."""

    with _reporting_errors():
        with _open_client(ctx) as client:
            page = client.get_page(page_id)
        markdown = converter.storage_to_markdown(page.body.storage)

        if output is None:
            typer.echo(markdown)
            return

        save_document(
            output,
            markdown,
            DocumentMetadata(
                title=page.title,
                space_key=page.space_key,
                page_id=page.id,
                version=page.version,
            ),
        )
    err_console.print(f"Wrote page [bold]{escape(page.title)}[/bold] to {escape(str(output))}.")


@page_app.command("search")
def search_pages(
    ctx: typer.Context,
    space_key: str = typer.Option(..., "--space", "-s", help="Space key"),
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Only pages whose title matches"),
    limit: int = typer.Option(100, "--limit", min=1, help="Limit the number of results"),
    offset: int = typer.Option(0, "--offset", min=0, help="Starting offset for results"),
    table: bool = typer.Option(False, "--table", help="Render a table instead of JSON"),
) -> None:
    """Search pages in a space."""

    with _reporting_errors(), _open_client(ctx) as client:
        pages = client.search_pages(space_key, ListOptions(limit=limit, offset=offset, query=query))

    if table:
        _print_pages_table(pages, title=f"Pages in {space_key}")
    else:
        _print_json([page.to_dict() for page in pages])


@convert_app.command("to-storage")
def convert_to_storage(
    source: str = typer.Argument(..., help="Markdown file to convert, or - for stdin"),
) -> None:
    """Print the storage format a Markdown file would be published as."""

    with _reporting_errors():
        typer.echo(converter.markdown_to_storage(_read_source(source)))


@convert_app.command("to-markdown")
def convert_to_markdown(
    source: str = typer.Argument(..., help="Storage-format file to convert, or - for stdin"),
) -> None:
    """Print a storage-format document as Markdown."""

    with _reporting_errors():
        typer.echo(converter.storage_to_markdown(_read_source(source)))


def run() -> None:
    """Entry point for console scripts."""

    app()


if __name__ == "__main__":  # pragma: no cover
    run()
