"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to the command runner.
"""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import load_dotenv

from ZoteroReader.api import create_app
from ZoteroReader.cli.runner import CommandRunner
from ZoteroReader.config import DEFAULT_CONFIG_PATH, load_config_with_defaults
from ZoteroReader.core.errors import ProviderNotFound
from ZoteroReader.core.models import NewProvider, ProviderKind, ProviderPatch, TranslateRequest
from ZoteroReader.services import ReaderServices
from ZoteroReader.storage.settings import ZOTERO_API_KEY, ZOTERO_USER_ID
from ZoteroReader.translate.probe import probe_provider

KIND_CHOICE = click.Choice([kind.value for kind in ProviderKind])


@click.group(help="ZoteroReader: translate and discuss Zotero papers.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="YAML file merged over config/default.yml.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """CLI entry group.

    Loads environment variables from .env file before processing config.
    """
    load_dotenv()
    ctx.obj = CommandRunner(load_config_with_defaults(config_path, DEFAULT_CONFIG_PATH))


def _run(ctx: click.Context, command):
    runner: CommandRunner = ctx.obj
    return runner.run(ctx.command.name, command)


@cli.command("serve")
@click.option("--host", default=None, help="Bind address (default: server.host).")
@click.option("--port", type=int, default=None, help="Port (default: server.port).")
@click.pass_context
def serve_cmd(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run the HTTP API."""
    server = ctx.obj.config.server

    def serve(services: ReaderServices) -> None:
        app = create_app(services)
        app.run(host=host or server.host, port=port or server.port, threaded=True)

    _run(ctx, serve)


@cli.group("provider")
def provider_group() -> None:
    """Manage translation and chat providers."""


@provider_group.command("list")
@click.pass_context
def provider_list_cmd(ctx: click.Context) -> None:
    def show(services: ReaderServices) -> None:
        views = services.providers.list()
        if not views:
            click.echo("No providers configured.")
            return
        for view in views:
            state = "on" if view.enabled else "off"
            secret = view.access_token or view.api_key
            detail = f"{view.base_url} {view.model}".strip()
            click.echo(f"{view.priority:>3}  {view.id}  [{state}] {view.name} ({view.kind.value}) {detail} {secret}".rstrip())

    _run(ctx, show)


def _provider_options(func):
    for option in reversed(
        [
            click.option("--token", "access_token", default=None, help="DeepLX access token."),
            click.option("--base-url", default=None, help="Chat-completion API base URL."),
            click.option("--api-key", default=None, help="Chat-completion API key."),
            click.option("--model", default=None, help="Chat-completion model."),
            click.option("--system-prompt", default=None, help="Translation system prompt template."),
            click.option("--user-prompt", default=None, help="Translation user prompt template."),
        ]
    ):
        func = option(func)
    return func


@provider_group.command("add")
@click.option("--name", required=True)
@click.option("--type", "kind", type=KIND_CHOICE, required=True)
@click.option("--disabled", is_flag=True, help="Add the provider disabled.")
@_provider_options
@click.pass_context
def provider_add_cmd(ctx: click.Context, name: str, kind: str, disabled: bool, **fields: str | None) -> None:
    provider = NewProvider(name=name, kind=ProviderKind.parse(kind), enabled=not disabled, **fields)
    provider_id = _run(ctx, lambda services: services.providers.add(provider))
    click.echo(provider_id)


@provider_group.command("update")
@click.argument("provider_id")
@click.option("--name", default=None)
@click.option("--enable/--disable", "enabled", default=None)
@click.option("--priority", type=int, default=None)
@_provider_options
@click.pass_context
def provider_update_cmd(
    ctx: click.Context,
    provider_id: str,
    name: str | None,
    enabled: bool | None,
    priority: int | None,
    **fields: str | None,
) -> None:
    patch = ProviderPatch(name=name, enabled=enabled, priority=priority, **fields)
    _run(ctx, lambda services: services.providers.update(provider_id, patch))
    click.echo("Updated.")


@provider_group.command("remove")
@click.argument("provider_id")
@click.pass_context
def provider_remove_cmd(ctx: click.Context, provider_id: str) -> None:
    _run(ctx, lambda services: services.providers.remove(provider_id))
    click.echo("Removed.")


@provider_group.command("test")
@click.argument("provider_id")
@click.pass_context
def provider_test_cmd(ctx: click.Context, provider_id: str) -> None:
    """Send a tiny request to a stored provider."""

    def probe(services: ReaderServices):
        provider = services.providers.get(provider_id)
        if provider is None:
            raise ProviderNotFound(f"Provider {provider_id!r} does not exist")
        return probe_provider(provider, services.translators)

    result = _run(ctx, probe)
    if result.success:
        click.echo(f"OK ({result.latency_ms} ms): {result.output}")
    else:
        raise click.ClickException(f"Probe failed after {result.latency_ms} ms: {result.error}")


@cli.command("translate")
@click.argument("text")
@click.option("--provider", "provider_id", required=True, help="Provider id.")
@click.option("--to", "target_lang", default="zh", show_default=True)
@click.option("--from", "source_lang", default="auto", show_default=True)
@click.pass_context
def translate_cmd(ctx: click.Context, text: str, provider_id: str, target_lang: str, source_lang: str) -> None:
    request = TranslateRequest(text=text, source_lang=source_lang, target_lang=target_lang, provider_id=provider_id)
    result = _run(ctx, lambda services: services.translation.translate(request))
    click.echo(result.translation)
    for alternative in result.alternatives:
        click.echo(f"  ~ {alternative}")
    if result.from_cache:
        click.echo("(cached)", err=True)


@cli.command("chat")
@click.argument("document_id")
@click.argument("message")
@click.option("--provider", "provider_id", required=True, help="Chat provider id.")
@click.option("--quote", default=None, help="Selected passage to discuss.")
@click.option("--lang", "target_lang", default=None, help="Answer language code.")
@click.pass_context
def chat_cmd(
    ctx: click.Context,
    document_id: str,
    message: str,
    provider_id: str,
    quote: str | None,
    target_lang: str | None,
) -> None:
    """Ask a question about a Zotero item and stream the answer."""

    def converse(services: ReaderServices) -> None:
        stream = services.chat.send(document_id, provider_id, message, quote, target_lang)
        shown = 0
        try:
            for _ in stream:
                reply = stream.reply
                click.echo(reply[shown:], nl=False)
                shown = len(reply)
        finally:
            stream.close()
        click.echo()

    _run(ctx, converse)


@cli.command("history")
@click.option("--offset", type=int, default=0, show_default=True)
@click.option("--limit", type=click.IntRange(1, 100), default=30, show_default=True)
@click.option("--search", default=None, help="Case-insensitive substring filter.")
@click.pass_context
def history_cmd(ctx: click.Context, offset: int, limit: int, search: str | None) -> None:
    """List translation history, newest first."""
    page = _run(ctx, lambda services: services.cache.list_history(offset=offset, limit=limit, search=search))
    for record in page.records:
        click.echo(f"[{record.id}] ({record.target_lang}) {record.source_text} -> {record.translation}")
    click.echo(f"{len(page.records)} of {page.total} records", err=True)


@cli.command("clear-history")
@click.option("--id", "record_id", type=int, default=None, help="Delete one record.")
@click.option("--all", "clear_all", is_flag=True, help="Delete every record.")
@click.option("--document", "document_id", default=None, help="Clear the chat history of a Zotero item.")
@click.pass_context
def clear_history_cmd(ctx: click.Context, record_id: int | None, clear_all: bool, document_id: str | None) -> None:
    """Delete translation history records or a document's chat history."""
    if record_id is None and not clear_all and not document_id:
        raise click.UsageError("Pass --id, --all or --document")

    def clear(services: ReaderServices) -> None:
        if document_id:
            services.chat.clear(document_id)
        if clear_all:
            services.cache.clear()
        elif record_id is not None:
            services.cache.delete_record(record_id)

    _run(ctx, clear)
    click.echo("Cleared.")


@cli.group("zotero")
def zotero_group() -> None:
    """Zotero account settings."""


@zotero_group.command("configure")
@click.option("--user-id", required=True, help="Numeric Zotero user id.")
@click.option("--api-key", required=True, help="Zotero API key (stored encrypted).")
@click.option("--test/--no-test", "run_test", default=True, show_default=True, help="Check the credentials first.")
@click.pass_context
def zotero_configure_cmd(ctx: click.Context, user_id: str, api_key: str, run_test: bool) -> None:
    def configure(services: ReaderServices) -> dict | None:
        if run_test:
            outcome = services.zotero.test_connection(user_id, api_key)
            if not outcome["success"]:
                return outcome
        services.settings.set(ZOTERO_USER_ID, user_id)
        services.settings.set(ZOTERO_API_KEY, api_key)
        return None

    failure = _run(ctx, configure)
    if failure:
        raise click.ClickException(f"Zotero rejected the credentials: {failure['error']}")
    click.echo("Zotero credentials saved.")
