"""
Holland Checkout CLI.

Usage:
    holland-checkout [OPTIONS] COMMAND [ARGS]...
"""
from __future__ import annotations

import asyncio
import json
import sys

import click
from rich.console import Console
from rich.table import Table

from holland_checkout.codes import CodeRegistry
from holland_checkout.config import DEFAULT_PUBLIC_HOST, load_settings
from holland_checkout.exceptions import CheckoutRedirectError
from holland_checkout.store import create_code_store

console = Console()
err_console = Console(stderr=True)


@click.group()
@click.version_option(package_name="holland-checkout", message="%(prog)s %(version)s")
@click.option("--env-file", type=click.Path(dir_okay=False), help="Settings .env file")
@click.pass_context
def cli(ctx, env_file: str | None):
    """Holland Checkout - Payper redirect service and code admin."""
    ctx.ensure_object(dict)
    ctx.obj["settings"] = load_settings(env_file)


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.option("--reload", is_flag=True, help="Reload on code changes (dev only)")
def serve(host: str, port: int, reload: bool):
    """Run the checkout redirect API."""
    import uvicorn

    uvicorn.run("holland_checkout.api.main:app", host=host, port=port, reload=reload)


@cli.group()
def codes():
    """Manage redemption codes."""
    pass


@codes.command("create")
@click.option("--amount", required=True, help="Default charge amount")
@click.option("--product", default=None, help="Product display name")
@click.option("--currency", default=None, help="Currency code (default CAD)")
@click.option("--token", default=None, help="Code-scoped Payper token")
@click.option("--allow-override", is_flag=True, help="Let redeemers override the amount")
@click.option("--code", default=None, help="Explicit code (generated when omitted)")
@click.option("--base-url", default=f"https://{DEFAULT_PUBLIC_HOST}", show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
@click.pass_context
def create_code(
    ctx,
    amount: str,
    product: str | None,
    currency: str | None,
    token: str | None,
    allow_override: bool,
    code: str | None,
    base_url: str,
    as_json: bool,
):
    """Register a redemption code in the configured store."""
    settings = ctx.obj["settings"]

    async def _run():
        store = create_code_store(settings)
        try:
            return await CodeRegistry(store).register(
                amount=amount,
                base_url=base_url,
                product=product,
                currency=currency,
                token=token,
                allow_amount_override=allow_override,
                code=code,
            )
        finally:
            await store.close()

    try:
        registered = asyncio.run(_run())
    except CheckoutRedirectError as e:
        err_console.print(f"[red]Error:[/red] {e.error_code}: {e.message}")
        sys.exit(1)

    if not settings.remote_store_configured and not as_json:
        err_console.print("[yellow]Warning: no Upstash credentials set; the code only lived in this process[/yellow]")

    if as_json:
        click.echo(json.dumps(registered.to_dict(), indent=2))
        return

    table = Table(title=f"Code {registered.code}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Short URL", registered.short_url)
    for key, value in registered.config.to_dict().items():
        if key == "token" and value:
            value = value[:4] + "..." if len(value) > 8 else "***"
        table.add_row(key, str(value))
    console.print(table)


@codes.command("show")
@click.argument("code")
@click.pass_context
def show_code(ctx, code: str):
    """Print the stored config for CODE."""
    settings = ctx.obj["settings"]

    async def _run():
        store = create_code_store(settings)
        try:
            return await store.get(code)
        finally:
            await store.close()

    try:
        config = asyncio.run(_run())
    except CheckoutRedirectError as e:
        err_console.print(f"[red]Error:[/red] {e.error_code}: {e.message}")
        sys.exit(1)

    if config is None:
        err_console.print(f"[red]Code {code} not found[/red]")
        sys.exit(1)

    click.echo(json.dumps(config.to_dict(), indent=2))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
