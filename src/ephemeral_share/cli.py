import asyncio
import logging
from typing import Optional

import typer

from ephemeral_share import create_share_client
from ephemeral_share.checks import check_config
from ephemeral_share.config import ShareConfig, get_settings
from ephemeral_share.logging import configure
from ephemeral_share.models import PurgeSummary
from ephemeral_share.utils.cli_utils import get_rich_console

app = typer.Typer(help="CLI for the ephemeral file sharing service.")
logger = logging.getLogger(__name__)
console = get_rich_console()


def _load_config() -> ShareConfig:
    return ShareConfig.from_settings(get_settings())


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Overrides LOG_LEVEL."),
):
    configure(log_level or get_settings().log_level)


@app.command()
def purge():
    """
    Deletes every stored file older than its size-dependent retention period.
    """
    client = create_share_client(_load_config())

    async def _purge() -> PurgeSummary:
        summary = PurgeSummary()
        async for outcome in client.purger.scan():
            summary.add(outcome)
            if outcome.action == "deleted":
                typer.echo(f"deleted {outcome.path}, {outcome.size_mib:.2f} MiB, {outcome.age_days:.2f} days old")
            elif outcome.action == "errored":
                console.print(f"[bold red]✖[/bold red] {outcome.path}: {outcome.error}")
        return summary

    summary = asyncio.run(_purge())
    typer.echo(f"Deleted {summary.deleted_count} files totalling {summary.deleted_mib:.2f} MiB")
    if summary.error_count:
        console.print(f"[yellow]{summary.error_count} entries could not be processed[/yellow]")


@app.command()
def check():
    """Checks the configuration and the storage directory."""
    console.rule("[bold cyan]Configuration Check[/bold cyan]")
    config = _load_config()
    problems = check_config(config)
    for problem in problems:
        console.print(f"[bold red]✖[/bold red] Warning: {problem}")
    if problems:
        raise typer.Exit(code=1)
    console.print(f"[bold green]✔[/bold green] Storage root '{config.storage.root}': OK")
    if config.hook.command:
        console.print(f"[bold green]✔[/bold green] Validation hook: {config.hook.command}")
    else:
        console.print("[bold green]✔[/bold green] Validation hook: not configured")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address, defaults to SERVER__HOST."),
    port: Optional[int] = typer.Option(None, help="Port, defaults to SERVER__PORT."),
):
    """Runs the upload service."""
    import uvicorn

    from ephemeral_share.server import create_app

    config = _load_config()
    problems = check_config(config)
    for problem in problems:
        console.print(f"[yellow]Warning: {problem}[/yellow]")

    uvicorn.run(
        create_app(create_share_client(config)),
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=get_settings().log_level.lower(),
    )


if __name__ == "__main__":
    app()
