"""Chat command for interactive sessions."""

import asyncio
from pathlib import Path

import typer

app = typer.Typer(help="Start interactive chat with a tenant's flows")


@app.callback(invoke_without_command=True)
def run_chat(
    ctx: typer.Context,
    config: Path = typer.Option(
        "convoflow.yaml", "--config", "-c", help="Path to convoflow.yaml or config directory"
    ),
    tenant: str | None = typer.Option(
        None, "--tenant", "-t", help="Tenant to chat as (first configured tenant by default)"
    ),
    template: str | None = typer.Option(
        None, "--template", help="Only activate this template for the session"
    ),
    user_id: str | None = typer.Option(None, "--user", "-u", help="User ID"),
    debug: bool = typer.Option(False, "--debug", help="Debug mode"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose mode"),
) -> None:
    """Start interactive chat session."""
    if ctx and ctx.invoked_subcommand:
        return

    from convoflow.cli.chat_runner import ChatConfig, run_chat_session

    chat_config = ChatConfig(
        config_path=config,
        tenant_id=tenant,
        template_id=template,
        user_id=user_id,
        debug=debug,
        verbose=verbose,
    )

    try:
        asyncio.run(run_chat_session(chat_config))
    except KeyboardInterrupt:
        pass
    except Exception as e:
        typer.echo(f"Fatal error: {e}", err=True)
        raise typer.Exit(1)
