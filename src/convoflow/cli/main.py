"""Main CLI entry point for convoflow"""

import typer

from convoflow.__version__ import __version__
from convoflow.cli.commands import chat as chat_module
from convoflow.cli.commands import server as server_module
from convoflow.cli.commands.validate import validate_template

app = typer.Typer(
    name="convoflow",
    help="convoflow - Multi-tenant conversational flow interpreter",
    add_completion=False,
)

# Register subcommands
app.add_typer(chat_module.app, name="chat", help="Chat with a tenant's flows in the terminal")
app.add_typer(server_module.app, name="server", help="Start the convoflow API server")
app.command("validate", help="Compile and inspect a template file")(validate_template)


def version_callback(value: bool) -> None:
    """Print version and exit"""
    if value:
        typer.echo(f"convoflow version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """convoflow - Multi-tenant conversational flow interpreter"""
    pass


def cli() -> None:
    """Entry point for CLI"""
    app()


if __name__ == "__main__":
    cli()
