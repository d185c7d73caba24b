"""Interactive chat runner for convoflow CLI."""

import uuid
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.prompt import Prompt

from convoflow.actions.leads import InMemoryLeadService
from convoflow.config.loader import ConfigLoader
from convoflow.core.errors import ConfigError
from convoflow.core.types import OutboundMessage, TurnResult
from convoflow.observability.logging import setup_logging
from convoflow.persistence.memory import InMemorySessionStore
from convoflow.runtime.engine import ConversationEngine

BANNER_ART = r"""
                             __ _
  ___ ___  _ ____   _____   / _| | _____      __
 / __/ _ \| '_ \ \ / / _ \ | |_| |/ _ \ \ /\ / /
| (_| (_) | | | \ V / (_) ||  _| | (_) \ V  V /
 \___\___/|_| |_|\_/ \___/ |_| |_|\___/ \_/\_/
"""


@dataclass
class ChatConfig:
    """Configuration for chat runner."""

    config_path: Path
    tenant_id: str | None = None
    template_id: str | None = None
    user_id: str | None = None
    verbose: bool = False
    debug: bool = False


class ChatRunner:
    """Interactive chat session runner.

    Encapsulates the setup, execution, and cleanup of an
    interactive chat session against one tenant of a configuration.
    Sessions and leads live in memory for the duration of the run.
    """

    def __init__(self, config: ChatConfig, console: Console | None = None):
        """Initialize chat runner.

        Args:
            config: Chat configuration
            console: Rich console to print to (a new one otherwise)
        """
        self.config = config
        self.console = console or Console()
        self.engine: ConversationEngine | None = None
        self.leads = InMemoryLeadService()
        self.tenant_id = config.tenant_id or ""
        self.user_id = config.user_id or f"cli_{uuid.uuid4().hex[:6]}"
        self.session_id = f"session_{uuid.uuid4().hex[:6]}"
        self._running = False

    async def setup(self) -> None:
        """Load the configuration and build the engine.

        Raises:
            ConfigError: If config is invalid or names an unknown tenant/template
        """
        from dotenv import load_dotenv

        load_dotenv()
        level = "DEBUG" if self.config.debug else "INFO" if self.config.verbose else "WARNING"
        setup_logging(level)

        try:
            engine_config = ConfigLoader.load(self.config.config_path)
        except ConfigError as e:
            self.console.print(f"Invalid config: {e}", style="red", markup=False)
            raise

        if not engine_config.tenants:
            raise ConfigError("Configuration declares no tenants")
        if not self.tenant_id:
            self.tenant_id = next(iter(engine_config.tenants))
        tenant = engine_config.tenants.get(self.tenant_id)
        if tenant is None:
            raise ConfigError("Unknown tenant", tenant_id=self.tenant_id)

        template_id = self.config.template_id
        if template_id:
            if template_id not in tenant.templates:
                raise ConfigError(
                    "Unknown template", tenant_id=self.tenant_id, template=template_id
                )
            tenant.active = [template_id]

        self.engine = ConversationEngine.from_config(
            engine_config, lead_service=self.leads, store=InMemorySessionStore()
        )

    async def start(self) -> None:
        """Start the interactive session."""
        if not self.engine:
            await self.setup()

        self.console.print(BANNER_ART, style="bold blue")
        self.console.print(
            f"Tenant: [green]{self.tenant_id}[/]  Session: [green]{self.session_id}[/]"
        )
        self.console.print("Type 'exit' or 'quit' to end session, '/reset' to start over.\n")

        self._running = True
        while self._running:
            try:
                user_input = Prompt.ask("[bold green]You[/]", console=self.console)

                if self._is_exit_command(user_input):
                    self.console.print("\n[yellow]Goodbye![/]")
                    break

                if not user_input.strip():
                    continue

                await self.handle_input(user_input)

            except KeyboardInterrupt:
                self.console.print("\n[yellow]Goodbye![/]")
                break
            except Exception as e:
                if self.config.debug:
                    self.console.print_exception()
                else:
                    self.console.print(f"Error: {e}", style="red", markup=False)

    async def handle_input(self, user_input: str) -> TurnResult | None:
        """Run one turn (or a slash command) and print the outcome."""
        if self.engine is None:
            return None

        if user_input.strip().lower() == "/reset":
            await self.engine.reset_session(self.tenant_id, self.user_id, self.session_id)
            self.console.print("[yellow]Session reset.[/]\n")
            return None

        had_lead = bool(self.leads.leads_for(self.tenant_id))
        result = await self.engine.handle_message(
            self.tenant_id, self.user_id, self.session_id, user_input
        )
        await self.engine.drain()

        for message in result.messages:
            self._print_message(message)

        if not had_lead and self.leads.leads_for(self.tenant_id):
            lead = self.leads.leads_for(self.tenant_id)[-1]
            self.console.print(f"[magenta]Lead created: {lead.handle} {lead.fields.get('name')}[/]")

        if self.config.verbose:
            state = result.state
            self.console.print(
                f"[dim]node={state.current_node_id} awaiting={state.awaiting_input} "
                f"status={state.status.value} variables={state.variables}[/]\n"
            )
        return result

    def _print_message(self, message: OutboundMessage) -> None:
        self.console.print("Bot > ", style="bold blue", end="")
        self.console.print(message.text, markup=False)
        for position, option in enumerate(message.options, start=1):
            self.console.print(f"       [cyan]{position}.[/] {option.label}")
        self.console.print()

    def _is_exit_command(self, user_input: str) -> bool:
        """Check if input is an exit command."""
        return user_input.strip().lower() in ("quit", "exit", "q", "/quit", "/exit")

    async def cleanup(self) -> None:
        """Clean up resources."""
        self._running = False
        if self.engine is not None:
            await self.engine.close()
            self.engine = None

    async def __aenter__(self) -> "ChatRunner":
        """Async context manager entry."""
        await self.setup()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.cleanup()


async def run_chat_session(config: ChatConfig) -> None:
    """Run an interactive chat session.

    Args:
        config: Chat configuration
    """
    async with ChatRunner(config) as runner:
        await runner.start()
