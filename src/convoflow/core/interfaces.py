"""Core interfaces (Protocols) for the collaborators the engine depends on."""

from typing import Any, Protocol

from convoflow.config.models import TemplateDefinition
from convoflow.core.graph import OptionItem
from convoflow.core.state import SessionState


class SessionStore(Protocol):
    """Load/save contract of the session persistence engine.

    Implementations raise ``PersistenceError`` on failure.
    """

    async def load(self, tenant_id: str, user_id: str, session_id: str) -> SessionState | None:
        """Return the stored state, or None when the session is unknown."""
        ...

    async def save(
        self,
        tenant_id: str,
        user_id: str,
        session_id: str,
        state: SessionState,
    ) -> None:
        """Persist the state for the triple."""
        ...


class LeadService(Protocol):
    """Lead and sales-funnel operations (injected by the host)."""

    async def create_lead(self, tenant_id: str, fields: dict[str, Any]) -> str:
        """Create a lead and return its handle."""
        ...

    async def transition_stage(self, tenant_id: str, lead_handle: str, stage_id: str) -> None:
        """Move a lead to a sales-funnel stage."""
        ...


class CatalogProvider(Protocol):
    """Source of options for catalog-backed option sets."""

    async def list_options(
        self,
        tenant_id: str,
        filter_context: dict[str, Any],
    ) -> list[OptionItem]:
        """Return the ordered options for a filter.

        ``filter_context["source"]`` names the catalog (categories, products,
        availability); the remaining keys narrow the lookup.
        """
        ...


class TenantVariableProvider(Protocol):
    """Tenant-level system variables used by substitution."""

    async def get_variables(self, tenant_id: str) -> dict[str, str]:
        ...


class TemplateRepository(Protocol):
    """Where tenant templates come from."""

    async def get_template(self, tenant_id: str, template_id: str) -> TemplateDefinition:
        """Return the raw definition; raise TemplateNotFoundError when unknown."""
        ...

    async def active_templates(self, tenant_id: str) -> list[str]:
        """Ordered template ids active for the tenant; the first is the default."""
        ...
