"""Template repositories: where tenant templates come from."""

import logging

from convoflow.config.loader import TemplateLoader
from convoflow.config.models import TemplateDefinition
from convoflow.config.settings import EngineConfig
from convoflow.core.errors import TemplateNotFoundError

logger = logging.getLogger(__name__)


class InMemoryTemplateRepository:
    """Templates held in memory (tests, embedding hosts)."""

    def __init__(self) -> None:
        self._templates: dict[str, dict[str, TemplateDefinition]] = {}
        self._active: dict[str, list[str]] = {}

    def add(
        self,
        tenant_id: str,
        template_id: str,
        template: TemplateDefinition | dict,
        active: bool = True,
    ) -> None:
        """Register (or replace) a template for a tenant."""
        if isinstance(template, dict):
            template = TemplateDefinition.model_validate(template)
        self._templates.setdefault(tenant_id, {})[template_id] = template
        active_ids = self._active.setdefault(tenant_id, [])
        if active and template_id not in active_ids:
            active_ids.append(template_id)

    def set_active(self, tenant_id: str, template_ids: list[str]) -> None:
        self._active[tenant_id] = list(template_ids)

    async def get_template(self, tenant_id: str, template_id: str) -> TemplateDefinition:
        try:
            return self._templates[tenant_id][template_id]
        except KeyError:
            raise TemplateNotFoundError(
                "Unknown template", tenant_id=tenant_id, template_id=template_id
            ) from None

    async def active_templates(self, tenant_id: str) -> list[str]:
        return list(self._active.get(tenant_id, []))


class ConfigTemplateRepository:
    """Templates declared in the engine configuration and read from files.

    Files are read on every ``get_template`` call; compiled graphs are
    cached by ``FlowCache``, so a file is only read again on recompilation.
    """

    def __init__(self, config: EngineConfig):
        self.config = config

    async def get_template(self, tenant_id: str, template_id: str) -> TemplateDefinition:
        tenant = self.config.tenants.get(tenant_id)
        if tenant is None or template_id not in tenant.templates:
            raise TemplateNotFoundError(
                "Unknown template", tenant_id=tenant_id, template_id=template_id
            )
        path = tenant.templates[template_id]
        logger.debug(f"Loading template '{template_id}' of tenant '{tenant_id}' from {path}")
        return TemplateLoader.load(path)

    async def active_templates(self, tenant_id: str) -> list[str]:
        tenant = self.config.tenants.get(tenant_id)
        return tenant.active_template_ids() if tenant else []
