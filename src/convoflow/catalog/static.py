"""Catalog and tenant variables served from the engine configuration."""

import logging
from typing import Any

from convoflow.config.settings import CatalogConfig, EngineConfig
from convoflow.core.constants import OptionSource
from convoflow.core.graph import OptionItem
from convoflow.du.vocabulary import fold

logger = logging.getLogger(__name__)


def _product_option(product: dict[str, Any]) -> OptionItem:
    name = str(product.get("name") or product.get("label") or product.get("id", ""))
    value = product.get("value") or product.get("id") or name
    price = product.get("price")
    description = product.get("description")
    if description is None and price is not None:
        description = f"${price}"
    return OptionItem(
        label=name,
        value=str(value),
        description=str(description) if description is not None else None,
    )


class StaticCatalogProvider:
    """Options for catalog-backed nodes from per-tenant static lists.

    Product lookups are narrowed by ``category`` (a node's static filter)
    or ``selected_category`` (the selection of an earlier categories node).
    """

    def __init__(self, catalogs: dict[str, CatalogConfig] | None = None):
        self.catalogs = catalogs or {}

    @classmethod
    def from_config(cls, config: EngineConfig) -> "StaticCatalogProvider":
        return cls({tenant_id: tenant.catalog for tenant_id, tenant in config.tenants.items()})

    async def list_options(
        self,
        tenant_id: str,
        filter_context: dict[str, Any],
    ) -> list[OptionItem]:
        catalog = self.catalogs.get(tenant_id)
        if catalog is None:
            logger.debug(f"No catalog configured for tenant '{tenant_id}'")
            return []

        source = filter_context.get("source", OptionSource.CATEGORIES.value)
        if source == OptionSource.CATEGORIES.value:
            return [OptionItem(label=category) for category in catalog.categories]
        if source == OptionSource.AVAILABILITY.value:
            return [OptionItem(label=slot) for slot in catalog.availability]
        if source == OptionSource.PRODUCTS.value:
            category = filter_context.get("category") or filter_context.get("selected_category")
            products = catalog.products
            if category:
                wanted = fold(str(category))
                products = [p for p in products if fold(str(p.get("category", ""))) == wanted]
            return [_product_option(product) for product in products]

        logger.warning(f"Unknown catalog source '{source}'")
        return []


class StaticTenantVariableProvider:
    """Tenant system variables from the engine configuration."""

    def __init__(self, variables: dict[str, dict[str, str]] | None = None):
        self.variables = variables or {}

    @classmethod
    def from_config(cls, config: EngineConfig) -> "StaticTenantVariableProvider":
        return cls(
            {tenant_id: dict(tenant.variables) for tenant_id, tenant in config.tenants.items()}
        )

    async def get_variables(self, tenant_id: str) -> dict[str, str]:
        return dict(self.variables.get(tenant_id, {}))
