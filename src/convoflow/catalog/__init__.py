from convoflow.catalog.static import StaticCatalogProvider, StaticTenantVariableProvider

__all__ = ["StaticCatalogProvider", "StaticTenantVariableProvider"]
