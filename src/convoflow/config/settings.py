"""Settings configuration models.

Engine-wide settings for limits, fixed messages, side effects,
persistence, caching and logging, plus the per-tenant section of the
configuration file.
"""

from typing import Any

from pydantic import BaseModel, Field

from convoflow.core.constants import (
    CIRCUIT_BREAKER_MESSAGE,
    INVALID_OPTION_MESSAGE,
    MAX_HOPS_PER_TURN,
    MAX_NODE_REPEATS,
    UNAVAILABLE_MESSAGE,
    DispatchMode,
)

# DSL version constants
SUPPORTED_VERSIONS = frozenset({"1.0"})
CURRENT_VERSION = "1.0"

# Stage names used by templates authored in Spanish
DEFAULT_STAGE_ALIASES = {
    "nuevos": "new",
    "prospectando": "prospecting",
    "calificacion": "qualification",
    "oportunidad": "opportunity",
    "confirmado": "confirmed",
    "cerrado": "closed",
}


class LimitsConfig(BaseModel):
    """Circuit breaker limits."""

    max_hops_per_turn: int = Field(
        default=MAX_HOPS_PER_TURN, ge=1, description="Nodes processed per turn before tripping"
    )
    max_node_repeats: int = Field(
        default=MAX_NODE_REPEATS, ge=1, description="Visits to one node per turn before tripping"
    )


class MessagesConfig(BaseModel):
    """Fixed user-facing messages."""

    circuit_breaker: str = Field(default=CIRCUIT_BREAKER_MESSAGE)
    unavailable: str = Field(default=UNAVAILABLE_MESSAGE)
    invalid_option: str = Field(default=INVALID_OPTION_MESSAGE)


class SideEffectsConfig(BaseModel):
    """Lead and stage side effect settings."""

    mode: DispatchMode = Field(
        default=DispatchMode.INLINE,
        description=(
            "'inline' applies effects before the turn's save; "
            "'background' queues them per session after the response"
        ),
    )
    stage_aliases: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_STAGE_ALIASES))


class PersistenceConfig(BaseModel):
    """Session store configuration."""

    backend: str = Field(default="memory", description="Backend type: memory, sqlite")
    path: str = Field(default="convoflow.db", description="Database path for sqlite")


class CacheConfig(BaseModel):
    """Compiled graph cache configuration."""

    max_entries: int | None = Field(
        default=256, ge=1, description="LRU capacity; null disables eviction"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO")
    json_file: str | None = Field(default=None, description="Rotating JSON log file path")


class EngineSettings(BaseModel):
    """Global engine settings."""

    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    messages: MessagesConfig = Field(default_factory=MessagesConfig)
    side_effects: SideEffectsConfig = Field(default_factory=SideEffectsConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class CatalogConfig(BaseModel):
    """Static catalog of a tenant."""

    categories: list[str] = Field(default_factory=list)
    products: list[dict[str, Any]] = Field(
        default_factory=list, description="Items with 'name' and optional 'category'"
    )
    availability: list[str] = Field(default_factory=list, description="Bookable slots")


class TenantConfig(BaseModel):
    """Per-tenant section of the configuration file."""

    templates: dict[str, str] = Field(
        default_factory=dict, description="Template id -> template file path"
    )
    active: list[str] = Field(
        default_factory=list, description="Active template ids, default first"
    )
    variables: dict[str, str] = Field(default_factory=dict, description="System variables")
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)

    def active_template_ids(self) -> list[str]:
        return list(self.active) if self.active else list(self.templates)


class EngineConfig(BaseModel):
    """Root configuration with DSL versioning."""

    version: str = Field(default=CURRENT_VERSION, description="DSL version")
    settings: EngineSettings = Field(default_factory=EngineSettings)
    tenants: dict[str, TenantConfig] = Field(default_factory=dict)

    def model_post_init(self, __context: object) -> None:
        """Validate DSL version after initialization."""
        if self.version not in SUPPORTED_VERSIONS:
            raise ValueError(
                f"Unsupported DSL version: {self.version}. "
                f"Supported: {', '.join(sorted(SUPPORTED_VERSIONS))}"
            )
