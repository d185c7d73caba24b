"""Configuration module for convoflow."""

from convoflow.config.models import RawEdge, RawNode, TemplateDefinition
from convoflow.config.settings import EngineConfig, EngineSettings, TenantConfig

__all__ = [
    "EngineConfig",
    "EngineSettings",
    "TenantConfig",
    "TemplateDefinition",
    "RawNode",
    "RawEdge",
]
