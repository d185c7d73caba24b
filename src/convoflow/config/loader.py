"""Loaders for engine configuration and template files."""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from convoflow.config.models import TemplateDefinition
from convoflow.config.settings import EngineConfig
from convoflow.core.errors import ConfigError

CONFIG_FILENAMES = ("convoflow.yaml", "convoflow.yml", "config.yaml")


def _read_structured(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            return json.load(f)
        return yaml.safe_load(f)


class TemplateLoader:
    """Load raw template definitions from YAML or JSON files."""

    @staticmethod
    def load(path: Path | str) -> TemplateDefinition:
        """Load a template definition.

        Accepts either the bare ``{nodes, edges}`` document or the editor's
        export wrapper ``{react_flow_json: {nodes, edges}}``.

        Raises:
            ConfigError: If the file is missing or malformed
        """
        template_path = Path(path)
        if not template_path.exists():
            raise ConfigError("Template file not found", path=str(template_path))

        try:
            data = _read_structured(template_path) or {}
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Template file is not valid: {e}", path=str(template_path)) from e

        if isinstance(data, dict) and "nodes" not in data and "react_flow_json" in data:
            wrapper = data
            data = dict(wrapper["react_flow_json"] or {})
            data.setdefault("id", wrapper.get("id"))
            data.setdefault("name", wrapper.get("name"))

        if isinstance(data, dict) and not data.get("id"):
            data["id"] = template_path.stem

        try:
            return TemplateDefinition.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid template definition: {e}", path=str(template_path)) from e


class ConfigLoader:
    """Load EngineConfig from YAML files."""

    @staticmethod
    def resolve_path(path: Path | str) -> Path:
        """Resolve a config directory to its master file."""
        config_path = Path(path)
        if config_path.is_dir():
            for filename in CONFIG_FILENAMES:
                candidate = config_path / filename
                if candidate.exists():
                    return candidate
            raise ConfigError("No config file found in directory", path=str(config_path))
        if not config_path.exists():
            raise ConfigError("Config file not found", path=str(config_path))
        return config_path

    @staticmethod
    def load(path: Path | str) -> EngineConfig:
        """Load configuration from a YAML file or directory.

        Template paths in the ``tenants`` section are resolved relative to the
        configuration file.

        Args:
            path: Path to config directory or convoflow.yaml file

        Returns:
            Parsed EngineConfig instance
        """
        yaml_file = ConfigLoader.resolve_path(path)

        try:
            with open(yaml_file, encoding="utf-8") as f:
                data: dict[str, Any] = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Config file is not valid YAML: {e}", path=str(yaml_file)) from e

        try:
            config = EngineConfig.model_validate(data)
        except (ValidationError, ValueError) as e:
            raise ConfigError(f"Invalid configuration: {e}", path=str(yaml_file)) from e

        base_dir = yaml_file.parent
        for tenant in config.tenants.values():
            for template_id, template_path in tenant.templates.items():
                resolved = Path(template_path)
                if not resolved.is_absolute():
                    tenant.templates[template_id] = str(base_dir / resolved)

        return config
