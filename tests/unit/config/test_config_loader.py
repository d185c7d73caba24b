"""Tests for ConfigLoader and TemplateLoader."""

import json

import pytest
import yaml

from convoflow.config.loader import ConfigLoader, TemplateLoader
from convoflow.config.settings import EngineConfig
from convoflow.core.constants import DispatchMode
from convoflow.core.errors import ConfigError

TEMPLATE = {
    "nodes": [
        {"id": "start", "type": "start", "data": {}},
        {"id": "bye", "type": "end", "data": {"message": "Bye"}},
    ],
    "edges": [{"source": "start", "target": "bye"}],
}


class TestTemplateLoader:
    def test_load_yaml(self, tmp_path):
        """Test YAML templates take their id from the file name."""
        path = tmp_path / "welcome.yaml"
        path.write_text(yaml.safe_dump(TEMPLATE))

        template = TemplateLoader.load(path)

        assert template.id == "welcome"
        assert [n.id for n in template.nodes] == ["start", "bye"]

    def test_load_editor_export_wrapper(self, tmp_path):
        """Test the editor's react_flow_json wrapper is unwrapped."""
        path = tmp_path / "export.json"
        path.write_text(json.dumps({"id": "tpl-7", "name": "Promo", "react_flow_json": TEMPLATE}))

        template = TemplateLoader.load(path)

        assert template.id == "tpl-7"
        assert template.name == "Promo"
        assert template.edges[0].target == "bye"

    def test_source_handle_alias(self, tmp_path):
        """Test sourceHandle is read from editor edges."""
        data = dict(TEMPLATE, edges=[{"source": "start", "target": "bye", "sourceHandle": "s-0"}])
        path = tmp_path / "t.json"
        path.write_text(json.dumps(data))

        assert TemplateLoader.load(path).edges[0].source_handle == "s-0"

    def test_missing_file(self, tmp_path):
        """Test a missing template raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            TemplateLoader.load(tmp_path / "ghost.yaml")

    def test_malformed_file(self, tmp_path):
        """Test unparseable content raises ConfigError."""
        path = tmp_path / "bad.json"
        path.write_text("{nodes: ")

        with pytest.raises(ConfigError, match="not valid"):
            TemplateLoader.load(path)

    def test_invalid_shape(self, tmp_path):
        """Test nodes without ids are rejected."""
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump({"nodes": [{"type": "start"}]}))

        with pytest.raises(ConfigError, match="Invalid template"):
            TemplateLoader.load(path)


class TestConfigLoader:
    def _write_config(self, directory, data):
        path = directory / "convoflow.yaml"
        path.write_text(yaml.safe_dump(data))
        return path

    def test_load_file(self, tmp_path):
        """Test settings and tenants are parsed."""
        # Arrange
        path = self._write_config(
            tmp_path,
            {
                "version": "1.0",
                "settings": {
                    "limits": {"max_hops_per_turn": 20},
                    "side_effects": {"mode": "background"},
                },
                "tenants": {
                    "acme": {
                        "templates": {"welcome": "templates/welcome.yaml"},
                        "variables": {"company_name": "ACME"},
                    }
                },
            },
        )

        # Act
        config = ConfigLoader.load(path)

        # Assert
        assert config.settings.limits.max_hops_per_turn == 20
        assert config.settings.limits.max_node_repeats == 3
        assert config.settings.side_effects.mode is DispatchMode.BACKGROUND
        tenant = config.tenants["acme"]
        assert tenant.templates["welcome"] == str(tmp_path / "templates" / "welcome.yaml")
        assert tenant.active_template_ids() == ["welcome"]

    def test_load_directory(self, tmp_path):
        """Test a directory resolves to its convoflow.yaml."""
        self._write_config(tmp_path, {"version": "1.0"})

        assert ConfigLoader.resolve_path(tmp_path) == tmp_path / "convoflow.yaml"
        assert isinstance(ConfigLoader.load(tmp_path), EngineConfig)

    def test_empty_directory(self, tmp_path):
        """Test a directory without config file raises ConfigError."""
        with pytest.raises(ConfigError, match="No config file"):
            ConfigLoader.load(tmp_path)

    def test_unsupported_version(self, tmp_path):
        """Test unknown DSL versions are rejected."""
        path = self._write_config(tmp_path, {"version": "9.9"})

        with pytest.raises(ConfigError, match="Unsupported DSL version"):
            ConfigLoader.load(path)

    def test_invalid_yaml(self, tmp_path):
        """Test YAML syntax errors raise ConfigError."""
        path = tmp_path / "convoflow.yaml"
        path.write_text("settings: [unclosed")

        with pytest.raises(ConfigError, match="not valid YAML"):
            ConfigLoader.load(path)

    def test_active_list_orders_templates(self, tmp_path):
        """Test an explicit active list selects and orders templates."""
        path = self._write_config(
            tmp_path,
            {
                "tenants": {
                    "acme": {
                        "templates": {"a": "/abs/a.yaml", "b": "/abs/b.yaml"},
                        "active": ["b"],
                    }
                }
            },
        )

        tenant = ConfigLoader.load(path).tenants["acme"]

        assert tenant.active_template_ids() == ["b"]
        assert tenant.templates["a"] == "/abs/a.yaml"
