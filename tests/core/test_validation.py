"""Tests for configuration and automation document validation.

Tests cover:
- JSON schema generation
- YAML configuration validation
- Automation document validation
"""

from __future__ import annotations

import json

import yaml

from streamweave_bot.core.config import AutomationConfig
from streamweave_bot.core.validation import (
    generate_json_schema,
    validate_automation_documents,
    validate_yaml_config,
)

# ==============================================================================
# JSON Schema Generation Tests
# ==============================================================================


class TestGenerateJsonSchema:
    """Tests for JSON schema generation."""

    def test_generate_schema_returns_dict(self):
        """Test generate_json_schema returns a dictionary."""
        schema = generate_json_schema()

        assert isinstance(schema, dict)
        assert "automation" in schema["properties"]

    def test_generate_schema_saves_to_file(self, tmp_path):
        """Test generate_json_schema saves to file."""
        output_path = tmp_path / "schemas" / "schema.json"

        schema = generate_json_schema(output_path)

        with open(output_path, encoding="utf-8") as f:
            assert json.load(f) == schema


# ==============================================================================
# YAML Validation Tests
# ==============================================================================


class TestValidateYamlConfig:
    """Tests for validate_yaml_config."""

    def test_valid_config(self, tmp_path):
        """Test a valid file passes."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"logging": {"level": "INFO"}}), encoding="utf-8")

        assert validate_yaml_config(path) == (True, [])

    def test_empty_config_is_valid(self, tmp_path):
        """Test an empty file is valid (all defaults)."""
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")

        is_valid, _ = validate_yaml_config(path)

        assert is_valid

    def test_missing_file(self, tmp_path):
        """Test a missing file is reported."""
        is_valid, errors = validate_yaml_config(tmp_path / "nope.yaml")

        assert not is_valid
        assert "not found" in errors[0]

    def test_invalid_yaml(self, tmp_path):
        """Test YAML syntax errors are reported."""
        path = tmp_path / "config.yaml"
        path.write_text("logging: [oops", encoding="utf-8")

        is_valid, errors = validate_yaml_config(path)

        assert not is_valid
        assert "Invalid YAML" in errors[0]

    def test_invalid_values_report_location(self, tmp_path):
        """Test field errors name the offending path."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"http": {"timeout": -1}}), encoding="utf-8")

        is_valid, errors = validate_yaml_config(path)

        assert not is_valid
        assert errors[0].startswith("http -> timeout")

    def test_non_mapping_root(self, tmp_path):
        """Test a list root is rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        assert validate_yaml_config(path)[0] is False


# ==============================================================================
# Automation Document Validation Tests
# ==============================================================================


class TestValidateAutomationDocuments:
    """Tests for validate_automation_documents."""

    def test_empty_directory_is_valid(self, tmp_path):
        """Test missing documents load as empty collections."""
        assert validate_automation_documents(tmp_path) == (True, [])

    def test_missing_directory(self, tmp_path):
        """Test a missing directory is reported."""
        is_valid, errors = validate_automation_documents(tmp_path / "missing")

        assert not is_valid
        assert "not found" in errors[0]

    def test_valid_documents(self, tmp_path):
        """Test array and object documents both validate."""
        (tmp_path / "commands.json").write_text(
            json.dumps([{"id": "c1", "command": "!so"}]), encoding="utf-8"
        )
        (tmp_path / "actions.json").write_text(
            json.dumps({"actions": [{"id": "a1"}], "queues": [{"id": "q1"}]}), encoding="utf-8"
        )

        assert validate_automation_documents(tmp_path) == (True, [])

    def test_invalid_json(self, tmp_path):
        """Test JSON syntax errors are reported per document."""
        (tmp_path / "actions.json").write_text("{oops", encoding="utf-8")

        is_valid, errors = validate_automation_documents(tmp_path)

        assert not is_valid
        assert errors[0].startswith("actions.json: invalid JSON")

    def test_invalid_entries_are_located(self, tmp_path):
        """Test entry errors name the document and position."""
        (tmp_path / "commands.json").write_text(
            json.dumps([{"id": "c1"}, {"id": "c2", "userCooldown": -5}, "text"]), encoding="utf-8"
        )

        is_valid, errors = validate_automation_documents(tmp_path)

        assert not is_valid
        assert any(error.startswith("commands.json -> commands[1]") for error in errors)
        assert "commands.json -> commands[2]: expected an object" in errors

    def test_custom_file_names(self, tmp_path):
        """Test document names come from the automation settings."""
        (tmp_path / "cmds.json").write_text("{oops", encoding="utf-8")
        automation = AutomationConfig(commands_file="cmds.json")

        assert validate_automation_documents(tmp_path)[0] is True
        assert validate_automation_documents(tmp_path, automation)[0] is False
