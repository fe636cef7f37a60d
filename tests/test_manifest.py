"""Tests for manifest decoding."""

import json

import pytest

from plugin_host.errors import DecodeError, ManifestError
from plugin_host.plugins.manifest import Plugin, PluginManifest, Tool, parse_manifest


class TestParseManifest:
    """Tests for parse_manifest."""

    def test_minimal_manifest(self):
        """Name plus tools is enough; description and parameters default to None."""
        manifest = parse_manifest(json.dumps({
            "name": "echo",
            "tools": [{"name": "say", "description": "echoes input"}],
        }))

        assert manifest.name == "echo"
        assert manifest.description is None
        assert manifest.tools == [Tool(name="say", description="echoes input")]
        assert manifest.tools[0].parameters is None

    def test_parameters_passed_through(self):
        """Declared parameter schemas are kept untouched."""
        schema = {"type": "object", "properties": {"text": {"type": "string"}}, "required": ["text"]}
        manifest = parse_manifest(json.dumps({
            "name": "echo",
            "description": "Echo plugin",
            "tools": [{"name": "say", "description": "echoes input", "parameters": schema}],
        }))

        assert manifest.description == "Echo plugin"
        assert manifest.tools[0].parameters == schema

    def test_tool_order_preserved(self):
        """Tools keep their declaration order."""
        names = ["zeta", "alpha", "mid"]
        manifest = parse_manifest(json.dumps({
            "name": "p",
            "tools": [{"name": n, "description": n} for n in names],
        }))

        assert [tool.name for tool in manifest.tools] == names

    def test_trailing_newline_accepted(self):
        """The newline console.log appends is not a protocol violation."""
        manifest = parse_manifest('{"name": "p", "tools": []}\n')
        assert manifest.tools == []

    @pytest.mark.parametrize("description", [42, True, ["a"], {"text": "x"}, None])
    def test_non_string_description_is_absent(self, description):
        """A plugin description that is not text is treated as missing."""
        manifest = parse_manifest(json.dumps({"name": "p", "description": description, "tools": []}))
        assert manifest.description is None

    def test_missing_name(self):
        """A manifest without a name is rejected."""
        with pytest.raises(ManifestError) as exc_info:
            parse_manifest(json.dumps({"tools": []}))
        assert "name" in exc_info.value.message

    def test_missing_tools(self):
        """A manifest without tools is rejected."""
        with pytest.raises(ManifestError) as exc_info:
            parse_manifest(json.dumps({"name": "p"}))
        assert "tools" in exc_info.value.message

    def test_tools_wrong_shape(self):
        """Tools must be a list of tool objects."""
        with pytest.raises(ManifestError):
            parse_manifest(json.dumps({"name": "p", "tools": "say"}))

    def test_tool_missing_description_reports_field_path(self):
        """Errors name the offending field by its path."""
        with pytest.raises(ManifestError) as exc_info:
            parse_manifest(json.dumps({"name": "p", "tools": [{"name": "say"}]}))
        assert "tools.0.description" in exc_info.value.message

    def test_non_string_tool_description_rejected(self):
        """Unlike the plugin description, a tool description must be text."""
        with pytest.raises(ManifestError):
            parse_manifest(json.dumps({"name": "p", "tools": [{"name": "say", "description": 7}]}))

    def test_non_string_name_rejected(self):
        """Plugin names are not coerced from other JSON types."""
        with pytest.raises(ManifestError):
            parse_manifest(json.dumps({"name": 42, "tools": []}))

    def test_duplicate_tool_names_rejected(self):
        """Two tools may not share a name."""
        with pytest.raises(ManifestError):
            parse_manifest(json.dumps({
                "name": "p",
                "tools": [{"name": "a", "description": "x"}, {"name": "a", "description": "y"}],
            }))

    def test_not_an_object(self):
        """Any JSON value other than an object is rejected."""
        with pytest.raises(ManifestError):
            parse_manifest("[1, 2, 3]")

    def test_invalid_json(self):
        """Output that is not JSON is a decode failure."""
        with pytest.raises(DecodeError):
            parse_manifest("not json")

    def test_extra_output_is_protocol_violation(self):
        """Log lines before the JSON value make the output unparseable."""
        output = 'debug: loading\n{"name": "p", "tools": []}\n'
        with pytest.raises(DecodeError):
            parse_manifest(output)


class TestPlugin:
    """Tests for the Plugin model."""

    def test_from_manifest_assigns_id(self):
        """The id is attached and manifest fields are copied over."""
        manifest = PluginManifest(name="echo", tools=[Tool(name="say", description="d")])
        plugin = Plugin.from_manifest("abc123", manifest)

        assert plugin.id == "abc123"
        assert plugin.name == "echo"
        assert plugin.tools == manifest.tools
