"""Plugin manifest models and strict decoding of introspection output."""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, StrictStr, ValidationError, field_validator

from plugin_host.errors import DecodeError, ManifestError


class Tool(BaseModel):
    """A single callable capability declared by a plugin."""

    name: StrictStr = Field(..., description="Key of the tool in the plugin's tools map")
    description: StrictStr = Field(..., description="What the tool does")
    parameters: Optional[Any] = Field(
        default=None,
        description="Argument schema as declared by the plugin, passed through untouched",
    )


class PluginManifest(BaseModel):
    """Manifest printed by the introspection script."""

    name: StrictStr = Field(..., description="Human-readable plugin name")
    description: Optional[StrictStr] = Field(default=None, description="Plugin description")
    tools: List[Tool] = Field(..., description="Tools in declaration order")

    @field_validator("description", mode="before")
    @classmethod
    def description_text_only(cls, v: Any) -> Optional[str]:
        # optional metadata: anything but a string counts as absent
        return v if isinstance(v, str) else None

    @field_validator("tools")
    @classmethod
    def tool_names_unique(cls, tools: List[Tool]) -> List[Tool]:
        seen = set()
        for tool in tools:
            if tool.name in seen:
                raise ValueError(f"duplicate tool name '{tool.name}'")
            seen.add(tool.name)
        return tools


class Plugin(PluginManifest):
    """A catalogued plugin: its manifest plus the id assigned at import."""

    id: str = Field(..., description="Unique plugin identifier")

    @classmethod
    def from_manifest(cls, plugin_id: str, manifest: PluginManifest) -> "Plugin":
        return cls(id=plugin_id, **manifest.model_dump())


class PluginWithContent(BaseModel):
    """A plugin paired with its raw source text."""

    info: Plugin
    content: str


def describe_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors to ``field.path: message`` diagnostics."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "<root>"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def parse_manifest(output: str) -> PluginManifest:
    """Decode the introspection script's stdout into a manifest.

    Raises:
        DecodeError: If the output is not a single JSON value.
        ManifestError: If the JSON does not have the manifest shape.
    """
    try:
        data: Dict[str, Any] = json.loads(output)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Introspection output is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"Manifest must be a JSON object, got {type(data).__name__}")

    try:
        return PluginManifest.model_validate(data)
    except ValidationError as e:
        raise ManifestError(f"Invalid plugin manifest: {describe_validation_error(e)}") from e
