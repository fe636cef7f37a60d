"""Request models for API endpoints."""

from typing import Any, List

from pydantic import BaseModel, Field, field_validator

from plugin_host.plugins.environment import ENV_KEY_PATTERN, EnvVar


class PluginContentRequest(BaseModel):
    """Plugin source text for import and update."""

    content: str = Field(..., min_length=1, description="TypeScript module source")

    @field_validator('content')
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('content cannot be blank')
        return v

    class Config:
        json_schema_extra = {
            "examples": [
                {
                    "content": (
                        "export default {\n"
                        "  name: \"echo\",\n"
                        "  tools: {\n"
                        "    say: { description: \"echoes input\", handler: (args) => args.text },\n"
                        "  },\n"
                        "};\n"
                    )
                }
            ]
        }


class ToolExecuteRequest(BaseModel):
    """Arguments passed to a tool handler."""

    args: Any = Field(default_factory=dict, description="JSON value handed to the handler")


class EnvSaveRequest(BaseModel):
    """Full replacement of the plugin environment."""

    vars: List[EnvVar] = Field(default_factory=list, description="Variables in file order")

    @field_validator('vars')
    @classmethod
    def keys_not_empty(cls, v: List[EnvVar]) -> List[EnvVar]:
        for var in v:
            if not ENV_KEY_PATTERN.fullmatch(var.key):
                raise ValueError(f"invalid environment key: {var.key!r}")
        return v
