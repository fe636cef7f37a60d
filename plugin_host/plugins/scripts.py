"""Script synthesizer - builds the throwaway scripts run by the runtime.

A plugin source is a TypeScript module whose default export looks like::

    export default {
      name: "echo",
      description: "optional",
      tools: {
        say: {
          description: "echoes input",
          parameters: { type: "object" },   // optional
          handler: async (args) => args.text,
        },
      },
    };

The host never imports plugins itself. It generates a small script that
imports the plugin by file URL and reports back through exactly one JSON
value on stdout. Values from callers (module URL, tool name, arguments) are
embedded as JSON literals.
"""

import json
from pathlib import Path
from typing import Any

from plugin_host.errors import EncodeError

INTROSPECT_HEADER = "// plugin-host: introspect"
INVOKE_HEADER = "// plugin-host: invoke"

UNKNOWN_TOOL_MARKER = "unknown_tool"
# Exit status of an invocation script whose tool does not exist.
UNKNOWN_TOOL_EXIT_CODE = 64

_INTROSPECTION_TEMPLATE = """\
{header}
const moduleUrl = {module_url};
const plugin = (await import(moduleUrl)).default ?? {{}};
const declared = plugin.tools;
const tools = declared !== null && typeof declared === "object"
  ? Object.entries(declared).map(([name, tool]) => {{
      const entry = {{ name, description: tool?.description }};
      if (tool?.parameters !== undefined && tool?.parameters !== null) {{
        entry.parameters = tool.parameters;
      }}
      return entry;
    }})
  : declared;
console.log(JSON.stringify({{
  name: plugin.name,
  description: plugin.description,
  tools,
}}));
"""

_INVOCATION_TEMPLATE = """\
{header}
const moduleUrl = {module_url};
const toolName = {tool_name};
const args = {args};
const plugin = (await import(moduleUrl)).default ?? {{}};
const tools = plugin.tools ?? {{}};
const tool = Object.hasOwn(tools, toolName) ? tools[toolName] : undefined;
if (!tool || typeof tool.handler !== "function") {{
  console.error(JSON.stringify({{ error: {marker}, tool: toolName }}));
  Deno.exit({exit_code});
}}
const result = await tool.handler(args);
console.log(JSON.stringify(result ?? null));
"""


def module_url(source_path: Path) -> str:
    """``file://`` URL of a plugin source, usable on every platform."""
    return Path(source_path).resolve().as_uri()


class ScriptSynthesizer:
    """Produces introspection and invocation scripts for plugin sources."""

    def introspection_script(self, source_path: Path) -> str:
        """Script printing ``{name, description, tools}`` for the plugin.

        Missing fields are left out of the output rather than defaulted, so
        the manifest decoder can report exactly what the plugin lacks.
        """
        return _INTROSPECTION_TEMPLATE.format(
            header=INTROSPECT_HEADER,
            module_url=json.dumps(module_url(source_path)),
        )

    def invocation_script(self, source_path: Path, tool_name: str, args: Any) -> str:
        """Script calling one tool handler and printing its result as JSON.

        Raises:
            EncodeError: If ``args`` cannot be encoded as JSON.
        """
        try:
            encoded_args = json.dumps(args)
        except (TypeError, ValueError) as e:
            raise EncodeError(f"Tool arguments are not JSON-serializable: {e}") from e

        return _INVOCATION_TEMPLATE.format(
            header=f"{INVOKE_HEADER} {json.dumps(tool_name)}",
            module_url=json.dumps(module_url(source_path)),
            tool_name=json.dumps(tool_name),
            args=encoded_args,
            marker=json.dumps(UNKNOWN_TOOL_MARKER),
            exit_code=UNKNOWN_TOOL_EXIT_CODE,
        )
