"""Shared fixtures for plugin-host tests."""

import asyncio
import json
import re
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import pytest

from plugin_host.dependencies import create_context
from plugin_host.errors import ExecutionError
from plugin_host.plugins.environment import EnvironmentStore
from plugin_host.plugins.scripts import INTROSPECT_HEADER, UNKNOWN_TOOL_EXIT_CODE, UNKNOWN_TOOL_MARKER


def _script_constant(script: str, name: str):
    match = re.search(rf"^const {name} = (.*);$", script, re.MULTILINE)
    assert match, f"script has no '{name}' constant"
    return json.loads(match.group(1))


def _project_manifest(export: dict) -> dict:
    """Mirror what the introspection script prints for a plugin export."""
    manifest = {key: export[key] for key in ("name", "description") if key in export}
    tools = export.get("tools")
    if isinstance(tools, dict):
        manifest["tools"] = []
        for name, tool in tools.items():
            entry = {"name": name}
            if "description" in tool:
                entry["description"] = tool["description"]
            if tool.get("parameters") is not None:
                entry["parameters"] = tool["parameters"]
            manifest["tools"].append(entry)
    elif "tools" in export:
        manifest["tools"] = tools
    return manifest


class FakeRuntime:
    """Stands in for ScriptRuntime.

    Plugin sources are JSON documents describing the default export. Tools
    behave according to one key: ``echo`` (return an argument), ``env``
    (return an environment variable), ``raise`` (fail like a throwing
    handler), ``stdout`` (print raw text) or ``returns`` (a constant).
    A top-level ``stdout`` replaces the introspection output.
    """

    binary = "fake-deno"
    is_installed = True

    def __init__(self):
        self.calls = []

    async def execute(self, script, env_vars=(), label=None):
        await asyncio.sleep(0)  # yield like a real subprocess wait
        env = EnvironmentStore.as_environ(env_vars)
        self.calls.append({"script": script, "env": env, "label": label})

        url = _script_constant(script, "moduleUrl")
        source = Path(url2pathname(urlparse(url).path))
        export = json.loads(source.read_text(encoding="utf-8"))

        if script.startswith(INTROSPECT_HEADER):
            if "stdout" in export:
                return export["stdout"]
            return json.dumps(_project_manifest(export)) + "\n"

        tool_name = _script_constant(script, "toolName")
        args = _script_constant(script, "args")
        tool = export.get("tools", {}).get(tool_name)
        if tool is None:
            marker = json.dumps({"error": UNKNOWN_TOOL_MARKER, "tool": tool_name})
            raise ExecutionError(marker + "\n", returncode=UNKNOWN_TOOL_EXIT_CODE)
        if "raise" in tool:
            raise ExecutionError(f"error: Uncaught Error: {tool['raise']}\n", returncode=1)
        if "echo" in tool:
            return json.dumps(args.get(tool["echo"])) + "\n"
        if "env" in tool:
            return json.dumps(env.get(tool["env"])) + "\n"
        if "stdout" in tool:
            return tool["stdout"]
        return json.dumps(tool.get("returns")) + "\n"


def make_source(name="echo", tools=None, **extra) -> str:
    """Build a fake plugin source (JSON) for FakeRuntime."""
    export = dict(extra)
    if name is not None:
        export["name"] = name
    export["tools"] = tools if tools is not None else {
        "say": {"description": "echoes input", "echo": "text"},
    }
    return json.dumps(export, indent=2)


@pytest.fixture
def plugins_dir(tmp_path):
    return tmp_path / "plugins"


@pytest.fixture
def fake_runtime():
    return FakeRuntime()


@pytest.fixture
def context(plugins_dir, fake_runtime):
    return create_context(plugins_dir, runtime=fake_runtime)


@pytest.fixture
def manager(context):
    return context.manager


@pytest.fixture
def source_factory():
    return make_source
