"""Error types surfaced by the plugin host.

Every failure reaching a caller is a ``PluginHostError`` with a stable
``kind`` and a human-readable message. The HTTP layer renders ``to_dict()``
with ``status_code``; the management CLI prints ``kind: message``.
"""

from typing import Any, Dict, Optional


class PluginHostError(Exception):
    """Base error for the plugin host."""

    kind = "plugin_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


class PluginIOError(PluginHostError):
    """Filesystem read or write failed."""

    kind = "io"


class DecodeError(PluginHostError):
    """Stored catalog or engine output could not be parsed."""

    kind = "decode"
    status_code = 502


class EncodeError(PluginHostError):
    """A value could not be serialized (catalog YAML or tool arguments)."""

    kind = "encode"
    status_code = 400


class RuntimeUnavailable(PluginHostError):
    """The external script engine is not installed or cannot be started."""

    kind = "runtime_unavailable"
    status_code = 503


class ExecutionError(PluginHostError):
    """The script engine exited with a non-zero status."""

    kind = "execution"
    status_code = 502

    def __init__(self, stderr: str, returncode: Optional[int] = None):
        super().__init__(stderr)
        self.stderr = stderr
        self.returncode = returncode

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["returncode"] = self.returncode
        return data


class ManifestError(PluginHostError):
    """Introspected manifest is missing required fields or has the wrong shape."""

    kind = "manifest"
    status_code = 422


class NotFound(PluginHostError):
    """A plugin-domain lookup failed."""

    kind = "not_found"
    status_code = 404


class PluginNotFound(NotFound):
    def __init__(self, plugin_id: str):
        super().__init__(f"Plugin '{plugin_id}' not found")
        self.plugin_id = plugin_id


class ToolNotFound(NotFound):
    def __init__(self, plugin_id: str, tool: str):
        super().__init__(f"Plugin '{plugin_id}' has no tool '{tool}'")
        self.plugin_id = plugin_id
        self.tool = tool
