"""Environment store - manages plugins/.env.

Variables in this file are injected into every script execution. They are
plugin-author secrets and settings (API keys, endpoints), stored as
``KEY=VALUE`` lines and never validated or logged by the host.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Sequence

from dotenv import dotenv_values
from pydantic import BaseModel, Field

from plugin_host.errors import EncodeError, PluginIOError
from plugin_host.utils import atomic_write_text

logger = logging.getLogger(__name__)

# Values matching this would not come back verbatim from an unquoted line.
_NEEDS_QUOTES = re.compile(r"^\s|\s$|[#'\"\r\n]")
# Keys are written unquoted, so they must survive the parser as a single token.
ENV_KEY_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_.-]*")


class EnvVar(BaseModel):
    """A single environment variable handed to plugin executions."""

    key: str = Field(..., description="Variable name")
    value: str = Field(..., description="Variable value")


def _format_value(value: str) -> str:
    if not _NEEDS_QUOTES.search(value):
        return value
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class EnvironmentStore:
    """Loads and saves the plugin environment file."""

    FILE_NAME = ".env"

    def __init__(self, plugins_dir: Path):
        self.path = Path(plugins_dir) / self.FILE_NAME

    def load(self) -> List[EnvVar]:
        """Parse the environment file.

        A missing file is an empty environment. Blank lines, ``#`` comments
        and lines without ``=`` are skipped; a repeated key keeps its last
        value.
        """
        if not self.path.exists():
            return []

        try:
            values = dotenv_values(self.path, interpolate=False, encoding="utf-8")
        except OSError as e:
            raise PluginIOError(f"Cannot read environment file {self.path}: {e}") from e

        return [
            EnvVar(key=key, value=value)
            for key, value in values.items()
            if key and value is not None
        ]

    def save(self, env_vars: Sequence[EnvVar]) -> None:
        """Overwrite the environment file with ``env_vars``.

        Raises:
            EncodeError: If a key would not load back as written. Nothing is
                written in that case.
            PluginIOError: If the file cannot be written.
        """
        invalid = [var.key for var in env_vars if not ENV_KEY_PATTERN.fullmatch(var.key)]
        if invalid:
            raise EncodeError(f"Invalid environment variable name(s): {', '.join(map(repr, invalid))}")

        lines = [f"{var.key}={_format_value(var.value)}" for var in env_vars]
        content = "\n".join(lines) + "\n" if lines else ""
        try:
            atomic_write_text(self.path, content)
        except OSError as e:
            raise PluginIOError(f"Cannot write environment file {self.path}: {e}") from e
        logger.info(f"Saved {len(lines)} environment variable(s) to {self.path}")

    @staticmethod
    def as_environ(env_vars: Sequence[EnvVar]) -> Dict[str, str]:
        """Collapse ``env_vars`` into a mapping, last value per key wins."""
        return {var.key: var.value for var in env_vars}
