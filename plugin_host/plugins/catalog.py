"""Plugin catalog - the persisted registry of plugin manifests.

The catalog is a single YAML document under the plugins directory:

    3f2a...:
      name: echo
      description: null
      tools:
      - name: say
        description: echoes input
        parameters: null
      id: 3f2a...

It is small and read-mostly, so it is always loaded and replaced whole. An
in-memory cache mirrors the last successful write; every access to it goes
through one ``asyncio.Lock``. Writes run in a worker thread while the lock is
held.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Optional

import yaml
from pydantic import ValidationError

from plugin_host.errors import DecodeError, EncodeError, PluginIOError
from plugin_host.plugins.manifest import Plugin, describe_validation_error
from plugin_host.utils import atomic_write_text

logger = logging.getLogger(__name__)

Catalog = Dict[str, Plugin]


def _clone(plugins: Catalog) -> Catalog:
    return {plugin_id: plugin.model_copy(deep=True) for plugin_id, plugin in plugins.items()}


class PluginCatalog:
    """Cached, lock-guarded access to ``plugins/list.yaml``."""

    FILE_NAME = "list.yaml"

    def __init__(self, plugins_dir: Path):
        self.path = Path(plugins_dir) / self.FILE_NAME
        self._cache: Optional[Catalog] = None
        self._lock = asyncio.Lock()

    async def load(self) -> Catalog:
        """Return a copy of the catalog, reading the file on first use.

        Raises:
            PluginIOError: If the file exists but cannot be read.
            DecodeError: If the file is not a valid catalog document.
        """
        async with self._lock:
            return _clone(self._read())

    async def save(self, plugins: Catalog) -> None:
        """Overwrite the persisted catalog and replace the cache.

        Raises:
            EncodeError: If the catalog cannot be serialized.
            PluginIOError: If the file cannot be written.
        """
        async with self._lock:
            await asyncio.to_thread(self._write, plugins)

    @asynccontextmanager
    async def edit(self) -> AsyncIterator[Catalog]:
        """Hold the lock across a whole read-modify-write.

        Yields a mutable copy of the catalog. It is persisted when the block
        exits normally and discarded if the block raises.
        """
        async with self._lock:
            plugins = _clone(self._read())
            yield plugins
            await asyncio.to_thread(self._write, plugins)

    def _read(self) -> Catalog:
        if self._cache is None:
            self._cache = self._read_file()
            logger.debug(f"Loaded {len(self._cache)} plugin(s) from {self.path}")
        return self._cache

    def _read_file(self) -> Catalog:
        if not self.path.exists():
            return {}

        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise PluginIOError(f"Cannot read plugin catalog {self.path}: {e}") from e

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise DecodeError(f"Plugin catalog {self.path} is not valid YAML: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise DecodeError(
                f"Plugin catalog {self.path} must be a mapping, got {type(data).__name__}"
            )

        plugins: Catalog = {}
        for plugin_id, entry in data.items():
            if not isinstance(entry, dict):
                raise DecodeError(f"Catalog entry '{plugin_id}' must be a mapping")
            try:
                plugin = Plugin.model_validate({**entry, "id": str(plugin_id)})
            except ValidationError as e:
                raise DecodeError(
                    f"Catalog entry '{plugin_id}' is invalid: {describe_validation_error(e)}"
                ) from e
            plugins[str(plugin_id)] = plugin
        return plugins

    def _write(self, plugins: Catalog) -> None:
        payload = {
            plugin_id: plugin.model_dump(mode="json") for plugin_id, plugin in plugins.items()
        }
        try:
            text = yaml.safe_dump(payload, allow_unicode=True, sort_keys=False)
        except yaml.YAMLError as e:
            raise EncodeError(f"Cannot serialize plugin catalog: {e}") from e

        try:
            atomic_write_text(self.path, text)
        except OSError as e:
            raise PluginIOError(f"Cannot write plugin catalog {self.path}: {e}") from e

        self._cache = _clone(plugins)
        logger.debug(f"Saved {len(plugins)} plugin(s) to {self.path}")
