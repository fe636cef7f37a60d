"""Plugin manager - top-level orchestrator for scripted plugins."""

import asyncio
import json
import logging
import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from plugin_host.errors import (
    DecodeError,
    ExecutionError,
    PluginIOError,
    PluginNotFound,
    ToolNotFound,
)
from plugin_host.plugins.catalog import PluginCatalog
from plugin_host.plugins.environment import EnvironmentStore, EnvVar
from plugin_host.plugins.manifest import Plugin, PluginWithContent, parse_manifest
from plugin_host.plugins.runtime import ScriptRuntime
from plugin_host.plugins.scripts import (
    UNKNOWN_TOOL_EXIT_CODE,
    UNKNOWN_TOOL_MARKER,
    ScriptSynthesizer,
)
from plugin_host.utils import atomic_write_text, read_text_exact

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".ts"
_PLUGIN_ID = re.compile(r"[A-Za-z0-9_-]+")


def generate_id() -> str:
    return uuid.uuid4().hex


@dataclass
class ConsistencyReport:
    """Mismatches between the catalog and the source files on disk."""

    missing_sources: List[str] = field(default_factory=list)
    orphaned_sources: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing_sources and not self.orphaned_sources

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "missing_sources": self.missing_sources,
            "orphaned_sources": self.orphaned_sources,
        }


class PluginManager:
    """Top-level plugin system orchestrator.

    Coordinates source storage, manifest introspection, the catalog and tool
    execution. Plugins move through: unregistered -> registered (import) ->
    updated (update, id preserved) -> removed.
    """

    def __init__(
        self,
        plugins_dir: Path,
        catalog: PluginCatalog,
        env_store: EnvironmentStore,
        runtime: ScriptRuntime,
        scripts: ScriptSynthesizer,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.plugins_dir = Path(plugins_dir)
        self.catalog = catalog
        self.env_store = env_store
        self.runtime = runtime
        self.scripts = scripts
        self.id_factory = id_factory or generate_id

    def source_path(self, plugin_id: str) -> Path:
        """Path of the plugin's source file, derived from its id only.

        Raises:
            PluginNotFound: If ``plugin_id`` is not a well-formed id.
        """
        if not _PLUGIN_ID.fullmatch(plugin_id or ""):
            raise PluginNotFound(plugin_id)
        return self.plugins_dir / f"{plugin_id}{SOURCE_SUFFIX}"

    async def import_plugin(self, content: str) -> Plugin:
        """Register a new plugin from its source text.

        If introspection fails the source file stays on disk without a
        catalog entry; ``check()`` reports it and ``repair()`` removes it.
        """
        plugin_id = self.id_factory()
        plugin = await self._process_content(plugin_id, content, require_existing=False)
        logger.info(f"Imported plugin: {plugin.name} ({plugin_id}), {len(plugin.tools)} tool(s)")
        return plugin

    async def update_plugin(self, plugin_id: str, content: str) -> Plugin:
        """Replace an existing plugin's source and manifest, keeping its id."""
        plugins = await self.catalog.load()
        if plugin_id not in plugins:
            raise PluginNotFound(plugin_id)

        plugin = await self._process_content(plugin_id, content, require_existing=True)
        logger.info(f"Updated plugin: {plugin.name} ({plugin_id}), {len(plugin.tools)} tool(s)")
        return plugin

    async def get_plugin(self, plugin_id: str) -> Optional[PluginWithContent]:
        """Return the catalogued plugin with its source, or None if unknown."""
        plugins = await self.catalog.load()
        plugin = plugins.get(plugin_id)
        if plugin is None:
            return None

        source = self.source_path(plugin_id)
        try:
            content = read_text_exact(source)
        except FileNotFoundError as e:
            raise PluginIOError(f"Source file missing for plugin '{plugin_id}': {source}") from e
        except OSError as e:
            raise PluginIOError(f"Cannot read source of plugin '{plugin_id}': {e}") from e

        return PluginWithContent(info=plugin, content=content)

    async def remove_plugin(self, plugin_id: str) -> None:
        """Drop a plugin from the catalog and delete its source. Idempotent."""
        async with self.catalog.edit() as plugins:
            removed = plugins.pop(plugin_id, None)

        if _PLUGIN_ID.fullmatch(plugin_id or ""):
            try:
                self.source_path(plugin_id).unlink(missing_ok=True)
            except OSError as e:
                raise PluginIOError(f"Cannot delete source of plugin '{plugin_id}': {e}") from e

        if removed is not None:
            logger.info(f"Removed plugin: {removed.name} ({plugin_id})")

    async def list_plugins(self) -> Dict[str, Plugin]:
        """Return every catalogued plugin keyed by id."""
        return await self.catalog.load()

    async def execute_tool(self, plugin_id: str, tool: str, args: Any) -> Any:
        """Call one tool of a plugin and return its JSON result.

        Only the source file is required; catalog membership is not checked.

        Raises:
            PluginNotFound: If the plugin has no source file.
            ToolNotFound: If the plugin does not export ``tool``.
            ExecutionError: If the handler throws or the engine fails.
            DecodeError: If the script output is not a single JSON value.
        """
        source = self.source_path(plugin_id)
        if not source.exists():
            raise PluginNotFound(plugin_id)

        script = self.scripts.invocation_script(source, tool, args)
        try:
            output = await self._run(script, label=plugin_id)
        except ExecutionError as e:
            if e.returncode == UNKNOWN_TOOL_EXIT_CODE and UNKNOWN_TOOL_MARKER in e.stderr:
                raise ToolNotFound(plugin_id, tool) from e
            raise

        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise DecodeError(f"Tool '{tool}' of plugin '{plugin_id}' returned invalid JSON: {e}") from e

    def env_list(self) -> List[EnvVar]:
        return self.env_store.load()

    def env_save(self, env_vars: Sequence[EnvVar]) -> None:
        self.env_store.save(env_vars)

    async def check(self) -> ConsistencyReport:
        """Compare the catalog with the source files on disk."""
        plugins = await self.catalog.load()
        return self._compare(plugins)

    async def repair(self) -> ConsistencyReport:
        """Drop entries without sources and delete sources without entries.

        Do not run while an import is in flight: its freshly written source
        has no catalog entry yet and would be deleted.
        """
        async with self.catalog.edit() as plugins:
            report = self._compare(plugins)
            for plugin_id in report.missing_sources:
                del plugins[plugin_id]

        for plugin_id in report.orphaned_sources:
            try:
                self.source_path(plugin_id).unlink(missing_ok=True)
            except OSError as e:
                raise PluginIOError(f"Cannot delete orphaned source '{plugin_id}': {e}") from e

        if not report.ok:
            logger.info(
                f"Repaired plugin catalog: dropped {len(report.missing_sources)} entr(ies), "
                f"deleted {len(report.orphaned_sources)} orphaned source(s)"
            )
        return report

    def _compare(self, plugins: Dict[str, Plugin]) -> ConsistencyReport:
        on_disk = set()
        if self.plugins_dir.exists():
            on_disk = {
                path.stem
                for path in self.plugins_dir.glob(f"*{SOURCE_SUFFIX}")
                if path.is_file() and _PLUGIN_ID.fullmatch(path.stem)
            }

        report = ConsistencyReport(
            missing_sources=sorted(set(plugins) - on_disk),
            orphaned_sources=sorted(on_disk - set(plugins)),
        )
        if not report.ok:
            logger.warning(
                f"Plugin catalog inconsistent: missing sources {report.missing_sources}, "
                f"orphaned sources {report.orphaned_sources}"
            )
        return report

    async def _process_content(self, plugin_id: str, content: str, require_existing: bool) -> Plugin:
        """Write the source, introspect it and store the resulting manifest."""
        source = self.source_path(plugin_id)
        try:
            atomic_write_text(source, content)
        except OSError as e:
            raise PluginIOError(f"Cannot write source of plugin '{plugin_id}': {e}") from e

        script = self.scripts.introspection_script(source)
        try:
            output = await self._run(script, label=plugin_id)
            manifest = parse_manifest(output)
        except Exception as e:
            logger.error(f"Failed to introspect plugin {plugin_id}: {e}")
            raise

        plugin = Plugin.from_manifest(plugin_id, manifest)
        async with self.catalog.edit() as plugins:
            if require_existing and plugin_id not in plugins:
                raise PluginNotFound(plugin_id)
            plugins[plugin_id] = plugin
        return plugin

    async def _run(self, script: str, label: str) -> str:
        env_vars = await asyncio.to_thread(self.env_store.load)
        return await self.runtime.execute(script, env_vars, label=label)
