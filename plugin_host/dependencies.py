"""Service wiring for the plugin host.

Services are built explicitly by ``create_context()`` in dependency order:

    plugins dir -> catalog -> environment store -> runtime -> synthesizer -> manager

The HTTP layer reaches them through ``get_context()``/``get_plugin_manager()``,
which create the context lazily and can be reset for tests.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from plugin_host.constants import PLUGINS_DIR, RUNTIME_BINARY, SCRATCH_DIR_NAME
from plugin_host.plugins.catalog import PluginCatalog
from plugin_host.plugins.environment import EnvironmentStore
from plugin_host.plugins.manager import PluginManager
from plugin_host.plugins.runtime import ScriptRuntime
from plugin_host.plugins.scripts import ScriptSynthesizer

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """All services of one plugin host instance."""

    plugins_dir: Path
    catalog: PluginCatalog
    env_store: EnvironmentStore
    runtime: ScriptRuntime
    scripts: ScriptSynthesizer
    manager: PluginManager


def create_context(
    plugins_dir: Path = PLUGINS_DIR,
    runtime_binary: str = RUNTIME_BINARY,
    runtime: Optional[ScriptRuntime] = None,
    id_factory: Optional[Callable[[], str]] = None,
) -> AppContext:
    """Build the service graph rooted at ``plugins_dir``.

    Args:
        plugins_dir: Directory holding the catalog, sources and .env (created if absent).
        runtime_binary: Script engine binary used when ``runtime`` is not given.
        runtime: Pre-built runtime (tests pass a fake here).
        id_factory: Plugin id generator, uuid4 hex by default.
    """
    plugins_dir = Path(plugins_dir)
    plugins_dir.mkdir(parents=True, exist_ok=True)

    catalog = PluginCatalog(plugins_dir)
    env_store = EnvironmentStore(plugins_dir)
    if runtime is None:
        runtime = ScriptRuntime(plugins_dir / SCRATCH_DIR_NAME, binary=runtime_binary)
    scripts = ScriptSynthesizer()
    manager = PluginManager(
        plugins_dir=plugins_dir,
        catalog=catalog,
        env_store=env_store,
        runtime=runtime,
        scripts=scripts,
        id_factory=id_factory,
    )
    return AppContext(
        plugins_dir=plugins_dir,
        catalog=catalog,
        env_store=env_store,
        runtime=runtime,
        scripts=scripts,
        manager=manager,
    )


# ============================================================================
# Process-wide context (created lazily, replaceable for tests)
# ============================================================================

_context_instance: Optional[AppContext] = None


def get_context() -> AppContext:
    """Get the application context (singleton)."""
    global _context_instance
    if _context_instance is None:
        _context_instance = create_context()
        logger.info(f"Created plugin host context at {_context_instance.plugins_dir}")
    return _context_instance


def set_context(context: AppContext) -> None:
    """Install an explicitly built context."""
    global _context_instance
    _context_instance = context


def get_plugin_manager() -> PluginManager:
    """Get the plugin manager of the current context."""
    return get_context().manager


def reset_services():
    """Reset the context (only for testing)."""
    global _context_instance
    _context_instance = None
    logger.info("Reset plugin host context")
