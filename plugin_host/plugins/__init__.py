"""Plugin system for plugin-host.

Imports are lazy so lightweight pieces (e.g. EnvironmentStore for the CLI)
can be used without pulling in the rest.
"""

__all__ = [
    "Plugin",
    "PluginManifest",
    "PluginWithContent",
    "Tool",
    "PluginCatalog",
    "EnvironmentStore",
    "EnvVar",
    "ScriptRuntime",
    "ScriptSynthesizer",
    "PluginManager",
    "ConsistencyReport",
]


def __getattr__(name):
    if name in ("Plugin", "PluginManifest", "PluginWithContent", "Tool"):
        from plugin_host.plugins import manifest
        return getattr(manifest, name)
    if name == "PluginCatalog":
        from plugin_host.plugins.catalog import PluginCatalog
        return PluginCatalog
    if name in ("EnvironmentStore", "EnvVar"):
        from plugin_host.plugins import environment
        return getattr(environment, name)
    if name == "ScriptRuntime":
        from plugin_host.plugins.runtime import ScriptRuntime
        return ScriptRuntime
    if name == "ScriptSynthesizer":
        from plugin_host.plugins.scripts import ScriptSynthesizer
        return ScriptSynthesizer
    if name in ("PluginManager", "ConsistencyReport"):
        from plugin_host.plugins import manager
        return getattr(manager, name)
    raise AttributeError(f"module 'plugin_host.plugins' has no attribute {name!r}")
