"""Global constants for the plugin host."""

import os
from pathlib import Path

APP_NAME = "plugin-host"


def _default_config_dir() -> Path:
    xdg_config_home = os.getenv("XDG_CONFIG_HOME", "")
    base = Path(xdg_config_home) if xdg_config_home else Path.home() / ".config"
    return base / APP_NAME


# Configuration directory (supports PLUGIN_HOST_CONFIG_DIR env var)
_config_dir_env = os.getenv("PLUGIN_HOST_CONFIG_DIR", "")
CONFIG_DIR = Path(_config_dir_env).expanduser() if _config_dir_env else _default_config_dir()

PLUGINS_DIR = CONFIG_DIR / "plugins"        # <config>/plugins (catalog, sources, .env)
SCRATCH_DIR_NAME = ".tmp"                   # <config>/plugins/.tmp (per-execution scripts)

# External script engine binary, resolved on PATH unless absolute
RUNTIME_BINARY = os.getenv("PLUGIN_RUNTIME_BINARY", "deno")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", "9090"))
