"""Script runtime - runs synthesized scripts through the Deno binary.

Plugins are trusted to the same degree as the host process: every execution
gets read, write, network, environment and subprocess permissions. Isolation
is process-level only, with no timeout; a hung engine blocks its caller.
"""

import asyncio
import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

from plugin_host.errors import ExecutionError, RuntimeUnavailable
from plugin_host.plugins.environment import EnvironmentStore, EnvVar

logger = logging.getLogger(__name__)

DEFAULT_RUNTIME_BINARY = "deno"
INSTALL_HINT = "https://deno.land/#installation"

CAPABILITY_FLAGS = (
    "--no-check",
    "--allow-read",
    "--allow-write",
    "--allow-net",
    "--allow-env",
    "--allow-run",
)


class ScriptRuntime:
    """Wraps the external script engine with a fixed capability flag set.

    The engine binary is resolved once at construction. Each ``execute`` call
    gets its own temp script file in ``scratch_dir``, removed on every exit
    path, so concurrent executions never share state on disk.
    """

    def __init__(self, scratch_dir: Path, binary: str = DEFAULT_RUNTIME_BINARY):
        self.binary = binary
        self.scratch_dir = Path(scratch_dir)
        self.executable: Optional[str] = shutil.which(binary)
        self.base_args = ["run", *CAPABILITY_FLAGS]

        if self.executable:
            logger.info(f"Script runtime found: {self.executable}")
        else:
            logger.warning(f"Script runtime '{binary}' not found, plugin execution disabled")

    @property
    def is_installed(self) -> bool:
        return self.executable is not None

    async def execute(
        self,
        script: str,
        env_vars: Sequence[EnvVar] = (),
        label: Optional[str] = None,
    ) -> str:
        """Run ``script`` and return its standard output.

        Args:
            script: Script source handed to the engine.
            env_vars: Variables added on top of the host environment.
            label: Prefix for the temp file name (typically the plugin id).

        Raises:
            RuntimeUnavailable: If the engine is missing or cannot be spawned.
            ExecutionError: If the engine exits non-zero; carries its stderr.
        """
        if not self.is_installed:
            raise RuntimeUnavailable(
                f"Script runtime '{self.binary}' is not installed, see {INSTALL_HINT}"
            )

        env = dict(os.environ)
        env.update(EnvironmentStore.as_environ(env_vars))

        with self._script_file(script, label) as script_path:
            logger.debug(f"Executing {script_path.name} with {self.binary}")
            try:
                process = await asyncio.create_subprocess_exec(
                    self.executable,
                    *self.base_args,
                    str(script_path),
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    env=env,
                )
            except OSError as e:
                raise RuntimeUnavailable(f"Cannot start script runtime '{self.binary}': {e}") from e

            stdout, stderr = await process.communicate()

        if process.returncode != 0:
            logger.debug(f"Script runtime exited with code {process.returncode}")
            raise ExecutionError(
                stderr.decode("utf-8", errors="replace"),
                returncode=process.returncode,
            )

        return stdout.decode("utf-8", errors="replace")

    @contextmanager
    def _script_file(self, script: str, label: Optional[str]) -> Iterator[Path]:
        self.scratch_dir.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix=f"{label or 'script'}-", suffix=".ts", dir=str(self.scratch_dir))
        path = Path(name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(script)
            yield path
        finally:
            path.unlink(missing_ok=True)
