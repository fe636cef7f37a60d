"""Atomic text writes (temp file + fsync + replace).

Used for the catalog, plugin sources and the environment file so a crash
mid-write never leaves a truncated file behind.
"""

import os
import tempfile
from pathlib import Path


def atomic_write_text(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` atomically.

    Content is written without newline translation so sources round-trip
    byte for byte. The temp file lives next to the target and is removed on
    failure.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def read_text_exact(path: Path) -> str:
    """Read ``path`` as UTF-8 without newline translation."""
    with open(path, "r", encoding="utf-8", newline="") as handle:
        return handle.read()
