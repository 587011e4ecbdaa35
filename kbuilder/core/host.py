"""
Host Detection

Small wrappers around the facts the preflight checks need about the
machine they run on. Kept in one place so tests can patch them.
"""

from pathlib import Path
from typing import Optional, Union
import os
import platform
import shutil


def is_root() -> bool:
    """True when running with an effective UID of 0."""
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def machine() -> str:
    """Hardware name as reported by ``uname -m``."""
    return platform.machine()


def running_release() -> str:
    """Running kernel release as reported by ``uname -r``."""
    return platform.release()


def free_space_bytes(path: Union[str, Path] = "/tmp") -> Optional[int]:
    """Free bytes on the filesystem holding ``path``, or None if unknown."""
    try:
        return shutil.disk_usage(str(path)).free
    except OSError:
        return None


def path_exists(path: Union[str, Path]) -> bool:
    return Path(path).exists()


def which(name: str) -> Optional[str]:
    """Resolve an executable on PATH."""
    return shutil.which(name)
