"""
Package Manager Support

Detects the host package manager and spells the dependency install in
its syntax.
"""

from typing import Callable, Dict, List, Optional, Tuple

from kbuilder.core import host


# Detection order: first one found on PATH wins
PACKAGE_MANAGERS: Tuple[str, ...] = ("apt", "yum", "dnf", "pacman", "zypper")

_RHEL_PACKAGES = [
    "gcc", "gcc-c++", "make", "git", "wget", "curl", "sudo",
    "ncurses-devel", "flex", "bison", "openssl-devel",
    "python3", "python3-pydantic", "python3-pyyaml", "python3-rich",
]

DEPENDENCIES: Dict[str, List[str]] = {
    "apt": [
        "build-essential", "gcc", "g++", "make", "git", "wget", "curl", "sudo",
        "libncurses-dev", "flex", "bison", "openssl", "libssl-dev",
        "python3", "python3-pydantic", "python3-yaml", "python3-rich",
    ],
    "yum": _RHEL_PACKAGES,
    "dnf": _RHEL_PACKAGES,
    "pacman": [
        "base-devel", "git", "wget", "curl", "sudo",
        "ncurses", "flex", "bison", "openssl",
        "python", "python-pydantic", "python-yaml", "python-rich",
    ],
    "zypper": [
        "gcc", "gcc-c++", "make", "git", "wget", "curl", "sudo",
        "ncurses-devel", "flex", "bison", "openssl-devel",
        "python3", "python3-pydantic", "python3-PyYAML", "python3-rich",
    ],
}

_INSTALL_PREFIX: Dict[str, List[str]] = {
    "apt": ["apt", "install", "-y"],
    "yum": ["yum", "install", "-y"],
    "dnf": ["dnf", "install", "-y"],
    "pacman": ["pacman", "-S", "--noconfirm"],
    "zypper": ["zypper", "install", "-y"],
}


def detect_package_manager(which: Optional[Callable[[str], Optional[str]]] = None) -> Optional[str]:
    """Return the first supported package manager on PATH, or None."""
    which = which or host.which
    for name in PACKAGE_MANAGERS:
        if which(name):
            return name
    return None


def refresh_command(manager: str) -> Optional[List[str]]:
    """Index refresh run before installing (apt only)."""
    if manager == "apt":
        return ["apt", "update"]
    return None


def install_command(manager: str) -> List[str]:
    """
    Dependency install command for a package manager.

    Raises:
        KeyError: If the manager is not supported
    """
    return [*_INSTALL_PREFIX[manager], *DEPENDENCIES[manager]]


def install_environment(manager: str) -> Dict[str, str]:
    if manager == "apt":
        return {"DEBIAN_FRONTEND": "noninteractive"}
    return {}
