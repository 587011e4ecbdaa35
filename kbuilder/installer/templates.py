"""
Installer Templates

Text of the desktop entry, the shell alias block and the bash completion
script written by the installer.
"""

from pathlib import Path
from typing import Mapping, Optional
import os


TOOL_NAME = "orangepi-kernel-builder"

# Presence of this string in a shell rc file means the aliases are installed
ALIAS_MARKER = TOOL_NAME

ALIASES = (
    ("opi-build", ""),
    ("opi-build-clean", " --clean"),
    ("opi-build-quick", " --no-install"),
    ("opi-build-nogpu", " --disable-gpu"),
)

BUILDER_OPTIONS = (
    "--help --version --jobs --build-dir --clean --defconfig --cross-compile "
    "--verbose --no-install --cleanup --enable-gpu --disable-gpu "
    "--enable-opencl --disable-opencl --enable-vulkan --disable-vulkan "
    "--verify-gpu --config --dry-run"
)

_COMPLETION_TEMPLATE = """\
# Orange Pi Kernel Builder bash completion

_{func}() {{
    local cur prev opts
    COMPREPLY=()
    cur="${{COMP_WORDS[COMP_CWORD]}}"
    prev="${{COMP_WORDS[COMP_CWORD-1]}}"

    opts="{options}"

    case ${{prev}} in
        --version|-v)
            COMPREPLY=( $(compgen -W "6.8.0 6.9.0 6.10.0" -- ${{cur}}) )
            return 0
            ;;
        --jobs|-j)
            COMPREPLY=( $(compgen -W "1 2 4 8 16" -- ${{cur}}) )
            return 0
            ;;
        --build-dir|-d|--config)
            COMPREPLY=( $(compgen -f -- ${{cur}}) )
            return 0
            ;;
        *)
            ;;
    esac

    COMPREPLY=( $(compgen -W "${{opts}}" -- ${{cur}}) )
    return 0
}}

complete -F _{func} {name}
"""


def executable_path(install_dir: str) -> str:
    return str(Path(install_dir) / TOOL_NAME)


def alias_block(install_dir: str) -> str:
    """Alias lines appended to the user's shell rc file."""
    target = executable_path(install_dir)
    lines = ["", "# Orange Pi Kernel Builder aliases"]
    lines.extend(f"alias {name}='sudo {target}{flags}'" for name, flags in ALIASES)
    return "\n".join(lines) + "\n"


def desktop_entry(install_dir: str) -> str:
    return (
        "[Desktop Entry]\n"
        "Version=1.0\n"
        "Type=Application\n"
        "Name=Orange Pi Kernel Builder\n"
        "Comment=Build optimized Linux kernels for Orange Pi 5 Plus with Mali GPU support\n"
        f"Exec=x-terminal-emulator -e sudo {executable_path(install_dir)}\n"
        "Icon=applications-development\n"
        "Terminal=true\n"
        "Categories=Development;System;\n"
    )


def completion_script() -> str:
    return _COMPLETION_TEMPLATE.format(
        func=TOOL_NAME.replace("-", "_"), name=TOOL_NAME, options=BUILDER_OPTIONS
    )


def shell_rc_path(home_dir: str, environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Pick the shell resource file that should receive the aliases.

    BASH_VERSION or ZSH_VERSION in the environment win; otherwise the
    login shell from SHELL decides, and anything else gets ~/.profile.
    """
    env = os.environ if environ is None else environ
    home = Path(home_dir)
    if env.get("BASH_VERSION"):
        return home / ".bashrc"
    if env.get("ZSH_VERSION"):
        return home / ".zshrc"
    shell = Path(env.get("SHELL", "")).name
    if shell == "bash":
        return home / ".bashrc"
    if shell == "zsh":
        return home / ".zshrc"
    return home / ".profile"
