"""
Console Rendering

Banners, configuration tables and the closing hints printed by the two
command-line tools. Nothing here is written to the log file.
"""

from typing import Iterable, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from kbuilder import __version__
from kbuilder.config.schema import BuildConfig, InstallerConfig
from kbuilder.installer import templates
from kbuilder.pipeline.base import Severity, Step


def _enabled(flag: bool) -> str:
    return "[green]Enabled[/green]" if flag else "[dim]Disabled[/dim]"


def _bullets(console: Console, title: str, style: str, lines: Iterable[str]) -> None:
    console.print(f"\n[bold {style}]{title}[/bold {style}]")
    for line in lines:
        console.print(f"  • {line}")


def print_banner(console: Console, title: str, *taglines: str) -> None:
    body = "\n".join([f"[bold]{title} v{__version__}[/bold]", *taglines])
    console.print(Panel(body, style="cyan", expand=False))


# =============================================================================
# Builder
# =============================================================================

def print_build_config(console: Console, config: BuildConfig) -> None:
    table = Table(title="Build Configuration", show_header=False, title_style="bold yellow")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("Kernel Version", config.kernel_version)
    table.add_row("Build Directory", config.build_dir)
    table.add_row("Parallel Jobs", str(config.jobs))
    table.add_row("Defconfig", config.defconfig)
    table.add_row("Cross Compiler", config.cross_compile or "(native)")
    table.add_row("Mali GPU Support", _enabled(config.install_gpu_blobs))
    table.add_row("OpenCL Support", _enabled(config.enable_opencl))
    table.add_row("Vulkan Support", _enabled(config.enable_vulkan))
    table.add_row("Clean Build", "Yes" if config.clean_build else "No")
    table.add_row("Install", "No" if config.no_install else "Yes")
    console.print(table)


def print_plan(console: Console, steps: Sequence[Step]) -> None:
    """List the steps a run would execute, with their severities."""
    table = Table("#", "Step", "Severity", "Description", title="Planned Steps")
    for index, step in enumerate(steps, start=1):
        severity = (
            "[red]fatal[/red]" if step.severity is Severity.FATAL else "[yellow]warning[/yellow]"
        )
        table.add_row(str(index), step.name, severity, step.description)
    console.print(table)


def print_build_next_steps(console: Console, config: BuildConfig) -> None:
    if config.no_install:
        _bullets(console, "Next steps:", "green", [
            f"Kernel tree built in {config.kernel_dir}",
            "Re-run without --no-install to install it",
        ])
    else:
        _bullets(console, "Next steps:", "green", [
            "Reboot your Orange Pi 5 Plus",
            "Select the new kernel from the boot menu",
            "Verify with: uname -r",
        ])

    if config.install_gpu_blobs:
        _bullets(console, "Mali GPU Features Available:", "cyan", [
            "Hardware-accelerated graphics rendering",
            "OpenCL 2.2 compute support (test with: clinfo)",
            "Vulkan 1.2 graphics API (test with: vulkaninfo)",
            "Hardware video decode/encode acceleration",
            "EGL and OpenGL ES support",
        ])
        _bullets(console, "GPU Testing Commands:", "yellow", [
            "Check OpenCL: clinfo | grep -i mali",
            "Check Vulkan: vulkaninfo | grep -i mali",
            "Check EGL: eglinfo | grep -i mali",
            "GPU memory: cat /sys/kernel/debug/dri/*/gpu_memory",
            "GPU load: cat /sys/class/devfreq/fb000000.gpu/load",
        ])
    console.print()


def print_build_troubleshooting(console: Console, log_file: str) -> None:
    _bullets(console, "Troubleshooting:", "red", [
        f"Check the build log: {log_file}",
        "Ensure you have sufficient disk space (>10GB)",
        "Verify your internet connection for downloads",
        "Try running with --clean flag",
        "For GPU issues, try --disable-gpu flag",
    ])


# =============================================================================
# Installer
# =============================================================================

def print_install_summary(console: Console, config: InstallerConfig) -> None:
    target = templates.executable_path(config.install_dir)
    console.print("\n[bold green]Installation Complete![/bold green]")

    console.print("\n[bold cyan]Quick Start:[/bold cyan]")
    console.print(f"  [green]sudo {target}[/green]            # Build with all defaults")
    console.print(f"  [green]sudo {target} --clean[/green]    # Clean build")
    console.print(f"  [green]sudo {target} --help[/green]     # Show all options")

    if not config.skip_shell:
        table = Table("Alias", "Runs", title="Aliases available", title_style="bold yellow")
        for name, flags in templates.ALIASES:
            table.add_row(name, f"sudo {target}{flags}")
        console.print(table)

    _bullets(console, "Important Notes:", "yellow", [
        "Ensure you have at least 10GB free disk space",
        "Kernel compilation can take 30-60 minutes",
        "GPU drivers require a reboot to take effect",
        "Always backup your system before installing a custom kernel",
    ])

    if not config.skip_shell:
        console.print("\n[bold cyan]To activate shell aliases, run:[/bold cyan]")
        console.print("  [green]source ~/.bashrc[/green] (or restart your terminal)")
    console.print()


def print_install_troubleshooting(console: Console, log_file: str) -> None:
    console.print("\n[bold red]Installation Failed![/bold red]")
    _bullets(console, "Troubleshooting:", "red", [
        f"Check the installation log: {log_file}",
        "Ensure you have root privileges (run with sudo)",
        "Verify your internet connection for package downloads",
        "Check that you have sufficient disk space (>1GB)",
        "Try running with --force flag to skip some checks",
        "Ensure the kbuilder package exists in the source directory",
    ])
