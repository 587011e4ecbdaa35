"""
Pytest Configuration and Shared Fixtures

Provides common fixtures for all test modules including:
- A scripted fake CommandRunner that records every command
- Builder and installer configurations redirected into tmp_path
- Host checks patched to look like a rooted Debian arm64 board
"""

import sys
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

import pytest

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from kbuilder.config.schema import BuildConfig, InstallerConfig, SystemPaths
from kbuilder.core import host
from kbuilder.core.exceptions import CommandError


Matcher = Union[Tuple[str, ...], Callable[[List[str]], bool]]


# ===================================================================
# FAKE COMMAND RUNNER
# ===================================================================

class FakeRunner:
    """Stand-in for CommandRunner that never spawns a process.

    Every command succeeds unless a rule says otherwise. Rules match on an
    argv prefix or a predicate; the most recently added matching rule wins.
    An ``effect`` callable receives (argv, cwd) and can create the files a
    real command would have produced.
    """

    def __init__(self):
        self.calls: List[dict] = []
        self._rules: List[dict] = []

    def script(
        self,
        match: Matcher,
        status: int = 0,
        output: str = "",
        effect: Optional[Callable[[List[str], Optional[Path]], Any]] = None,
    ) -> "FakeRunner":
        self._rules.append({"match": match, "status": status, "output": output, "effect": effect})
        return self

    def fail(self, *prefix: str, status: int = 1) -> "FakeRunner":
        return self.script(tuple(prefix), status=status)

    def _rule_for(self, argv: List[str]) -> Optional[dict]:
        for rule in reversed(self._rules):
            match = rule["match"]
            if callable(match):
                if match(argv):
                    return rule
            elif tuple(argv[:len(match)]) == match:
                return rule
        return None

    def _invoke(self, argv, show_output, cwd, env) -> Tuple[int, str]:
        argv = [str(arg) for arg in argv]
        self.calls.append({"argv": argv, "show_output": show_output, "cwd": cwd, "env": dict(env or {})})
        rule = self._rule_for(argv)
        if rule is None:
            return 0, ""
        if rule["effect"] is not None:
            rule["effect"](argv, Path(cwd) if cwd is not None else None)
        return rule["status"], rule["output"]

    def run(self, argv: Sequence[str], show_output: bool = False, cwd=None, env=None) -> int:
        status, _ = self._invoke(argv, show_output, cwd, env)
        return status

    def check(self, argv: Sequence[str], message: str, show_output: bool = True, cwd=None, env=None) -> None:
        status = self.run(argv, show_output=show_output, cwd=cwd, env=env)
        if status != 0:
            raise CommandError(message, argv=argv, returncode=status)

    def capture(self, argv: Sequence[str], cwd=None, env=None) -> Tuple[int, str]:
        return self._invoke(argv, False, cwd, env)

    # Inspection helpers

    @property
    def commands(self) -> List[List[str]]:
        return [call["argv"] for call in self.calls]

    def ran(self, *prefix: str) -> List[List[str]]:
        """All recorded commands starting with the given prefix."""
        return [argv for argv in self.commands if tuple(argv[:len(prefix)]) == prefix]


def _touch_output(argv: List[str], cwd: Optional[Path]) -> None:
    """wget -O NAME URL: create NAME in cwd."""
    target = Path(cwd or ".") / argv[argv.index("-O") + 1]
    target.write_bytes(b"\x7fblob")


def _clone_into(argv: List[str], cwd: Optional[Path]) -> None:
    (Path(cwd or ".") / argv[-1]).mkdir(parents=True, exist_ok=True)


def _build_artifacts(argv: List[str], cwd: Optional[Path]) -> None:
    kernel_dir = Path(cwd or ".")
    boot = kernel_dir / "arch" / "arm64" / "boot"
    boot.mkdir(parents=True, exist_ok=True)
    (boot / "Image").write_bytes(b"ARM64 kernel image")
    (kernel_dir / "System.map").write_text("ffff0000 T _text\n")


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Runner where every command succeeds and produces nothing."""
    return FakeRunner()


@pytest.fixture
def builder_runner() -> FakeRunner:
    """Runner whose downloads, clones and builds leave realistic files behind."""
    runner = FakeRunner()
    runner.script(("wget",), effect=_touch_output)
    runner.script(("git", "clone"), effect=_clone_into)
    runner.script(lambda argv: argv[0] == "make" and argv[-1] == "Image", effect=_build_artifacts)
    return runner


# ===================================================================
# HOST FIXTURES
# ===================================================================

@pytest.fixture
def debian_host(monkeypatch):
    """Make host checks report a rooted Debian aarch64 machine with free space."""
    monkeypatch.setattr(host, "is_root", lambda: True)
    monkeypatch.setattr(host, "machine", lambda: "aarch64")
    monkeypatch.setattr(host, "running_release", lambda: "6.1.0-1025-rockchip")
    monkeypatch.setattr(host, "free_space_bytes", lambda path="/tmp": 50 * 1024 ** 3)
    monkeypatch.setattr(host, "path_exists", lambda path: True)
    return host


# ===================================================================
# CONFIGURATION FIXTURES
# ===================================================================

@pytest.fixture
def system_paths(tmp_path) -> SystemPaths:
    """System locations inside tmp_path."""
    root = tmp_path / "root"
    return SystemPaths(
        stage_dir=str(tmp_path / "mali_install"),
        firmware_dir=str(root / "lib" / "firmware"),
        lib_dir=str(root / "usr" / "lib"),
        opencl_vendors_dir=str(root / "etc" / "OpenCL" / "vendors"),
        vulkan_icd_dir=str(root / "usr" / "share" / "vulkan" / "icd.d"),
        boot_dir=str(root / "boot"),
    )


@pytest.fixture
def build_config_dict(tmp_path, system_paths) -> dict:
    """Raw BuildConfig values pointing into tmp_path."""
    return {
        "build_dir": str(tmp_path / "kernel_build"),
        "log_file": str(tmp_path / "kernel_build.log"),
        "jobs": 4,
        "paths": system_paths.model_dump(),
    }


@pytest.fixture
def build_config(build_config_dict) -> BuildConfig:
    """Default BuildConfig redirected into tmp_path."""
    return BuildConfig(**build_config_dict)


@pytest.fixture
def make_build_config(build_config_dict) -> Callable[..., BuildConfig]:
    """Factory for BuildConfig variants with the tmp_path redirections."""

    def _make(**overrides) -> BuildConfig:
        return BuildConfig(**{**build_config_dict, **overrides})

    return _make


@pytest.fixture
def source_tree(tmp_path) -> Path:
    """Source directory containing a minimal kbuilder package."""
    source = tmp_path / "src"
    package = source / "kbuilder"
    (package / "cli").mkdir(parents=True)
    (package / "__init__.py").write_text('__version__ = "1.0.0"\n')
    (package / "cli" / "__init__.py").write_text("")
    (package / "cli" / "builder.py").write_text("def main():\n    return 0\n")
    return source


@pytest.fixture
def make_installer_config(tmp_path, source_tree) -> Callable[..., InstallerConfig]:
    """Factory for InstallerConfig variants inside tmp_path."""
    home = tmp_path / "home"
    home.mkdir()
    completion = tmp_path / "bash_completion.d"
    completion.mkdir()

    def _make(**overrides) -> InstallerConfig:
        values = {
            "install_dir": str(tmp_path / "bin"),
            "source_dir": str(source_tree),
            "log_file": str(tmp_path / "installer.log"),
            "completion_dir": str(completion),
            "home_dir": str(home),
        }
        values.update(overrides)
        return InstallerConfig(**values)

    return _make


@pytest.fixture
def installer_config(make_installer_config) -> InstallerConfig:
    return make_installer_config()
