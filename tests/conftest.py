"""Pytest fixtures and utilities for okit tests."""

import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from okit.providers import DependencyProvider, PackageInfo
from okit.registry import PackageRef, Registry, Step


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def okit_home(temp_dir: Path, monkeypatch) -> Path:
    """Point OKIT_HOME at a temp dir and keep the default registry offline."""
    home = temp_dir / "okit"
    monkeypatch.setenv("OKIT_HOME", str(home))
    monkeypatch.delenv("OKIT_REGISTRY", raising=False)
    with patch("okit.registry._is_in_china", return_value=False):
        from okit.registry import clear_cache

        clear_cache()
        yield home
        clear_cache()


@pytest.fixture
def sample_registry() -> Registry:
    """Homebrew <- Node.js <- Claude Code, plus an unrelated cask."""
    return Registry(
        steps=[
            Step(
                name="Homebrew",
                install="install brew",
                upgrade="brew update && brew upgrade",
                check="check brew",
            ),
            Step(
                name="Node.js",
                install="brew install node",
                upgrade="brew upgrade node",
                uninstall="brew uninstall node",
                check="check node",
                dependencies=["Homebrew"],
            ),
            Step(
                name="Claude Code",
                install="npm install -g @anthropic-ai/claude-code",
                upgrade="npm update -g @anthropic-ai/claude-code",
                uninstall="npm uninstall -g @anthropic-ai/claude-code",
                check="check claude",
                dependencies=["Node.js"],
            ),
            Step(
                name="iTerm2",
                install="brew install --cask iterm2",
                uninstall="brew uninstall --cask iterm2",
                check="check iterm2",
                dependencies=["Homebrew"],
                package=PackageRef("brew", "iterm2", "cask"),
            ),
        ]
    )


class FakeProvider(DependencyProvider):
    """Provider driven by in-memory tables instead of a package manager."""

    def __init__(
        self,
        provider_id: str,
        owned: dict[str, str] | None = None,
        dependents: dict[str, list[str]] | None = None,
        installed: set[str] | None = None,
    ):
        self.id = provider_id
        self.owned = owned or {}
        self.dependents = dependents or {}
        self.installed = installed if installed is not None else set(self.owned.values())
        self.queried: list[str] = []

    def identify(self, step: Step) -> PackageInfo | None:
        name = self.owned.get(step.name)
        return PackageInfo(name=name) if name else None

    async def reverse_dependents(self, info: PackageInfo) -> list[str]:
        self.queried.append(info.name)
        return list(self.dependents.get(info.name, []))

    async def is_installed(self, info: PackageInfo) -> bool:
        return info.name in self.installed


@pytest.fixture
def fake_provider_factory():
    return FakeProvider


@pytest.fixture
def command_results():
    """Factory for async stand-ins of run_command_async.

    Commands in `ok` exit 0, everything else exits 1.
    """

    def _factory(ok: set[str] | None = None):
        succeeding = ok or set()

        async def _run(command: str, timeout: int = 30) -> tuple[str, int]:
            return ("", 0) if command in succeeding else ("", 1)

        return _run

    return _factory


@pytest.fixture
def mock_tty() -> Generator[None, None, None]:
    """Mock sys.stdin.isatty to return True."""
    with patch("sys.stdin.isatty", return_value=True):
        yield


@pytest.fixture
def mock_no_tty() -> Generator[None, None, None]:
    """Mock sys.stdin.isatty to return False."""
    with patch("sys.stdin.isatty", return_value=False):
        yield
