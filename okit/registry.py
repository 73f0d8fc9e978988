"""Step registry: built-in tool catalog merged with the user's registry file.

The registry is read once per invocation and is read-only afterwards.
Loading follows load -> pure merge -> atomic write; `merge_registries`
never touches the filesystem.
"""

import json
import logging
import subprocess
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .paths import get_registry_path

_logging = logging.getLogger(__name__)

ACTIONS = ("install", "upgrade", "uninstall")
PROBE_TIMEOUT = 5

# Legacy Mermaid CLI install command that fails without a Chromium download
# guard; user registries carrying it get the default commands back.
_LEGACY_MERMAID_INSTALL = "npm install -g @mermaid-js/mermaid-cli"


class ConfigError(Exception):
    """Raised when the registry file cannot be read, parsed or validated."""

    pass


@dataclass(frozen=True)
class PackageRef:
    """Structured package-manager identity of a step.

    `variant` disambiguates namespaces inside one manager, e.g. "cask" for
    Homebrew GUI packages.
    """

    manager: str
    name: str
    variant: str | None = None


@dataclass
class Step:
    """A named tool definition with per-action shell commands."""

    name: str
    install: str | None = None
    upgrade: str | None = None
    uninstall: str | None = None
    check: str | None = None
    dependencies: list[str] = field(default_factory=list)
    package: PackageRef | None = None

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be a non-empty string")
        # Ordered set semantics: keep first occurrence of each dependency.
        self.dependencies = list(dict.fromkeys(self.dependencies))

    def command_for(self, action: str) -> str | None:
        if action not in ACTIONS:
            raise ValueError(f"Unknown action: {action}")
        return getattr(self, action) or None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        for key in ("install", "upgrade", "uninstall", "check"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.dependencies:
            data["dependencies"] = list(self.dependencies)
        if self.package is not None:
            package = {"manager": self.package.manager, "name": self.package.name}
            if self.package.variant:
                package["variant"] = self.package.variant
            data["package"] = package
        return data


@dataclass
class Registry:
    """Ordered catalog of steps, unique by name."""

    steps: list[Step] = field(default_factory=list)

    def __post_init__(self):
        seen: set[str] = set()
        for step in self.steps:
            if step.name in seen:
                raise ValueError(f"Duplicate step name: {step.name}")
            seen.add(step.name)

    def get(self, name: str) -> Step | None:
        return next((s for s in self.steps if s.name == name), None)

    def names(self) -> list[str]:
        return [s.name for s in self.steps]

    def to_dict(self) -> dict[str, Any]:
        return {"steps": [s.to_dict() for s in self.steps]}


def _optional_str(data: dict, key: str, entity: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigError(
            f"{entity}.{key} must be a string or null, got {type(value).__name__}"
        )
    return value


def step_from_dict(data: Any, entity: str = "step") -> Step:
    """Validate a raw step object and convert it to a Step.

    Raises:
        ConfigError: With a field path such as ``steps[3].name is required``
    """
    if not isinstance(data, dict):
        raise ConfigError(f"{entity} must be an object, got {type(data).__name__}")
    if "name" not in data:
        raise ConfigError(f"{entity}.name is required")
    if not isinstance(data["name"], str) or not data["name"].strip():
        raise ConfigError(f"{entity}.name must be a non-empty string")

    dependencies = data.get("dependencies") or []
    if not isinstance(dependencies, list) or not all(
        isinstance(d, str) for d in dependencies
    ):
        raise ConfigError(f"{entity}.dependencies must be a list of strings")

    package = None
    raw_package = data.get("package")
    if raw_package is not None:
        if not isinstance(raw_package, dict):
            raise ConfigError(f"{entity}.package must be an object")
        for key in ("manager", "name"):
            if not isinstance(raw_package.get(key), str) or not raw_package[key]:
                raise ConfigError(f"{entity}.package.{key} must be a non-empty string")
        package = PackageRef(
            manager=raw_package["manager"],
            name=raw_package["name"],
            variant=_optional_str(raw_package, "variant", f"{entity}.package"),
        )

    return Step(
        name=data["name"],
        install=_optional_str(data, "install", entity),
        upgrade=_optional_str(data, "upgrade", entity),
        uninstall=_optional_str(data, "uninstall", entity),
        check=_optional_str(data, "check", entity),
        dependencies=dependencies,
        package=package,
    )


def merge_registries(base: Registry, override: dict[str, Any]) -> Registry:
    """Shallow-merge a raw user registry document over the base registry.

    For a name present in both, the user's keys overwrite the base keys.
    User-only entries are appended in file order. Entries without a name
    are ignored.
    """
    override_steps = override.get("steps") or []
    if not isinstance(override_steps, list):
        raise ConfigError(
            f"steps must be a list, got {type(override_steps).__name__}"
        )

    by_name: dict[str, dict[str, Any]] = {s.name: s.to_dict() for s in base.steps}
    entities: dict[str, str] = {name: f"step '{name}'" for name in by_name}
    for i, raw in enumerate(override_steps):
        if not isinstance(raw, dict) or not raw.get("name"):
            continue
        existing = by_name.get(raw["name"])
        merged = {**existing, **raw} if existing else dict(raw)
        # A changed uninstall command outranks the default package identity
        # unless the user changed the package too.
        if (
            existing
            and "uninstall" in raw
            and raw["uninstall"] != existing.get("uninstall")
            and raw.get("package", existing.get("package")) == existing.get("package")
        ):
            merged.pop("package", None)
        by_name[raw["name"]] = merged
        entities[raw["name"]] = f"steps[{i}]"

    steps = [step_from_dict(data, entities[name]) for name, data in by_name.items()]

    mermaid = next((s for s in steps if s.name == "Mermaid CLI"), None)
    base_mermaid = base.get("Mermaid CLI")
    if mermaid and base_mermaid and mermaid.install == _LEGACY_MERMAID_INSTALL:
        _logging.debug("Restoring default Mermaid CLI commands over legacy install")
        if base_mermaid.install:
            mermaid.install = base_mermaid.install
        if base_mermaid.upgrade:
            mermaid.upgrade = base_mermaid.upgrade

    return Registry(steps=steps)


def _is_in_china() -> bool:
    """Probe whether the official Homebrew host is reachable."""
    try:
        result = subprocess.run(
            "curl -s --connect-timeout 3 https://www.google.com -o /dev/null",
            shell=True,
            capture_output=True,
            timeout=PROBE_TIMEOUT,
        )
        return result.returncode != 0
    except (subprocess.TimeoutExpired, OSError):
        return True


def _homebrew_install_command() -> str:
    banner = (
        "echo 'Installing Homebrew...' && "
        "echo 'Administrator privileges are required, enter your password when asked'"
    )
    if _is_in_china():
        return (
            f'{banner} && /bin/zsh -c "$(curl -fsSL '
            'https://gitee.com/cunkai/HomebrewCN/raw/master/Homebrew.sh)"'
        )
    return (
        f'{banner} && /bin/bash -c "$(curl -fsSL '
        'https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh)"'
    )


def _brew(name: str, formula: str, check: str, cask: bool = False, **extra) -> Step:
    flag = "--cask " if cask else ""
    return Step(
        name=name,
        install=extra.pop("install", f"brew install {flag}{formula}"),
        upgrade=extra.pop("upgrade", f"brew upgrade {flag}{formula}"),
        uninstall=extra.pop("uninstall", f"brew uninstall {flag}{formula}"),
        check=check,
        dependencies=extra.pop("dependencies", ["Homebrew"]),
        package=PackageRef("brew", formula, "cask" if cask else None),
    )


def _npm(name: str, package: str, check: str, sudo: bool = True, **extra) -> Step:
    prefix = "sudo " if sudo else ""
    return Step(
        name=name,
        install=extra.pop("install", f"{prefix}npm install -g {package}"),
        upgrade=extra.pop("upgrade", f"{prefix}npm update -g {package}"),
        uninstall=extra.pop("uninstall", f"{prefix}npm uninstall -g {package}"),
        check=check,
        dependencies=["Node.js"],
        package=PackageRef("npm", package),
    )


_MERMAID_PREPARE = (
    'mkdir -p "$HOME/.cache/puppeteer" && chmod -R u+rwX "$HOME/.cache/puppeteer" || true'
    ' && PUPPETEER_SKIP_DOWNLOAD=true PUPPETEER_CACHE_DIR="$HOME/.cache/puppeteer"'
)


def _build_default_registry() -> Registry:
    return Registry(
        steps=[
            Step(
                name="Homebrew",
                install=_homebrew_install_command(),
                upgrade="brew update && brew upgrade",
                check="command -v brew",
            ),
            _brew("Node.js", "node", "command -v node"),
            _brew(
                "Git",
                "git",
                "command -v git",
                uninstall="brew uninstall --force git",
            ),
            _brew("GitHub CLI", "gh", "command -v gh"),
            _brew("pnpm", "pnpm", "command -v pnpm"),
            _brew("Python", "python", "command -v python3"),
            _brew(
                "Docker",
                "docker",
                "command -v docker",
                cask=True,
                install=(
                    "echo 'Installing Docker Desktop...' && brew install --cask docker"
                    " || (echo 'Homebrew install failed, download it from"
                    " https://www.docker.com/products/docker-desktop' && exit 1)"
                ),
            ),
            _npm("Codex CLI", "@openai/codex", "command -v codex"),
            _npm("Claude Code", "@anthropic-ai/claude-code", "command -v claude"),
            _npm("Happy Coder", "happy-coder", "command -v happy-coder", sudo=False),
            _brew("yt-dlp", "yt-dlp", "command -v yt-dlp"),
            _brew("curl", "curl", "command -v curl"),
            _npm(
                "Playwright",
                "@playwright/test",
                "command -v playwright",
                install=(
                    "echo 'Installing Playwright (browsers are not downloaded, run"
                    " npx playwright install later)' && sudo npm install -g @playwright/test"
                ),
            ),
            _npm(
                "Chromium (Puppeteer)",
                "puppeteer",
                "command -v puppeteer"
                " || ls ~/.cache/puppeteer/chrome/*/chrome-mac/Chromium.app 2>/dev/null"
                " || ls ~/.cache/puppeteer/chrome/*/chrome-linux/chrome 2>/dev/null",
                install=(
                    "echo 'Installing Puppeteer browser (Chromium)...'"
                    " && sudo npm install -g puppeteer && npx puppeteer browsers install chrome"
                ),
                upgrade="sudo npm update -g puppeteer && npx puppeteer browsers install chrome",
                uninstall="sudo npm uninstall -g puppeteer && sudo rm -rf ~/.cache/puppeteer",
            ),
            _npm(
                "Mermaid CLI",
                "@mermaid-js/mermaid-cli",
                "command -v mmdc",
                install=(
                    "echo 'Installing Mermaid CLI (Puppeteer browser download skipped)'"
                    f" && {_MERMAID_PREPARE} npm install -g @mermaid-js/mermaid-cli"
                ),
                upgrade=f"{_MERMAID_PREPARE} npm update -g @mermaid-js/mermaid-cli",
            ),
            _brew("Pandoc", "pandoc", "command -v pandoc"),
            _brew("ffmpeg", "ffmpeg", "command -v ffmpeg"),
            _brew("ImageMagick", "imagemagick", "command -v convert"),
            _brew(
                "pipx",
                "pipx",
                "command -v pipx",
                install="brew install pipx && pipx ensurepath",
                dependencies=["Homebrew", "Python"],
            ),
            Step(
                name="Whisper",
                install="pipx install openai-whisper",
                upgrade="pipx upgrade openai-whisper",
                uninstall="pipx uninstall openai-whisper",
                check="command -v whisper",
                dependencies=["pipx"],
                package=PackageRef("pipx", "openai-whisper"),
            ),
            Step(
                name="Jupyter",
                install="pipx install --include-deps jupyter",
                upgrade="pipx upgrade --include-deps jupyter",
                uninstall="pipx uninstall jupyter",
                check="command -v jupyter",
                dependencies=["pipx"],
                package=PackageRef("pipx", "jupyter"),
            ),
            _brew("DuckDB", "duckdb", "command -v duckdb"),
            _brew("ripgrep", "ripgrep", "command -v rg"),
            _brew("fzf", "fzf", "command -v fzf"),
            _brew("tmux", "tmux", "command -v tmux"),
            _brew("iTerm2", "iterm2", "test -d /Applications/iTerm.app", cask=True),
            _brew("Warp", "warp", "test -d /Applications/Warp.app", cask=True),
            _brew("uv (uvx)", "uv", "command -v uv && command -v uvx"),
            Step(
                name="OpenClaw",
                install=(
                    "bash -c 'set -e; if command -v curl >/dev/null 2>&1; then"
                    " curl -fsSL https://openclaw.ai/install.sh | bash;"
                    " elif command -v npm >/dev/null 2>&1; then npm install -g openclaw@latest;"
                    " elif command -v pnpm >/dev/null 2>&1; then pnpm add -g openclaw@latest;"
                    ' else echo "curl, npm or pnpm is required to install OpenClaw"; exit 1; fi\''
                ),
                upgrade=(
                    "bash -c 'set -e; if command -v npm >/dev/null 2>&1; then npm update -g openclaw@latest;"
                    " elif command -v pnpm >/dev/null 2>&1; then pnpm add -g openclaw@latest;"
                    " elif command -v curl >/dev/null 2>&1; then curl -fsSL https://openclaw.ai/install.sh | bash;"
                    ' else echo "curl, npm or pnpm is required to upgrade OpenClaw"; exit 1; fi\''
                ),
                uninstall=(
                    "bash -c 'if command -v openclaw >/dev/null 2>&1; then openclaw uninstall;"
                    " elif command -v npm >/dev/null 2>&1; then npm uninstall -g openclaw;"
                    " elif command -v pnpm >/dev/null 2>&1; then pnpm remove -g openclaw;"
                    ' else echo "Remove OpenClaw manually (it may come from the install script)"; fi\''
                ),
                check="command -v openclaw",
                dependencies=["Node.js"],
            ),
        ]
    )


_default_registry_cache: Registry | None = None


def get_default_registry() -> Registry:
    """Return the built-in catalog, built once per process."""
    global _default_registry_cache
    if _default_registry_cache is None:
        _default_registry_cache = _build_default_registry()
    return _default_registry_cache


def clear_cache() -> None:
    global _default_registry_cache
    _default_registry_cache = None


def _format_syntax_error(text: str, error: json.JSONDecodeError, path: Path) -> str:
    lines = text.split("\n")
    parts = [
        f"Registry syntax error in {path} at line {error.lineno}, "
        f"col {error.colno}: {error.msg}"
    ]
    if 1 <= error.lineno <= len(lines):
        parts.append(lines[error.lineno - 1])
        parts.append(" " * (error.colno - 1) + "^")
    return "\n".join(parts)


def read_registry_file(path: Path) -> dict[str, Any]:
    """Read and parse a raw registry document.

    Raises:
        ConfigError: If the file cannot be read or is not a JSON object
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Registry file not found: {path}")
    except UnicodeDecodeError:
        raise ConfigError(f"Registry file is not valid UTF-8: {path}")
    except OSError as e:
        raise ConfigError(f"Error reading registry file {path}: {e}")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(_format_syntax_error(text, e, path)) from e

    if not isinstance(data, dict):
        raise ConfigError(f"Registry must be a JSON object, got {type(data).__name__}")
    return data


def save_registry(registry: Registry, path: Path | None = None) -> Path:
    """Write the registry atomically and return the path written."""
    path = path or get_registry_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(f".tmp.{uuid.uuid4().hex[:8]}")
    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(registry.to_dict(), f, indent=2, ensure_ascii=False)
            f.write("\n")
        temp_path.replace(path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return path


def load_registry(force_default: bool = False, path: Path | None = None) -> Registry:
    """Load the active registry.

    A missing file is seeded from the built-in defaults. A file that exists
    but cannot be parsed is fatal: no fallback to defaults.

    Raises:
        ConfigError: If the registry file is malformed
    """
    path = path or get_registry_path()
    defaults = get_default_registry()

    if force_default or not path.exists():
        _logging.debug(f"Seeding registry at {path} from defaults")
        save_registry(defaults, path)
        return defaults

    return merge_registries(defaults, read_registry_file(path))


def reset_registry(path: Path | None = None) -> Path:
    return save_registry(get_default_registry(), path)


__all__ = [
    "ACTIONS",
    "ConfigError",
    "PackageRef",
    "Step",
    "Registry",
    "step_from_dict",
    "merge_registries",
    "get_default_registry",
    "clear_cache",
    "read_registry_file",
    "save_registry",
    "load_registry",
    "reset_registry",
]
