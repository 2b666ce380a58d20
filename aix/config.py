"""Configuration management for config.toml."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli
import tomli_w

from aix.adapters import AdapterRegistry
from aix.exceptions import ConfigParseError, ConfigValidationError
from aix.fileutil import write_atomic

CONFIG_FILENAME = "config.toml"
CONFIG_VERSION = 1
CONFIG_DIR_ENV = "AIX_CONFIG_DIR"


def config_dir() -> Path:
    """Return the aix config directory.

    $AIX_CONFIG_DIR wins; otherwise $XDG_CONFIG_HOME/aix or ~/.config/aix.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "aix"


@dataclass
class PlatformOverride:
    """Per-platform settings.

    Example:
        [platforms.claude]
        config_dir = "~/work/.claude"
    """

    config_dir: str = ""

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "PlatformOverride":
        config_dir = data.get("config_dir", "")
        if not isinstance(config_dir, str):
            raise ConfigValidationError(f"platforms.{name}.config_dir must be a string")
        return cls(config_dir=config_dir)

    def to_dict(self) -> dict[str, Any]:
        return {"config_dir": self.config_dir} if self.config_dir else {}


@dataclass
class AixConfig:
    """Configuration from config.toml."""

    path: Path
    version: int = CONFIG_VERSION
    default_platforms: list[str] = field(default_factory=AdapterRegistry.all_names)
    repos: list[str] = field(default_factory=list)
    platforms: dict[str, PlatformOverride] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path | None = None) -> "AixConfig":
        """Load configuration, falling back to defaults when the file is missing.

        Args:
            path: Path to config.toml (defaults to the aix config directory)

        Raises:
            ConfigParseError: If the file cannot be parsed
            ConfigValidationError: If the configuration is invalid
        """
        path = Path(path) if path is not None else config_dir() / CONFIG_FILENAME
        if not path.exists():
            return cls(path=path)

        try:
            with open(path, "rb") as f:
                data = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigParseError(f"Failed to parse {path}: {e}") from e

        return cls._from_dict(path, data)

    @classmethod
    def _from_dict(cls, path: Path, data: dict[str, Any]) -> "AixConfig":
        config = cls(path=path)
        config.version = data.get("version", CONFIG_VERSION)
        if config.version != CONFIG_VERSION:
            raise ConfigValidationError(f"unsupported config version: {config.version}")

        known = set(AdapterRegistry.all_names())

        if "default_platforms" in data:
            platforms = data["default_platforms"]
            if not isinstance(platforms, list):
                raise ConfigValidationError("default_platforms must be a list")
            for name in platforms:
                if name not in known:
                    raise ConfigValidationError(f"invalid default platform: {name}")
            config.default_platforms = list(platforms)

        repos = data.get("repos", [])
        if not isinstance(repos, list) or not all(isinstance(r, str) for r in repos):
            raise ConfigValidationError("repos must be a list of paths")
        config.repos = list(repos)

        overrides = data.get("platforms", {})
        if not isinstance(overrides, dict):
            raise ConfigValidationError("platforms must be a table")
        for name, override in overrides.items():
            if name not in known:
                raise ConfigValidationError(f"invalid platform override key: {name}")
            if not isinstance(override, dict):
                raise ConfigValidationError(
                    f"Platform '{name}' must be a table, got {type(override).__name__}"
                )
            config.platforms[name] = PlatformOverride.from_dict(name, override)

        return config

    def config_dirs(self) -> dict[str, Path]:
        """Return the user-level base directory overrides, keyed by platform."""
        return {
            name: Path(override.config_dir).expanduser()
            for name, override in self.platforms.items()
            if override.config_dir
        }

    def repo_paths(self) -> list[Path]:
        return [Path(r).expanduser() for r in self.repos]

    def save(self) -> None:
        """Save configuration to config.toml."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        write_atomic(self.path, tomli_w.dumps(self._to_dict()))

    def _to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "default_platforms": list(self.default_platforms),
        }
        if self.repos:
            data["repos"] = list(self.repos)
        overrides = {name: o.to_dict() for name, o in self.platforms.items() if o.to_dict()}
        if overrides:
            data["platforms"] = overrides
        return data
