"""Adapter registry for managing platform adapters.

Adapters register their class at import time; callers create instances
bound to a scope with ``AdapterRegistry.create``.
"""

from pathlib import Path
from typing import TYPE_CHECKING

from aix.exceptions import AdapterNotFoundError

if TYPE_CHECKING:
    from aix.adapters.base import PlatformAdapter, Scope


class AdapterRegistry:
    """Registry for platform adapters.

    Usage:
        # Register adapters (typically done at import time)
        AdapterRegistry.register("claude", ClaudeAdapter)

        # Build an adapter for a scope
        adapter = AdapterRegistry.create("claude", Scope.PROJECT, project_root=root)

        # Get all registered adapter names
        names = AdapterRegistry.all_names()
    """

    _adapters: dict[str, type] = {}

    @classmethod
    def register(cls, name: str, adapter_class: type) -> None:
        """Register an adapter class.

        Args:
            name: Name to register the adapter under (e.g., "claude")
            adapter_class: The adapter class to register
        """
        cls._adapters[name] = adapter_class

    @classmethod
    def get(cls, platform: str) -> type:
        """Get an adapter class by name.

        Raises:
            AdapterNotFoundError: If no adapter is registered for the name
        """
        if platform not in cls._adapters:
            available = ", ".join(cls.all_names()) if cls._adapters else "none"
            raise AdapterNotFoundError(
                f"No adapter registered for '{platform}'. Available: {available}"
            )
        return cls._adapters[platform]

    @classmethod
    def create(
        cls,
        platform: str,
        scope: "Scope | None" = None,
        project_root: Path | None = None,
        home: Path | None = None,
        config_dir: Path | None = None,
    ) -> "PlatformAdapter":
        """Instantiate the adapter for a platform.

        Args:
            platform: Registered platform name
            scope: User or project scope (defaults to user)
            project_root: Project root for project scope
            home: Home directory override
            config_dir: Override for the user-level base directory

        Raises:
            AdapterNotFoundError: If no adapter is registered for the name
        """
        adapter_class = cls.get(platform)
        kwargs = {"project_root": project_root, "home": home, "config_dir": config_dir}
        if scope is not None:
            kwargs["scope"] = scope
        return adapter_class(**kwargs)

    @classmethod
    def all_names(cls) -> list[str]:
        """Get all registered adapter names, sorted."""
        return sorted(cls._adapters.keys())

    @classmethod
    def display_name(cls, platform: str) -> str:
        """Human-readable name for a registered platform."""
        return cls.get(platform).FORMAT.display_name

    @classmethod
    def clear(cls) -> None:
        """Clear all registered adapters.

        Primarily useful for testing.
        """
        cls._adapters.clear()
