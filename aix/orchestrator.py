"""Orchestrator for applying resources across platforms.

Install is all-or-nothing up to the first failing platform: the loop stops
at the first error, but platforms already written are left in place.
Remove, enable and disable are best-effort and report an outcome per
platform instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from aix import git
from aix.adapters import AdapterRegistry, PlatformAdapter, Scope
from aix.backup import BackupManager, BackupService
from aix.core.parser import parse_file
from aix.core.resource import Resource, ResourceType
from aix.core.validator import Issue, Validator
from aix.exceptions import (
    AixError,
    InstallError,
    ResourceExistsError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from aix.resolver import Cloner, ResourceIndex, Selector, materialize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallRequest:
    """Everything one install needs, passed explicitly down the call chain.

    Attributes:
        resource: The canonical resource to install
        platforms: Target platform names
        scope: User or project scope
        force: Overwrite resources that already exist
        project_root: Project root for project scope (defaults to cwd)
        source_path: Where the resource was parsed from, if anywhere
        strict: Validate in strict mode
    """

    resource: Resource
    platforms: list[str]
    scope: Scope = Scope.USER
    force: bool = False
    project_root: Path | None = None
    source_path: Path | None = None
    strict: bool = False


@dataclass
class InstallResult:
    """Result of a successful install."""

    resource_name: str
    resource_type: ResourceType
    installed: list[str] = field(default_factory=list)
    overwritten: list[str] = field(default_factory=list)
    warnings: list[Issue] = field(default_factory=list)


class OutcomeStatus(Enum):
    OK = "ok"
    NOT_FOUND = "not-found"
    FAILED = "failed"


@dataclass
class PlatformOutcome:
    """What happened on one platform during a best-effort operation."""

    platform: str
    display_name: str
    status: OutcomeStatus
    error: str = ""


class Orchestrator:
    """Coordinates validate, pre-flight, backup and persist across platforms.

    Args:
        backup: Backup service; a BackupManager under ~/.config/aix by default
        home: Home directory override passed to adapters
        config_dirs: Per-platform overrides of the user-level base directory
    """

    def __init__(
        self,
        backup: BackupService | None = None,
        home: Path | None = None,
        config_dirs: dict[str, Path] | None = None,
    ) -> None:
        self.backup = backup if backup is not None else BackupManager()
        self.home = home
        self.config_dirs = config_dirs or {}

    def adapters(
        self,
        platforms: list[str],
        scope: Scope = Scope.USER,
        project_root: Path | None = None,
    ) -> list[PlatformAdapter]:
        """Build adapters for platforms in a stable order (sorted by name)."""
        return [
            AdapterRegistry.create(
                name,
                scope,
                project_root=project_root,
                home=self.home,
                config_dir=self.config_dirs.get(name),
            )
            for name in sorted(set(platforms))
        ]

    def apply(self, request: InstallRequest) -> InstallResult:
        """Install a resource on every requested platform.

        Raises:
            ValidationFailedError: If validation reports an error; nothing
                is touched
            ResourceExistsError: If the resource exists on any target and
                force is false; nothing is touched
            InstallError: If a platform fails. Earlier platforms keep the
                new resource.
        """
        resource = request.resource
        resource_type = resource.resource_type

        validator = Validator(strict=request.strict)
        if request.source_path is not None:
            result = validator.validate_with_path(resource, request.source_path)
        else:
            result = validator.validate(resource)
        if result.has_errors():
            raise ValidationFailedError(resource.name, result)

        adapters = self.adapters(request.platforms, request.scope, request.project_root)

        existing = [a for a in adapters if a.exists(resource_type, resource.name)]
        if existing and not request.force:
            raise ResourceExistsError(
                f'{resource_type.label} "{resource.name}" already exists on '
                f"{existing[0].format.display_name} (use --force to overwrite)"
            )

        outcome = InstallResult(
            resource_name=resource.name,
            resource_type=resource_type,
            overwritten=[a.format.name for a in existing],
            warnings=result.warnings(),
        )
        for adapter in adapters:
            display = adapter.format.display_name
            try:
                self.backup.ensure_backed_up(adapter.format.name, adapter.backup_paths())
                adapter.install(resource)
            except (AixError, OSError) as e:
                logger.debug("install to %s failed", display, exc_info=True)
                raise InstallError(display, e) from e
            logger.info("installed %s '%s' to %s", resource_type.value, resource.name, display)
            outcome.installed.append(adapter.format.name)
        return outcome

    def install_from_source(
        self,
        source: str,
        resource_type: ResourceType,
        platforms: list[str],
        scope: Scope = Scope.USER,
        force: bool = False,
        project_root: Path | None = None,
        strict: bool = False,
        force_file: bool = False,
        index: ResourceIndex | None = None,
        selector: Selector | None = None,
        cloner: Cloner = git.clone,
    ) -> InstallResult:
        """Resolve a source string, parse it and apply it.

        Scratch directories created for git and repository sources are
        removed before this returns.
        """
        with materialize(
            source,
            resource_type,
            force_file=force_file,
            index=index,
            selector=selector,
            cloner=cloner,
        ) as path:
            resource = parse_file(path, resource_type)
            request = InstallRequest(
                resource=resource,
                platforms=platforms,
                scope=scope,
                force=force,
                project_root=project_root,
                source_path=path,
                strict=strict,
            )
            return self.apply(request)

    def remove(
        self,
        resource_type: ResourceType,
        name: str,
        platforms: list[str],
        scope: Scope = Scope.USER,
        project_root: Path | None = None,
    ) -> list[PlatformOutcome]:
        """Remove a resource from every platform that has it.

        Raises:
            ResourceNotFoundError: If no platform has the resource
        """

        def remove_one(adapter: PlatformAdapter) -> None:
            adapter.uninstall(resource_type, name)

        return self._each(resource_type, name, platforms, scope, project_root, remove_one)

    def enable(
        self,
        name: str,
        platforms: list[str],
        scope: Scope = Scope.USER,
        project_root: Path | None = None,
    ) -> list[PlatformOutcome]:
        """Enable an MCP server wherever it is configured."""

        def enable_one(adapter: PlatformAdapter) -> None:
            adapter.enable_mcp(name)

        return self._each(ResourceType.MCP, name, platforms, scope, project_root, enable_one)

    def disable(
        self,
        name: str,
        platforms: list[str],
        scope: Scope = Scope.USER,
        project_root: Path | None = None,
    ) -> list[PlatformOutcome]:
        """Disable an MCP server wherever it is configured."""

        def disable_one(adapter: PlatformAdapter) -> None:
            adapter.disable_mcp(name)

        return self._each(ResourceType.MCP, name, platforms, scope, project_root, disable_one)

    def list(
        self,
        resource_type: ResourceType,
        platforms: list[str],
        scope: Scope = Scope.USER,
        project_root: Path | None = None,
    ) -> dict[str, list[Resource]]:
        """List installed resources, keyed by platform name."""
        return {
            adapter.format.name: adapter.list(resource_type)
            for adapter in self.adapters(platforms, scope, project_root)
        }

    def show(
        self,
        resource_type: ResourceType,
        name: str,
        platforms: list[str],
        scope: Scope = Scope.USER,
        project_root: Path | None = None,
    ) -> dict[str, Resource]:
        """Read one installed resource from each platform that has it.

        Platforms without the resource are left out of the result.
        """
        found: dict[str, Resource] = {}
        for adapter in self.adapters(platforms, scope, project_root):
            try:
                found[adapter.format.name] = adapter.get(resource_type, name)
            except ResourceNotFoundError:
                logger.debug("%s '%s' not on %s", resource_type.value, name, adapter.format.name)
        return found

    def _each(self, resource_type, name, platforms, scope, project_root, action):
        outcomes: list[PlatformOutcome] = []
        for adapter in self.adapters(platforms, scope, project_root):
            display = adapter.format.display_name
            try:
                if not adapter.exists(resource_type, name):
                    outcomes.append(
                        PlatformOutcome(adapter.format.name, display, OutcomeStatus.NOT_FOUND)
                    )
                    continue
                self.backup.ensure_backed_up(adapter.format.name, adapter.backup_paths())
                action(adapter)
            except (AixError, OSError) as e:
                logger.warning("%s '%s' on %s: %s", resource_type.value, name, display, e)
                outcomes.append(
                    PlatformOutcome(adapter.format.name, display, OutcomeStatus.FAILED, str(e))
                )
                continue
            outcomes.append(PlatformOutcome(adapter.format.name, display, OutcomeStatus.OK))

        if outcomes and all(o.status is OutcomeStatus.NOT_FOUND for o in outcomes):
            raise ResourceNotFoundError(
                f"{resource_type.label} '{name}' not found on any platform"
            )
        return outcomes
