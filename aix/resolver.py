"""Resolve an install source string to a local resource path.

A source is classified, in priority order, as:

1. an explicit local file (the user passed --file); git URLs are still
   cloned
2. a git URL
3. a local path (leading ./, ../, / or containing a path separator)
4. a name to look up in the configured repositories

Git and repository sources are materialized into a scratch directory that
is removed when the ``materialize`` context exits.
"""

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Generator, Protocol

from aix import git
from aix.core.parser import SKILL_MARKER
from aix.core.resource import ResourceType
from aix.exceptions import SourceResolutionError

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "aix-install-"


class SourceKind(Enum):
    FILE = "file"
    GIT = "git"
    PATH = "path"
    REPOSITORY = "repository"


@dataclass(frozen=True)
class Match:
    """A resource found in a configured repository."""

    name: str
    resource_type: ResourceType
    repo: str
    path: Path


class ResourceIndex(Protocol):
    """Lookup of resources by name across configured repositories."""

    def find_by_name(self, name: str, resource_type: ResourceType) -> list[Match]: ...


Selector = Callable[[list[Match]], Match]
Cloner = Callable[[str, Path, int], None]

# Where each resource type lives inside a repository, relative to its root.
_REPO_LAYOUT: dict[ResourceType, tuple[str, ...]] = {
    ResourceType.SKILL: ("skills/{name}/SKILL.md", "{name}/SKILL.md"),
    ResourceType.COMMAND: ("commands/{name}.md",),
    ResourceType.AGENT: ("agents/{name}.md",),
    ResourceType.MCP: ("mcp/{name}.json",),
}


class DirectoryIndex:
    """ResourceIndex over local repository checkouts.

    Args:
        repos: Repository directories; the directory name is the repo name
    """

    def __init__(self, repos: list[Path]) -> None:
        self.repos = [Path(r).expanduser() for r in repos]

    def find_by_name(self, name: str, resource_type: ResourceType) -> list[Match]:
        matches = []
        for repo in self.repos:
            for pattern in _REPO_LAYOUT[resource_type]:
                candidate = repo / pattern.format(name=name)
                if candidate.is_file():
                    matches.append(Match(name, resource_type, repo.name, candidate))
                    break
        return matches


def looks_like_path(source: str) -> bool:
    """Return True for sources that are clearly filesystem paths."""
    if source.startswith(("./", "../", "/")):
        return True
    if os.sep in source:
        return True
    return os.sep != "/" and "/" in source


def might_be_path(source: str) -> bool:
    """Return True for names that could plausibly be meant as files."""
    return source.lower().endswith((".md", ".json")) or "\\" in source


def classify(source: str, force_file: bool = False) -> SourceKind:
    """Classify a source string without touching the repositories."""
    if git.is_url(source):
        return SourceKind.GIT
    if force_file:
        return SourceKind.FILE
    if looks_like_path(source):
        return SourceKind.PATH
    return SourceKind.REPOSITORY


def locate(path: Path, resource_type: ResourceType) -> Path:
    """Find the resource file for resource_type at or under path.

    Skills resolve to a SKILL.md file. A directory holding exactly one
    candidate resolves to that candidate.

    Raises:
        SourceResolutionError: If nothing (or more than one thing) matches
    """
    path = Path(path)
    if not path.exists():
        raise SourceResolutionError(f"{path} does not exist")

    if resource_type is ResourceType.SKILL:
        if path.is_file():
            return path
        if (path / SKILL_MARKER).is_file():
            return path / SKILL_MARKER
        candidates = sorted(path.glob(f"*/{SKILL_MARKER}")) + sorted(
            path.glob(f"skills/*/{SKILL_MARKER}")
        )
        kind = SKILL_MARKER
    else:
        if path.is_file():
            return path
        ext = ".json" if resource_type is ResourceType.MCP else ".md"
        candidates = sorted(
            p for p in path.iterdir()
            if p.is_file() and p.suffix == ext and p.name.upper() != "README.MD"
        )
        kind = f"{resource_type.label} file"

    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        raise SourceResolutionError(f"{kind} not found at {path}")
    raise SourceResolutionError(
        f"{path} contains {len(candidates)} {kind} candidates; point at one directly"
    )


def _repo_dir_name(url: str) -> str:
    name = url.rstrip("/").rsplit("/", 1)[-1].rsplit(":", 1)[-1]
    return name[:-4] if name.endswith(".git") else name or "repo"


def _copy_match(match: Match, scratch: Path) -> Path:
    if match.resource_type is ResourceType.SKILL:
        dest = scratch / match.name
        shutil.copytree(match.path.parent, dest)
        return dest / SKILL_MARKER
    dest = scratch / match.path.name
    shutil.copy2(match.path, dest)
    return dest


@contextmanager
def materialize(
    source: str,
    resource_type: ResourceType,
    force_file: bool = False,
    index: ResourceIndex | None = None,
    selector: Selector | None = None,
    cloner: Cloner = git.clone,
) -> Generator[Path, None, None]:
    """Yield a local path to the resource named by source.

    Args:
        source: Name, path or git URL
        resource_type: Type of resource being installed
        force_file: Treat source as a path and skip repository lookup
        index: Repository index used for name lookups
        selector: Picks one match when a name is found in several repos
        cloner: Clone function, ``git.clone`` by default

    Yields:
        Path to the resource file (SKILL.md for skills)

    Raises:
        SourceResolutionError: If the source cannot be resolved
        GitError: If cloning fails
    """
    kind = classify(source, force_file)
    logger.debug("source %r classified as %s", source, kind.value)

    if kind is SourceKind.GIT:
        with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX) as tmp:
            checkout = Path(tmp) / _repo_dir_name(source)
            cloner(source, checkout, 1)
            yield locate(checkout, resource_type)
        return

    if kind in (SourceKind.FILE, SourceKind.PATH):
        yield locate(Path(source).expanduser().resolve(), resource_type)
        return

    matches = index.find_by_name(source, resource_type) if index is not None else []
    if not matches:
        local = Path(source)
        if might_be_path(source) and local.exists():
            raise SourceResolutionError(
                f"{resource_type.label} '{source}' not found in repositories, but a local "
                f"file exists at that path. Did you mean: aix install --file {source}"
            )
        if local.exists():
            yield locate(local.resolve(), resource_type)
            return
        if index is None:
            raise SourceResolutionError(
                f"{resource_type.label} '{source}' not found and no repositories are configured"
            )
        raise SourceResolutionError(
            f"{resource_type.label} '{source}' not found in any configured repository"
        )

    if len(matches) == 1:
        chosen = matches[0]
    elif selector is None:
        repos = ", ".join(m.repo for m in matches)
        raise SourceResolutionError(
            f"{resource_type.label} '{source}' exists in several repositories ({repos}); "
            "choose one interactively"
        )
    else:
        chosen = selector(matches)
    logger.info("installing %s '%s' from repository %s", resource_type.value, source, chosen.repo)

    with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX) as tmp:
        yield _copy_match(chosen, Path(tmp))
