"""Backups of platform configuration taken before aix mutates it.

Each platform is backed up at most once per process. A backup is a
timestamped directory holding copies of the platform's config files plus a
manifest.json describing them.

Two aix processes running at the same time can both decide a platform has
not been backed up yet; the check and the create are not atomic. Backup
directories are timestamped, so the worst case is two backups.
"""

import hashlib
import json
import logging
import os
import shutil
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from aix import __version__
from aix.exceptions import BackupError
from aix.fileutil import write_atomic, write_json_atomic

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"
MANIFEST_VERSION = 1
TIMESTAMP_FORMAT = "%Y%m%dT%H%M%S"


class BackupService(Protocol):
    """Anything that can back up a platform's config paths."""

    def ensure_backed_up(self, platform: str, paths: list[Path]) -> None: ...


@dataclass
class BackupFile:
    original_path: str
    rel_path: str
    sha256: str
    mode: int


@dataclass
class Manifest:
    platform: str
    created_at: str
    id: str = ""
    files: list[BackupFile] = field(default_factory=list)
    version: int = MANIFEST_VERSION
    aix_version: str = __version__


def default_backup_root() -> Path:
    return Path.home() / ".config" / "aix" / "backups"


def _sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


class BackupManager:
    """Create-once backups of platform config paths.

    Args:
        root: Directory that holds <platform>/<timestamp>/ backups
    """

    def __init__(self, root: Path | None = None) -> None:
        self.root = Path(root) if root is not None else default_backup_root()
        self._done: set[str] = set()

    def ensure_backed_up(self, platform: str, paths: list[Path]) -> None:
        """Back up paths for platform unless this process already did.

        Missing paths are skipped. When none of the paths exist nothing is
        written and the platform still counts as backed up.

        Raises:
            BackupError: If copying fails
        """
        if platform in self._done:
            return
        self.create(platform, paths)
        self._done.add(platform)

    def create(self, platform: str, paths: list[Path]) -> Path | None:
        """Create a new backup and return its directory.

        Returns:
            The backup directory, or None when no path exists
        """
        existing = [Path(p) for p in paths if Path(p).exists()]
        if not existing:
            logger.debug("no files to back up for %s", platform)
            return None

        now = datetime.now(timezone.utc)
        backup_dir = self.root / platform / now.strftime(TIMESTAMP_FORMAT)
        if backup_dir.exists():
            # Never overwrite an existing backup.
            logger.debug("backup %s already exists", backup_dir)
            return backup_dir

        manifest = Manifest(platform=platform, created_at=now.isoformat(), id=backup_dir.name)
        try:
            backup_dir.mkdir(parents=True)
            for index, source in enumerate(existing):
                # Prefix keeps same-named sources (e.g. two settings.json) apart.
                dest_root = backup_dir / f"{index}-{source.name}"
                if source.is_dir():
                    shutil.copytree(source, dest_root, symlinks=True)
                    files = sorted(p for p in source.rglob("*") if p.is_file())
                    for file in files:
                        rel = dest_root.relative_to(backup_dir) / file.relative_to(source)
                        manifest.files.append(self._entry(file, rel))
                else:
                    shutil.copy2(source, dest_root)
                    manifest.files.append(self._entry(source, dest_root.relative_to(backup_dir)))
            write_json_atomic(backup_dir / MANIFEST_FILENAME, asdict(manifest))
        except OSError as e:
            raise BackupError(f"backing up {platform}: {e}") from e

        logger.debug("backed up %d file(s) for %s to %s", len(manifest.files), platform, backup_dir)
        return backup_dir

    @staticmethod
    def _entry(path: Path, rel: Path) -> BackupFile:
        return BackupFile(
            original_path=str(path),
            rel_path=rel.as_posix(),
            sha256=_sha256(path),
            mode=os.stat(path).st_mode & 0o777,
        )

    def list_backups(self, platform: str) -> list[Manifest]:
        """Return manifests for a platform's backups, newest first.

        Directories without a readable manifest are skipped.
        """
        platform_dir = self.root / platform
        if not platform_dir.is_dir():
            return []
        manifests = []
        for backup_dir in sorted(platform_dir.iterdir(), reverse=True):
            if not (backup_dir / MANIFEST_FILENAME).is_file():
                continue
            try:
                manifests.append(self._load_manifest(backup_dir))
            except BackupError as e:
                logger.warning("skipping %s: %s", backup_dir, e)
        return manifests

    def latest(self, platform: str) -> Manifest | None:
        backups = self.list_backups(platform)
        return backups[0] if backups else None

    def get(self, platform: str, backup_id: str) -> Manifest:
        """Load one backup's manifest.

        Raises:
            BackupError: If the backup does not exist or its manifest is unreadable
        """
        backup_dir = self.root / platform / backup_id
        if (
            Path(backup_id).name != backup_id
            or backup_id in ("", ".", "..")
            or not (backup_dir / MANIFEST_FILENAME).is_file()
        ):
            raise BackupError(f"backup {backup_id} not found for {platform}")
        return self._load_manifest(backup_dir)

    def restore(self, platform: str, backup_id: str) -> Manifest:
        """Copy every file in a backup back to its original location.

        All checksums are verified before anything is written, so a corrupted
        backup leaves the current configuration untouched. Restored files get
        the mode recorded at backup time.

        Raises:
            BackupError: If the backup is missing, corrupted or cannot be written
        """
        manifest = self.get(platform, backup_id)
        backup_dir = self.root / platform / manifest.id

        for entry in manifest.files:
            source = backup_dir / entry.rel_path
            if not source.is_file():
                raise BackupError(f"backup {backup_id} is missing {entry.rel_path}")
            if _sha256(source) != entry.sha256:
                raise BackupError(
                    f"backup {backup_id} is corrupted: checksum mismatch for {entry.rel_path}"
                )

        try:
            for entry in manifest.files:
                dest = Path(entry.original_path)
                dest.parent.mkdir(parents=True, exist_ok=True)
                write_atomic(dest, (backup_dir / entry.rel_path).read_bytes(), perm=entry.mode)
        except OSError as e:
            raise BackupError(f"restoring {platform} from {backup_id}: {e}") from e

        logger.info("restored %d file(s) for %s from %s", len(manifest.files), platform, backup_id)
        return manifest

    @staticmethod
    def _load_manifest(backup_dir: Path) -> Manifest:
        path = backup_dir / MANIFEST_FILENAME
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            data["files"] = [BackupFile(**f) for f in data.get("files", [])]
            data["id"] = backup_dir.name
            return Manifest(**data)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            raise BackupError(f"reading {path}: {e}") from e


class NoBackup:
    """A BackupService that records requests without touching disk."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, list[Path]]] = []

    def ensure_backed_up(self, platform: str, paths: list[Path]) -> None:
        self.requests.append((platform, list(paths)))
