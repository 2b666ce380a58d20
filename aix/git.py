"""Git helpers for installing resources from remote repositories."""

import logging
import re
import subprocess
from pathlib import Path
from urllib.parse import urlparse

from aix.exceptions import GitError

logger = logging.getLogger(__name__)

CLONE_TIMEOUT = 300

_SCP_LIKE_URL = re.compile(r"^[\w-]+@[\w.-]+:[\w./-]+\.git$")
_ALLOWED_SCHEMES = ("http", "https", "ssh", "git", "file")


def validate_url(value: str) -> None:
    """Check that value is a git URL aix is willing to clone.

    Raises:
        GitError: If the URL is empty, unsafe or uses an unsupported scheme
    """
    if not value:
        raise GitError("git URL cannot be empty")
    if value.startswith("-"):
        raise GitError(f"git URL cannot start with '-': {value}")
    if value.startswith("ext::"):
        raise GitError(f"ext:: protocol is not allowed: {value}")
    if _SCP_LIKE_URL.match(value):
        return

    scheme = urlparse(value).scheme
    if not scheme:
        raise GitError(f"missing protocol scheme in git URL: {value}")
    if scheme not in _ALLOWED_SCHEMES:
        raise GitError(f"unsupported protocol scheme '{scheme}' in git URL: {value}")


def is_url(value: str) -> bool:
    """Return True if value looks like a cloneable git URL."""
    try:
        validate_url(value)
    except GitError:
        return False
    return True


def clone(url: str, dest: Path, depth: int = 1) -> None:
    """Clone url into dest.

    Args:
        url: Repository URL
        dest: Target directory (must not exist or be empty)
        depth: History depth; 0 for a full clone

    Raises:
        GitError: If the URL is rejected, git is missing, or the clone fails
    """
    validate_url(url)
    cmd = ["git", "clone", "--quiet"]
    if depth > 0:
        cmd += ["--depth", str(depth)]
    cmd += ["--", url, str(dest)]

    logger.debug("running %s", " ".join(cmd))
    try:
        subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=CLONE_TIMEOUT)
    except FileNotFoundError as e:
        raise GitError("git is not installed or not on PATH") from e
    except subprocess.TimeoutExpired as e:
        raise GitError(f"timed out cloning {url}") from e
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
        raise GitError(f"cloning {url}: {detail}") from e
