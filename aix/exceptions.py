"""Shared exception classes for aix."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aix.core.validator import ValidationResult


class AixError(Exception):
    """Base exception for aix errors."""


class ParseError(AixError):
    """Raised when a resource source cannot be parsed.

    The underlying cause (I/O, YAML, JSON, TOML) is kept on ``err`` and is
    also chained as ``__cause__``.
    """

    def __init__(self, path: str, err: BaseException | str) -> None:
        self.path = path
        self.err = err
        super().__init__(f"parsing {path}: {err}" if path else f"parsing: {err}")

    @property
    def missing_frontmatter(self) -> bool:
        """True when the cause is a missing frontmatter block."""
        return isinstance(self.err, MissingFrontmatterError)


class FrontmatterError(ValueError):
    """Raised when a frontmatter block is malformed."""


class MissingFrontmatterError(FrontmatterError):
    """Raised when a document lacks the opening ``---`` frontmatter delimiter."""


class ToolPermError(AixError):
    """Raised when an allowed-tools token is malformed."""

    def __init__(self, token: str, message: str) -> None:
        self.token = token
        self.message = message
        if token:
            super().__init__(f'invalid tool permission "{token}": {message}')
        else:
            super().__init__(message)


class ValidationFailedError(AixError):
    """Raised when a resource has error-severity validation issues."""

    def __init__(self, name: str, result: "ValidationResult") -> None:
        self.name = name
        self.result = result
        count = len(result.errors())
        super().__init__(
            f"'{name}' failed validation with {count} error(s): "
            + "; ".join(str(issue) for issue in result.errors())
        )


class ResourceNotFoundError(AixError):
    """Raised when a skill/command/agent/MCP server isn't installed."""


class ResourceExistsError(AixError):
    """Raised when the resource already exists on a target platform."""


class InstallError(AixError):
    """Raised when installing to a platform fails mid-loop."""

    def __init__(self, platform: str, cause: BaseException) -> None:
        self.platform = platform
        self.cause = cause
        super().__init__(f"failed to install to {platform}: {cause}")


class RenderError(AixError):
    """Raised when a resource cannot be serialized into a platform's native format."""

    def __init__(self, platform: str, name: str, err: BaseException) -> None:
        self.platform = platform
        self.name = name
        self.err = err
        super().__init__(f"rendering '{name}' for {platform}: {err}")


class SourceResolutionError(AixError):
    """Raised when an install source cannot be resolved to a resource."""


class GitError(AixError):
    """Raised when a git operation fails."""


class BackupError(AixError):
    """Raised when a platform backup cannot be created, read or restored."""


class AdapterNotFoundError(AixError):
    """Raised when a requested platform adapter is not registered."""


class ConfigParseError(AixError):
    """Raised when config.toml cannot be parsed."""


class ConfigValidationError(AixError):
    """Raised when config.toml contains invalid configuration."""
