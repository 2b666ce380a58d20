"""Canonical resource model, parsing, validation and translation."""

from aix.core.resource import (
    Agent,
    Command,
    MCPServer,
    Resource,
    ResourceType,
    Skill,
    parse_resource_type,
)
from aix.core.validator import Issue, Severity, ValidationResult, Validator

__all__ = [
    "Agent",
    "Command",
    "Issue",
    "MCPServer",
    "Resource",
    "ResourceType",
    "Severity",
    "Skill",
    "ValidationResult",
    "Validator",
    "parse_resource_type",
]
