"""Platform adapters.

Importing this package registers the built-in adapters.
"""

from aix.adapters.base import FileAdapter, PlatformAdapter, PlatformFormat, PlatformPaths, Scope
from aix.adapters.registry import AdapterRegistry
from aix.adapters.claude import ClaudeAdapter
from aix.adapters.opencode import OpenCodeAdapter
from aix.adapters.gemini import GeminiAdapter

__all__ = [
    "AdapterRegistry",
    "ClaudeAdapter",
    "FileAdapter",
    "GeminiAdapter",
    "OpenCodeAdapter",
    "PlatformAdapter",
    "PlatformFormat",
    "PlatformPaths",
    "Scope",
]
