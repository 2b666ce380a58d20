"""Placeholder variable translation.

Canonical resources use ``$ARGUMENTS`` and ``$SELECTION``. Each platform
spells these its own way; a translator maps between the two by literal
substring substitution.
"""

import re
from dataclasses import dataclass, field

ARGUMENTS = "$ARGUMENTS"
SELECTION = "$SELECTION"

SUPPORTED_VARIABLES = (ARGUMENTS, SELECTION)

_VARIABLE_RE = re.compile(r"\$[A-Z][A-Z_]+\b")


@dataclass(frozen=True)
class VariableTranslator:
    """Bidirectional mapping between canonical and platform tokens.

    Attributes:
        to_native: canonical token -> preferred platform spelling
        aliases: extra platform spellings accepted on read, mapped to
            their canonical token
    """

    to_native: dict[str, str] = field(default_factory=dict)
    aliases: dict[str, str] = field(default_factory=dict)

    def to_platform(self, content: str) -> str:
        """Rewrite canonical tokens into the platform's spelling."""
        for canonical, native in self.to_native.items():
            content = content.replace(canonical, native)
        return content

    def to_canonical(self, content: str) -> str:
        """Rewrite platform tokens (including aliases) into canonical tokens."""
        for canonical, native in self.to_native.items():
            content = content.replace(native, canonical)
        for alias, canonical in self.aliases.items():
            content = content.replace(alias, canonical)
        return content


IDENTITY = VariableTranslator()

GEMINI = VariableTranslator(
    to_native={ARGUMENTS: "{{args}}", SELECTION: "{{selection}}"},
    aliases={"{{argument}}": ARGUMENTS},
)


def list_variables(content: str) -> list[str]:
    """Return the unique ``$VARIABLE`` tokens in content, in first-seen order."""
    return list(dict.fromkeys(_VARIABLE_RE.findall(content)))


def validate_variables(content: str) -> list[str]:
    """Return variables in content that no platform supports."""
    return [v for v in list_variables(content) if v not in SUPPORTED_VARIABLES]
