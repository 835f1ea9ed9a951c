"""
Placeholder substitution for prompt templates.

A placeholder is ``{name}`` where name is an identifier. Anything else in
braces (the JSON examples embedded in output-format templates) is literal
text, so str.format cannot be used here.

  - known placeholders are replaced verbatim, in one left-to-right pass;
    substituted values are never re-scanned
  - unknown placeholders are left in place so templates can be filled in
    stages (a type prompt inserted via {questionTypePrompt} keeps its own
    placeholders for the next pass)
  - extra variables are ignored
"""
from __future__ import annotations

import re
from typing import Any, Mapping, Optional

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def substitute(text: str, variables: Optional[Mapping[str, Any]] = None) -> str:
    if not variables:
        return text

    def _replace(match: re.Match) -> str:
        value = variables.get(match.group(1))
        if value is None:
            return match.group(0)
        return value if isinstance(value, str) else str(value)

    return _PLACEHOLDER_RE.sub(_replace, text)


def find_placeholders(text: str) -> list[str]:
    """Distinct placeholder names in order of first appearance."""
    seen: dict[str, None] = {}
    for match in _PLACEHOLDER_RE.finditer(text):
        seen.setdefault(match.group(1), None)
    return list(seen)
