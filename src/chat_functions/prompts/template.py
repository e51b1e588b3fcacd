"""
Placeholder rendering for prompt templates.

Templates use brace placeholders: positional ('{0}', '{1}') for plain inputs and
named ('{from}', '{text}') for record fields. Only placeholders whose key is
supplied are replaced, so literal braces in a prompt (JSON examples, code
snippets) survive rendering untouched, unlike 'str.format'.
"""

import json
import re
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from typing import Any

from pydantic import BaseModel

PLACEHOLDER_PATTERN = re.compile(r"\{([A-Za-z0-9_]+)\}")


def placeholders(template: str) -> list[str]:
    """Return the distinct placeholder keys of 'template' in order of first appearance."""
    return list(dict.fromkeys(PLACEHOLDER_PATTERN.findall(template)))


def render(template: str, values: Mapping[str, Any]) -> str:
    def substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in values:
            return match.group(0)
        return to_template_text(values[key])

    return PLACEHOLDER_PATTERN.sub(substitute, template)


def to_template_text(value: Any) -> str:
    """Serialize a single value for interpolation into prompt text."""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if is_dataclass(value) and not isinstance(value, type):
        return json.dumps(asdict(value), ensure_ascii=False, default=str)
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)
