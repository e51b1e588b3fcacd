"""
Typed payload marshaling between callers and the text-only chat envelope.

Inputs go out as prompt text (see 'build_request'). Outputs come back either as
reply text or as a handler's Python result and are coerced here into what the
caller asked for: plain text, a list of strings, a pydantic model, a dataclass
or any other type pydantic can validate.
"""

import json
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from typing import Any, get_args, get_origin

from pydantic import BaseModel, TypeAdapter, ValidationError

from chat_functions.errors import PayloadError


def to_text(value: Any) -> str:
    """Coerce a resolved value to human-readable text.

    Lists are joined line by line, records are serialized as JSON.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if is_dataclass(value) and not isinstance(value, type):
        return json.dumps(asdict(value), ensure_ascii=False, default=str)
    if isinstance(value, Mapping):
        return json.dumps(dict(value), ensure_ascii=False, default=str)
    if isinstance(value, (list, tuple, set, frozenset)):
        return "\n".join(to_text(item) for item in value)
    return str(value)


def coerce_output(value: Any, output_type: Any) -> Any:
    """Marshal 'value' into 'output_type'.

    Raises:
        PayloadError: If 'value' cannot be represented as 'output_type'.
    """
    if output_type is None or output_type is Any:
        return value
    if output_type is str:
        return to_text(value)
    if is_text_list(output_type):
        items = _to_text_items(value)
        return tuple(items) if get_origin(output_type) is tuple else items

    adapter: TypeAdapter[Any] = TypeAdapter(output_type)
    try:
        if isinstance(value, str):
            return adapter.validate_json(strip_code_fence(value))
        return adapter.validate_python(value, from_attributes=True)
    except ValidationError as exc:
        raise PayloadError(f"Cannot convert reply to {output_type!r}: {exc}") from exc


def is_text_list(output_type: Any) -> bool:
    origin = get_origin(output_type)
    if origin not in (list, tuple):
        return False
    args = [arg for arg in get_args(output_type) if arg is not Ellipsis]
    return args == [str]


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence (```json ... ```), as models often add one."""
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    lines = stripped.splitlines()[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()


def _to_text_items(value: Any) -> list[str]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_text(item) for item in value]
    if isinstance(value, str):
        text = strip_code_fence(value)
        if text.startswith("["):
            try:
                decoded = json.loads(text)
            except json.JSONDecodeError:
                decoded = None
            if isinstance(decoded, list):
                return [to_text(item) for item in decoded]
        return [line.strip() for line in text.splitlines() if line.strip()]
    return [to_text(value)]
