"""
Prompt catalog: named prompt templates.

A catalog maps a prompt name to a template body and resolves it against caller
arguments. Contents are fixed when the catalog is built, so one instance can be
shared by every invocation. 'InMemoryPromptCatalog' is the shipped
implementation; it can be populated from a mapping or from a TOML file:

    [prompts]
    translate-into-chinese = "Please translate the following text into Chinese:\n{0}"
    translate = "Please translate the following text from {from} to {to}:\n{text}"
"""

import tomllib
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import asdict, is_dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from loguru import logger
from pydantic import BaseModel

from chat_functions.errors import ConfigurationError, PromptNotFoundError
from chat_functions.prompts.template import render


class PromptCatalog(ABC):
    """
    Abstract source of prompt templates.

    Subclasses only provide template lookup; argument substitution is shared so
    every catalog resolves positional and named placeholders the same way.
    """

    @abstractmethod
    def get_template(self, name: str) -> str:
        """Return the raw template registered under 'name' or raise 'PromptNotFoundError'."""
        pass

    @abstractmethod
    def names(self) -> Iterable[str]:
        pass

    def resolve(self, name: str, args: Any = None) -> str:
        """Return the template for 'name' with 'args' substituted.

        'None' returns the template untouched. A record (pydantic model, dataclass or
        mapping) fills named placeholders, a list or tuple fills '{0}', '{1}', ...
        and any other value fills '{0}'.
        """
        template = self.get_template(name)
        if args is None:
            return template
        return render(template, template_values(args))

    def __contains__(self, name: object) -> bool:
        return name in set(self.names())


class InMemoryPromptCatalog(PromptCatalog):
    def __init__(self, prompts: Mapping[str, str]) -> None:
        self._prompts = MappingProxyType(dict(prompts))

    def get_template(self, name: str) -> str:
        if name not in self._prompts:
            raise PromptNotFoundError(name, sorted(self._prompts))
        return self._prompts[name]

    def names(self) -> Iterable[str]:
        return tuple(sorted(self._prompts))

    @classmethod
    def from_toml(cls, path: str | Path) -> "InMemoryPromptCatalog":
        """Load prompts from a TOML file with a '[prompts]' table (or top-level string keys)."""
        config_path = Path(path).expanduser().resolve()
        if not config_path.exists():
            raise ConfigurationError(f"Prompt catalog not found at {config_path}")
        try:
            with config_path.open("rb") as handle:
                document = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"Failed to read prompt catalog {config_path}: {exc}") from exc

        section = document.get("prompts", document)
        if not isinstance(section, Mapping):
            raise ConfigurationError("Section 'prompts' must be a table of name = template entries.")

        prompts: dict[str, str] = {}
        for key, value in section.items():
            if not isinstance(value, str):
                raise ConfigurationError(f"Prompt '{key}' must be a string template.")
            prompts[key] = value
        if not prompts:
            raise ConfigurationError(f"No prompts were found in {config_path}")

        logger.info(f"Loaded {len(prompts)} prompt(s) from {config_path}")
        return cls(prompts)


def template_values(args: Any) -> Mapping[str, Any]:
    """Map a caller argument to placeholder values."""
    if isinstance(args, BaseModel):
        return args.model_dump(by_alias=True)
    if is_dataclass(args) and not isinstance(args, type):
        return {key: getattr(args, key) for key in asdict(args)}
    if isinstance(args, Mapping):
        return {str(key): value for key, value in args.items()}
    if isinstance(args, (list, tuple)):
        return {str(index): value for index, value in enumerate(args)}
    return {"0": args}
