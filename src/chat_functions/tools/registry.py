"""
Read-only registry of function handlers.

The registry is built once at startup from a fixed set of handlers and never
mutated afterwards, so it can be shared by every concurrent invocation without
locking. The request builder reads schemas from it and the response resolver
looks handlers up in it.
"""

from collections.abc import Iterable, Iterator, Sequence
from types import MappingProxyType

from loguru import logger

from chat_functions.errors import ConfigurationError, HandlerNotFoundError
from chat_functions.tools.base import FunctionSchema
from chat_functions.tools.handler import FunctionHandler


class HandlerRegistry:
    """
    Immutable name -> handler mapping.

    Attributes:
        handlers: Read-only view of the registered handlers keyed by function name.
    """

    def __init__(self, handlers: Iterable[FunctionHandler] = ()) -> None:
        collected: dict[str, FunctionHandler] = {}
        for handler in handlers:
            if handler.name in collected:
                raise ConfigurationError(f"Function '{handler.name}' is registered more than once")
            collected[handler.name] = handler
        self.handlers = MappingProxyType(collected)
        # Derived eagerly; a bad descriptor fails here
        self._schemas = MappingProxyType({name: handler.schema() for name, handler in collected.items()})
        logger.debug(f"Handler registry initialised with {len(collected)} function(s): {sorted(collected)}")

    def lookup(self, function_name: str) -> FunctionHandler | None:
        return self.handlers.get(function_name)

    def get(self, function_name: str) -> FunctionHandler:
        handler = self.lookup(function_name)
        if handler is None:
            raise HandlerNotFoundError(function_name)
        return handler

    def schema(self, function_name: str) -> FunctionSchema:
        if function_name not in self._schemas:
            raise HandlerNotFoundError(function_name)
        return self._schemas[function_name]

    def schemas(self, names: Sequence[str] | None = None) -> list[FunctionSchema]:
        """Return the schemas for 'names' (in that order), or for every handler when omitted."""
        if names is None:
            return list(self._schemas.values())
        return [self.schema(name) for name in names]

    def with_handlers(self, *handlers: FunctionHandler) -> "HandlerRegistry":
        """Return a new registry extended with 'handlers'; this one is left untouched."""
        return HandlerRegistry([*self.handlers.values(), *handlers])

    def __contains__(self, function_name: object) -> bool:
        return function_name in self.handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self.handlers)

    def __len__(self) -> int:
        return len(self.handlers)
