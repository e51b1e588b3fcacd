"""
Error taxonomy for the chat-functions toolkit.

Construction-time errors ('SchemaError', 'ConfigurationError') are raised
eagerly while a request is being assembled. Runtime errors are only observable
after awaiting a transport call or a response resolution. Everything derives
from 'ChatFunctionsError' so callers can catch the whole family at once.
"""

from collections.abc import Sequence


class ChatFunctionsError(Exception):
    """Base class for every error raised by the toolkit."""


class SchemaError(ChatFunctionsError):
    """A function schema is malformed, e.g. a required field missing from its properties."""


class ConfigurationError(ChatFunctionsError):
    """A request or service is configured inconsistently (e.g. an ambiguous forced function)."""


class PromptNotFoundError(ChatFunctionsError):
    """The prompt catalog has no template registered under the requested name."""

    def __init__(self, name: str, available: Sequence[str] = ()) -> None:
        self.name = name
        message = f"Prompt '{name}' is not defined."
        if available:
            message += f" Available prompts: {', '.join(available)}"
        super().__init__(message)


class TransportError(ChatFunctionsError):
    """
    The completion transport failed to deliver a response.

    'kind' keeps the failure category reported by the transport ('network',
    'auth', 'rate_limit', 'timeout', 'bad_request', 'server') so callers can
    branch on it without inspecting the chained provider exception.
    """

    def __init__(self, message: str, kind: str = "network", status_code: int | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class TransportTimeoutError(TransportError):
    def __init__(self, message: str = "Completion request timed out") -> None:
        super().__init__(message, kind="timeout")


class EmptyCompletionError(ChatFunctionsError):
    """The model returned neither reply text nor a function call."""


class HandlerNotFoundError(ChatFunctionsError):
    """The model requested a function that has no registered handler."""

    def __init__(self, function_name: str) -> None:
        self.function_name = function_name
        super().__init__(f"No handler registered for function '{function_name}'")


class MissingArgumentError(ChatFunctionsError):
    """A function call omitted one or more parameters the handler declares as required."""

    def __init__(self, function_name: str, missing: Sequence[str]) -> None:
        self.function_name = function_name
        self.missing = list(missing)
        super().__init__(f"Function '{function_name}' called without required argument(s): {', '.join(self.missing)}")


class InvalidArgumentsError(ChatFunctionsError):
    """Function-call arguments are not a JSON object or do not fit the handler's input model."""

    def __init__(self, function_name: str, reason: str) -> None:
        self.function_name = function_name
        super().__init__(f"Invalid arguments for function '{function_name}': {reason}")


class PayloadError(ChatFunctionsError):
    """A resolved reply cannot be marshaled into the requested output type."""
