"""
Request construction: prompt text + advertised functions + caller payload -> 'ChatCompletionRequest'.

'build_request' is a pure transformation. The prompt text is a catalog template or
text the caller already resolved; here only the final substitution of the
caller's payload into it is performed. Misconfigured forced-function directives fail
eagerly with 'ConfigurationError', before anything touches the network.

'ChatRequestBuilder' is the fluent front end for hand-built requests:

    request = (
        ChatRequestBuilder.of(catalog.resolve("sql-developer", question), registry=registry)
        .function("execute_sql_query")
        .build()
    )
"""

from collections.abc import Sequence
from typing import Any

from loguru import logger

from chat_functions.errors import ConfigurationError, HandlerNotFoundError
from chat_functions.llms.base import ChatCompletionRequest, ChatMessage, Roles
from chat_functions.prompts.catalog import template_values
from chat_functions.prompts.template import placeholders, render
from chat_functions.tools.base import FunctionSchema
from chat_functions.tools.registry import HandlerRegistry


def build_request(
    prompt_text: str,
    functions: Sequence[FunctionSchema] | None = None,
    forced_function_name: str | None = None,
    input_payload: Any = None,
    system_prompt: str | None = None,
    model: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> ChatCompletionRequest:
    """Compose a chat-completion request.

    Args:
        prompt_text: Resolved prompt text, possibly still holding placeholders.
        functions: Function schemas to advertise, attached verbatim and in order.
        forced_function_name: Name of the function the model is required to call.
            Must match exactly one entry of 'functions'.
        input_payload: A record fills named placeholders with its serialized fields,
            a list or tuple fills '{0}', '{1}', ... and any other non-None value fills
            '{0}'.
        system_prompt: Optional system turn placed before the user turn.

    Raises:
        ConfigurationError: If the forced function matches zero or several
            advertised functions, or none are advertised.
    """
    values = template_values(input_payload) if input_payload is not None else {}
    unresolved = [key for key in placeholders(prompt_text) if key not in values]
    text = render(prompt_text, values)
    if unresolved:
        logger.warning(f"Prompt text still holds unresolved placeholder(s): {unresolved}")

    messages = []
    if system_prompt:
        messages.append(ChatMessage(role=Roles.SYSTEM, content=system_prompt))
    messages.append(ChatMessage(role=Roles.USER, content=text))

    return ChatCompletionRequest(
        messages=messages,
        functions=list(functions or []),
        function_call=forced_function_name,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
    )


class ChatRequestBuilder:
    """
    Fluent builder around 'build_request'.

    Functions passed as 'FunctionSchema' objects are advertised for free choice.
    Functions passed by name are looked up in the builder's registry and become
    the forced target of the request.
    """

    def __init__(self, prompt: str, registry: HandlerRegistry | None = None) -> None:
        self.prompt = prompt
        self.registry = registry
        self._system: str | None = None
        self._functions: list[FunctionSchema] = []
        self._forced: str | None = None
        self._payload: Any = None
        self._model: str | None = None
        self._temperature: float | None = None
        self._max_tokens: int | None = None

    @classmethod
    def of(cls, prompt: str, registry: HandlerRegistry | None = None) -> "ChatRequestBuilder":
        return cls(prompt, registry)

    def system(self, text: str) -> "ChatRequestBuilder":
        self._system = text
        return self

    def function(self, function: FunctionSchema | str) -> "ChatRequestBuilder":
        if isinstance(function, FunctionSchema):
            self._functions.append(function)
            return self
        if self.registry is None:
            raise ConfigurationError(f"Function '{function}' referenced by name but the builder has no registry")
        try:
            schema = self.registry.schema(function)
        except HandlerNotFoundError as exc:
            raise ConfigurationError(f"Function '{function}' is not registered") from exc
        self._functions.append(schema)
        return self.force_function(function)

    def force_function(self, name: str) -> "ChatRequestBuilder":
        self._forced = name
        return self

    def payload(self, input_payload: Any) -> "ChatRequestBuilder":
        self._payload = input_payload
        return self

    def model(self, name: str) -> "ChatRequestBuilder":
        self._model = name
        return self

    def temperature(self, value: float) -> "ChatRequestBuilder":
        self._temperature = value
        return self

    def max_tokens(self, value: int) -> "ChatRequestBuilder":
        self._max_tokens = value
        return self

    def build(self) -> ChatCompletionRequest:
        return build_request(
            self.prompt,
            functions=self._functions,
            forced_function_name=self._forced,
            input_payload=self._payload,
            system_prompt=self._system,
            model=self._model,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
