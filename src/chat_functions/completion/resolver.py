"""
Response resolution: turning a 'ChatCompletionResponse' into a caller-facing result.

A response starts out PENDING and is classified into exactly one of:

    PLAIN_TEXT          the model replied with text; the text is the result.
    FUNCTION_REQUESTED  the model asked for a function call; the name must be one
                        the request advertised, the registered handler is
                        looked up, its arguments decoded and checked
                        against the handler's required parameters, and the
                        handler's return value becomes the result.
    EMPTY               neither text nor a function call; 'EmptyCompletionError'.

Resolution is one hop: a handler result is returned as-is (or coerced to text),
it is never sent back to the model here. Feeding a result back as a new turn is
the separate 'ChatService.follow_up' operation.
"""

import json
from collections.abc import Collection
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from loguru import logger
from pydantic import ValidationError

from chat_functions.completion.payload import coerce_output, to_text
from chat_functions.errors import (
    EmptyCompletionError,
    HandlerNotFoundError,
    InvalidArgumentsError,
    MissingArgumentError,
)
from chat_functions.llms.base import ChatCompletionResponse, FunctionCall
from chat_functions.tools.handler import FunctionHandler
from chat_functions.tools.registry import HandlerRegistry


class ResolutionState(StrEnum):
    PENDING = "pending"
    PLAIN_TEXT = "plain_text"
    FUNCTION_REQUESTED = "function_requested"
    EMPTY = "empty"


@dataclass(frozen=True)
class PlainText:
    """Terminal outcome for a direct text reply."""

    text: str
    state: ResolutionState = field(default=ResolutionState.PLAIN_TEXT, init=False)

    @property
    def value(self) -> str:
        return self.text


@dataclass(frozen=True)
class FunctionRequested:
    """Classification of a response that carries a function-call directive."""

    call: FunctionCall
    call_id: str = ""
    state: ResolutionState = field(default=ResolutionState.FUNCTION_REQUESTED, init=False)


@dataclass(frozen=True)
class FunctionResult:
    """
    Terminal outcome after the requested handler has run.

    Attributes:
        function_name: Name of the function the model requested.
        arguments: Decoded arguments as sent by the model.
        result: The handler's return value, untouched.
        call_id: Provider id of the tool call, needed to feed the result back.
    """

    function_name: str
    arguments: dict[str, Any]
    result: Any
    call_id: str = ""
    state: ResolutionState = field(default=ResolutionState.FUNCTION_REQUESTED, init=False)

    @property
    def value(self) -> Any:
        return self.result


Classification = PlainText | FunctionRequested
Outcome = PlainText | FunctionResult


def classify(response: ChatCompletionResponse) -> Classification:
    """Classify a raw response without running anything.

    A function-call directive wins over accompanying text.

    Raises:
        EmptyCompletionError: If the response has neither text nor a function call.
    """
    call = response.function_call
    if call is not None:
        call_id = ""
        for choice in response.choices:
            if choice.message.tool_calls:
                call_id = choice.message.tool_calls[0].id
                break
        return FunctionRequested(call=call, call_id=call_id)
    if response.reply_text:
        return PlainText(text=response.reply_text)
    raise EmptyCompletionError(f"Completion {response.id or '<no id>'} carries neither text nor a function call")


def resolve_reply(response: ChatCompletionResponse) -> str:
    """Return the reply text without dispatching any function call.

    For a function-call response this is whatever text accompanied the call,
    usually the empty string.
    """
    classification = classify(response)
    if isinstance(classification, PlainText):
        return classification.text
    return response.reply_text


class ResponseResolver:
    """
    Drives a response from PENDING to a terminal outcome.

    The resolver holds no per-call state; one instance serves any number of
    concurrent resolutions against the same read-only registry.

    Attributes:
        registry: Handlers the model may call.
    """

    def __init__(self, registry: HandlerRegistry) -> None:
        self.registry = registry

    async def resolve(self, response: ChatCompletionResponse, advertised: Collection[str] | None = None) -> Outcome:
        """Drive 'response' to its terminal outcome.

        Args:
            response: The provider reply.
            advertised: Function names the originating request offered to the model.
                A call to any other name fails with 'HandlerNotFoundError', even if a
                handler is registered for it. 'None' accepts every registered name.
        """
        classification = classify(response)
        if isinstance(classification, PlainText):
            return classification
        return await self._dispatch(classification, advertised)

    async def resolve_combined_text(
        self, response: ChatCompletionResponse, advertised: Collection[str] | None = None
    ) -> str:
        """Final human-readable text: the reply, or the handler result coerced to text."""
        outcome = await self.resolve(response, advertised)
        return to_text(outcome.value)

    async def resolve_output(
        self, response: ChatCompletionResponse, output_type: Any, advertised: Collection[str] | None = None
    ) -> Any:
        outcome = await self.resolve(response, advertised)
        return coerce_output(outcome.value, output_type)

    async def _dispatch(self, requested: FunctionRequested, advertised: Collection[str] | None) -> FunctionResult:
        name = requested.call.name
        if advertised is not None and name not in advertised:
            logger.debug(f"Model requested {name}, which was not advertised ({sorted(advertised)})")
            raise HandlerNotFoundError(name)
        handler = self.registry.lookup(name)
        if handler is None:
            raise HandlerNotFoundError(name)

        arguments = decode_arguments(name, requested.call.arguments)
        check_required(handler, arguments)
        check_declared(handler, arguments)
        handler_input = _handler_input(handler, arguments)

        logger.debug(f"Dispatching function call {name}({', '.join(arguments)})")
        result = await handler.call(handler_input)
        return FunctionResult(function_name=name, arguments=arguments, result=result, call_id=requested.call_id)


def decode_arguments(function_name: str, raw_arguments: str) -> dict[str, Any]:
    if not raw_arguments or not raw_arguments.strip():
        return {}
    try:
        decoded = json.loads(raw_arguments)
    except json.JSONDecodeError as exc:
        raise InvalidArgumentsError(function_name, f"not valid JSON ({exc.msg})") from exc
    if not isinstance(decoded, dict):
        raise InvalidArgumentsError(function_name, f"expected a JSON object, got {type(decoded).__name__}")
    return decoded


def check_required(handler: FunctionHandler, arguments: dict[str, Any]) -> None:
    missing = [name for name in handler.required_parameters() if name not in arguments]
    if not missing and handler.input_model is not None and not handler.parameters:
        missing = [
            name
            for name, model_field in handler.input_model.model_fields.items()
            if model_field.is_required() and (model_field.alias or name) not in arguments
        ]
    if missing:
        raise MissingArgumentError(handler.name, missing)


def check_declared(handler: FunctionHandler, arguments: dict[str, Any]) -> None:
    if handler.input_model is not None:
        return
    declared = {param.name for param in handler.parameters}
    unexpected = [name for name in arguments if name not in declared]
    if unexpected:
        raise InvalidArgumentsError(handler.name, f"undeclared argument(s): {', '.join(unexpected)}")


def _handler_input(handler: FunctionHandler, arguments: dict[str, Any]) -> Any:
    if handler.input_model is None:
        return arguments
    try:
        return handler.input_model.model_validate(arguments)
    except ValidationError as exc:
        raise InvalidArgumentsError(handler.name, str(exc)) from exc
