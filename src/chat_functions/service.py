"""
Chat service facade and the prompt-as-function adapter.

'ChatService' is the single entry point for application code. It wires a
completion transport, a prompt catalog and a handler registry together and
exposes:

    'chat'                - one request/response round trip.
    'chat_combined_text'  - round trip plus resolution to final text, running the
                            requested function if the model asked for one.
    'follow_up'           - the explicit second round trip that feeds a function
                            result back to the model as a new turn.
    'prompt_as_function'  - turns a named prompt (optionally bound to a forced
                            function) into an async callable 'input -> output'.

The catalog, registry and settings are shared read-only; every invocation builds
its own request and response, so concurrent calls need no coordination.
"""

import json
from typing import Any

from loguru import logger

from chat_functions.completion.payload import to_text
from chat_functions.completion.request import build_request
from chat_functions.completion.resolver import FunctionResult, Outcome, ResponseResolver
from chat_functions.config import ChatSettings
from chat_functions.errors import ConfigurationError
from chat_functions.llms.base import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    CompletionTransport,
    FunctionCall,
    Roles,
    ToolCall,
)
from chat_functions.prompts.catalog import PromptCatalog
from chat_functions.tools.base import FunctionSchema
from chat_functions.tools.registry import HandlerRegistry


class ChatService:
    """
    Facade over transport, prompt catalog and function handlers.

    Attributes:
        transport: Sends requests to the model.
        catalog: Named prompt templates.
        registry: Functions the model may call.
        settings: Defaults applied to requests that leave them unset.
        resolver: Response resolver bound to 'registry'.
    """

    def __init__(
        self,
        transport: CompletionTransport,
        catalog: PromptCatalog,
        registry: HandlerRegistry | None = None,
        settings: ChatSettings | None = None,
    ) -> None:
        self.transport = transport
        self.catalog = catalog
        self.registry = registry if registry is not None else HandlerRegistry()
        self.settings = settings
        self.resolver = ResponseResolver(self.registry)

    async def chat(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        request = self._with_defaults(request)
        logger.debug(
            f"Sending chat completion: {len(request.messages)} message(s), "
            f"functions={[schema.name for schema in request.functions]}, forced={request.function_call}"
        )
        return await self.transport.send(request)

    async def chat_combined_text(self, request: ChatCompletionRequest) -> str:
        response = await self.chat(request)
        return await self.resolver.resolve_combined_text(response, advertised_names(request))

    async def resolve(self, response: ChatCompletionResponse, request: ChatCompletionRequest | None = None) -> Outcome:
        """Resolve 'response', limiting function calls to those 'request' advertised."""
        return await self.resolver.resolve(response, advertised_names(request) if request is not None else None)

    async def follow_up(self, request: ChatCompletionRequest, outcome: FunctionResult) -> ChatCompletionResponse:
        """Send the function result back to the model and return its next response.

        The new request repeats the original conversation, then the assistant's
        function call and a tool turn carrying the result as text. No function is
        forced on the follow-up so the model can answer in prose.
        """
        call_id = outcome.call_id or f"call_{outcome.function_name}"
        messages = [
            *request.messages,
            ChatMessage(
                role=Roles.ASSISTANT,
                tool_calls=[
                    ToolCall(
                        id=call_id,
                        function=FunctionCall(
                            name=outcome.function_name,
                            arguments=json.dumps(outcome.arguments, ensure_ascii=False, default=str),
                        ),
                    )
                ],
            ),
            ChatMessage(
                role=Roles.TOOL,
                tool_call_id=call_id,
                name=outcome.function_name,
                content=to_text(outcome.result),
            ),
        ]
        follow_up_request = request.model_copy(update={"messages": messages, "function_call": None})
        return await self.chat(follow_up_request)

    def prompt_as_function(
        self,
        prompt_name: str,
        function_name: str | None = None,
        output_type: Any = None,
        system_prompt: str | None = None,
    ) -> "PromptFunction":
        """Return an async callable backed by the prompt 'prompt_name'.

        Args:
            prompt_name: Catalog name of the prompt template.
            function_name: Registered function the model is forced to call. Its
                handler's declared parameters become the advertised schema.
            output_type: Type the result is marshaled into. Defaults to the
                handler's declared return type on the function path and to 'str'
                otherwise.
            system_prompt: Optional system turn for every invocation.

        Raises:
            PromptNotFoundError: If the catalog has no such prompt.
            ConfigurationError: If 'function_name' has no registered handler.
        """
        return PromptFunction(self, prompt_name, function_name, output_type, system_prompt)

    def _with_defaults(self, request: ChatCompletionRequest) -> ChatCompletionRequest:
        if self.settings is None:
            return request
        updates: dict[str, Any] = {}
        if request.model is None:
            updates["model"] = self.settings.model
        if request.temperature is None:
            updates["temperature"] = self.settings.temperature
        if request.max_tokens is None and self.settings.max_tokens is not None:
            updates["max_tokens"] = self.settings.max_tokens
        return request.model_copy(update=updates) if updates else request


class PromptFunction:
    """
    A prompt exposed as 'async (input) -> output'.

    Records (pydantic models, dataclasses, mappings) fill the template's named
    placeholders, lists and tuples fill '{0}', '{1}', ... and any other input
    fills '{0}'. Each call is an independent round trip, so one instance can be
    awaited concurrently and chained freely.
    """

    def __init__(
        self,
        service: ChatService,
        prompt_name: str,
        function_name: str | None = None,
        output_type: Any = None,
        system_prompt: str | None = None,
    ) -> None:
        self.service = service
        self.prompt_name = prompt_name
        self.function_name = function_name
        self.system_prompt = system_prompt
        # Fail on an unknown prompt now rather than on the first call
        service.catalog.get_template(prompt_name)

        self.schema: FunctionSchema | None = None
        if function_name is not None:
            handler = service.registry.lookup(function_name)
            if handler is None:
                raise ConfigurationError(f"Function '{function_name}' is not registered")
            self.schema = service.registry.schema(function_name)
            self.output_type = output_type if output_type is not None else handler.returns
        else:
            self.output_type = output_type if output_type is not None else str

    def build(self, value: Any) -> ChatCompletionRequest:
        return build_request(
            self.service.catalog.get_template(self.prompt_name),
            functions=[self.schema] if self.schema else None,
            forced_function_name=self.function_name,
            input_payload=value,
            system_prompt=self.system_prompt,
        )

    async def __call__(self, value: Any) -> Any:
        request = self.build(value)
        response = await self.service.chat(request)
        return await self.service.resolver.resolve_output(response, self.output_type, advertised_names(request))

    def __repr__(self) -> str:
        target = f", function={self.function_name!r}" if self.function_name else ""
        return f"PromptFunction({self.prompt_name!r}{target})"


def advertised_names(request: ChatCompletionRequest) -> frozenset[str]:
    return frozenset(schema.name for schema in request.functions)
