"""
Chat-completion envelopes and the transport abstraction.

'ChatCompletionRequest' and 'ChatCompletionResponse' mirror the OpenAI
chat-completions schema closely enough that a transport only has to dump the
request and validate the provider's reply. Concrete transports
('OpenAITransport') implement the 'CompletionTransport' ABC; everything above
the transport only ever sees these models, never a provider client.

A request advertises functions as 'FunctionSchema' objects and may force one of
them via 'function_call'. A response carries either reply text, a function-call
directive, or (on a broken completion) neither.
"""

from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from chat_functions.errors import ConfigurationError
from chat_functions.tools.base import FunctionSchema


class Roles(StrEnum):
    """Conversation roles as used by the OpenAI chat completions API."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"
    FUNCTION = "function"


class FunctionCall(BaseModel):
    """The function name and JSON-encoded arguments the model wants to call."""

    name: str
    arguments: str = "{}"


class ToolCall(BaseModel):
    """A single tool invocation requested by the LLM."""

    id: str = ""
    function: FunctionCall
    type: str = "function"


class ChatMessage(BaseModel):
    """
    A single message in a conversation sent to or received from an LLM.

    'tool_calls' is populated when the assistant requests a function invocation.
    Older providers report the same thing through 'function_call'; both shapes are
    accepted and 'requested_call' reads whichever is present. 'tool_call_id' and
    'name' are set on the follow-up TOOL message that carries a result back.
    """

    content: str = ""
    role: Roles = Roles.ASSISTANT
    tool_calls: list[ToolCall] | None = None
    function_call: FunctionCall | None = None
    tool_call_id: str | None = None
    name: str | None = None

    @field_validator("content", mode="before")
    @classmethod
    def _none_content(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def requested_call(self) -> FunctionCall | None:
        if self.tool_calls:
            return self.tool_calls[0].function
        return self.function_call

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"role": str(self.role), "content": self.content}
        if self.tool_calls:
            payload["tool_calls"] = [call.model_dump() for call in self.tool_calls]
        if self.tool_call_id is not None:
            payload["tool_call_id"] = self.tool_call_id
        if self.name is not None:
            payload["name"] = self.name
        return payload


class ChatCompletionRequest(BaseModel):
    """
    One chat-completion round trip as sent to the transport.

    'function_call' is 'None' for free choice among the advertised 'functions';
    otherwise it names the single function the model must call, and that name must
    match exactly one advertised schema. The check runs at construction time so a
    misconfigured request never reaches the network.
    """

    messages: list[ChatMessage]
    functions: list[FunctionSchema] = Field(default_factory=list)
    function_call: str | None = None
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    user: str | None = None

    @model_validator(mode="after")
    def _check_forced_function(self) -> "ChatCompletionRequest":
        if not any(message.role == Roles.USER for message in self.messages):
            raise ConfigurationError("A chat completion request needs at least one user message")
        if self.function_call is None:
            return self
        if not self.functions:
            raise ConfigurationError(f"Function '{self.function_call}' is forced but no functions are advertised")
        matches = [schema for schema in self.functions if schema.name == self.function_call]
        if len(matches) != 1:
            raise ConfigurationError(
                f"Forced function '{self.function_call}' must match exactly one advertised function, "
                f"found {len(matches)}"
            )
        return self

    @classmethod
    def of(cls, user_message: str, system_message: str | None = None) -> "ChatCompletionRequest":
        messages = []
        if system_message:
            messages.append(ChatMessage(role=Roles.SYSTEM, content=system_message))
        messages.append(ChatMessage(role=Roles.USER, content=user_message))
        return cls(messages=messages)

    def to_payload(self) -> dict[str, Any]:
        """Return the OpenAI chat-completions request body."""
        payload: dict[str, Any] = {"messages": [message.to_payload() for message in self.messages]}
        if self.model is not None:
            payload["model"] = self.model
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens
        if self.user is not None:
            payload["user"] = self.user
        if self.functions:
            payload["tools"] = [schema.json_schema() for schema in self.functions]
        if self.function_call is not None:
            payload["tool_choice"] = {"type": "function", "function": {"name": self.function_call}}
        return payload


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Choice(BaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: str | None = None


class ChatCompletionResponse(BaseModel):
    """
    A provider reply, consumed once by the response resolver.

    Unknown provider fields are ignored so any OpenAI-compatible reply validates.
    """

    id: str = ""
    model: str = ""
    choices: list[Choice] = Field(default_factory=list)
    usage: Usage | None = None

    @property
    def reply_text(self) -> str:
        """Concatenated content of all choices; empty when the model sent no text."""
        return "".join(choice.message.content for choice in self.choices if choice.message.content)

    @property
    def function_call(self) -> FunctionCall | None:
        """First function call requested across the choices, if any."""
        for choice in self.choices:
            call = choice.message.requested_call
            if call is not None:
                return call
        return None

    @property
    def assistant_message(self) -> ChatMessage | None:
        return self.choices[0].message if self.choices else None

    @classmethod
    def of_text(cls, text: str) -> "ChatCompletionResponse":
        return cls(choices=[Choice(message=ChatMessage(content=text), finish_reason="stop")])

    @classmethod
    def of_function_call(cls, name: str, arguments: str, call_id: str = "call_0") -> "ChatCompletionResponse":
        message = ChatMessage(tool_calls=[ToolCall(id=call_id, function=FunctionCall(name=name, arguments=arguments))])
        return cls(choices=[Choice(message=message, finish_reason="tool_calls")])


class CompletionTransport(ABC):
    """
    Abstract base class for chat-completion backends.

    A transport sends one request and returns one response. Network, auth and
    rate-limit failures are raised as 'TransportError' with their kind preserved;
    timeouts as 'TransportTimeoutError'. Retries, if any, belong here as well.
    """

    @abstractmethod
    async def send(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        """Send 'request' and return the provider's response."""
        pass
