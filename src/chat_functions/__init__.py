"""
Prompt-as-function bridge over chat-completion APIs.

    from chat_functions import ChatService, InMemoryPromptCatalog, HandlerRegistry
    from chat_functions.llms.openai import OpenAITransport

    service = ChatService(OpenAITransport.from_settings(settings), catalog, registry, settings)
    translate = service.prompt_as_function("translate-into-chinese")
    text = await translate("Hello")
"""

from chat_functions.completion import (
    ChatRequestBuilder,
    FunctionResult,
    PlainText,
    ResolutionState,
    ResponseResolver,
    build_request,
    resolve_reply,
)
from chat_functions.config import ChatSettings
from chat_functions.errors import (
    ChatFunctionsError,
    ConfigurationError,
    EmptyCompletionError,
    HandlerNotFoundError,
    InvalidArgumentsError,
    MissingArgumentError,
    PayloadError,
    PromptNotFoundError,
    SchemaError,
    TransportError,
    TransportTimeoutError,
)
from chat_functions.llms import ChatCompletionRequest, ChatCompletionResponse, ChatMessage, CompletionTransport, Roles
from chat_functions.pipeline import Pipeline, chain
from chat_functions.prompts import InMemoryPromptCatalog, PromptCatalog
from chat_functions.service import ChatService, PromptFunction
from chat_functions.tools import (
    FunctionHandler,
    FunctionSchema,
    HandlerRegistry,
    JsonSchemaProperty,
    ParameterDescriptor,
    define_function,
    function_handler,
    schema_from_handler,
)

__all__ = [
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatFunctionsError",
    "ChatMessage",
    "ChatRequestBuilder",
    "ChatService",
    "ChatSettings",
    "CompletionTransport",
    "ConfigurationError",
    "EmptyCompletionError",
    "FunctionHandler",
    "FunctionResult",
    "FunctionSchema",
    "HandlerNotFoundError",
    "HandlerRegistry",
    "InMemoryPromptCatalog",
    "InvalidArgumentsError",
    "JsonSchemaProperty",
    "MissingArgumentError",
    "ParameterDescriptor",
    "PayloadError",
    "Pipeline",
    "PlainText",
    "PromptCatalog",
    "PromptFunction",
    "PromptNotFoundError",
    "ResolutionState",
    "ResponseResolver",
    "Roles",
    "SchemaError",
    "TransportError",
    "TransportTimeoutError",
    "build_request",
    "chain",
    "define_function",
    "function_handler",
    "resolve_reply",
    "schema_from_handler",
]
