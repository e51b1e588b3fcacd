from chat_functions.llms.base import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    Choice,
    CompletionTransport,
    FunctionCall,
    Roles,
    ToolCall,
    Usage,
)

__all__ = [
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatMessage",
    "Choice",
    "CompletionTransport",
    "FunctionCall",
    "Roles",
    "ToolCall",
    "Usage",
]
