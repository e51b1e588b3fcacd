from chat_functions.completion.payload import coerce_output, to_text
from chat_functions.completion.request import ChatRequestBuilder, build_request
from chat_functions.completion.resolver import (
    FunctionRequested,
    FunctionResult,
    Outcome,
    PlainText,
    ResolutionState,
    ResponseResolver,
    classify,
    resolve_reply,
)

__all__ = [
    "ChatRequestBuilder",
    "FunctionRequested",
    "FunctionResult",
    "Outcome",
    "PlainText",
    "ResolutionState",
    "ResponseResolver",
    "build_request",
    "classify",
    "coerce_output",
    "resolve_reply",
    "to_text",
]
