from chat_functions.tools.base import FunctionParameters, FunctionSchema, JsonSchemaProperty, define_function
from chat_functions.tools.handler import (
    CallableHandler,
    FunctionHandler,
    ParameterDescriptor,
    function_handler,
    schema_from_handler,
)
from chat_functions.tools.registry import HandlerRegistry

__all__ = [
    "CallableHandler",
    "FunctionHandler",
    "FunctionParameters",
    "FunctionSchema",
    "HandlerRegistry",
    "JsonSchemaProperty",
    "ParameterDescriptor",
    "define_function",
    "function_handler",
    "schema_from_handler",
]
