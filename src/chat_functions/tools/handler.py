"""
Function handlers: the executable side of model-requested function calls.

Every handler carries an explicit type descriptor: its 'name', an ordered tuple
of 'ParameterDescriptor' objects and a 'returns' type. The descriptor is the
single source for the JSON schema advertised to the model
('schema_from_handler') and for the required-argument check the resolver runs
before calling the handler.

Handlers are written either as 'FunctionHandler' subclasses or by decorating a
plain (sync or async) function with 'function_handler'.
"""

import inspect
import types
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel

from chat_functions.errors import SchemaError
from chat_functions.tools.base import FunctionParameters, FunctionSchema, JsonSchemaProperty, define_function

_PRIMITIVE_TAGS: dict[type, str] = {
    str: "string",
    bool: "boolean",
    int: "integer",
    float: "number",
    dict: "object",
    list: "array",
    tuple: "array",
}


@dataclass(frozen=True)
class ParameterDescriptor:
    """
    Declared name and type of one handler parameter.

    Attributes:
        name: Parameter name as the model must send it.
        type: Declared Python type: a primitive ('str', 'int', 'float', 'bool'),
            a sequence such as 'list[str]', an 'Enum' or 'Literal', or a pydantic
            model for a nested object.
        description: Shown to the model next to the parameter.
        required: Whether the model must always supply it.
    """

    name: str
    type: Any = str
    description: str = ""
    required: bool = True

    def to_property(self) -> JsonSchemaProperty:
        return _property_for(self.name, self.type, self.description)

    @classmethod
    def from_model(cls, model: "type[BaseModel]") -> tuple["ParameterDescriptor", ...]:
        """Describe every field of a pydantic record, in declaration order."""
        return tuple(
            cls(
                name=field_name,
                type=field.annotation,
                description=field.description or "",
                required=field.is_required(),
            )
            for field_name, field in model.model_fields.items()
        )


class FunctionHandler(ABC):
    """
    Abstract base class for model-callable functions.

    Subclasses declare 'name', 'description', 'parameters' and 'returns' as class
    attributes. When 'input_model' is set, decoded arguments are validated into
    that pydantic model before 'call' receives them; otherwise 'call' receives a
    plain dict.
    """

    name: str
    description: str = ""
    parameters: tuple[ParameterDescriptor, ...] = ()
    returns: Any = str
    input_model: type[BaseModel] | None = None

    @abstractmethod
    async def call(self, arguments: Any) -> Any:
        """Execute the function with decoded arguments and return its typed result."""
        pass

    def required_parameters(self) -> list[str]:
        return [param.name for param in self.parameters if param.required]

    def schema(self) -> FunctionSchema:
        return schema_from_handler(self)


class CallableHandler(FunctionHandler):
    """'FunctionHandler' adapter around a plain function, built by 'function_handler'."""

    def __init__(
        self,
        func: Callable[..., Any],
        name: str,
        description: str,
        parameters: Sequence[ParameterDescriptor],
        returns: Any,
        input_model: type[BaseModel] | None,
    ) -> None:
        self.func = func
        self.name = name
        self.description = description
        self.parameters = tuple(parameters)
        self.returns = returns
        self.input_model = input_model

    async def call(self, arguments: Any) -> Any:
        if isinstance(arguments, Mapping):
            result = self.func(**arguments)
        else:
            result = self.func(arguments)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"CallableHandler(name={self.name!r})"


def function_handler(
    name: str | None = None,
    description: str | None = None,
    parameters: Sequence[ParameterDescriptor] | None = None,
    returns: Any = str,
    input_model: type[BaseModel] | None = None,
) -> Callable[[Callable[..., Any]], CallableHandler]:
    """Turn a plain function into a 'FunctionHandler'.

    With 'input_model', the function receives one validated model instance and the
    parameter descriptors default to the model's fields. Without it, the function
    receives the decoded arguments as keyword arguments and 'parameters' must be
    given explicitly.

    Usage:

        @function_handler(
            description="Execute a SQL query and return the result rows",
            parameters=[ParameterDescriptor("sql", str, "The SQL query to execute")],
            returns=list[str],
        )
        async def execute_sql_query(sql: str) -> list[str]:
            ...
    """

    def decorator(func: Callable[..., Any]) -> CallableHandler:
        if parameters is not None:
            declared = tuple(parameters)
        elif input_model is not None:
            declared = ParameterDescriptor.from_model(input_model)
        else:
            raise SchemaError(f"Handler '{func.__name__}' needs explicit parameters or an input_model")
        doc = inspect.getdoc(func) or ""
        return CallableHandler(
            func=func,
            name=name or func.__name__,
            description=description if description is not None else doc.split("\n\n")[0].strip(),
            parameters=declared,
            returns=returns,
            input_model=input_model,
        )

    return decorator


def schema_from_handler(handler: FunctionHandler) -> FunctionSchema:
    """Build the advertised schema from a handler's declared parameters.

    Each descriptor becomes a property typed from its declared type; descriptors
    marked 'required' are listed in 'required' in declaration order.
    """
    if not handler.parameters and handler.input_model is None:
        return FunctionSchema(name=handler.name, description=handler.description, parameters=FunctionParameters())
    descriptors = handler.parameters or ParameterDescriptor.from_model(handler.input_model)  # type: ignore[arg-type]
    return define_function(
        name=handler.name,
        description=handler.description,
        properties=[param.to_property() for param in descriptors],
        required=[param.name for param in descriptors if param.required],
    )


def json_type_tag(declared: Any) -> str:
    """Map a declared Python type to its JSON-schema type tag."""
    declared = _unwrap_optional(declared)
    origin = get_origin(declared)
    if origin is Literal:
        values = get_args(declared)
        return json_type_tag(type(values[0])) if values else "string"
    if origin is not None:
        declared = origin
    if isinstance(declared, type):
        if issubclass(declared, Enum):
            return "string"
        if issubclass(declared, BaseModel):
            return "object"
        for python_type, tag in _PRIMITIVE_TAGS.items():
            if issubclass(declared, python_type):
                return tag
        if issubclass(declared, Sequence):
            return "array"
        if issubclass(declared, Mapping):
            return "object"
    raise SchemaError(f"Cannot describe parameter type {declared!r} as JSON schema")


def _property_for(name: str, declared: Any, description: str) -> JsonSchemaProperty:
    declared = _unwrap_optional(declared)
    tag = json_type_tag(declared)
    origin = get_origin(declared)

    if origin is Literal:
        return JsonSchemaProperty(name=name, type=tag, description=description, enum=get_args(declared))
    if isinstance(declared, type) and issubclass(declared, Enum):
        return JsonSchemaProperty(
            name=name, type=tag, description=description, enum=tuple(member.value for member in declared)
        )
    if isinstance(declared, type) and issubclass(declared, BaseModel):
        fields = ParameterDescriptor.from_model(declared)
        return JsonSchemaProperty(
            name=name,
            type=tag,
            description=description,
            properties=tuple(param.to_property() for param in fields),
            required_properties=tuple(param.name for param in fields if param.required),
        )
    if tag == "array":
        element_types = get_args(declared)
        items = {"type": json_type_tag(element_types[0])} if element_types else {"type": "string"}
        return JsonSchemaProperty(name=name, type=tag, description=description, items=items)
    return JsonSchemaProperty(name=name, type=tag, description=description)


def _unwrap_optional(declared: Any) -> Any:
    origin = get_origin(declared)
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(declared) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return declared
