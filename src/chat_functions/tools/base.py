"""
Function schema abstractions for LLM function calling.

A 'FunctionSchema' is the declarative description of a callable that the model
may ask to invoke: a name, a human-readable description and a JSON-schema
'object' describing its parameters. Schemas are immutable once built, so a
single definition can be shared by every request that advertises it.

'define_function' is the explicit construction path where the caller supplies
every property. The second path, promoting an existing handler, lives in
'chat_functions.tools.handler.schema_from_handler'.
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any, Literal, TypedDict

from pydantic import BaseModel, ConfigDict, Field, model_validator

from chat_functions.errors import SchemaError

FUNCTION_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]{0,63}$")
JSON_SCHEMA_TYPES = frozenset({"string", "number", "integer", "boolean", "object", "array", "null"})


class FunctionDescription(TypedDict):
    """JSON schema fragment describing a callable function for the LLM API."""

    name: str
    description: str
    parameters: dict[str, Any]


class ToolDescription(TypedDict):
    """Full tool descriptor in the format expected by OpenAI-compatible APIs."""

    type: Literal["function"]
    function: FunctionDescription


class JsonSchemaProperty(BaseModel):
    """
    A single named parameter of a function schema.

    Attributes:
        name: Parameter name, also used as the key in the parent 'properties' mapping.
        type: JSON-schema primitive type tag ('string', 'number', 'boolean', ...).
        description: What the parameter means, shown to the model.
        items: Element schema when 'type' is 'array'.
        properties: Nested properties when 'type' is 'object'.
        required_properties: Names of the nested properties the model must supply.
            Defaults to all of them.
        enum: Optional closed set of allowed values.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    description: str = ""
    items: dict[str, Any] | None = None
    properties: tuple["JsonSchemaProperty", ...] | None = None
    enum: tuple[Any, ...] | None = None
    required_properties: tuple[str, ...] | None = None

    @model_validator(mode="after")
    def _check_required_properties(self) -> "JsonSchemaProperty":
        if self.required_properties is None:
            return self
        declared = {prop.name for prop in self.properties or ()}
        unknown = [name for name in self.required_properties if name not in declared]
        if unknown:
            raise SchemaError(f"Property {self.name!r} requires undeclared nested field(s): {', '.join(unknown)}")
        return self

    def to_json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type}
        if self.description:
            schema["description"] = self.description
        if self.items is not None:
            schema["items"] = dict(self.items)
        if self.properties is not None:
            schema["properties"] = {prop.name: prop.to_json_schema() for prop in self.properties}
            if self.required_properties is not None:
                schema["required"] = list(self.required_properties)
            else:
                schema["required"] = [prop.name for prop in self.properties]
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        return schema


class FunctionParameters(BaseModel):
    """The 'object' schema wrapping all parameters of a function."""

    model_config = ConfigDict(frozen=True)

    type: Literal["object"] = "object"
    properties: dict[str, JsonSchemaProperty] = Field(default_factory=dict)
    required: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_required(self) -> "FunctionParameters":
        unknown = [name for name in self.required if name not in self.properties]
        if unknown:
            raise SchemaError(f"Required parameter(s) not declared in properties: {', '.join(unknown)}")
        return self

    def to_json_schema(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "properties": {name: prop.to_json_schema() for name, prop in self.properties.items()},
            "required": list(self.required),
        }


class FunctionSchema(BaseModel):
    """
    Declarative description of a function the model may request.

    Construction fails with 'SchemaError' when the name is not identifier-safe or
    when 'parameters.required' references an undeclared property, so every
    instance in circulation satisfies both invariants.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    parameters: FunctionParameters = Field(default_factory=FunctionParameters)

    @model_validator(mode="after")
    def _check_name(self) -> "FunctionSchema":
        if not FUNCTION_NAME_PATTERN.match(self.name):
            raise SchemaError(f"Function name {self.name!r} must be a non-empty identifier-safe string")
        return self

    def json_schema(self) -> ToolDescription:
        """Return the function descriptor in OpenAI function-calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters.to_json_schema(),
            },
        }


def define_function(
    name: str,
    description: str,
    properties: Mapping[str, JsonSchemaProperty] | Sequence[JsonSchemaProperty],
    required: Sequence[str] = (),
) -> FunctionSchema:
    """Build a 'FunctionSchema' from explicitly supplied properties.

    Args:
        name: Identifier-safe function name, unique within a request.
        description: Human-readable description shown to the model.
        properties: Either a mapping of parameter name to property or a sequence of
            properties keyed by their own 'name'.
        required: Ordered names of the parameters the model must always supply.

    Raises:
        SchemaError: On an invalid name, an unknown type tag, a property whose key
            disagrees with its name, or a required name missing from 'properties'.
    """
    if isinstance(properties, Mapping):
        items = list(properties.items())
    else:
        items = [(prop.name, prop) for prop in properties]

    declared: dict[str, JsonSchemaProperty] = {}
    for key, prop in items:
        if key != prop.name:
            raise SchemaError(f"Property key {key!r} does not match property name {prop.name!r}")
        if key in declared:
            raise SchemaError(f"Property {key!r} is declared more than once")
        _check_type_tag(prop)
        declared[key] = prop

    return FunctionSchema(
        name=name,
        description=description,
        parameters=FunctionParameters(properties=declared, required=tuple(required)),
    )


def _check_type_tag(prop: JsonSchemaProperty) -> None:
    if prop.type not in JSON_SCHEMA_TYPES:
        raise SchemaError(f"Property {prop.name!r} has unsupported type {prop.type!r}")
    for nested in prop.properties or ():
        _check_type_tag(nested)
