from dataclasses import dataclass

import pytest
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from chat_functions.completion.request import ChatRequestBuilder, build_request
from chat_functions.errors import ConfigurationError
from chat_functions.llms.base import ChatCompletionRequest, Roles
from chat_functions.tools.base import JsonSchemaProperty, define_function
from chat_functions.tools.registry import HandlerRegistry

SQL_FUNCTION = define_function(
    "execute_sql_query",
    "Execute a SQL query and return the result rows",
    [JsonSchemaProperty(name="sql", type="string", description="The SQL query")],
    ["sql"],
)
WEATHER_FUNCTION = define_function(
    "get_weather",
    "Get the weather for a city",
    [JsonSchemaProperty(name="city", type="string")],
    ["city"],
)


class TranslateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    text: str


def test_plain_prompt_becomes_single_user_turn():
    request = build_request("What's Java Language?")

    assert [message.role for message in request.messages] == [Roles.USER]
    assert request.messages[0].content == "What's Java Language?"
    assert request.functions == []
    assert request.function_call is None


def test_system_prompt_precedes_user_turn():
    request = build_request("Hello", system_prompt="You are a translator.")

    assert [message.role for message in request.messages] == [Roles.SYSTEM, Roles.USER]


def test_record_payload_fills_named_placeholders():
    request = build_request(
        "Please translate the following text from {from} to {to}:\n{text}",
        input_payload=TranslateRequest(from_="Chinese", to="English", text="你好！"),
    )

    content = request.messages[-1].content
    assert "Chinese" in content
    assert "English" in content
    assert "你好！" in content
    assert "{" not in content


def test_dataclass_and_mapping_payloads_are_records():
    @dataclass
    class Query:
        table: str
        limit: int

    template = "SELECT * FROM {table} LIMIT {limit}"

    assert build_request(template, input_payload=Query("employees", 10)).messages[0].content == (
        "SELECT * FROM employees LIMIT 10"
    )
    assert build_request(template, input_payload={"table": "t", "limit": 1}).messages[0].content == (
        "SELECT * FROM t LIMIT 1"
    )


def test_primitive_payload_fills_positional_placeholder():
    request = build_request("Translate: {0}", input_payload=42)

    assert request.messages[0].content == "Translate: 42"


def test_functions_are_attached_verbatim_in_order():
    request = build_request("Weather and SQL", functions=[WEATHER_FUNCTION, SQL_FUNCTION])

    assert request.functions == [WEATHER_FUNCTION, SQL_FUNCTION]
    assert request.function_call is None


def test_forced_function_must_match_exactly_one_advertised_function():
    request = build_request("q", functions=[WEATHER_FUNCTION, SQL_FUNCTION], forced_function_name="execute_sql_query")

    assert request.function_call == "execute_sql_query"


@pytest.mark.parametrize(
    "functions",
    [
        [],
        [WEATHER_FUNCTION],
        [SQL_FUNCTION, SQL_FUNCTION],
    ],
    ids=["no-functions", "zero-matches", "two-matches"],
)
def test_forced_function_mismatch_fails_eagerly(functions):
    with pytest.raises(ConfigurationError):
        build_request("q", functions=functions, forced_function_name="execute_sql_query")


def test_request_model_enforces_forced_function_invariant_directly():
    with pytest.raises(ConfigurationError):
        ChatCompletionRequest(
            messages=build_request("q").messages,
            functions=[WEATHER_FUNCTION],
            function_call="execute_sql_query",
        )


def test_request_needs_a_user_turn():
    with pytest.raises(ConfigurationError, match="user message"):
        ChatCompletionRequest(messages=[])


def test_building_twice_yields_structurally_equal_requests():
    payload = TranslateRequest(from_="Chinese", to="English", text="你好！")
    arguments = dict(
        prompt_text="from {from} to {to}: {text}",
        functions=[SQL_FUNCTION],
        forced_function_name="execute_sql_query",
        input_payload=payload,
    )

    first = build_request(**arguments)
    second = build_request(**arguments)

    assert first == second
    assert first is not second
    assert first.to_payload() == second.to_payload()


def test_wire_payload_uses_tools_and_tool_choice():
    request = build_request(
        "q", functions=[SQL_FUNCTION], forced_function_name="execute_sql_query", model="gpt-4o", temperature=0.0
    )

    payload = request.to_payload()

    assert payload["model"] == "gpt-4o"
    assert payload["temperature"] == 0.0
    assert payload["messages"] == [{"role": "user", "content": "q"}]
    assert payload["tools"] == [SQL_FUNCTION.json_schema()]
    assert payload["tool_choice"] == {"type": "function", "function": {"name": "execute_sql_query"}}
    assert "max_tokens" not in payload


def test_of_constructor_matches_builder_output():
    assert ChatCompletionRequest.of("What's Java Language?") == build_request("What's Java Language?")


def test_builder_forces_function_referenced_by_name(registry: HandlerRegistry):
    request = (
        ChatRequestBuilder.of("Query all employees whose salary is greater than the average.", registry=registry)
        .function("execute_sql_query")
        .temperature(0.2)
        .build()
    )

    assert request.function_call == "execute_sql_query"
    assert [schema.name for schema in request.functions] == ["execute_sql_query"]
    assert request.temperature == 0.2


def test_builder_advertises_schema_objects_for_free_choice():
    request = ChatRequestBuilder.of("查找华为技术有限公司最新申请的20篇专利").function(WEATHER_FUNCTION).build()

    assert request.functions == [WEATHER_FUNCTION]
    assert request.function_call is None


def test_builder_name_lookup_requires_registered_function(registry: HandlerRegistry):
    with pytest.raises(ConfigurationError, match="no registry"):
        ChatRequestBuilder.of("q").function("execute_sql_query")
    with pytest.raises(ConfigurationError, match="not registered"):
        ChatRequestBuilder.of("q", registry=registry).function("obtainPatentList")


def test_builder_with_system_model_and_payload():
    request = (
        ChatRequestBuilder.of("Summarize {0}")
        .system("Be brief.")
        .model("gpt-4o-mini")
        .max_tokens(64)
        .payload("the report")
        .build()
    )

    assert request.messages[0].content == "Be brief."
    assert request.messages[1].content == "Summarize the report"
    assert request.model == "gpt-4o-mini"
    assert request.max_tokens == 64


@pytest.fixture
def logged_warnings():
    messages: list[str] = []
    sink_id = logger.add(lambda message: messages.append(message.record["message"]), level="WARNING")
    yield messages
    logger.remove(sink_id)


def test_braces_in_caller_input_do_not_count_as_unresolved(logged_warnings: list[str]):
    request = build_request("Run this query:\n{0}", input_payload="SELECT data->'{id}' FROM events")

    assert request.messages[0].content == "Run this query:\nSELECT data->'{id}' FROM events"
    assert logged_warnings == []


def test_template_placeholders_without_values_are_reported(logged_warnings: list[str]):
    request = build_request("Translate from {from} to {to}:\n{0}", input_payload="你好")

    assert request.messages[0].content == "Translate from {from} to {to}:\n你好"
    assert len(logged_warnings) == 1
    assert "from" in logged_warnings[0] and "to" in logged_warnings[0]


def test_forced_function_is_checked_once_by_the_request_model():
    with pytest.raises(ConfigurationError, match="exactly one advertised function, found 2"):
        build_request("q", functions=[SQL_FUNCTION, SQL_FUNCTION], forced_function_name="execute_sql_query")
    with pytest.raises(ConfigurationError, match="no functions are advertised"):
        build_request("q", forced_function_name="execute_sql_query")
