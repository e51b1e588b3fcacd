import pytest

from chat_functions.prompts.catalog import InMemoryPromptCatalog
from chat_functions.tools.handler import FunctionHandler, ParameterDescriptor, function_handler
from chat_functions.tools.registry import HandlerRegistry
from tests.fakes import PROMPTS, EmailRequest, RecordingHandler


@pytest.fixture
def catalog() -> InMemoryPromptCatalog:
    return InMemoryPromptCatalog(PROMPTS)


@pytest.fixture
def sql_handler() -> RecordingHandler:
    return RecordingHandler(
        "execute_sql_query",
        parameters=(ParameterDescriptor("sql", str, "The SQL query to execute"),),
        result=["Alice,9000", "Bob,8500"],
        returns=list[str],
    )


@pytest.fixture
def sent_emails() -> list[EmailRequest]:
    return []


@pytest.fixture
def email_handler(sent_emails: list[EmailRequest]) -> FunctionHandler:
    @function_handler(description="Send an email", input_model=EmailRequest)
    async def send_email(request: EmailRequest) -> str:
        sent_emails.append(request)
        return f"Email '{request.subject}' sent to {', '.join(request.to)}"

    return send_email


@pytest.fixture
def registry(sql_handler: RecordingHandler, email_handler: FunctionHandler) -> HandlerRegistry:
    return HandlerRegistry([sql_handler, email_handler])
