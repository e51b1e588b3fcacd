"""
OpenAI-compatible completion transport.

Works against the OpenAI API or any server exposing the same chat-completions
endpoint (vLLM, Ollama's OpenAI shim, ...) through 'base_url'. Provider errors
are translated into 'TransportError' with a 'kind' describing the failure; the
original SDK exception is kept as '__cause__'.
"""

import openai
from loguru import logger
from openai import AsyncOpenAI

from chat_functions.config import ChatSettings
from chat_functions.errors import TransportError, TransportTimeoutError
from chat_functions.llms.base import ChatCompletionRequest, ChatCompletionResponse, CompletionTransport


class OpenAITransport(CompletionTransport):
    """
    Transport backed by the official 'openai' async client.

    Attributes:
        model_name: Model used when a request does not name one.
        client: The underlying 'AsyncOpenAI' client.
    """

    def __init__(
        self,
        model_name: str = "gpt-4o-mini",
        openai_api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.model_name = model_name
        self.client = client or AsyncOpenAI(api_key=openai_api_key, base_url=base_url, timeout=timeout)
        logger.info(f"OpenAI transport ready ({model_name}, base_url={base_url or 'default'})")

    @classmethod
    def from_settings(cls, settings: ChatSettings) -> "OpenAITransport":
        return cls(
            model_name=settings.model,
            openai_api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.timeout,
        )

    async def send(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        payload = request.to_payload()
        payload.setdefault("model", self.model_name)
        try:
            completion = await self.client.chat.completions.create(**payload)
        except openai.APITimeoutError as exc:
            raise TransportTimeoutError(f"Completion request to {payload['model']} timed out") from exc
        except openai.APIConnectionError as exc:
            raise TransportError(f"Could not reach the completion endpoint: {exc}", kind="network") from exc
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise TransportError(str(exc), kind="auth", status_code=exc.status_code) from exc
        except openai.RateLimitError as exc:
            raise TransportError(str(exc), kind="rate_limit", status_code=exc.status_code) from exc
        except openai.BadRequestError as exc:
            raise TransportError(str(exc), kind="bad_request", status_code=exc.status_code) from exc
        except openai.APIStatusError as exc:
            raise TransportError(str(exc), kind="server", status_code=exc.status_code) from exc

        response = ChatCompletionResponse.model_validate(completion.model_dump())
        logger.debug(
            f"Completion {response.id} from {response.model}: "
            f"{[choice.finish_reason for choice in response.choices]}"
        )
        return response
