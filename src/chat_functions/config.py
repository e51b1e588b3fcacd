"""
Runtime settings for the chat service and its transport.

Values come from environment variables; the API key may also be mounted as a
secret file under /secrets, which takes precedence:

    OPENAI_API_KEY   - /secrets/OPENAI_API_KEY or env var (required)
    OPENAI_BASE_URL  - OpenAI-compatible endpoint, defaults to the OpenAI API
    CHAT_MODEL       - default model (gpt-4o-mini)
    CHAT_TEMPERATURE - default sampling temperature (0.3)
    CHAT_MAX_TOKENS  - default completion token cap (unset)
    CHAT_TIMEOUT     - transport timeout in seconds (60)
"""

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from chat_functions.errors import ConfigurationError

SECRETS_DIR = Path("/secrets")


class ChatSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int | None = None
    timeout: float = 60.0
    base_url: str | None = None
    api_key: str | None = None

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, secrets_dir: Path = SECRETS_DIR
    ) -> "ChatSettings":
        env = os.environ if environ is None else environ
        values: dict[str, object] = {"api_key": _get_secret("OPENAI_API_KEY", env, secrets_dir)}
        for field_name, variable in (
            ("model", "CHAT_MODEL"),
            ("temperature", "CHAT_TEMPERATURE"),
            ("max_tokens", "CHAT_MAX_TOKENS"),
            ("timeout", "CHAT_TIMEOUT"),
            ("base_url", "OPENAI_BASE_URL"),
        ):
            raw = env.get(variable, "").strip()
            if raw:
                values[field_name] = raw
        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid chat settings: {exc}") from exc


def _get_secret(name: str, environ: Mapping[str, str], secrets_dir: Path) -> str:
    """Load a secret from a mounted secret file or an environment variable.

    Checks in order:
    1. <secrets_dir>/<name>
    2. <name> environment variable

    Raises ConfigurationError if neither is available.
    """
    secret_file = secrets_dir / name
    if secret_file.exists():
        return secret_file.read_text().strip()
    key = environ.get(name, "")
    if not key:
        raise ConfigurationError(
            f"{name} not found. Either:\n"
            f"  - Mount it as a secret file at {secret_file}, or\n"
            f"  - Set the {name} environment variable."
        )
    return key
