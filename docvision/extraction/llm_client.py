"""Client for OpenAI-compatible chat-completion APIs."""

from dataclasses import dataclass
from typing import Any

import httpx

from docvision.errors import RemoteCallError, RemoteUnavailableError
from docvision.utils.config import LLMConfig
from docvision.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ChatCompletion:
    """Text and token usage of one completion."""

    content: str
    total_tokens: int
    model: str


class ChatCompletionClient:
    """Minimal ``/chat/completions`` client.

    Failures that mean "the model is not usable right now" (no key,
    unreachable host, error status, empty or malformed reply) raise
    ``RemoteUnavailableError``. A request that times out or breaks off
    mid-flight raises ``RemoteCallError``.

    Args:
        config: Endpoint, credentials and request limits.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self, config: LLMConfig, transport: httpx.BaseTransport | None = None
    ) -> None:
        self.config = config
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ChatCompletionClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        *,
        max_tokens: int | None = None,
        json_output: bool = False,
    ) -> ChatCompletion:
        """Send one system + user exchange and return the reply.

        Args:
            system_prompt: System instruction.
            user_message: The only user content.
            max_tokens: Output token ceiling; defaults to the configured one.
            json_output: Ask the provider for a JSON object reply.

        Returns:
            The reply text and total tokens used.

        Raises:
            RemoteUnavailableError: If the model cannot be used.
            RemoteCallError: If the request timed out or was cut off.
        """
        if not self.config.has_credentials:
            raise RemoteUnavailableError("API key not configured")

        payload: dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": max_tokens or self.config.max_tokens,
            "temperature": self.config.temperature,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
        }
        if json_output:
            payload["response_format"] = {"type": "json_object"}

        try:
            response = self._client.post(
                "chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self.config.api_key}"},
            )
        except httpx.ConnectError as exc:
            raise RemoteUnavailableError(f"Model endpoint unreachable: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise RemoteCallError(
                f"Model request timed out after {self.config.timeout_seconds:g}s"
            ) from exc
        except httpx.TransportError as exc:
            raise RemoteCallError(f"Model request failed: {exc}") from exc

        if not response.is_success:
            logger.error(
                "Model call failed %d. Body: %s", response.status_code, response.text
            )
            raise RemoteUnavailableError(
                f"Model request failed with status {response.status_code}"
            )

        logger.debug("Model raw response: %s", response.text)
        if not response.content.strip():
            raise RemoteUnavailableError("Model returned an empty response")
        try:
            body = response.json()
        except ValueError as exc:
            raise RemoteUnavailableError("Model response is not valid JSON") from exc

        content = _first_message_content(body)
        if not content or not content.strip():
            raise RemoteUnavailableError("Model returned no content")

        return ChatCompletion(
            content=content,
            total_tokens=_total_tokens(body),
            model=str(body.get("model") or self.config.model),
        )


def _first_message_content(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    return content if isinstance(content, str) else None


def _total_tokens(body: dict[str, Any]) -> int:
    usage = body.get("usage")
    if not isinstance(usage, dict):
        return 0
    try:
        return int(usage.get("total_tokens") or 0)
    except (TypeError, ValueError):
        return 0
