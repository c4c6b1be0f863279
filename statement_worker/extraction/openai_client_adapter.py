import httpx
import openai

from statement_worker.extraction.client_base import BaseCompletionClient
from statement_worker.extraction.exceptions import CompletionError, CompletionNetworkError


class OpenAIClientAdapter(BaseCompletionClient):
    """Completion client built on the OpenAI-compatible async chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
        json_mode: bool = True,
    ) -> None:
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )
        self._json_mode = json_mode

    async def complete(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        request: dict[str, object] = {
            "model": model,
            "temperature": temperature,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        if self._json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**request)  # type: ignore[call-overload]
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise CompletionNetworkError(f"Completion provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise CompletionNetworkError(f"Completion provider API error: {exc}") from exc

        if not response.choices:
            raise CompletionError("Completion provider returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise CompletionError("Completion provider returned empty response")
        return content
