from abc import ABC, abstractmethod


class BaseCompletionClient(ABC):
    """Contract for provider-specific text-completion clients."""

    @abstractmethod
    async def complete(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        """Return the provider's raw text response.

        The response may be malformed JSON; callers repair and validate it.

        Raises:
            CompletionNetworkError: on network or provider API failures.
            CompletionError: when the provider returns no content.
        """
