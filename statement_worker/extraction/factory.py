from typing import ClassVar

from statement_worker.config.settings import Settings
from statement_worker.extraction.base import BaseTransactionExtractor
from statement_worker.extraction.example_client_adapter import ExampleClientAdapter
from statement_worker.extraction.extractor import TransactionExtractor
from statement_worker.extraction.openai_client_adapter import OpenAIClientAdapter


class ExtractorFactory:
    """Creates the configured transaction extractor."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseTransactionExtractor:
        """Create a configured extractor from application settings."""
        provider = settings.extraction_provider.lower()
        if provider == "example":
            return TransactionExtractor(
                client=ExampleClientAdapter(),
                model="example",
                temperature=0.0,
            )
        client = OpenAIClientAdapter(
            api_key=cls._resolve_api_key(provider, settings),
            timeout_seconds=settings.extraction_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
        )
        return TransactionExtractor(
            client=client,
            model=settings.extraction_model_name,
            temperature=settings.extraction_temperature,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        override = (settings.extraction_base_url or "").strip()
        if provider == "openai":
            return override or None
        if provider == "openai_compatible":
            if not override:
                raise ValueError(
                    "extraction_base_url is required for extraction_provider=openai_compatible"
                )
            return override
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return override or default_base_url
        supported = [
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(
            f"Unknown extraction provider '{provider}'. Choose from: {supported}"
        )

    @classmethod
    def _resolve_api_key(cls, provider: str, settings: Settings) -> str:
        # Local Ollama ignores the key, but the OpenAI client requires a non-empty one.
        if provider == "ollama" and not settings.extraction_api_key:
            return "ollama"
        return settings.extraction_api_key
