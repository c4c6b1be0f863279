"""LLM-backed transaction extractor."""

from collections.abc import Sequence
from pathlib import Path

from statement_worker.extraction.base import BaseTransactionExtractor
from statement_worker.extraction.client_base import BaseCompletionClient
from statement_worker.extraction.json_repair import BaseJsonRepairer, LenientJsonRepairer
from statement_worker.extraction.models import EmptyResult, ParsedRows, TransactionRow
from statement_worker.extraction.output_parser import parse_model_output
from statement_worker.extraction.prompt_loader import (
    load_system_prompt,
    load_user_prompt_template,
)
from statement_worker.ingestion.models import DocumentChunk
from statement_worker.logging.logger import Log

CHUNK_SEPARATOR = "\n\n---\n\n"


class TransactionExtractor(BaseTransactionExtractor):
    """Extracts transactions from a whole document with a single completion call."""

    def __init__(
        self,
        *,
        client: BaseCompletionClient,
        model: str,
        temperature: float = 0.0,
        repairer: BaseJsonRepairer | None = None,
        system_prompt_path: Path | None = None,
        user_prompt_path: Path | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._repairer = repairer if repairer is not None else LenientJsonRepairer()
        self._system_prompt = load_system_prompt(system_prompt_path)
        self._user_prompt_template = load_user_prompt_template(user_prompt_path)

    async def extract(self, chunks: Sequence[DocumentChunk]) -> list[TransactionRow]:
        if not chunks:
            return []
        document_text = combine_chunks(chunks)
        user_prompt = self._user_prompt_template.replace("{document_text}", document_text)
        Log.debug(f"Extraction prompt:\n{user_prompt}")

        raw_response = await self._client.complete(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=user_prompt,
        )
        Log.debug(f"Completion raw response:\n{raw_response}")

        outcome = parse_model_output(raw_response, self._repairer)
        if isinstance(outcome, ParsedRows):
            Log.info(f"Extraction complete: {len(outcome.rows)} transactions")
            return outcome.rows
        if isinstance(outcome, EmptyResult):
            Log.info(f"Extraction returned no transactions: {outcome.reason}")
        else:
            Log.warning(f"Discarding unrepairable completion output: {outcome.reason}")
        return []


def combine_chunks(chunks: Sequence[DocumentChunk]) -> str:
    """Join chunk texts in chunk_index order with an explicit separator."""
    ordered = sorted(chunks, key=lambda chunk: chunk.chunk_index)
    return CHUNK_SEPARATOR.join(chunk.text_content for chunk in ordered)
