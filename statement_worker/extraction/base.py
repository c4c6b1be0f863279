from abc import ABC, abstractmethod
from collections.abc import Sequence

from statement_worker.extraction.models import TransactionRow
from statement_worker.ingestion.models import DocumentChunk


class BaseTransactionExtractor(ABC):
    """Contract for all transaction extractors."""

    @abstractmethod
    async def extract(self, chunks: Sequence[DocumentChunk]) -> list[TransactionRow]:
        """Extract transactions from all chunks of one document.

        Args:
            chunks: The document's chunks in chunk_index order.

        Returns:
            Well-formed transaction rows; empty when nothing usable was found.

        Raises:
            CompletionError: when the completion call itself fails.
        """
