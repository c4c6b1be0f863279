from statement_worker.extraction.base import BaseTransactionExtractor
from statement_worker.extraction.extractor import TransactionExtractor
from statement_worker.extraction.factory import ExtractorFactory
from statement_worker.extraction.models import TransactionRow

__all__ = [
    "BaseTransactionExtractor",
    "ExtractorFactory",
    "TransactionExtractor",
    "TransactionRow",
]
