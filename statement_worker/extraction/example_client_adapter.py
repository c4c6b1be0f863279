"""Offline completion client.

Use this module as a reference when implementing new provider adapters.
Implement BaseCompletionClient and register the provider in ExtractorFactory.
"""

import json
from typing import ClassVar

from statement_worker.extraction.client_base import BaseCompletionClient


class ExampleClientAdapter(BaseCompletionClient):
    """Returns a fixed, valid extraction payload with no rows.

    No network calls. Useful for local development and smoke-testing the
    pipeline without a model provider.
    """

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {"overflow": False, "rows": []}

    def __init__(self, response: dict[str, object] | None = None) -> None:
        self._response = response if response is not None else self.DEFAULT_RESPONSE

    async def complete(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        _ = model, temperature, system_prompt, user_prompt
        return json.dumps(self._response)
