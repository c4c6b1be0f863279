"""Best-effort repair of JSON emitted by language models."""

import re
from abc import ABC, abstractmethod

from json_repair import repair_json

_FENCE_RE = re.compile(r"```[a-zA-Z]*[ \t]*\n?(.*?)(?:```|\Z)", re.DOTALL)


class BaseJsonRepairer(ABC):
    """Contract for strategies that turn raw model output into parseable JSON text."""

    @abstractmethod
    def repair(self, raw: str) -> str:
        """Return a candidate JSON document for raw. Never raises on bad input."""


class LenientJsonRepairer(BaseJsonRepairer):
    """Repairs model output with the json_repair library.

    Markdown fences and leading prose are cut away first, so brackets in a
    sentence like "rows [see below]" are not taken for the payload. The
    library then fixes quoting, comments, Python literals, trailing commas
    and truncation. Returns an empty string when nothing can be salvaged.
    """

    def repair(self, raw: str) -> str:
        text = _strip_code_fences(raw.strip())
        return repair_json(_skip_leading_prose(text))


def _strip_code_fences(text: str) -> str:
    match = _FENCE_RE.search(text)
    if match is None:
        return text
    return match.group(1).strip()


def _skip_leading_prose(text: str) -> str:
    if text[:1] in ("{", "["):
        return text
    start = text.find("{")
    return text[start:] if start != -1 else text
