import json

from statement_worker.extraction.json_repair import BaseJsonRepairer, LenientJsonRepairer
from statement_worker.extraction.models import (
    EmptyResult,
    ParsedRows,
    ParseOutcome,
    Unrepairable,
)
from statement_worker.extraction.validator import build_rows


def parse_model_output(raw: str, repairer: BaseJsonRepairer | None = None) -> ParseOutcome:
    """Turn raw completion text into a tagged parse outcome.

    Never raises for malformed output: unparseable text becomes Unrepairable,
    and JSON without usable rows becomes EmptyResult.
    """
    if not raw or not raw.strip():
        return Unrepairable("empty response")

    candidate = (repairer or LenientJsonRepairer()).repair(raw)
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        return Unrepairable(f"invalid JSON after repair: {exc}")

    if not isinstance(parsed, dict):
        return EmptyResult("response is not a JSON object")
    raw_rows = parsed.get("rows")
    if not isinstance(raw_rows, list):
        return EmptyResult("response has no 'rows' list")

    rows = build_rows(raw_rows)
    if not rows:
        return EmptyResult(f"none of {len(raw_rows)} rows were valid")
    return ParsedRows(rows=rows)
