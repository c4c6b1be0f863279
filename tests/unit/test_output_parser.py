from statement_worker.extraction.json_repair import BaseJsonRepairer
from statement_worker.extraction.models import (
    EmptyResult,
    ParsedRows,
    TransactionRow,
    Unrepairable,
)
from statement_worker.extraction.output_parser import parse_model_output


class _IdentityRepairer(BaseJsonRepairer):
    def repair(self, raw: str) -> str:
        return raw


class TestParseModelOutput:
    def test_parses_rows(self) -> None:
        raw = (
            '{"overflow": false, "rows": ['
            '{"date": "2024-01-05", "description": "Salary", "amount": 2500, "type": "credit"},'
            '{"date": "2024-01-06", "description": "Groceries", "amount": 42.1}]}'
        )
        outcome = parse_model_output(raw)
        assert outcome == ParsedRows(
            rows=[
                TransactionRow("2024-01-05", "Salary", 2500.0, "credit"),
                TransactionRow("2024-01-06", "Groceries", 42.1, "debit"),
            ]
        )

    def test_repairs_fenced_output(self) -> None:
        raw = '```json\n{"rows": [{"date": "2024-01-05", "description": "Rent", "amount": 900}]}\n```'
        outcome = parse_model_output(raw)
        assert isinstance(outcome, ParsedRows)
        assert outcome.rows[0].description == "Rent"

    def test_empty_response_is_unrepairable(self) -> None:
        assert parse_model_output("   ") == Unrepairable("empty response")

    def test_garbage_is_unrepairable(self) -> None:
        outcome = parse_model_output("I could not find any transactions.")
        assert isinstance(outcome, Unrepairable)

    def test_custom_repairer_is_used(self) -> None:
        outcome = parse_model_output('```json\n{"rows": []}\n```', _IdentityRepairer())
        assert isinstance(outcome, Unrepairable)

    def test_missing_rows_key_is_empty_result(self) -> None:
        assert parse_model_output('{"transactions": []}') == EmptyResult(
            "response has no 'rows' list"
        )

    def test_rows_not_a_list_is_empty_result(self) -> None:
        assert isinstance(parse_model_output('{"rows": "none"}'), EmptyResult)

    def test_top_level_array_is_empty_result(self) -> None:
        assert isinstance(parse_model_output('[{"date": "2024-01-01"}]'), EmptyResult)

    def test_no_valid_rows_is_empty_result(self) -> None:
        outcome = parse_model_output('{"rows": [{"date": "2024-01-01"}, 7]}')
        assert isinstance(outcome, EmptyResult)
        assert "2 rows" in outcome.reason
