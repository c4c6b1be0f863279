from dataclasses import dataclass, field

CREDIT = "credit"
DEBIT = "debit"
TRANSACTION_TYPES = frozenset({CREDIT, DEBIT})


@dataclass(frozen=True)
class TransactionRow:
    """A single transaction extracted from a statement."""

    date: str
    description: str
    amount: float
    type: str = DEBIT


@dataclass(frozen=True)
class ParsedRows:
    """Model output parsed into at least one well-formed row."""

    rows: list[TransactionRow] = field(default_factory=list)


@dataclass(frozen=True)
class EmptyResult:
    """Model output was valid JSON but held no usable rows."""

    reason: str = ""


@dataclass(frozen=True)
class Unrepairable:
    """Model output could not be turned into JSON even after repair."""

    reason: str = ""


ParseOutcome = ParsedRows | EmptyResult | Unrepairable
