"""Income source attribution for external deposits."""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Sequence

from finledger.domain.entities import (
    DataQualityWarning,
    IncomeAlias,
    IncomeSourceReport,
    IncomeSourceRow,
    Transaction,
)
from finledger.domain.errors import ConfigurationError
from finledger.domain.periods import month_end

INCOME_RAW_TEXT_FIELDS = ("내용", "거래 기관", "거래기관")


def validate_aliases(aliases: Sequence[IncomeAlias]) -> None:
    """Reject alias tables that cannot classify deterministically.

    Raises:
        ConfigurationError: If the table is empty, a source name is blank, or
            one pattern maps to two different sources
    """
    if not aliases:
        raise ConfigurationError(
            "Income alias table is empty; add entries with 'finledger alias add SOURCE PATTERN'"
        )

    sources_by_pattern: dict[str, str] = {}
    for alias in aliases:
        if not alias.source_name or not alias.source_name.strip():
            raise ConfigurationError(f"Income alias {alias.id} has a blank source name")
        pattern = alias.pattern.strip().lower()
        if not pattern:
            continue
        existing = sources_by_pattern.get(pattern)
        if existing is not None and existing != alias.source_name:
            raise ConfigurationError(
                f"Income alias pattern '{alias.pattern}' maps to both "
                f"'{existing}' and '{alias.source_name}'"
            )
        sources_by_pattern[pattern] = alias.source_name


class IncomeSourceClassifier:
    """Attribute deposits to named sources by substring patterns.

    The longest matching pattern wins. Patterns of equal length are resolved
    by alias table order: the entry declared first wins.
    """

    def __init__(
        self,
        aliases: Sequence[IncomeAlias],
        other_source_name: str = "기타",
        internal_source_name: str = "내부 이체",
        raw_text_fields: Sequence[str] = INCOME_RAW_TEXT_FIELDS,
    ):
        """Initialize classifier.

        Args:
            aliases: Alias table entries
            other_source_name: Source for deposits no pattern matches
            internal_source_name: Source marking owner-internal movement, left out of reports
            raw_text_fields: Raw source fields searched besides the description

        Raises:
            ConfigurationError: If the alias table is invalid
        """
        validate_aliases(aliases)
        ordered = sorted(aliases, key=lambda alias: (alias.position, alias.id))
        self.patterns = sorted(
            (
                (alias.pattern.strip().lower(), alias.source_name)
                for alias in ordered
                if alias.pattern.strip()
            ),
            key=lambda entry: -len(entry[0]),
        )
        self.other_source_name = other_source_name
        self.internal_source_name = internal_source_name
        self.raw_text_fields = tuple(raw_text_fields)

    def searchable_texts(self, transaction: Transaction) -> list[str]:
        texts = [transaction.description or ""]
        for field_name in self.raw_text_fields:
            value = transaction.raw.get(field_name)
            if value:
                texts.append(str(value))
        return [text.lower() for text in texts]

    def classify(self, transaction: Transaction) -> str:
        """Return the source name for one deposit."""
        texts = self.searchable_texts(transaction)
        # sorted() is stable, so equal-length patterns keep table order
        for pattern, source_name in self.patterns:
            if any(pattern in text for text in texts):
                return source_name
        return self.other_source_name

    def summarize(
        self,
        deposits: Iterable[Transaction],
        warnings: Sequence[DataQualityWarning] = (),
    ) -> IncomeSourceReport:
        """Group deposits into (month, source) totals.

        Args:
            deposits: Localized, dated, positive external asset transactions
            warnings: Data quality warnings to attach

        Returns:
            IncomeSourceReport sorted by month then source name
        """
        totals: dict[tuple, Decimal] = defaultdict(Decimal)
        counts: dict[tuple, int] = defaultdict(int)
        attributions: dict[int, str] = {}

        for txn in deposits:
            if txn.occurred_at is None or txn.amount <= 0:
                continue
            source_name = self.classify(txn)
            if source_name == self.internal_source_name:
                continue
            attributions[txn.id] = source_name
            period_start = txn.occurred_at.date().replace(day=1)
            totals[(period_start, source_name)] += txn.amount
            counts[(period_start, source_name)] += 1

        rows = tuple(
            IncomeSourceRow(
                period_start=period_start,
                period_end=month_end(period_start),
                source_name=source_name,
                total_amount=totals[(period_start, source_name)],
                transaction_count=counts[(period_start, source_name)],
            )
            for period_start, source_name in sorted(totals)
        )
        return IncomeSourceReport(
            rows=rows, attributions=attributions, warnings=tuple(warnings)
        )
