"""Income alias domain service."""

from finledger.database.base import Database
from finledger.domain.entities import IncomeAlias
from finledger.domain.errors import ConflictError, NotFoundError, ValidationError, alias_not_found
from finledger.domain.income import validate_aliases


class IncomeAliasService:
    """Service for managing the ordered income alias table."""

    def __init__(self, db: Database):
        """Initialize income alias service.

        Args:
            db: Database instance
        """
        self.db = db

    def add_alias(self, source_name: str, pattern: str) -> int:
        """Append an alias at the end of the table.

        Args:
            source_name: Income source the pattern attributes deposits to
            pattern: Case-insensitive substring searched in deposit texts

        Returns:
            Alias ID

        Raises:
            ValidationError: If source name or pattern is blank
            ConflictError: If the pattern is already in the table
        """
        source_name = (source_name or "").strip()
        pattern = (pattern or "").strip()
        if not source_name:
            raise ValidationError("Income source name must not be empty")
        if not pattern:
            raise ValidationError("Income alias pattern must not be empty")

        for alias in self.db.list_income_aliases():
            if alias.pattern.strip().lower() == pattern.lower():
                raise ConflictError(
                    f"Pattern '{pattern}' is already mapped to '{alias.source_name}' (alias {alias.id})"
                )

        return self.db.create_income_alias(source_name=source_name, pattern=pattern)

    def list_aliases(self) -> list[IncomeAlias]:
        """List aliases in table order."""
        return self.db.list_income_aliases()

    def remove_alias(self, alias_id: int) -> None:
        """Remove an alias.

        Raises:
            NotFoundError: If the alias does not exist
        """
        if not any(alias.id == alias_id for alias in self.db.list_income_aliases()):
            raise NotFoundError(alias_not_found(alias_id))
        self.db.delete_income_alias(alias_id)

    def load_aliases(self) -> list[IncomeAlias]:
        """Return the alias table after validating it.

        Raises:
            ConfigurationError: If the table is empty or ambiguous
        """
        aliases = self.db.list_income_aliases()
        validate_aliases(aliases)
        return aliases
