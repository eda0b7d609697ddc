"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class ConfigurationError(DomainError):
    """Configuration rejected at load time (settings, overrides, alias table)."""


class InvariantViolationError(DomainError):
    """A definitional report identity failed; indicates an engine bug, not bad input."""


def channel_not_found(channel_id: int) -> str:
    """Return message for missing channel."""
    return f"Channel {channel_id} not found"


def channel_name_not_found(name: str) -> str:
    """Return message for missing channel by name."""
    return f"Channel '{name}' not found"


def duplicate_channel_name(name: str) -> str:
    """Return message for duplicate channel name."""
    return f"Channel with name '{name}' already exists"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def duplicate_record(record_id: str, channel_id: int) -> str:
    """Return message for duplicate transaction record ID."""
    return f"Transaction with record_id '{record_id}' already exists for channel {channel_id}"


def alias_not_found(alias_id: int) -> str:
    """Return message for missing income alias."""
    return f"Income alias {alias_id} not found"


def unknown_choice(kind: str, value: object, choices: list[str]) -> str:
    """Return message for a value outside a fixed set of choices."""
    return f"Unknown {kind} '{value}'. Expected one of: {', '.join(choices)}"
