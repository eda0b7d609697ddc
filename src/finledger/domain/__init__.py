"""Domain layer for finledger.

Entities and errors are importable from here; services and engine components
live in their own modules so the database layer can import entities without
pulling in the services that depend on it.
"""

from finledger.domain import entities, errors

__all__ = ["entities", "errors"]
