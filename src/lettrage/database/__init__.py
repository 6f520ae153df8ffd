"""Database layer for lettrage application."""

from lettrage.database.base import Database, InvoiceProvider, PersistenceGateway
from lettrage.database.factories import create_sqlite_database

__all__ = ["Database", "InvoiceProvider", "PersistenceGateway", "create_sqlite_database"]
