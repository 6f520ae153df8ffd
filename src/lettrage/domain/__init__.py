"""Domain layer for lettrage application."""

from lettrage.domain.csv_import import CSVImportService
from lettrage.domain.matching import find_automatic_matches
from lettrage.domain.stats import calculate_stats
from lettrage.domain.session import LettrageSession
from lettrage.domain.projects import CsvProjectService
from lettrage.domain.events import EventBus

__all__ = [
    "CSVImportService",
    "find_automatic_matches",
    "calculate_stats",
    "LettrageSession",
    "CsvProjectService",
    "EventBus",
]
