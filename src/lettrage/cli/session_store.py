"""Persist the working session between CLI invocations."""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Optional

from lettrage.domain.entities import ColumnMapping, Period
from lettrage.domain.errors import ValidationError
from lettrage.domain.session import LettrageSession
from lettrage.database.mappers import column_mapping_from_json, column_mapping_to_json

logger = logging.getLogger(__name__)


class SessionStore:
    """JSON file holding the session state, its period and the imported CSV.

    The state is the same blob saved into projects.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.csv_source: Optional[dict[str, Any]] = None

    def load(self) -> LettrageSession:
        """Load the stored session, or a fresh one if nothing is stored.

        Raises:
            ValidationError: If the session file is unreadable
        """
        if not self.path.exists():
            return LettrageSession()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            period = data.get("period")
            session = LettrageSession(
                period=Period(
                    date.fromisoformat(period["startDate"]),
                    date.fromisoformat(period["endDate"]),
                )
                if period
                else None
            )
        except (ValueError, KeyError, TypeError) as e:
            raise ValidationError(f"Session file {self.path} is corrupt; run 'lettrage reset'") from e

        session.restore(data.get("state"))
        self.csv_source = data.get("csv")
        return session

    def save(self, session: LettrageSession) -> None:
        period = session.selected_period
        data = {
            "period": {
                "startDate": period.start_date.isoformat(),
                "endDate": period.end_date.isoformat(),
            },
            "state": session.to_dict(),
            "csv": self.csv_source,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        logger.debug("Session saved to %s", self.path)

    def set_csv_source(
        self, file_name: str, csv_data: str, headers: list[str], mapping: ColumnMapping
    ) -> None:
        self.csv_source = {
            "fileName": file_name,
            "data": csv_data,
            "headers": list(headers),
            "mapping": column_mapping_to_json(mapping),
        }

    def csv_mapping(self) -> Optional[ColumnMapping]:
        if not self.csv_source:
            return None
        return column_mapping_from_json(self.csv_source["mapping"])

    def clear(self) -> None:
        self.csv_source = None
        if self.path.exists():
            self.path.unlink()
