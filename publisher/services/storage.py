"""Local cache of published digest records, one JSON file per date."""

from __future__ import annotations

import logging
from pathlib import Path

from publisher.errors import ValidationError
from publisher.schemas.digest import PublishedDigest
from publisher.time_utils import is_valid_date_string

logger = logging.getLogger(__name__)


class LocalDigestCache:
    """Filesystem store at ``<data_dir>/<date>.json``."""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)

    def _path(self, date: str) -> Path:
        if not is_valid_date_string(date):
            raise ValueError(f"Invalid date: {date!r}")
        return self.data_dir / f"{date}.json"

    def has(self, date: str) -> bool:
        return self._path(date).is_file()

    def load(self, date: str) -> PublishedDigest | None:
        """Load a cached record.

        Raises:
            ValidationError: The cached file is not a valid digest record.
        """
        path = self._path(date)
        if not path.is_file():
            return None
        try:
            return PublishedDigest.from_json_bytes(path.read_bytes())
        except ValueError as exc:
            raise ValidationError(f"Corrupt cached digest {path}: {exc}") from exc

    def save(self, record: PublishedDigest) -> Path:
        path = self._path(record.date)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(record.to_json_bytes())
        logger.debug("Cached record %s at %s", record.date, path)
        return path

    def list_dates(self) -> list[str]:
        """Return cached dates, newest first."""
        if not self.data_dir.is_dir():
            return []
        dates = [
            p.stem
            for p in self.data_dir.glob("*.json")
            if is_valid_date_string(p.stem)
        ]
        return sorted(dates, reverse=True)

    def latest(self) -> PublishedDigest | None:
        dates = self.list_dates()
        return self.load(dates[0]) if dates else None
