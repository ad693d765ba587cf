"""JSON file storage for lists of records."""

from __future__ import annotations

import json
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Iterable, List, Optional

from bookings.errors import PersistenceUnavailable
from tracking import t


class RecordRepository:
    """Read/write a list of dict records to a JSON backing file."""

    def __init__(self, file_path: str, *, logger: Any, label: str = "records") -> None:
        t('bookings.persistence.repository.RecordRepository.__init__')
        self._path = Path(file_path)
        self._logger = logger
        self._label = label

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> List[dict]:
        """Load records from disk; a missing file yields an empty list.

        An unreadable or corrupt file raises ``PersistenceUnavailable`` so the
        next save cannot silently overwrite it.
        """

        t('bookings.persistence.repository.RecordRepository.load')
        if not self._path.exists():
            self._logger.debug(
                "%s file %s does not exist; starting empty",
                self._label.capitalize(),
                self._path,
            )
            return []

        try:
            with self._path.open('r', encoding='utf-8') as handle:
                payload = json.load(handle)
        except (OSError, ValueError) as exc:
            self._logger.error("Failed to load %s from %s: %s", self._label, self._path, exc)
            raise PersistenceUnavailable(f"Cannot read {self._path}: {exc}") from exc

        if not isinstance(payload, list):
            self._logger.error(
                "Invalid %s format in %s; expected list, received %s",
                self._label,
                self._path,
                type(payload).__name__,
            )
            raise PersistenceUnavailable(f"Unexpected content in {self._path}")

        records = [item for item in payload if isinstance(item, dict)]
        skipped = len(payload) - len(records)
        if skipped:
            self._logger.warning(
                "Ignored %s non-object entries in %s", skipped, self._path,
            )
        self._logger.debug("Loaded %s %s from %s", len(records), self._label, self._path)
        return records

    def save(self, records: Iterable[dict]) -> None:
        """Persist records atomically, ensuring parent directories exist."""

        t('bookings.persistence.repository.RecordRepository.save')
        tmp_path: Optional[Path] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                'w', encoding='utf-8', dir=self._path.parent, delete=False, suffix='.tmp'
            ) as handle:
                tmp_path = Path(handle.name)
                json.dump(list(records), handle, indent=2, ensure_ascii=False)
            tmp_path.replace(self._path)
            self._logger.debug("%s saved to %s", self._label.capitalize(), self._path)
        except OSError as exc:
            self._logger.error("Failed to save %s to %s: %s", self._label, self._path, exc)
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise PersistenceUnavailable(f"Cannot write {self._path}: {exc}") from exc
