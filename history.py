"""
History of location-based lookups.

Entries are only ever inserted or deleted. A city gets at most one entry per
dedup window, and every successful insert is followed by a sweep that drops
entries older than the retention window.
"""
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from errors import StorageError
from forecast import WeatherRecord
from models import HistoryEntry

logger = logging.getLogger(__name__)

DEDUP_WINDOW = timedelta(seconds=3600)
RETENTION = timedelta(days=7)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class HistoryStore:
    def __init__(self, session, dedup_window: timedelta = DEDUP_WINDOW, retention: timedelta = RETENTION, clock=utcnow):
        self.session = session
        self.dedup_window = dedup_window
        self.retention = retention
        self.clock = clock

    def record_lookup(self, city_name: str, temp_celsius: float, icon_code: str | None = None, description: str | None = None):
        """
        Save a lookup unless the same city was saved less than `dedup_window` ago.
        Returns the new entry, or None when the save was skipped.
        """
        now = self.clock()
        try:
            latest = self.session.scalars(
                select(HistoryEntry)
                .where(HistoryEntry.city_name == city_name)
                .order_by(HistoryEntry.saved_at.desc())
                .limit(1)
            ).first()
            if latest is not None and now - latest.saved_at < self.dedup_window:
                logger.info("Skipping history save for %s, last saved at %s", city_name, latest.saved_at)
                return None

            entry = HistoryEntry(
                city_name=city_name,
                temp_celsius=temp_celsius,
                icon_code=icon_code,
                description=description,
                saved_at=now,
            )
            self.session.add(entry)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"Could not save history entry for {city_name}: {e}") from e

        # The insert is already committed; a failed sweep leaves it in place.
        try:
            self.sweep_expired()
        except StorageError:
            logger.exception("History sweep failed after saving %s", city_name)
        return entry

    def record_weather(self, record: WeatherRecord):
        return self.record_lookup(
            city_name=record.location_name,
            temp_celsius=record.temp_celsius,
            icon_code=record.icon_code,
            description=record.description or None,
        )

    # Bulk delete of everything strictly older than the retention window.
    def sweep_expired(self) -> int:
        cutoff = self.clock() - self.retention
        try:
            result = self.session.execute(
                delete(HistoryEntry)
                .where(HistoryEntry.saved_at < cutoff)
                .execution_options(synchronize_session=False)
            )
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"Could not sweep history: {e}") from e
        if result.rowcount:
            logger.info("Swept %d history entries older than %s", result.rowcount, cutoff)
        return result.rowcount

    def list_all(self) -> list[HistoryEntry]:
        try:
            return list(self.session.scalars(select(HistoryEntry).order_by(HistoryEntry.saved_at.desc())))
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"Could not load history: {e}") from e

    def delete(self, entry_id: int) -> bool:
        try:
            entry = self.session.get(HistoryEntry, entry_id)
            if entry is None:
                return False
            self.session.delete(entry)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"Could not delete history entry {entry_id}: {e}") from e
        return True
