"""
Report storage layer.

``ReportStore`` is the single owner of report and podcast records. Callers
only ever receive copies and address records by id; every mutation is a
named-field replacement applied atomically by the store.
"""

import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from sentinel.schemas.podcast import PodcastData
from sentinel.schemas.report import ReportBase
from sentinel.utils.errors import ReportNotFoundError
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=ReportBase)


def generate_report_id(prefix: str = "report") -> str:
    """Return a new opaque, unique report identifier."""
    return f"{prefix}-{uuid.uuid4().hex}"


class ReportStore(ABC, Generic[RecordT]):
    """
    Abstract CRUD + merge contract for one kind of report.

    Implementations must apply each ``update_fields`` / ``merge_podcast`` call
    as a single atomic record update so readers never observe partial writes.
    """

    def __init__(self, record_type: Type[RecordT]) -> None:
        self.record_type = record_type

    @abstractmethod
    def create(self, record: RecordT) -> RecordT:
        """Persist a new record. Raises ValueError if the id is taken."""

    @abstractmethod
    def get_by_id(self, report_id: str) -> Optional[RecordT]:
        """Return a copy of the record, or None."""

    @abstractmethod
    def list(self) -> List[RecordT]:
        """Return all records, most recent ``created_at`` first."""

    @abstractmethod
    def update_fields(self, report_id: str, partial: Dict[str, Any]) -> RecordT:
        """Replace the named fields. Raises ReportNotFoundError."""

    @abstractmethod
    def merge_podcast(self, report_id: str, partial: Dict[str, Any]) -> RecordT:
        """Merge fields into the podcast sub-record. Raises ReportNotFoundError."""

    @abstractmethod
    def delete(self, report_id: str) -> bool:
        """Delete a record and everything it owns; False if it did not exist."""

    @abstractmethod
    def clear(self) -> int:
        """Delete every record, returning how many were removed."""

    def _merge(self, current: RecordT, partial: Dict[str, Any]) -> RecordT:
        unknown = set(partial) - set(self.record_type.model_fields)
        if unknown:
            raise ValueError(f"Unknown {self.record_type.__name__} fields: {sorted(unknown)}")
        if "id" in partial and partial["id"] != current.id:
            raise ValueError("Report ids are immutable")

        data = current.model_dump()
        data.update(partial)
        data["updated_at"] = datetime.utcnow()
        return self.record_type.model_validate(data)

    def _merge_podcast(self, current: RecordT, partial: Dict[str, Any]) -> RecordT:
        if "podcast" not in self.record_type.model_fields:
            raise ValueError(f"{self.record_type.__name__} has no podcast sub-record")

        podcast = getattr(current, "podcast", None) or PodcastData()
        podcast_data = podcast.model_dump()
        podcast_data.update(partial)
        podcast_data["updated_at"] = datetime.utcnow()
        return self._merge(current, {"podcast": PodcastData.model_validate(podcast_data)})


class InMemoryReportStore(ReportStore[RecordT]):
    """Process-wide dictionary store guarded by a re-entrant lock."""

    def __init__(self, record_type: Type[RecordT]) -> None:
        super().__init__(record_type)
        self._records: Dict[str, RecordT] = {}
        self._lock = threading.RLock()

    def create(self, record: RecordT) -> RecordT:
        with self._lock:
            if record.id in self._records:
                raise ValueError(f"Report {record.id} already exists")
            self._records[record.id] = record.model_copy(deep=True)

        logger.info("Report created", report_id=record.id, store="memory",
                    record_type=self.record_type.__name__)
        return record.model_copy(deep=True)

    def get_by_id(self, report_id: str) -> Optional[RecordT]:
        with self._lock:
            record = self._records.get(report_id)
            return record.model_copy(deep=True) if record else None

    def list(self) -> List[RecordT]:
        with self._lock:
            records = [r.model_copy(deep=True) for r in self._records.values()]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def update_fields(self, report_id: str, partial: Dict[str, Any]) -> RecordT:
        with self._lock:
            current = self._get_or_raise(report_id)
            updated = self._merge(current, partial)
            self._records[report_id] = updated

        logger.debug("Report fields updated", report_id=report_id, fields=sorted(partial))
        return updated.model_copy(deep=True)

    def merge_podcast(self, report_id: str, partial: Dict[str, Any]) -> RecordT:
        with self._lock:
            current = self._get_or_raise(report_id)
            updated = self._merge_podcast(current, partial)
            self._records[report_id] = updated

        logger.debug("Podcast record merged", report_id=report_id, fields=sorted(partial))
        return updated.model_copy(deep=True)

    def delete(self, report_id: str) -> bool:
        with self._lock:
            return self._records.pop(report_id, None) is not None

    def clear(self) -> int:
        with self._lock:
            count = len(self._records)
            self._records.clear()
        return count

    def _get_or_raise(self, report_id: str) -> RecordT:
        record = self._records.get(report_id)
        if record is None:
            raise ReportNotFoundError(f"Report {report_id} not found")
        return record


class SqlReportStore(ReportStore[RecordT]):
    """
    SQLAlchemy-backed store.

    Structured payloads live in JSON columns; each mutation runs in its own
    transaction with the row locked where the dialect supports it.
    """

    def __init__(self, record_type: Type[RecordT], orm_model: Any,
                 session_factory: Callable[[], Session]) -> None:
        super().__init__(record_type)
        self.orm_model = orm_model
        self.session_factory = session_factory

    def create(self, record: RecordT) -> RecordT:
        with self.session_factory() as session:
            if session.get(self.orm_model, record.id) is not None:
                raise ValueError(f"Report {record.id} already exists")
            row = self.orm_model()
            self._apply(row, record)
            session.add(row)
            self._commit(session, record.id)

        logger.info("Report created", report_id=record.id, store="database",
                    record_type=self.record_type.__name__)
        return record

    def get_by_id(self, report_id: str) -> Optional[RecordT]:
        with self.session_factory() as session:
            row = session.get(self.orm_model, report_id)
            return self._to_record(row) if row is not None else None

    def list(self) -> List[RecordT]:
        with self.session_factory() as session:
            rows = (session.query(self.orm_model)
                    .order_by(self.orm_model.created_at.desc())
                    .all())
            return [self._to_record(row) for row in rows]

    def update_fields(self, report_id: str, partial: Dict[str, Any]) -> RecordT:
        return self._update(report_id, lambda current: self._merge(current, partial))

    def merge_podcast(self, report_id: str, partial: Dict[str, Any]) -> RecordT:
        return self._update(report_id, lambda current: self._merge_podcast(current, partial))

    def delete(self, report_id: str) -> bool:
        with self.session_factory() as session:
            row = session.get(self.orm_model, report_id)
            if row is None:
                return False
            session.delete(row)
            self._commit(session, report_id)
            return True

    def clear(self) -> int:
        with self.session_factory() as session:
            count = session.query(self.orm_model).delete()
            self._commit(session, None)
            return count

    def _update(self, report_id: str, merge: Callable[[RecordT], RecordT]) -> RecordT:
        with self.session_factory() as session:
            row = (session.query(self.orm_model)
                   .filter(self.orm_model.id == report_id)
                   .with_for_update()
                   .first())
            if row is None:
                raise ReportNotFoundError(f"Report {report_id} not found")

            updated = merge(self._to_record(row))
            self._apply(row, updated)
            self._commit(session, report_id)
            return updated

    def _commit(self, session: Session, report_id: Optional[str]) -> None:
        try:
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error("Report store commit failed", report_id=report_id, error=str(e))
            raise

    def _to_record(self, row: Any) -> RecordT:
        return self.record_type.model_validate(row, from_attributes=True)

    def _apply(self, row: Any, record: RecordT) -> None:
        python_data = record.model_dump()
        json_data = record.model_dump(mode="json")
        for field in self.record_type.model_fields:
            value = python_data[field]
            # Keep datetimes native; everything else goes in JSON-compatible form
            setattr(row, field, value if isinstance(value, datetime) else json_data[field])
