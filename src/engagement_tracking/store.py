import csv
import io
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .errors import SessionNotFoundError
from .models import SessionRecord

logger = logging.getLogger(__name__)

CSV_FIELDS = ["tSec", "state", "score"]

def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive datetimes are read as UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)

class InMemorySessionStore:
    """
    Reference persistence collaborator.

    Aggregates are keyed by (user id, session id); writing the same session
    twice replaces the earlier copy. Malformed payloads raise
    ``pydantic.ValidationError`` before anything is stored.
    """

    def __init__(self):
        self._records: Dict[Tuple[str, str], SessionRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def upsert(self, user_id: str, payload: Union[SessionRecord, Mapping[str, Any]]) -> SessionRecord:
        if isinstance(payload, SessionRecord):
            data = payload.model_dump()
        else:
            data = dict(payload)
        data["user_id"] = user_id

        record = SessionRecord.model_validate(data)

        key = (user_id, record.session_id)
        replaced = key in self._records
        self._records[key] = record
        logger.info(
            "%s session %s for user %s",
            "Updated" if replaced else "Stored",
            record.session_id,
            user_id
        )
        return record

    def get(self, user_id: str, session_id: str) -> SessionRecord:
        try:
            return self._records[(user_id, session_id)]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def list_sessions(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 50
    ) -> List[SessionRecord]:

        start, end = _as_utc(start), _as_utc(end)
        sessions = [
            record for (owner, _), record in self._records.items()
            if owner == user_id
            and (start is None or _as_utc(record.started_at) >= start)
            and (end is None or _as_utc(record.started_at) <= end)
        ]
        sessions.sort(key=lambda record: _as_utc(record.started_at), reverse=True)
        return sessions[:limit]

    def delete(self, user_id: str, session_id: str) -> None:
        if (user_id, session_id) not in self._records:
            raise SessionNotFoundError(session_id)
        del self._records[(user_id, session_id)]

    def export_csv(self, user_id: str, session_id: str) -> str:
        record = self.get(user_id, session_id)

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS, lineterminator="\n")
        writer.writeheader()
        for point in record.time_series:
            writer.writerow({
                "tSec": point.offset_seconds,
                "state": point.state.value,
                "score": point.score,
            })
        return buffer.getvalue()
