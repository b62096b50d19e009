import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from .aggregation import build_session_record, engagement_stats
from .errors import SessionLifecycleError
from .models import EngagementMetrics, SessionRecord

logger = logging.getLogger(__name__)

NUDGE_COOLDOWN_MS: float = 60_000

def wall_clock_ms() -> float:
    return time.time() * 1000.0

@dataclass
class Session:
    user_id: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ended_at: Optional[datetime] = None

    is_active: bool = True
    is_paused: bool = False

    time_series: List[EngagementMetrics] = field(default_factory=list)

    last_nudge_time: Optional[float] = None
    nudge_count: int = 0

    @property
    def duration(self) -> int:
        # One sample per tick, one tick per second.
        return len(self.time_series)

    def can_record(self) -> bool:
        return self.is_active and not self.is_paused

class SessionAggregator:

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock: Callable[[], float] = clock or wall_clock_ms
        self._session: Optional[Session] = None
        self._record: Optional[SessionRecord] = None

    @property
    def current_session(self) -> Optional[Session]:
        return self._session

    @property
    def last_record(self) -> Optional[SessionRecord]:
        return self._record

    @property
    def has_active_session(self) -> bool:
        return self._session is not None and self._session.is_active

    def _require_active(self, operation: str) -> Session:
        if not self.has_active_session:
            raise SessionLifecycleError(f"Cannot {operation}: no active session")
        return self._session

    def start(self, user_id: str) -> Session:
        if self.has_active_session:
            raise SessionLifecycleError(
                f"Session {self._session.id} is already active for user {self._session.user_id}"
            )

        self._session = Session(user_id=user_id)
        self._record = None
        logger.info("Session %s started for user %s", self._session.id, user_id)
        return self._session

    def pause(self) -> None:
        session = self._require_active("pause")
        session.is_paused = True
        logger.info("Session %s paused at %d ticks", session.id, session.duration)

    def resume(self) -> None:
        session = self._require_active("resume")
        session.is_paused = False
        logger.info("Session %s resumed", session.id)

    def add_metrics(self, metrics: EngagementMetrics) -> bool:
        session = self._require_active("add metrics")
        if not session.can_record():
            return False

        session.time_series.append(metrics)
        return True

    def record_nudge(self, now: Optional[float] = None) -> None:
        session = self._require_active("record nudge")
        session.last_nudge_time = self._clock() if now is None else now
        session.nudge_count += 1

    def should_show_nudge(self, now: Optional[float] = None) -> bool:
        session = self._session
        if session is None or session.last_nudge_time is None:
            return True

        now = self._clock() if now is None else now
        return (now - session.last_nudge_time) >= NUDGE_COOLDOWN_MS

    def get_engagement_stats(self) -> Dict[str, int]:
        series = self._session.time_series if self._session is not None else []
        return engagement_stats(series)

    def stop(self) -> SessionRecord:
        session = self._require_active("stop")

        session.ended_at = datetime.now(timezone.utc)
        try:
            record = build_session_record(session)
        except ValueError:
            session.ended_at = None
            raise

        session.is_active = False
        session.is_paused = False
        self._record = record
        logger.info(
            "Session %s stopped: %ds, %d episodes, avg score %d",
            session.id,
            self._record.duration_sec,
            self._record.distracted_episodes,
            self._record.avg_engagement_score
        )
        return self._record

    def rebuild_record(self) -> SessionRecord:
        """Recompute the record of the last stopped session from its retained series."""
        if self._session is None or self._session.is_active:
            raise SessionLifecycleError("Cannot rebuild record: no stopped session")
        return build_session_record(self._session)
