import logging
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .classifier import EngagementClassifier
from .config import EngagementConfig, TrackerSettings, build_settings
from .errors import SessionLifecycleError
from .models import SessionRecord, TickOutput
from .nudges import NudgeAdvisor
from .session_manager import Session, SessionAggregator
from .pipeline import (
    PipelineContext,
    PipelineStage,
    classify_sample,
    evaluate_nudge,
    record_metrics,
    validate_sample
)

logger = logging.getLogger(__name__)

TREND_WINDOW_SECONDS = 10

class EngagementTracker:
    """
    One user's classifier, session aggregator and nudge advisor, wired into
    the per-tick pipeline. Not shared across users or concurrent sessions.
    """

    def __init__(
        self,
        config: Optional[Union[EngagementConfig, Mapping[str, Any]]] = None,
        settings: Optional[Union[TrackerSettings, Mapping[str, Any]]] = None,
        clock: Optional[Callable[[], float]] = None
    ):

        self.settings = build_settings(settings)

        self.classifier = EngagementClassifier(config)

        self.aggregator = SessionAggregator(clock=clock)

        self.nudge_advisor = NudgeAdvisor(enabled=self.settings.notifications_enabled)

    @property
    def session(self) -> Optional[Session]:
        return self.aggregator.current_session

    def start_session(self, user_id: str) -> Session:
        session = self.aggregator.start(user_id)
        self.classifier.reset()
        self.nudge_advisor.reset()
        return session

    def pause_session(self) -> None:
        self.aggregator.pause()

    def resume_session(self) -> None:
        self.aggregator.resume()

    def stop_session(self) -> SessionRecord:
        record = self.aggregator.stop()
        self.classifier.reset()
        self.nudge_advisor.reset()
        return record

    def process_sample(self, sample: Any, timestamp: float) -> Dict[str, Any]:

        session = self.aggregator.current_session
        if session is None or not session.is_active:
            raise SessionLifecycleError("Cannot process sample: no active session")

        if session.is_paused:
            return self._generate_skipped_output("session_paused")

        context = PipelineContext(sample, timestamp)

        result = validate_sample(context)
        if result.data and "degraded" in result.data:
            logger.warning("Sample degraded to absent: %s", result.data["degraded"])

        result = classify_sample(context, self.classifier)
        if not result.success:
            logger.warning("Pipeline stage %s failed: %s", PipelineStage.CLASSIFY_SAMPLE.name, result.error)
            return self._generate_skipped_output(result.error)

        result = record_metrics(context, self.aggregator)
        if result.should_skip_tick:
            return self._generate_skipped_output(result.data.get("skip_reason", "unknown"))

        evaluate_nudge(context, self.nudge_advisor, self.aggregator)

        return self._generate_tick_output(context)

    def _generate_tick_output(self, context: PipelineContext) -> Dict[str, Any]:
        output = TickOutput(
            session_status="active",
            metrics=context.metrics,
            average_score=round(self.classifier.get_average_score(TREND_WINDOW_SECONDS), 2),
            trend=self.classifier.get_trend_direction(TREND_WINDOW_SECONDS),
            nudge_message=context.nudge_message
        )
        return output.model_dump(mode="json")

    def _generate_skipped_output(self, reason: str) -> Dict[str, Any]:
        output = TickOutput(session_status="paused", skipped_reason=reason)
        return output.model_dump(mode="json")

    def get_session_summary(self) -> Dict[str, Any]:
        session = self.aggregator.current_session
        if session is None:
            return {"error": "No session"}

        return {
            "session_id": session.id,
            "user_id": session.user_id,
            "duration_seconds": session.duration,
            "is_active": session.is_active,
            "is_paused": session.is_paused,
            "nudge_count": session.nudge_count,
            "engagement_stats": self.aggregator.get_engagement_stats(),
            "average_score": self.classifier.get_average_score(TREND_WINDOW_SECONDS),
            "trend": self.classifier.get_trend_direction(TREND_WINDOW_SECONDS).value
        }
