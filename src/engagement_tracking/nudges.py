import logging
from typing import Dict, Optional

from .models import EngagementMetrics, EngagementState
from .session_manager import SessionAggregator

logger = logging.getLogger(__name__)

NUDGE_MESSAGES: Dict[EngagementState, str] = {
    EngagementState.SLEEPY: "Looking tired. Take a short break?",
    EngagementState.AWAY: "Welcome back! Let's focus.",
    EngagementState.DISTRACTED: "Gentle reminder: stay on task.",
}

class NudgeAdvisor:
    """
    Decides whether a tick warrants a nudge. The aggregator only enforces the
    cooldown; the state checks live here.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._last_state: Optional[EngagementState] = None

    def needs_nudge(self, metrics: EngagementMetrics) -> bool:
        return metrics.state in NUDGE_MESSAGES and metrics.state != self._last_state

    def evaluate(
        self,
        metrics: EngagementMetrics,
        aggregator: SessionAggregator,
        now: Optional[float] = None
    ) -> Optional[str]:

        if not self.enabled:
            return None

        # The last-seen state only advances on ticks outside the cooldown.
        if not aggregator.should_show_nudge(now):
            return None

        message = None
        if self.needs_nudge(metrics):
            aggregator.record_nudge(now)
            message = NUDGE_MESSAGES[metrics.state]
            logger.info("Nudge for state %s: %s", metrics.state.value, message)

        self._last_state = metrics.state
        return message

    def reset(self) -> None:
        self._last_state = None
