from typing import Optional, Any
from dataclasses import dataclass
from enum import Enum

from pydantic import ValidationError

from .models import EngagementMetrics, FrameSample

class PipelineStage(Enum):
    VALIDATE_SAMPLE = 1
    CLASSIFY_SAMPLE = 2
    RECORD_METRICS = 3
    EVALUATE_NUDGE = 4

@dataclass
class PipelineResult:
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    should_skip_tick: bool = False

    @staticmethod
    def success_result(data: Any = None) -> 'PipelineResult':
        return PipelineResult(success=True, data=data)

    @staticmethod
    def error_result(error: str) -> 'PipelineResult':
        return PipelineResult(success=False, error=error)

    @staticmethod
    def skip_tick_result(reason: str) -> 'PipelineResult':
        return PipelineResult(
            success=True,
            should_skip_tick=True,
            data={"skip_reason": reason}
        )

class PipelineContext:
    def __init__(self, sample: Any, timestamp: float):
        self.sample = sample
        self.timestamp = timestamp

        self.metrics: Optional[EngagementMetrics] = None
        self.recorded: bool = False
        self.nudge_message: Optional[str] = None

def validate_sample(context: PipelineContext) -> PipelineResult:
    # Unusable input degrades to an absent face rather than failing the tick.
    if context.sample is None:
        context.sample = FrameSample.absent()
        return PipelineResult.success_result({"degraded": "missing_sample"})

    if isinstance(context.sample, FrameSample):
        return PipelineResult.success_result()

    try:
        context.sample = FrameSample.model_validate(context.sample)
        return PipelineResult.success_result()
    except ValidationError as e:
        context.sample = FrameSample.absent()
        return PipelineResult.success_result({"degraded": f"invalid_sample: {e.error_count()} errors"})

def classify_sample(context: PipelineContext, classifier) -> PipelineResult:
    if context.sample is None:
        return PipelineResult.error_result("Sample not available")

    context.metrics = classifier.process_frame(context.sample, context.timestamp)

    return PipelineResult.success_result({
        "state": context.metrics.state.value,
        "score": context.metrics.score
    })

def record_metrics(context: PipelineContext, aggregator) -> PipelineResult:
    if context.metrics is None:
        return PipelineResult.error_result("Metrics not available")

    context.recorded = aggregator.add_metrics(context.metrics)
    if not context.recorded:
        return PipelineResult.skip_tick_result("session_paused")

    return PipelineResult.success_result({"duration": aggregator.current_session.duration})

def evaluate_nudge(context: PipelineContext, advisor, aggregator) -> PipelineResult:
    if context.metrics is None:
        return PipelineResult.error_result("Metrics not available")

    context.nudge_message = advisor.evaluate(context.metrics, aggregator, context.timestamp)

    return PipelineResult.success_result({"nudge": context.nudge_message})
