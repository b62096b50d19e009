import asyncio
import json
import logging

from engagement_tracking.analyzer import EngagementTracker
from engagement_tracking.runner import TickRunner
from engagement_tracking.signal_adapter import (
    CameraFrameSource,
    MediaPipeFaceDetector,
    MediaPipeHandDetector,
    SignalAdapter
)

def print_tick(output):
    metrics = output["metrics"]
    if metrics is None:
        print(f"Status: {output['session_status']} | Skipped: {output['skipped_reason']}")
        return

    print(
        f"State: {metrics['state']:<10} | Score: {metrics['score']:>3} | "
        f"Confidence: {metrics['confidence']:.2f} | Avg: {output['average_score']} | "
        f"Trend: {output['trend']}"
    )
    if output["nudge_message"]:
        print(f"  >> {output['nudge_message']}")

async def run_realtime_test(duration_seconds: int = 60):

    tracker = EngagementTracker(
        config={"look_away_duration": 1.5},
        settings={"notifications_enabled": True}
    )

    source = CameraFrameSource(0)
    face_detector = MediaPipeFaceDetector()
    hand_detector = MediaPipeHandDetector()

    adapter = SignalAdapter(
        source,
        face_detector,
        hand_detector=hand_detector,
        settings=tracker.settings
    )

    print("--- Engagement Tracking Live Test ---")
    print(f"Running for {duration_seconds}s. Press Ctrl+C to stop early.")

    tracker.start_session("live_dev_test")
    runner = TickRunner(tracker, adapter, period=1.0, on_tick=print_tick)

    try:
        await runner.run(max_ticks=duration_seconds)
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        runner.cancel()
        source.release()
        face_detector.close()
        hand_detector.close()

    record = tracker.stop_session()
    print(json.dumps(record.model_dump(mode="json", exclude={"time_series"}), indent=2))

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(run_realtime_test())
