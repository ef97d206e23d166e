"""Data models for test events, recorder configuration, and run summaries."""

from boostsec.testrun_stream.models.recorder_config import (
    DEFAULT_STREAM_NAME,
    RecorderConfig,
)
from boostsec.testrun_stream.models.run_summary import RunSummary
from boostsec.testrun_stream.models.test_event import (
    FINAL_RESULTS,
    EventResult,
    FinalResult,
    TestEvent,
    TestEventDetail,
)

__all__ = [
    "DEFAULT_STREAM_NAME",
    "FINAL_RESULTS",
    "EventResult",
    "FinalResult",
    "RecorderConfig",
    "RunSummary",
    "TestEvent",
    "TestEventDetail",
]
