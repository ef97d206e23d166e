"""Tests for test event models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from boostsec.testrun_stream.models.test_event import TestEvent, TestEventDetail

START = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_preview_event_defaults() -> None:
    """TestEvent defaults describe a preview record."""
    event = TestEvent(name="pkg.test_foo", instance="i-1", start=START)

    assert event.monikers == []
    assert event.pivots == {}
    assert event.parent is None
    assert event.rtype == "TEST"
    assert event.result == "UNSET"
    assert event.stop == ""
    assert event.detail is None
    assert event.is_preview
    assert not event.is_completion


def test_completion_event() -> None:
    """TestEvent accepts a finished record with stop and detail."""
    event = TestEvent(
        name="pkg::TestFoo#test_bar",
        monikers=["slow", "db"],
        pivots={"backend": "sqlite"},
        instance="i-1",
        parent="p-1",
        result="FAILED",
        start=START,
        stop=START + timedelta(seconds=2),
        detail=TestEventDetail(failures=["assert 1 == 2"]),
    )

    assert event.is_completion
    assert event.detail is not None
    assert event.detail.failures == ["assert 1 == 2"]
    assert event.detail.errors == []
    assert event.monikers == ["slow", "db"]


def test_completion_stop_equal_to_start() -> None:
    """TestEvent allows a zero-duration test."""
    event = TestEvent(
        name="t",
        instance="i",
        result="PASSED",
        start=START,
        stop=START,
        detail=TestEventDetail(),
    )
    assert event.stop == START


@pytest.mark.parametrize("result", ["PASSED", "FAILED", "ERRORED", "SKIPPED"])
def test_completion_requires_detail(result: str) -> None:
    """Finished records must carry detail."""
    with pytest.raises(ValidationError, match="requires detail"):
        TestEvent(
            name="t",
            instance="i",
            result=result,  # type: ignore[arg-type]
            start=START,
            stop=START,
        )


def test_completion_requires_stop() -> None:
    """Finished records must carry a stop time."""
    with pytest.raises(ValidationError, match="requires a stop time"):
        TestEvent(
            name="t",
            instance="i",
            result="PASSED",
            start=START,
            detail=TestEventDetail(),
        )


def test_preview_rejects_detail() -> None:
    """Preview records must not carry detail."""
    with pytest.raises(ValidationError, match="must not carry detail"):
        TestEvent(name="t", instance="i", start=START, detail=TestEventDetail())


def test_preview_rejects_stop() -> None:
    """Preview records must have an empty stop."""
    with pytest.raises(ValidationError, match="empty stop"):
        TestEvent(name="t", instance="i", start=START, stop=START)


def test_stop_before_start_rejected() -> None:
    """stop earlier than start is invalid."""
    with pytest.raises(ValidationError, match="earlier than start"):
        TestEvent(
            name="t",
            instance="i",
            result="PASSED",
            start=START,
            stop=START - timedelta(microseconds=1),
            detail=TestEventDetail(),
        )


def test_invalid_result() -> None:
    """TestEvent rejects unknown results."""
    with pytest.raises(ValidationError) as exc_info:
        TestEvent(
            name="t",
            instance="i",
            result="TIMEOUT",  # type: ignore[arg-type]
            start=START,
            stop=START,
            detail=TestEventDetail(),
        )
    assert "result" in str(exc_info.value)


def test_naive_start_rejected() -> None:
    """Timestamps must carry a timezone."""
    with pytest.raises(ValidationError):
        TestEvent(name="t", instance="i", start=datetime(2026, 3, 1, 12, 0, 0))


def test_missing_required_fields() -> None:
    """TestEvent requires name, instance and start."""
    with pytest.raises(ValidationError) as exc_info:
        TestEvent()  # type: ignore[call-arg]
    errors = str(exc_info.value)
    assert "name" in errors
    assert "instance" in errors
    assert "start" in errors
