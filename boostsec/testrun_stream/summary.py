"""Aggregate the outcomes recorded in a result stream."""

from collections.abc import Iterable

from boostsec.testrun_stream.models.run_summary import RunSummary
from boostsec.testrun_stream.models.test_event import TestEvent


def summarize_events(events: Iterable[TestEvent]) -> RunSummary:
    """Pair preview and completion records and count outcomes.

    Args:
        events: Records in write order

    Returns:
        Outcome counts; tests whose completion never arrived are listed as
        incomplete, completions without a preceding preview as unmatched

    """
    started: dict[str, TestEvent] = {}
    finished: dict[str, TestEvent] = {}
    unmatched: list[str] = []

    for event in events:
        if event.is_preview:
            started[event.instance] = event
        elif event.instance in started and event.instance not in finished:
            finished[event.instance] = event
        else:
            unmatched.append(event.instance)

    outcomes = [event.result for event in finished.values()]
    return RunSummary(
        total=len(started),
        passed=outcomes.count("PASSED"),
        failed=outcomes.count("FAILED"),
        errored=outcomes.count("ERRORED"),
        skipped=outcomes.count("SKIPPED"),
        incomplete=[
            event.name
            for instance, event in started.items()
            if instance not in finished
        ],
        unmatched=unmatched,
    )
