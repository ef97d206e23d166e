"""Append test lifecycle events to a JSOS result stream."""

import logging
import os
import threading
import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from pathlib import Path
from types import TracebackType
from typing import BinaryIO

from pydantic import ValidationError

from boostsec.testrun_stream.codec import RECORD_SEPARATOR, encode_event
from boostsec.testrun_stream.errors import (
    IoError,
    SerializationError,
    UnknownInstanceError,
)
from boostsec.testrun_stream.models.recorder_config import RecorderConfig
from boostsec.testrun_stream.models.test_event import (
    FINAL_RESULTS,
    FinalResult,
    TestEvent,
)
from boostsec.testrun_stream.paths import resolve_stream_path

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    """Current time in the local timezone."""
    return datetime.now().astimezone()


class EventStreamWriter:
    """Append-only writer of test lifecycle events.

    A writer may be shared by threads running tests concurrently. A single
    lock serializes physical appends and guards the mapping of started but
    unfinished instances, so records are never interleaved.
    """

    def __init__(
        self,
        stream: BinaryIO,
        *,
        name: str = "<stream>",
        clock: Clock = utc_now,
        fsync: bool = False,
    ) -> None:
        """Initialize writer over an already opened binary stream."""
        self.name = name
        self._stream = stream
        self._clock = clock
        self._fsync = fsync
        self._lock = threading.Lock()
        self._open: dict[str, TestEvent] = {}
        self._closed = False

    def __enter__(self) -> "EventStreamWriter":
        """Return the writer itself."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close the writer on every exit path."""
        self.close()

    @property
    def closed(self) -> bool:
        """Whether the underlying stream has been released."""
        return self._closed

    @property
    def open_instances(self) -> list[str]:
        """Instance ids started on this writer and not yet finished."""
        with self._lock:
            return list(self._open)

    def record_start(
        self,
        name: str,
        monikers: Sequence[str] = (),
        pivots: Mapping[str, str] | None = None,
        parent: str | None = None,
    ) -> str:
        """Write the preview record of a test that is starting.

        Args:
            name: Fully-qualified test identifier
            monikers: Free-form tags attached to the test
            pivots: Parameterization key/value pairs
            parent: Instance id of the enclosing scope, if any

        Returns:
            Instance id to pass to record_finish

        Raises:
            SerializationError: If a field does not fit the event schema
            IoError: If the stream is closed or cannot be written

        """
        instance_id = str(uuid.uuid4())
        with self._lock:
            self._ensure_open()
            try:
                event = TestEvent(
                    name=name,
                    monikers=monikers,
                    pivots=dict(pivots or {}),
                    instance=instance_id,
                    parent=parent,
                    start=self._clock(),
                )
            except ValidationError as e:
                raise SerializationError(f"Invalid start event for {name}: {e}") from e

            self._append(encode_event(event))
            self._open[instance_id] = event

        logger.debug(f"Started {name} as {instance_id}")
        return instance_id

    def record_finish(
        self,
        instance_id: str,
        result: FinalResult,
        errors: Sequence[str] = (),
        failures: Sequence[str] = (),
        warnings: Sequence[str] = (),
    ) -> None:
        """Write the completion record of a started test.

        Args:
            instance_id: Id returned by record_start
            result: One of PASSED, FAILED, ERRORED, SKIPPED
            errors: Error messages collected while running the test
            failures: Assertion failure messages
            warnings: Warning messages

        Raises:
            ValueError: If result is not a final outcome
            UnknownInstanceError: If the instance is not currently open
            SerializationError: If a field does not fit the event schema
            IoError: If the stream is closed or cannot be written

        """
        if result not in FINAL_RESULTS:
            raise ValueError(
                f"Invalid result: {result}. "
                f"Must be one of: {', '.join(sorted(FINAL_RESULTS))}"
            )

        with self._lock:
            self._ensure_open()
            preview = self._open.get(instance_id)
            if preview is None:
                raise UnknownInstanceError(instance_id)

            # A clock stepping backwards must not produce stop < start
            stop = max(self._clock(), preview.start)
            try:
                event = TestEvent.model_validate(
                    {
                        **preview.model_dump(),
                        "result": result,
                        "stop": stop,
                        "detail": {
                            "errors": errors,
                            "failures": failures,
                            "warnings": warnings,
                        },
                    }
                )
            except ValidationError as e:
                raise SerializationError(
                    f"Invalid finish event for {preview.name}: {e}"
                ) from e

            self._append(encode_event(event))
            del self._open[instance_id]

        logger.debug(f"Finished {event.name} ({instance_id}) as {result}")

    def close(self) -> None:
        """Flush and release the stream.

        Tests started but never finished stay in the stream as preview
        records only.

        Raises:
            IoError: If the final flush fails

        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            orphaned = list(self._open)
            self._open.clear()
            try:
                self._stream.flush()
            except OSError as e:
                raise IoError(f"Failed to flush {self.name}: {e}") from e
            finally:
                self._stream.close()

        if orphaned:
            logger.warning(
                f"Closed {self.name} with {len(orphaned)} unfinished tests: "
                f"{orphaned}"
            )
        logger.info(f"Closed result stream {self.name}")

    def _ensure_open(self) -> None:
        if self._closed:
            raise IoError(f"Result stream {self.name} is closed")

    def _append(self, record: bytes) -> None:
        try:
            self._stream.write(record)
            self._stream.flush()
            if self._fsync:
                os.fsync(self._stream.fileno())
        except OSError as e:
            raise IoError(f"Failed to write to {self.name}: {e}") from e


def _needs_separator(path: Path) -> bool:
    """Check whether an existing stream ends in an unterminated fragment."""
    if not path.exists() or path.stat().st_size == 0:
        return False
    with path.open("rb") as f:
        f.seek(-1, os.SEEK_END)
        return f.read(1) != RECORD_SEPARATOR


def open_stream(
    destination: Path | str, *, utc: bool = True, fsync: bool = False
) -> EventStreamWriter:
    """Open a result stream for appending.

    The returned writer is a context manager that closes the stream when
    the block exits, whatever the reason.

    Args:
        destination: Stream file, or an existing directory in which the
            default stream file is used
        utc: Record UTC timestamps instead of local time
        fsync: fsync the file after every record

    Returns:
        Writer appending to the stream

    Raises:
        IoError: If the stream cannot be created or opened for writing

    """
    path = resolve_stream_path(destination)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        terminate_fragment = _needs_separator(path)
        stream = path.open("ab")
    except OSError as e:
        raise IoError(f"Cannot open result stream {path}: {e}") from e

    writer = EventStreamWriter(
        stream,
        name=str(path),
        clock=utc_now if utc else local_now,
        fsync=fsync,
    )
    if terminate_fragment:
        # Seal a record cut short by a crashed writer so it cannot swallow
        # the next record; readers skip it as malformed.
        logger.warning(f"Result stream {path} ends in a partial record")
        try:
            writer._append(RECORD_SEPARATOR)
        except IoError:
            writer.close()
            raise

    logger.info(f"Opened result stream {path}")
    return writer


def open_run_stream(config: RecorderConfig) -> EventStreamWriter:
    """Open the result stream described by a recorder configuration."""
    return open_stream(
        config.stream_path, utc=config.utc_timestamps, fsync=config.fsync
    )
