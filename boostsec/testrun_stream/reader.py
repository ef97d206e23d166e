"""Read test lifecycle events back from a JSOS result stream."""

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from pathlib import Path

from boostsec.testrun_stream.codec import RECORD_SEPARATOR, decode_event
from boostsec.testrun_stream.errors import IoError, SerializationError
from boostsec.testrun_stream.models.test_event import TestEvent
from boostsec.testrun_stream.paths import resolve_stream_path

logger = logging.getLogger(__name__)


class StreamReader:
    """Restartable cursor over the complete records of a stream.

    The stream may still be written to. Bytes after the last record
    separator are an unfinished record and are left for a later read.
    """

    def __init__(self, path: Path | str, offset: int = 0) -> None:
        """Initialize reader positioned at a byte offset."""
        self.path = resolve_stream_path(path)
        self.offset = offset

    def read_available(self) -> list[TestEvent]:
        """Read every complete record written after the current offset.

        Returns:
            Records in write order; malformed records are skipped

        Raises:
            IoError: If the stream exists but cannot be read

        """
        data = self._read_from_offset()
        end = data.rfind(RECORD_SEPARATOR)
        if end == -1:
            return []

        events: list[TestEvent] = []
        position = self.offset
        for fragment in data[:end].split(RECORD_SEPARATOR):
            event = self._parse(fragment, position)
            if event is not None:
                events.append(event)
            position += len(fragment) + 1

        self.offset += end + 1
        return events

    def read_trailing(self) -> TestEvent | None:
        """Parse the unterminated fragment after the last separator, if any.

        Meant for finished streams whose writer did not terminate the final
        record. The offset is not advanced.
        """
        fragment = self._read_from_offset()
        if RECORD_SEPARATOR in fragment:
            fragment = fragment[fragment.rfind(RECORD_SEPARATOR) + 1 :]
        if not fragment.strip():
            return None
        return self._parse(fragment, self.offset)

    def _read_from_offset(self) -> bytes:
        try:
            with self.path.open("rb") as f:
                size = os.fstat(f.fileno()).st_size
                if self.offset > size:
                    logger.warning(
                        f"Result stream {self.path} shrank below offset "
                        f"{self.offset} ({size} bytes), reading from the start"
                    )
                    self.offset = 0
                f.seek(self.offset)
                return f.read()
        except FileNotFoundError:
            return b""
        except OSError as e:
            raise IoError(f"Cannot read result stream {self.path}: {e}") from e

    def _parse(self, fragment: bytes, position: int) -> TestEvent | None:
        if not fragment.strip():
            return None
        try:
            return decode_event(fragment)
        except SerializationError as e:
            logger.warning(
                f"Skipping malformed record at byte {position} of {self.path}: {e}"
            )
            return None


def read_events(path: Path | str, include_trailing: bool = False) -> list[TestEvent]:
    """Read all complete records of a stream.

    Args:
        path: Stream file, or a directory holding the default stream file
        include_trailing: Also return a final record that lacks its
            separator, when it parses cleanly

    Returns:
        Records in write order

    """
    reader = StreamReader(path)
    events = reader.read_available()
    if include_trailing:
        trailing = reader.read_trailing()
        if trailing is not None:
            events.append(trailing)
    return events


async def follow_events(
    path: Path | str,
    poll_interval: float = 1.0,
    idle_timeout: float | None = None,
) -> AsyncIterator[TestEvent]:
    """Yield records of a live stream as they are flushed.

    Args:
        path: Stream file, or a directory holding the default stream file
        poll_interval: Seconds between reads of the stream
        idle_timeout: Stop after this many seconds without a new record;
            follow forever when None

    Yields:
        Records in write order

    """
    reader = StreamReader(path)
    loop = asyncio.get_running_loop()
    last_activity = loop.time()

    while True:
        events = await asyncio.to_thread(reader.read_available)
        for event in events:
            yield event

        now = loop.time()
        if events:
            last_activity = now
        elif idle_timeout is not None and now - last_activity >= idle_timeout:
            logger.info(f"No new records in {reader.path} for {idle_timeout}s")
            return

        await asyncio.sleep(poll_interval)
