"""Progress sessions: turn engine decisions into renderable records."""

import logging
import zlib
from dataclasses import dataclass
from typing import Any, Callable, Optional

from pipeprogress.engine.engine import ProgressEngine, ProgressInfo

logger = logging.getLogger(__name__)

Formatter = Callable[[Any], Any]
Writer = Callable[["ProgressRecord"], None]


@dataclass(frozen=True)
class ProgressRecord:
    """One progress update for a renderer.

    Attributes:
        activity_id: Distinguishes this progress bar from others.
        activity: Text describing the activity.
        status: Text describing the current state of the activity.
        current_operation: Text describing the item being processed.
        parent_id: Activity id of the parent bar, if nested.
        percent_complete: 0-100, None when the total is unknown.
        seconds_remaining: Whole seconds left, None when not estimated.
        completed: True for the final record that removes the bar.
    """

    activity_id: int
    activity: str
    status: str
    current_operation: str = ""
    parent_id: Optional[int] = None
    percent_complete: Optional[int] = None
    seconds_remaining: Optional[int] = None
    completed: bool = False


def activity_hash(activity: str) -> int:
    """Stable non-negative id for an activity name."""
    return zlib.crc32(activity.encode("utf-8")) & 0x7FFFFFFF


class ProgressSession:
    """Tracks the progress of one activity.

    Owns a ProgressEngine and builds a ProgressRecord whenever the engine
    decides progress should be shown. Records go to ``writer`` (for example
    a ProgressBar) and are logged at DEBUG.

    Args:
        activity: Text describing the activity.
        activity_id: Bar id; defaults to a hash of ``activity``.
        parent_id: Id of the parent activity, if any.
        status: Callable producing status text for an item.
        current_operation: Callable producing operation text for an item.
        engine: Decision engine; a default one is created when omitted.
        writer: Callable receiving each emitted record.
    """

    def __init__(
        self,
        activity: str,
        activity_id: Optional[int] = None,
        parent_id: Optional[int] = None,
        status: Optional[Formatter] = None,
        current_operation: Optional[Formatter] = None,
        engine: Optional[ProgressEngine] = None,
        writer: Optional[Writer] = None,
    ):
        self.activity = activity
        self.activity_id = activity_id if activity_id is not None else activity_hash(activity)
        self.parent_id = parent_id
        self.status = status
        self.current_operation = current_operation
        self.engine = engine if engine is not None else ProgressEngine()
        self.writer = writer

    @property
    def expected_count(self) -> int:
        return self.engine.expected_count

    @expected_count.setter
    def expected_count(self, value: int) -> None:
        self.engine.expected_count = value

    def _status_text(self, info: ProgressInfo, item: Any) -> str:
        if self.status is not None:
            text = self.status(item)
            return "Processing" if text is None else str(text)
        if info.percent_complete is None:
            return f"{info.item_index} processed"
        return f"{info.item_index} / {self.expected_count} ({info.percent_complete:.2%})"

    def create_record(self, info: ProgressInfo, item: Any = None) -> ProgressRecord:
        """Build the record describing ``info`` for ``item``."""
        operation = ""
        if self.current_operation is not None:
            text = self.current_operation(item)
            operation = "" if text is None else str(text)

        percent = None
        if info.percent_complete is not None:
            percent = int(info.percent_complete * 100)

        seconds = None
        if info.estimated_time_remaining is not None:
            seconds = int(info.estimated_time_remaining.total_seconds())

        return ProgressRecord(
            activity_id=self.activity_id,
            activity=self.activity,
            status=self._status_text(info, item),
            current_operation=operation,
            parent_id=self.parent_id,
            percent_complete=percent,
            seconds_remaining=seconds,
        )

    def update(self, item: Any = None) -> Optional[ProgressRecord]:
        """Count ``item`` as processed and emit a record if one is due."""
        info = self.engine.add_sample()
        if info is None:
            return None
        return self._emit(self.create_record(info, item))

    def refresh(self, item: Any = None) -> Optional[ProgressRecord]:
        """Emit a record if one is due, without counting an item."""
        info = self.engine.check_time()
        if info is None:
            return None
        return self._emit(self.create_record(info, item))

    def collecting(self, item: Any = None) -> ProgressRecord:
        """Emit the record shown while items are still being counted."""
        status = None
        if self.status is not None and item is not None:
            status = self.status(item)
        return self._emit(ProgressRecord(
            activity_id=self.activity_id,
            activity=self.activity,
            status="Collecting" if status is None else str(status),
            current_operation="Collecting",
            parent_id=self.parent_id,
        ))

    def complete(self) -> ProgressRecord:
        """Emit the final record that removes the bar."""
        return self._emit(ProgressRecord(
            activity_id=self.activity_id,
            activity=self.activity,
            status="Complete",
            parent_id=self.parent_id,
            completed=True,
        ))

    def _emit(self, record: ProgressRecord) -> ProgressRecord:
        logger.debug("%s", debug_message(record))
        if self.writer is not None:
            self.writer(record)
        return record


def debug_message(record: ProgressRecord) -> str:
    """One-line description of a record for debug logs."""
    if record.completed:
        return f"Progress {record.activity_id}, Activity=<{record.activity}>, Completed"
    return (
        f"Progress {record.activity_id}, Activity=<{record.activity}>, "
        f"Status=<{record.status}>, Operation=<{record.current_operation}>, "
        f"PercentComplete=<{record.percent_complete}>, "
        f"SecondsRemaining=<{record.seconds_remaining}>"
    )
