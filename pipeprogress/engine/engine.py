"""Decides when progress should be shown and estimates time remaining."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from pipeprogress.engine.samples import DEFAULT_CAPACITY, Sample, SampleWindow

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = timedelta(seconds=0.5)
DEFAULT_DISPLAY_THRESHOLD = timedelta(seconds=1)
DEFAULT_MINIMUM_TIME_LEFT_TO_DISPLAY = timedelta(seconds=2)

Clock = Callable[[], datetime]

_ZERO = timedelta(0)


@dataclass(frozen=True)
class ProgressInfo:
    """Progress to surface for one decision.

    Attributes:
        item_index: Index of the item that was sampled.
        remaining_item_count: Items expected to still be processed.
        percent_complete: Completion between 0 and 1, None when the total is unknown.
        estimated_time_remaining: Projected time to completion, if available.
    """

    item_index: int
    remaining_item_count: int
    percent_complete: Optional[float]
    estimated_time_remaining: Optional[timedelta]


class ProgressEngine:
    """Tracks uniform progress over a sequence of items.

    Call add_sample() once per processed item, or check_time() to ask
    whether an update is due without processing an item. Both return a
    ProgressInfo when the caller should show progress, otherwise None.

    Three rules hold updates back:
    - refresh_interval: at most one update per interval (the first
      processed item is exempt);
    - display_threshold: nothing is shown until the activity has run this
      long;
    - minimum_time_left_to_display: nothing is shown when the estimated
      time left is shorter than this.
    A non-positive duration disables its rule.

    Usage:
        engine = ProgressEngine(expected_count=len(items))
        for item in items:
            info = engine.add_sample()
            if info is not None:
                render(info)
            process(item)
    """

    def __init__(
        self,
        expected_count: int = 0,
        refresh_interval: timedelta = DEFAULT_REFRESH_INTERVAL,
        display_threshold: timedelta = DEFAULT_DISPLAY_THRESHOLD,
        minimum_time_left_to_display: timedelta = DEFAULT_MINIMUM_TIME_LEFT_TO_DISPLAY,
        clock: Optional[Clock] = None,
        window_capacity: int = DEFAULT_CAPACITY,
    ):
        self.expected_count = expected_count
        self.refresh_interval = refresh_interval
        self.display_threshold = display_threshold
        self.minimum_time_left_to_display = minimum_time_left_to_display
        self.clock = clock if clock is not None else datetime.now

        self._window = SampleWindow(window_capacity)
        self._processed_count = 0
        self._is_sampling = False
        self._start_time: Optional[datetime] = None
        self._last_display_time: Optional[datetime] = None

    @classmethod
    def from_settings(cls, settings, expected_count=0, clock=None):
        """Build an engine from a ProgressSettings loaded from config."""
        return cls(
            expected_count=expected_count,
            refresh_interval=settings.refresh_interval,
            display_threshold=settings.display_threshold,
            minimum_time_left_to_display=settings.minimum_time_left_to_display,
            clock=clock,
            window_capacity=settings.window_capacity,
        )

    @property
    def processed_count(self) -> int:
        return self._processed_count

    @property
    def is_sampling(self) -> bool:
        return self._is_sampling

    @property
    def start_time(self) -> Optional[datetime]:
        return self._start_time

    @property
    def last_display_time(self) -> Optional[datetime]:
        return self._last_display_time

    @property
    def average_interval(self) -> Optional[timedelta]:
        return self._window.average_interval

    def add_sample(self) -> Optional[ProgressInfo]:
        """Record one processed item and decide whether to show progress."""
        self._is_sampling = True
        info = self._decide()
        self._processed_count += 1
        return info

    def check_time(self) -> Optional[ProgressInfo]:
        """Decide whether to show progress without advancing the item count."""
        return self._decide()

    def _remaining_items(self) -> int:
        return max(self.expected_count - self._processed_count, 0)

    def _estimate(self, remaining: int) -> Optional[timedelta]:
        average = self._window.average_interval
        if average is None or remaining <= 0:
            return None
        return average * remaining

    def _is_suppressed(self, now: datetime) -> bool:
        first_item = self._is_sampling and self._processed_count == 0
        if (self.refresh_interval > _ZERO
                and self._last_display_time is not None
                and not first_item
                and now - self._last_display_time < self.refresh_interval):
            return True

        if (self._last_display_time is None
                and self.display_threshold > _ZERO
                and now - self._start_time < self.display_threshold):
            return True

        if self.minimum_time_left_to_display > _ZERO and self._is_sampling:
            estimate = self._estimate(self._remaining_items())
            if estimate is not None and estimate < self.minimum_time_left_to_display:
                return True

        return False

    def _decide(self) -> Optional[ProgressInfo]:
        now = self.clock()
        if self._start_time is None:
            self._start_time = now
            if self.expected_count <= 0:
                logger.debug("Expected item count unknown, percentage and ETA disabled")

        if self._is_suppressed(now):
            return None

        if self._is_sampling:
            self._window.add(Sample(self._processed_count, now))
        self._last_display_time = now

        remaining = self._remaining_items()
        percent_complete = None
        if self.expected_count > 0:
            percent_complete = min(self._processed_count / self.expected_count, 1.0)

        return ProgressInfo(
            item_index=self._processed_count,
            remaining_item_count=remaining,
            percent_complete=percent_complete,
            estimated_time_remaining=self._estimate(remaining),
        )
