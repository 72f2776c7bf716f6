"""Sliding window of progress samples with a running average rate."""

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

DEFAULT_CAPACITY = 20

# Eviction happens on the insert that reaches capacity, so a window must hold
# at least two samples after evicting to have a delta.
MIN_CAPACITY = 3


@dataclass(frozen=True)
class Sample:
    """An (item index, timestamp) observation taken when progress was shown."""

    index: int
    timestamp: datetime


class SampleWindow:
    """Bounded buffer of the most recent samples.

    Keeps running sums of the index and time deltas between consecutive
    samples, so the average time per item is recomputed in constant time on
    every insert no matter how many items have been processed overall.

    Usage:
        window = SampleWindow()
        window.add(Sample(0, t0))
        window.add(Sample(10, t1))
        window.average_interval  # (t1 - t0) / 10
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < MIN_CAPACITY:
            raise ValueError(f"Window capacity must be at least {MIN_CAPACITY}, got {capacity}")
        self._capacity = capacity
        self._samples = deque()
        self._index_delta_sum = 0
        self._time_delta_sum = timedelta(0)
        self._average_interval: Optional[timedelta] = None

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def average_interval(self) -> Optional[timedelta]:
        """Estimated time per single item of index advance, or None."""
        return self._average_interval

    @property
    def samples(self) -> Tuple[Sample, ...]:
        """Retained samples, oldest first."""
        return tuple(self._samples)

    def __len__(self):
        return len(self._samples)

    def add(self, sample: Sample) -> None:
        """Append a sample, evicting the oldest ones to stay under capacity."""
        samples = self._samples
        samples.append(sample)

        while len(samples) >= self._capacity:
            oldest, second = samples[0], samples[1]
            self._index_delta_sum -= second.index - oldest.index
            self._time_delta_sum -= second.timestamp - oldest.timestamp
            samples.popleft()

        if len(samples) > 1:
            previous, newest = samples[-2], samples[-1]
            self._index_delta_sum += newest.index - previous.index
            self._time_delta_sum += newest.timestamp - previous.timestamp

            intervals = len(samples) - 1
            average_index_delta = self._index_delta_sum / intervals
            if average_index_delta <= 0:
                # Repeated time checks with no items processed in between
                self._average_interval = None
                return
            average_index_interval = self._time_delta_sum / intervals
            self._average_interval = average_index_interval / average_index_delta
