"""Tests for pipeprogress.engine.engine module."""

from datetime import timedelta

import pytest

from pipeprogress.engine.engine import (
    DEFAULT_DISPLAY_THRESHOLD,
    DEFAULT_MINIMUM_TIME_LEFT_TO_DISPLAY,
    DEFAULT_REFRESH_INTERVAL,
    ProgressEngine,
    ProgressInfo,
)
from pipeprogress.shared.config import ProgressSettings

ZERO = timedelta(0)


def eager_engine(clock, **kwargs):
    """Engine with every suppression rule turned off."""
    options = dict(
        refresh_interval=ZERO,
        display_threshold=ZERO,
        minimum_time_left_to_display=ZERO,
        clock=clock,
    )
    options.update(kwargs)
    return ProgressEngine(**options)


class TestProgressEngineInit:
    """Tests for ProgressEngine defaults."""

    def test_defaults(self):
        engine = ProgressEngine()
        assert engine.expected_count == 0
        assert engine.processed_count == 0
        assert engine.is_sampling is False
        assert engine.start_time is None
        assert engine.last_display_time is None
        assert engine.average_interval is None
        assert engine.refresh_interval == DEFAULT_REFRESH_INTERVAL == timedelta(seconds=0.5)
        assert engine.display_threshold == DEFAULT_DISPLAY_THRESHOLD == timedelta(seconds=1)
        assert engine.minimum_time_left_to_display == DEFAULT_MINIMUM_TIME_LEFT_TO_DISPLAY
        assert DEFAULT_MINIMUM_TIME_LEFT_TO_DISPLAY == timedelta(seconds=2)

    def test_from_settings(self, clock):
        settings = ProgressSettings(
            refresh_interval=timedelta(seconds=3),
            display_threshold=ZERO,
            minimum_time_left_to_display=timedelta(seconds=7),
            window_capacity=5,
        )
        engine = ProgressEngine.from_settings(settings, expected_count=42, clock=clock)
        assert engine.expected_count == 42
        assert engine.refresh_interval == timedelta(seconds=3)
        assert engine.display_threshold == ZERO
        assert engine.minimum_time_left_to_display == timedelta(seconds=7)
        assert engine.clock is clock
        assert engine._window.capacity == 5


class TestAddSample:
    """Tests for ProgressEngine.add_sample()."""

    def test_counts_every_call(self, clock):
        engine = ProgressEngine(expected_count=10, clock=clock)
        for n in range(1, 26):
            engine.add_sample()
            clock.advance(0.01)
            assert engine.processed_count == n

    def test_first_sample_with_defaults_is_withheld(self):
        engine = ProgressEngine()
        assert engine.add_sample() is None
        assert engine.processed_count == 1

    def test_sets_sampling_and_start_time(self, clock):
        engine = ProgressEngine(clock=clock)
        engine.add_sample()
        assert engine.is_sampling is True
        assert engine.start_time == clock.now

    @pytest.mark.parametrize("display_threshold", [ZERO, timedelta(seconds=1)])
    def test_windowed_estimate_halfway(self, clock, display_threshold):
        engine = ProgressEngine(
            expected_count=100,
            display_threshold=display_threshold,
            clock=clock,
        )
        info = None
        for _ in range(51):
            info = engine.add_sample()
            clock.advance(1)

        assert engine.processed_count == 51
        assert info is not None
        assert info.item_index == 50
        assert info.remaining_item_count == 50
        assert info.percent_complete == 0.5
        assert info.estimated_time_remaining == timedelta(seconds=50)

    def test_first_item_is_shown_immediately(self, clock):
        engine = eager_engine(clock, expected_count=4)
        info = engine.add_sample()
        assert info == ProgressInfo(
            item_index=0,
            remaining_item_count=4,
            percent_complete=0.0,
            estimated_time_remaining=None,
        )

    def test_estimate_follows_recent_rate(self, clock):
        engine = eager_engine(clock, expected_count=1000)
        for _ in range(30):
            engine.add_sample()
            clock.advance(1)
        info = None
        for _ in range(30):
            info = engine.add_sample()
            clock.advance(3)

        assert info.item_index == 59
        assert engine.average_interval == timedelta(seconds=3)
        assert info.estimated_time_remaining == timedelta(seconds=3 * 941)


class TestRefreshInterval:
    """Tests for the refresh-interval throttle."""

    def test_first_sampled_item_is_exempt(self, clock):
        engine = ProgressEngine(
            display_threshold=ZERO,
            refresh_interval=timedelta(seconds=2),
            clock=clock,
        )
        assert engine.check_time() is not None
        clock.advance(1)
        assert engine.add_sample() is not None

    def test_throttles_later_items(self, clock):
        engine = ProgressEngine(
            display_threshold=ZERO,
            refresh_interval=timedelta(seconds=2),
            clock=clock,
        )
        assert engine.add_sample() is not None
        clock.advance(1)
        assert engine.add_sample() is None
        clock.advance(1)
        assert engine.add_sample() is not None

    def test_suppressed_call_leaves_display_time(self, clock):
        engine = ProgressEngine(
            display_threshold=ZERO,
            refresh_interval=timedelta(seconds=2),
            clock=clock,
        )
        engine.add_sample()
        shown_at = engine.last_display_time
        clock.advance(1)
        engine.add_sample()
        assert engine.last_display_time == shown_at
        assert len(engine._window) == 1


class TestDisplayThreshold:
    """Tests for the display threshold."""

    def test_withholds_until_threshold(self, clock):
        engine = ProgressEngine(display_threshold=timedelta(seconds=1), clock=clock)
        assert engine.check_time() is None
        clock.advance(0.1)
        assert engine.check_time() is None
        clock.advance(0.9)
        assert engine.check_time() is not None

    def test_only_applies_before_first_display(self, clock):
        engine = eager_engine(clock, display_threshold=timedelta(seconds=1))
        clock.advance(1)
        assert engine.check_time() is None  # start time set by this call
        clock.advance(1)
        assert engine.check_time() is not None
        engine.display_threshold = timedelta(seconds=100)
        assert engine.check_time() is not None


class TestMinimumTimeLeft:
    """Tests for the minimum-time-left rule."""

    def test_hides_updates_near_completion(self, clock):
        engine = eager_engine(
            clock,
            expected_count=10,
            minimum_time_left_to_display=timedelta(seconds=2),
        )
        results = []
        for _ in range(10):
            results.append(engine.add_sample())
            clock.advance(1)

        assert all(info is not None for info in results[:9])
        assert results[8].estimated_time_remaining == timedelta(seconds=2)
        assert results[9] is None

    def test_ignored_without_estimate(self, clock):
        engine = eager_engine(
            clock,
            expected_count=2,
            minimum_time_left_to_display=timedelta(hours=1),
        )
        assert engine.add_sample() is not None

    def test_ignored_for_time_checks_before_sampling(self, clock):
        engine = eager_engine(
            clock,
            expected_count=5,
            minimum_time_left_to_display=timedelta(hours=1),
        )
        assert engine.check_time() is not None
        clock.advance(1)
        assert engine.check_time() is not None


class TestCheckTime:
    """Tests for ProgressEngine.check_time()."""

    def test_two_calls_with_rules_off(self, clock):
        engine = ProgressEngine(
            display_threshold=ZERO,
            refresh_interval=ZERO,
            clock=clock,
        )
        assert engine.check_time() is not None
        assert engine.check_time() is not None

    def test_does_not_count_or_sample(self, clock):
        engine = eager_engine(clock, expected_count=10)
        for _ in range(5):
            info = engine.check_time()
            clock.advance(1)
            assert info.item_index == 0
        assert engine.processed_count == 0
        assert engine.is_sampling is False
        assert len(engine._window) == 0

    def test_samples_once_sampling(self, clock):
        engine = eager_engine(clock, expected_count=10)
        engine.add_sample()
        clock.advance(1)
        info = engine.check_time()
        assert engine.processed_count == 1
        assert len(engine._window) == 2
        assert engine.average_interval == timedelta(seconds=1)
        assert info.estimated_time_remaining == timedelta(seconds=9)

    def test_records_start_time_once(self, clock):
        engine = ProgressEngine(clock=clock)
        start = clock.now
        engine.check_time()
        clock.advance(5)
        engine.check_time()
        assert engine.start_time == start


class TestUnknownAndOverrunTotals:
    """Tests for expected counts of zero or below the processed count."""

    def test_unknown_total_omits_percent_and_estimate(self, clock):
        engine = eager_engine(clock, minimum_time_left_to_display=timedelta(hours=1))
        info = None
        for _ in range(5):
            info = engine.add_sample()
            clock.advance(1)
        assert info is not None
        assert info.item_index == 4
        assert info.remaining_item_count == 0
        assert info.percent_complete is None
        assert info.estimated_time_remaining is None

    def test_overrun_clamps(self, clock):
        engine = eager_engine(clock, expected_count=2)
        info = None
        for _ in range(4):
            info = engine.add_sample()
            clock.advance(1)
        assert info.item_index == 3
        assert info.remaining_item_count == 0
        assert info.percent_complete == 1.0
        assert info.estimated_time_remaining is None


class TestMutableSettings:
    """Tunables take effect on the next call."""

    def test_expected_count_change(self, clock):
        engine = eager_engine(clock, expected_count=4)
        engine.add_sample()
        engine.expected_count = 10
        info = engine.add_sample()
        assert info.remaining_item_count == 9
        assert info.percent_complete == pytest.approx(0.1)

    def test_disable_threshold_mid_run(self, clock):
        engine = ProgressEngine(display_threshold=timedelta(seconds=10), clock=clock)
        assert engine.check_time() is None
        engine.display_threshold = ZERO
        assert engine.check_time() is not None

    def test_negative_duration_disables_rule(self, clock):
        engine = ProgressEngine(
            display_threshold=timedelta(seconds=-1),
            refresh_interval=timedelta(seconds=-1),
            clock=clock,
        )
        assert engine.check_time() is not None
        assert engine.check_time() is not None


class TestProgressInfo:
    """Tests for the ProgressInfo value type."""

    def test_structural_equality(self):
        a = ProgressInfo(1, 2, 0.5, timedelta(seconds=3))
        b = ProgressInfo(1, 2, 0.5, timedelta(seconds=3))
        assert a == b
        assert a != ProgressInfo(1, 2, 0.5, None)

    def test_immutable(self):
        info = ProgressInfo(1, 2, 0.5, None)
        with pytest.raises(AttributeError):
            info.item_index = 3
