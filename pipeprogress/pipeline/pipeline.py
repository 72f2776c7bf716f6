"""Wrap an iterable so progress is reported as its items flow through."""

import logging
from collections.abc import Sized
from typing import Iterable, Iterator, Optional, TypeVar

from pipeprogress.pipeline.session import ProgressSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


def track_progress(
    items: Iterable[T],
    session: ProgressSession,
    expected_count: Optional[int] = None,
) -> Iterator[T]:
    """Yield each item unchanged while updating ``session``.

    The total comes from ``expected_count`` when given, else from
    ``len(items)`` for sized inputs. Otherwise every item is buffered first
    so they can be counted, with a "Collecting" record shown meanwhile.

    A completion record is emitted once the items are exhausted, or when
    the consumer stops early. Empty input that had to be counted emits
    nothing.

    Usage:
        session = ProgressSession("Resize images", writer=ProgressBar())
        for path in track_progress(paths, session):
            resize(path)
    """
    if expected_count is None and isinstance(items, Sized):
        expected_count = len(items)

    if expected_count is None:
        buffered = []
        for item in items:
            if not buffered:
                session.collecting(item)
            buffered.append(item)
        logger.debug("Counted %d items for %s", len(buffered), session.activity)
        if not buffered:
            return
        items = buffered
        expected_count = len(buffered)

    session.expected_count = expected_count
    try:
        for item in items:
            session.update(item)
            yield item
    finally:
        session.complete()
