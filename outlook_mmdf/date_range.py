# date_range.py
# -----------------------------------------------------------------------------
# Turn optional start/end days into an index window over a folder's items.
#
# The collection must already be sorted ascending by CreationTime
# (ItemSource.sort()). Every probe is a live COM round trip, so boundaries are
# found by binary search rather than by scanning.
# -----------------------------------------------------------------------------

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .items import creation_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportWindow:
    """Half-open range [start, end) of 0-based item positions."""
    start: int
    end: int

    @property
    def count(self) -> int:
        return max(0, self.end - self.start)


def is_after(source, index: int, target: datetime) -> bool:
    """
    True if item `index` was created strictly after `target`.
    Items whose timestamp cannot be read count as *not* after the target.
    """
    try:
        item = source.fetch(index)
    except Exception as e:
        logger.warning("Failed to get item %d: %s", index + 1, e)
        return False
    if item is None:
        return False
    ts = creation_time(item)
    del item
    if ts is None:
        return False
    logger.debug("Probe %d: %s", index, ts)
    return ts > target


def find_first_item_after(source, count: int, target: datetime) -> int:
    """Smallest index in [0, count] whose item is created after `target`."""
    lo, hi = 0, count
    while lo < hi:
        mid = (lo + hi) // 2
        if is_after(source, mid, target):
            hi = mid
        else:
            lo = mid + 1
    if lo < count:
        logger.debug("Found item: %d", lo)
    return lo


def resolve_window(source, total: int, max_count: int,
                   start_day: Optional[datetime] = None,
                   end_day: Optional[datetime] = None) -> ExportWindow:
    start = 0
    if start_day is not None:
        start = find_first_item_after(source, total, start_day)
        logger.info("Starting from %d for %s", start, f"{start_day:%Y%m%d}")

    end = start + max_count
    if end_day is not None:
        pos = find_first_item_after(source, total, end_day)
        logger.info("Stopping by %d for %s", pos, f"{end_day:%Y%m%d}")
        end = min(end, pos)

    end = max(start, min(end, total))
    return ExportWindow(start, end)
