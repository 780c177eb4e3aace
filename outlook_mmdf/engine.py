# engine.py
# -----------------------------------------------------------------------------
# The export loop: walk [start, end) of a sorted item collection, convert each
# item and hand the bytes to the ArchiveWriter.
#
#   PAYLOAD       -> framed into the archive for the item's month
#   EMPTY         -> skipped silently (filtered class, nothing converted)
#   SOFT_FAILURE  -> logged with subject/class, skipped
#   HARD_STOP     -> logged, loop ends; remaining items are abandoned
#
# A position whose item cannot be fetched is retried at most
# MAX_FETCH_RETRIES times before the export is stopped.
# -----------------------------------------------------------------------------

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .extract import Outcome, describe

logger = logging.getLogger(__name__)

MAX_FETCH_RETRIES = 3

SCALAR_TYPES = (str, bytes, int, float, bool, datetime)


@dataclass
class ExportStats:
    saved: int = 0
    skipped: int = 0
    filtered: int = 0
    fetch_failures: int = 0
    processed: int = 0
    stopped_at: Optional[int] = None
    archives: List[str] = field(default_factory=list)

    @property
    def stopped(self) -> bool:
        return self.stopped_at is not None

    def summary(self) -> str:
        line = f"{self.saved} emails saved"
        details = f"skipped: {self.skipped:,} | filtered: {self.filtered:,} | files: {len(self.archives):,}"
        if self.stopped:
            details += f" | stopped at {self.stopped_at}"
        return f"{line} ({details})"


class ExportEngine:
    def __init__(self, source, extractor, writer, progress_every=0):
        self.source = source
        self.extractor = extractor
        self.writer = writer
        self.progress_every = progress_every
        self.stats = ExportStats()

    def _fetch(self, index):
        try:
            item = self.source.fetch(index)
        except Exception as e:
            logger.warning("Failed to get Item %d: %s", index + 1, e)
            return None
        if item is None:
            logger.warning("Failed to get Item %d: no item returned", index + 1)
            return None
        # pywin32 hands back non-dispatch VARIANTs as plain Python values.
        if isinstance(item, SCALAR_TYPES):
            logger.warning("Failed to get Item %d: unexpected %s", index + 1, type(item).__name__)
            return None
        return item

    def _progress(self, i, window, started):
        self.stats.processed += 1
        n = self.stats.processed
        if not self.progress_every or n % self.progress_every:
            return
        elapsed = time.perf_counter() - started
        rate = n / elapsed if elapsed > 0 else 0
        logger.info("%s/%s | saved: %s | skipped: %s | %.1f msg/s",
                    f"{i + 1 - window.start:,}", f"{window.count:,}",
                    f"{self.stats.saved:,}", f"{self.stats.skipped:,}", rate)

    def run(self, window, total=None):
        """Export items [window.start, window.end); return ExportStats."""
        if total is None:
            total = self.source.count()
        stats = self.stats
        started = time.perf_counter()
        retries = 0
        i = window.start

        try:
            while i < window.end and i < total:
                item = self._fetch(i)
                if item is None:
                    stats.fetch_failures += 1
                    retries += 1
                    if retries > MAX_FETCH_RETRIES:
                        logger.error("Giving up on Item %d after %d attempts", i + 1, retries)
                        stats.stopped_at = i + 1
                        break
                    continue
                retries = 0

                result = self.extractor.extract(item)
                outcome = result.outcome

                if outcome is Outcome.HARD_STOP:
                    del item
                    logger.error("Stopped at %d", i + 1)
                    stats.stopped_at = i + 1
                    break

                if outcome is Outcome.SOFT_FAILURE:
                    subject, mclass = describe(item)
                    logger.warning("Failed to extract data for %d %s (%s): %s",
                                   i, subject, mclass, result.error)
                    stats.skipped += 1
                elif outcome is Outcome.EMPTY:
                    stats.filtered += 1
                elif outcome is Outcome.PAYLOAD:
                    self.writer.submit(result.payload, result.timestamp)
                    stats.saved += 1

                del item, result
                self._progress(i, window, started)
                i += 1
        finally:
            self.writer.finalize()
            stats.archives = list(self.writer.archives)

        return stats
