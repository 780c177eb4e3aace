# archive.py
# -----------------------------------------------------------------------------
# Write exported messages into one gzip-compressed MMDF file per month:
#   - {name}_{YYYYMM}.mmdf.gz, opened lazily on the first message of a month
#   - rotate (close + open next) when a message's month differs from the
#     open file's month; only one file is ever open
#   - every message is framed as POSTMARK + payload + POSTMARK
#
# The framing assumes POSTMARK never appears inside a converted message.
# -----------------------------------------------------------------------------

import gc
import gzip
import logging
import os
from datetime import datetime

logger = logging.getLogger(__name__)

POSTMARK = b"\x01\x01\x01\x01\n"
DEFAULT_EXTENSION = "mmdf.gz"

# Messages without a readable creation time and no open archive land here.
UNDATED = datetime.min


def month_key(ts):
    return f"{ts.year:04d}{ts.month:02d}"


class ArchiveWriter:
    """
    Own the single open archive for one exported folder.
    `archives` lists every path opened, in order.
    """
    def __init__(self, out_dir, name, extension=DEFAULT_EXTENSION):
        self.out_dir = os.path.normpath(out_dir)
        self.name = name
        self.extension = extension
        self.cur = {"path": None, "month": None, "file": None, "zf": None, "frames": 0}
        self.archives = []

    @property
    def is_open(self):
        return self.cur["zf"] is not None

    @property
    def current_path(self):
        return self.cur["path"]

    @property
    def frames(self):
        return self.cur["frames"]

    def _new_path(self, month):
        return os.path.join(self.out_dir, f"{self.name}_{month}.{self.extension}")

    def _open(self, month):
        path = self._new_path(month)
        # A month seen earlier in this run gets a new gzip member appended;
        # files left over from earlier runs are replaced.
        reopen = path in self.archives
        f = open(path, "ab" if reopen else "wb")
        try:
            zf = gzip.GzipFile(filename="", mode="wb", fileobj=f)
        except Exception:
            f.close()
            raise
        if reopen:
            logger.warning("Reopening file %s; items are not in creation order", path)
        else:
            logger.info("Opening file %s", path)
            self.archives.append(path)
        self.cur.update({"path": path, "month": month, "file": f, "zf": zf, "frames": 0})

    def _need_rotate(self, month):
        return self.is_open and month is not None and month != self.cur["month"]

    def submit(self, payload, timestamp=None):
        """Frame `payload` into the archive for `timestamp`'s month."""
        month = month_key(timestamp) if timestamp is not None else None
        if self._need_rotate(month):
            self.finalize()
        if not self.is_open:
            self._open(month or month_key(UNDATED))
        zf = self.cur["zf"]
        zf.write(POSTMARK)
        zf.write(payload)
        zf.write(POSTMARK)
        self.cur["frames"] += 1

    def finalize(self):
        """Flush and close the open archive, if any. Safe to call repeatedly."""
        zf, f = self.cur["zf"], self.cur["file"]
        if zf is None and f is None:
            return
        path, frames = self.cur["path"], self.cur["frames"]
        self.cur.update({"path": None, "month": None, "file": None, "zf": None, "frames": 0})
        try:
            if zf is not None:
                zf.close()
        finally:
            if f is not None:
                f.close()
        logger.info("Closed file %s (%d messages)", path, frames)
        # Payload sizes are unbounded; hand large buffers back before going on.
        gc.collect()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finalize()
