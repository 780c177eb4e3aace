# items.py
# -----------------------------------------------------------------------------
# Positional access to a folder's Outlook `Items` collection.
#
# Outlook collections are 1-based and handles are only valid while the
# collection is held open and until it is re-sorted. Everything above this
# module uses 0-based positions and never keeps a handle past one iteration.
# -----------------------------------------------------------------------------

from datetime import datetime

SORT_FIELD = "[CreationTime]"


def to_naive(value):
    """Return a COM date as a naive datetime (Outlook wall clock), else None."""
    if not isinstance(value, datetime):
        return None
    # pywintypes tags local times as UTC; keep the wall clock only.
    return datetime(value.year, value.month, value.day,
                    value.hour, value.minute, value.second, value.microsecond)


def read_prop(obj, name, default):
    """Read a COM property; return `default` if it fails or has the wrong type."""
    try:
        value = getattr(obj, name)
    except Exception:
        return default
    if value is None:
        return default
    if isinstance(default, str):
        return value if isinstance(value, str) else default
    if isinstance(default, int):
        try:
            return int(value)
        except (TypeError, ValueError):
            return default
    return value


def creation_time(item):
    """Best-effort CreationTime of an item; None when unreadable."""
    try:
        return to_naive(item.CreationTime)
    except Exception:
        return None


class ItemSource:
    """
    Wrap an Outlook `Items` collection with 0-based positional access.
    fetch() raises whatever the COM call raises; callers classify it.
    """
    def __init__(self, items):
        self.items = items

    def sort(self, field=SORT_FIELD, descending=False):
        self.items.Sort(field, descending)

    def count(self):
        return int(self.items.Count)

    def fetch(self, index):
        return self.items.Item(index + 1)
