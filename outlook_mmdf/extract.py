# extract.py
# -----------------------------------------------------------------------------
# Convert one Outlook item to MIME bytes through IConverterSession.
#
# The converter writes into a single IStream that is reused for every item;
# it is rewound before each conversion and the result is copied out into an
# owned bytes object before the next item touches the stream.
# -----------------------------------------------------------------------------

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .items import creation_time, read_prop

logger = logging.getLogger(__name__)

IID_IMessage = "{00020307-0000-0000-C000-000000000046}"

CCSF_SMTP = 0x0002          # MAPIToMIMEStm: convert as SMTP message
STREAM_SEEK_SET = 0
STREAM_SEEK_CUR = 1

# Meeting accept/decline/tentative notifications carry nothing worth keeping.
SKIPPED_CLASS_PREFIX = "IPM.Schedule.Meeting.Resp."


class Outcome(enum.Enum):
    PAYLOAD = "payload"            # converted bytes to archive
    EMPTY = "empty"                # nothing to write, not an error
    SOFT_FAILURE = "soft_failure"  # this item failed; carry on
    HARD_STOP = "hard_stop"        # stop the whole export


@dataclass
class Extraction:
    outcome: Outcome
    payload: bytes = b""
    timestamp: Optional[datetime] = None
    error: Optional[BaseException] = None


def describe(item):
    """(subject, message class) of an item for log lines; blanks if unreadable."""
    return read_prop(item, "Subject", ""), read_prop(item, "MessageClass", "")


class MessageExtractor:
    def __init__(self, converter, stream, flags=CCSF_SMTP):
        self.converter = converter
        self.stream = stream
        self.flags = flags

    def extract(self, item) -> Extraction:
        try:
            self.stream.Seek(0, STREAM_SEEK_SET)
        except Exception as e:
            # The shared stream is unusable for every item that follows.
            logger.error("Reset stream: %s", e)
            return Extraction(Outcome.HARD_STOP, error=e)

        mclass = read_prop(item, "MessageClass", "")
        if mclass.startswith(SKIPPED_CLASS_PREFIX):
            return Extraction(Outcome.EMPTY)

        ts = creation_time(item)

        try:
            mapi_object = item.MAPIOBJECT
        except Exception as e:
            logger.error("Get MAPIOBJECT: %s", e)
            return Extraction(Outcome.HARD_STOP, timestamp=ts, error=e)

        try:
            message = mapi_object.QueryInterface(IID_IMessage)
        except Exception as e:
            logger.debug("QueryInterface: %s", e)
            return Extraction(Outcome.SOFT_FAILURE, timestamp=ts, error=e)

        try:
            self.converter.MAPIToMIMEStm(message, self.stream, self.flags)
        except Exception as e:
            logger.debug("MAPIToMIMEStm: %s", e)
            return Extraction(Outcome.SOFT_FAILURE, timestamp=ts, error=e)
        finally:
            del message, mapi_object

        try:
            size = int(self.stream.Seek(0, STREAM_SEEK_CUR))
        except Exception as e:
            logger.debug("Seek: %s", e)
            return Extraction(Outcome.SOFT_FAILURE, timestamp=ts, error=e)
        if size <= 0:
            return Extraction(Outcome.EMPTY, timestamp=ts)

        try:
            self.stream.Seek(0, STREAM_SEEK_SET)
            data = bytes(self.stream.Read(size))
        except Exception as e:
            logger.debug("Read: %s", e)
            return Extraction(Outcome.SOFT_FAILURE, timestamp=ts, error=e)

        return Extraction(Outcome.PAYLOAD, payload=data, timestamp=ts)
