"""In-memory stand-ins for the Outlook object model, IConverterSession and IStream."""

import io
from datetime import datetime

import pytest


class ComError(Exception):
    """Plays the part of pywintypes.com_error."""


class FakeComObject:
    """Attribute bag; a value that is an exception instance is raised on access."""

    def __init__(self, **props):
        self.__dict__["_props"] = props

    def __getattr__(self, name):
        props = self.__dict__["_props"]
        if name not in props:
            raise AttributeError(name)
        value = props[name]
        if isinstance(value, BaseException):
            raise value
        return value


class FakeCollection:
    """1-based Outlook collection (Folders / Items)."""

    def __init__(self, entries, fail_at=()):
        self.entries = list(entries)
        self.fail_at = set(fail_at)
        self.sorted_by = None
        self.calls = []

    @property
    def Count(self):
        return len(self.entries)

    def Item(self, index):
        self.calls.append(index)
        if index in self.fail_at:
            raise ComError(f"Item({index}) failed")
        if index < 1 or index > len(self.entries):
            raise ComError(f"Item({index}) out of range")
        return self.entries[index - 1]

    def Sort(self, field, descending=False):
        self.sorted_by = (field, descending)


class FakeMapiObject:
    def __init__(self, body=b"", qi_error=None):
        self.body = body
        self.qi_error = qi_error

    def QueryInterface(self, iid):
        if self.qi_error is not None:
            raise self.qi_error
        return FakeMessage(self.body)


class FakeMessage:
    def __init__(self, body):
        self.body = body


class FakeStream:
    """IStream over a BytesIO: Seek returns the new position, Read returns bytes."""

    def __init__(self):
        self.buf = io.BytesIO()
        self.seeks = []

    def Seek(self, offset, origin):
        self.seeks.append((offset, origin))
        return self.buf.seek(offset, origin)

    def Write(self, data):
        self.buf.write(data)
        return len(data)

    def Read(self, size):
        return self.buf.read(size)


class FakeConverter:
    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.converted = []

    def MAPIToMIMEStm(self, message, stream, flags):
        if message.body in self.fail_on:
            raise ComError("MAPIToMIMEStm failed")
        self.converted.append(message.body)
        stream.Write(message.body)


def make_item(created, body=b"", subject="subject", mclass="IPM.Note", **overrides):
    props = {
        "Subject": subject,
        "MessageClass": mclass,
        "CreationTime": created,
        "MAPIOBJECT": FakeMapiObject(body),
    }
    props.update(overrides)
    return FakeComObject(**props)


def make_folder(name, items=0, children=(), path=None, **overrides):
    props = {
        "Name": name,
        "FolderPath": path if path is not None else f"\\\\{name}",
        "EntryID": f"id-{name}",
        "Class": 2,
        "DefaultItemType": 0,
        "DefaultMessageClass": "IPM.Note",
        "Store": FakeComObject(DisplayName="Mailbox", FilePath="C:\\mail.ost"),
        "Folders": FakeCollection(children),
        "Items": FakeCollection([object()] * items),
    }
    props.update(overrides)
    return FakeComObject(**props)


@pytest.fixture
def stream():
    return FakeStream()


@pytest.fixture
def converter():
    return FakeConverter()


@pytest.fixture
def inbox_items():
    """Three messages over two months, already in CreationTime order."""
    return FakeCollection([
        make_item(datetime(2023, 1, 5, 9, 0), b"From: a\r\n\r\nfirst\r\n"),
        make_item(datetime(2023, 1, 20, 9, 0), b"From: b\r\n\r\nsecond\r\n"),
        make_item(datetime(2023, 2, 2, 9, 0), b"From: c\r\n\r\nthird\r\n"),
    ])
