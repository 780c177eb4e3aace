"""Tests for monthly archive rotation and framing."""

import gzip
import os
from datetime import datetime

import pytest

from outlook_mmdf.archive import POSTMARK, ArchiveWriter


def _frames(path):
    with gzip.open(path, "rb") as f:
        data = f.read()
    # D p1 D D p2 D -> ['', p1, '', p2, '']
    return data.split(POSTMARK)[1::2]


@pytest.fixture
def writer(tmp_path):
    w = ArchiveWriter(str(tmp_path), "Inbox")
    yield w
    w.finalize()


def test_nothing_written_until_first_submit(writer, tmp_path):
    assert not writer.is_open
    assert os.listdir(tmp_path) == []


def test_file_name_and_framing(writer, tmp_path):
    writer.submit(b"hello", datetime(2023, 1, 5))
    writer.finalize()
    path = tmp_path / "Inbox_202301.mmdf.gz"
    assert path.exists()
    with gzip.open(path, "rb") as f:
        assert f.read() == POSTMARK + b"hello" + POSTMARK


def test_postmark_bytes():
    assert POSTMARK == b"\x01\x01\x01\x01\n"
    assert len(POSTMARK) == 5


def test_rotation_one_file_per_month(writer, tmp_path):
    stamps = [datetime(2022, 12, 31, 23, 59), datetime(2023, 1, 1), datetime(2023, 1, 31),
              datetime(2023, 2, 1), datetime(2023, 3, 15), datetime(2023, 3, 16)]
    for n, ts in enumerate(stamps):
        writer.submit(f"msg{n}".encode(), ts)
    writer.finalize()

    assert sorted(os.listdir(tmp_path)) == [
        "Inbox_202212.mmdf.gz", "Inbox_202301.mmdf.gz",
        "Inbox_202302.mmdf.gz", "Inbox_202303.mmdf.gz",
    ]
    assert _frames(tmp_path / "Inbox_202212.mmdf.gz") == [b"msg0"]
    assert _frames(tmp_path / "Inbox_202301.mmdf.gz") == [b"msg1", b"msg2"]
    assert _frames(tmp_path / "Inbox_202302.mmdf.gz") == [b"msg3"]
    assert _frames(tmp_path / "Inbox_202303.mmdf.gz") == [b"msg4", b"msg5"]
    assert writer.archives == [str(tmp_path / n) for n in (
        "Inbox_202212.mmdf.gz", "Inbox_202301.mmdf.gz",
        "Inbox_202302.mmdf.gz", "Inbox_202303.mmdf.gz")]


def test_same_month_in_other_year_rotates(writer, tmp_path):
    writer.submit(b"a", datetime(2022, 5, 1))
    writer.submit(b"b", datetime(2023, 5, 1))
    writer.finalize()
    assert len(writer.archives) == 2


def test_returning_month_appends_to_its_archive(writer, tmp_path):
    writer.submit(b"jan-1", datetime(2023, 1, 5))
    writer.submit(b"feb", datetime(2023, 2, 5))
    writer.submit(b"jan-2", datetime(2023, 1, 20))
    writer.finalize()

    assert _frames(tmp_path / "Inbox_202301.mmdf.gz") == [b"jan-1", b"jan-2"]
    assert _frames(tmp_path / "Inbox_202302.mmdf.gz") == [b"feb"]
    assert writer.archives == [str(tmp_path / "Inbox_202301.mmdf.gz"),
                               str(tmp_path / "Inbox_202302.mmdf.gz")]


def test_round_trip_preserves_payloads(writer, tmp_path):
    payloads = [b"From: x\r\n\r\nbody one\r\n", b"", b"line\n\n\x00binary\xff", b"From: y\r\n\r\nlast"]
    for p in payloads:
        writer.submit(p, datetime(2023, 4, 2))
    assert writer.frames == 4
    writer.finalize()
    assert _frames(tmp_path / "Inbox_202304.mmdf.gz") == payloads


def test_finalize_is_idempotent(writer):
    writer.submit(b"x", datetime(2023, 1, 1))
    writer.finalize()
    writer.finalize()
    assert not writer.is_open
    assert writer.current_path is None


def test_finalize_without_open_file(writer):
    writer.finalize()
    writer.finalize()
    assert writer.archives == []


def test_undated_message_joins_open_archive(writer, tmp_path):
    writer.submit(b"a", datetime(2023, 1, 1))
    writer.submit(b"b", None)
    writer.submit(b"c", datetime(2023, 1, 9))
    writer.finalize()
    assert writer.archives == [str(tmp_path / "Inbox_202301.mmdf.gz")]
    assert _frames(tmp_path / "Inbox_202301.mmdf.gz") == [b"a", b"b", b"c"]


def test_undated_message_without_open_archive(writer, tmp_path):
    writer.submit(b"a", None)
    writer.finalize()
    assert os.listdir(tmp_path) == ["Inbox_000101.mmdf.gz"]


def test_existing_file_is_replaced(tmp_path):
    (tmp_path / "Inbox_202301.mmdf.gz").write_bytes(b"stale" * 100)
    with ArchiveWriter(str(tmp_path), "Inbox") as w:
        w.submit(b"fresh", datetime(2023, 1, 2))
    assert _frames(tmp_path / "Inbox_202301.mmdf.gz") == [b"fresh"]


def test_missing_directory_raises(tmp_path):
    w = ArchiveWriter(str(tmp_path / "missing"), "Inbox")
    with pytest.raises(OSError):
        w.submit(b"x", datetime(2023, 1, 1))
    assert not w.is_open


def test_custom_extension(tmp_path):
    with ArchiveWriter(str(tmp_path), "Sent", extension="mmdf.gz.part") as w:
        w.submit(b"x", datetime(2021, 11, 3))
    assert os.listdir(tmp_path) == ["Sent_202111.mmdf.gz.part"]
