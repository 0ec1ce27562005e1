import os
from contextlib import contextmanager
from datetime import datetime, timezone
from tempfile import NamedTemporaryFile

from packmule.utils import (
    FILETIME_EPOCH,
    datetime_to_filetime,
    encode_fixed_str,
    filetime_to_datetime,
    normalise_path,
    parse_manifest,
    should_unpack,
)


def test_normalise_path():
    assert normalise_path("Data\\Gfx\\Char.DDS") == "data/gfx/char.dds"
    assert normalise_path("data/gfx/char.dds") == "data/gfx/char.dds"
    assert normalise_path("A/b\\C") == "a/b/c"


def test_filetime():
    assert filetime_to_datetime(0) == FILETIME_EPOCH
    # 1970-01-01 in FILETIME
    unix_epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert datetime_to_filetime(unix_epoch) == 116444736000000000
    assert filetime_to_datetime(116444736000000000) == unix_epoch
    dt = datetime(2015, 6, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)
    assert filetime_to_datetime(datetime_to_filetime(dt)) == dt
    # Out of range values are clamped rather than raising
    assert filetime_to_datetime(-1) == FILETIME_EPOCH
    assert filetime_to_datetime(0x7FFFFFFFFFFFFFFF).year == 9999


def test_encode_fixed_str():
    assert encode_fixed_str("data", 8) == b"data"
    assert encode_fixed_str("abcdefgh", 8) == b"abcdefg"
    # Multi-byte characters are not split
    assert encode_fixed_str("abcdefé", 8) == b"abcdef"


def test_should_unpack(tmp_path):
    assert should_unpack(["a.pack", "B.PACK"])
    assert not should_unpack(["a.pack", "b.txt"])
    assert should_unpack([str(tmp_path)])


@contextmanager
def tempfile_with_data(data: str):
    """Simple wrapper around the NamedTemporaryFile to write it with data but allow the file to be read."""
    tmp = NamedTemporaryFile("w", delete=False)
    tmp.write(data)
    tmp.close()
    yield tmp
    os.unlink(tmp.name)


def test_parse_manifest():
    # Posix path
    with tempfile_with_data("test/path.dds\r\n") as tmp:
        assert parse_manifest(tmp.name) == ["test/path.dds"]
    with tempfile_with_data("test/path.dds\r\ntest/path2.dds\r\n") as tmp:
        assert parse_manifest(tmp.name) == ["test/path.dds", "test/path2.dds"]
    # Windows path
    with tempfile_with_data("test\\path.dds\r\n") as tmp:
        assert parse_manifest(tmp.name) == ["test/path.dds"]
    with tempfile_with_data("test\\Path.dds\r\ntest\\path2.dds\r\n") as tmp:
        assert parse_manifest(tmp.name) == ["test/Path.dds", "test/path2.dds"]
    # Mix
    with tempfile_with_data("test/path.dds\r\n\r\ntest\\path2.dds\r\n") as tmp:
        assert parse_manifest(tmp.name) == ["test/path.dds", "test/path2.dds"]
