import io
import os
import os.path as op
from datetime import datetime, timezone
from pathlib import Path

import pytest
from utils import PAYLOAD_B, build_pack, get_files

from packmule import PackFile, PackWriter
from packmule.errors import BoundsError
from packmule.utils import parse_manifest


@pytest.mark.parametrize("compress", (True, False))
def test_repack(tmp_path: Path, compress: bool):
    with PackFile(io.BytesIO(build_pack()), name="7.pack") as pack:
        assert pack.unpack(tmp_path, write_manifest=True) == 2

    files = get_files(tmp_path)
    assert len(files) == 3

    # Find the manifest file
    manifest_fpath = None
    for fpath in files:
        if fpath.endswith(".manifest"):
            manifest_fpath = fpath
    assert manifest_fpath is not None
    assert parse_manifest(manifest_fpath) == ["a.txt", "dir/b.bin"]

    out_fpath = PackWriter.repack(manifest_fpath, revision=8, root="data", compress=compress)
    assert op.realpath(out_fpath) == op.realpath(tmp_path / "7.pack")
    assert op.exists(tmp_path / "7.pack")

    with PackFile(out_fpath) as pack:
        assert pack.revision == 8
        assert pack.filenames == ["a.txt", "dir/b.bin"]
        assert pack["dir/b.bin"].is_compressed is compress
        assert dict(pack.extract_all()) == {"a.txt": b"hello", "dir/b.bin": PAYLOAD_B}


def test_write_file_uses_file_times(tmp_path: Path):
    fpath = tmp_path / "file.bin"
    fpath.write_bytes(b"\x00" * 100)
    mtime = datetime(2012, 3, 4, 5, 6, 7, tzinfo=timezone.utc).timestamp()
    os.utime(fpath, (mtime, mtime))
    with PackWriter(1) as writer:
        entry = writer.write_file(fpath)
        assert entry.name == "file.bin"
        assert entry.modified == datetime(2012, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
        assert entry.accessed == datetime(2012, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
        assert entry.decompressed_size == 100


def test_writer_entries():
    created = datetime(2001, 1, 1, tzinfo=timezone.utc)
    with PackWriter(0x80000005, "root") as writer:
        first = writer.write(b"abc" * 100, "one", compress=True, created=created)
        second = writer.write(io.BytesIO(b"xyz"), "two", seed=-42, compress=False)
        assert first.data_offset == 0
        assert second.data_offset == first.size_in_pack
        assert writer.body_size == first.size_in_pack + second.size_in_pack
        assert first.decompressed_size == 300
        assert first.size_in_pack < 300
        # Revisions above the signed range wrap into the seed
        assert first.seed == 0x80000005 - 0x100000000
        assert second.seed == -42
        assert second.size_in_pack == 3
        assert first.created == created
        out = io.BytesIO()
        size = writer.save_to(out)
        assert size == len(out.getvalue())

    with PackFile(io.BytesIO(out.getvalue())) as pack:
        assert pack.revision == 0x80000005
        assert pack["one"].created == created
        assert pack["two"].seed == -42
        with pack.extract("two") as f:
            assert f.read() == b"xyz"


def test_save_to_twice():
    with PackWriter(1) as writer:
        writer.write(b"data", "a")
        first = io.BytesIO()
        second = io.BytesIO()
        writer.save_to(first)
        writer.save_to(second)
    # Only the header timestamps may differ
    assert first.getvalue()[32:] == second.getvalue()[32:]


def test_long_names():
    names = ["n" * length for length in (1, 15, 16, 62, 63, 64, 94, 95, 96, 200)]
    data = build_pack([(name, name.encode()) for name in names])
    with PackFile(io.BytesIO(data)) as pack:
        assert pack.filenames == names
        for name in names:
            with pack.extract(name) as f:
                assert f.read() == name.encode()


def test_temporary_body_removed():
    writer = PackWriter(1)
    body = writer._body
    writer.write(b"abc", "a")
    writer.close()
    assert body.closed

    with pytest.raises(RuntimeError):
        with PackWriter(1) as writer:
            body = writer._body
            raise RuntimeError("boom")
    assert body.closed


def test_invalid_arguments():
    with pytest.raises(BoundsError):
        PackWriter(1, "r" * 480)
    with PackWriter(1) as writer:
        with pytest.raises(BoundsError):
            writer.write(b"abc", "a", seed=0x80000000)
        assert writer.entries == []
    with pytest.raises(BoundsError):
        PackWriter(-1)
    with pytest.raises(BoundsError):
        PackWriter(0x100000000)


class FailingSource:
    """A stream which fails after returning some data."""

    def __init__(self):
        self.reads = 0

    def read(self, size=-1):
        self.reads += 1
        if self.reads == 1:
            return b"x" * 100
        raise OSError("read failed")


@pytest.mark.parametrize("compress", (True, False))
def test_failed_write_is_dropped(compress: bool):
    with PackWriter(1) as writer:
        first = writer.write(b"abc", "a")
        with pytest.raises(OSError):
            writer.write(FailingSource(), "b", compress=compress)
        assert writer.body_size == first.size_in_pack
        assert len(writer.entries) == 1
        second = writer.write(b"def", "c")
        assert second.data_offset == first.size_in_pack
        out = io.BytesIO()
        writer.save_to(out)

    with PackFile(io.BytesIO(out.getvalue())) as pack:
        assert pack.filenames == ["a", "c"]
        assert pack.validate() == []
        with pack.extract("c") as f:
            assert f.read() == b"def"
