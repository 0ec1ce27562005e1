import os.path as op
from pathlib import Path

from utils import PAYLOAD_B, build_pack

from packmule import PackFile
from packmule.cli import run


def test_list(tmp_path: Path, capsys):
    (tmp_path / "7.pack").write_bytes(build_pack())
    (tmp_path / "junk.pack").write_bytes(b"not a pack file")
    run(["-L", str(tmp_path)])
    lines = capsys.readouterr().out.splitlines()
    assert lines == ["7.pack\ta.txt\t5\t7", "7.pack\tdir/b.bin\t10000\t7"]


def test_unpack_and_pack(tmp_path: Path):
    (tmp_path / "7.pack").write_bytes(build_pack())
    (tmp_path / "8.pack").write_bytes(build_pack([("new.txt", b"new")], revision=8))
    output = tmp_path / "out"
    run(["-U", "-O", str(output), "--max-revision", "7", "--manifest", str(tmp_path)])
    assert (output / "a.txt").read_bytes() == b"hello"
    assert (output / "dir" / "b.bin").read_bytes() == PAYLOAD_B
    assert not (output / "new.txt").exists()
    assert op.exists(output / "7.pack.manifest")

    run(["-P", "--revision", "9", "--root", "data", str(output / "7.pack.manifest")])
    with PackFile(output / "7.pack") as pack:
        assert pack.revision == 9
        assert pack.root == "data"
        assert dict(pack.extract_all()) == {"a.txt": b"hello", "dir/b.bin": PAYLOAD_B}


def test_pack_directory(tmp_path: Path):
    source = tmp_path / "source"
    (source / "sub").mkdir(parents=True)
    (source / "sub" / "file.txt").write_bytes(b"contents")
    out = tmp_path / "result.pack"
    run(["-P", "-O", str(out), "--no-compress", str(source)])
    with PackFile(out) as pack:
        assert pack.filenames == ["sub/file.txt"]
        assert not pack["sub/file.txt"].is_compressed
        with pack.extract("SUB/FILE.TXT") as f:
            assert f.read() == b"contents"
