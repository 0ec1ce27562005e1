import struct

import pytest

from packmule.errors import FormatError
from packmule.names import decode_name, encode_name, name_block_size


@pytest.mark.parametrize(
    "length, name_class, block_size",
    [
        (1, 0, 16),
        (14, 0, 16),
        (15, 1, 32),
        (16, 1, 32),
        (47, 3, 64),
        (62, 3, 64),
        (63, 4, 96),
        (64, 4, 96),
        (94, 4, 96),
        (95, 5, 101),
        (96, 5, 102),
        (200, 5, 206),
    ],
)
def test_size_classes(length: int, name_class: int, block_size: int):
    name = "n" * length
    block = encode_name(name)
    assert block[0] == name_class
    assert len(block) == block_size
    assert name_block_size(block) == block_size
    decoded, max_name_length, size = decode_name(block)
    assert decoded == name
    assert size == block_size
    assert max_name_length >= length


def test_block_contents():
    block = encode_name("a.txt")
    assert block == b"\x00a.txt" + b"\x00" * 10
    long_name = "x" * 100
    block = encode_name(long_name)
    assert block[0] == 5
    assert struct.unpack_from("<i", block, 1)[0] == 101
    assert block[5:105] == long_name.encode()
    assert block[105] == 0


@pytest.mark.parametrize(
    "length, max_name_length",
    [(1, 14), (15, 30), (62, 62), (63, 94), (95, 95), (200, 200)],
)
def test_max_name_length(length: int, max_name_length: int):
    _, decoded_max, _ = decode_name(encode_name("n" * length))
    assert decoded_max == max_name_length


def test_utf8_length():
    # 21 characters but 42 bytes of UTF-8
    name = "é" * 21
    block = encode_name(name)
    assert block[0] == 2
    assert decode_name(block)[0] == name


def test_padding_keeps_block_size():
    original = encode_name("data/some/long/path.txt")
    _, max_name_length, block_size = decode_name(original)
    shorter = encode_name("a.txt", max_name_length)
    assert len(shorter) == block_size
    name, new_max, _ = decode_name(shorter)
    assert name == "a.txt"
    assert new_max == max_name_length


def test_decode_at_offset():
    data = encode_name("first") + b"\xff" * 64 + encode_name("x" * 120)
    name, _, size = decode_name(data, 0)
    assert name == "first"
    name, _, _ = decode_name(data, size + 64)
    assert name == "x" * 120


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"\x01" + b"\x00" * 10,
        b"\x05\x00\x00",
        b"\x05" + struct.pack("<i", 50) + b"a" * 10,
        b"\x05" + struct.pack("<i", 0),
    ],
)
def test_truncated(data: bytes):
    with pytest.raises(FormatError):
        decode_name(data)


def test_undecodable_bytes_are_kept():
    data = b"\x00" + b"ab\xff\xfe" + b"\x00" * 11
    name, max_name_length, block_size = decode_name(data)
    assert name == "ab\udcff\udcfe"
    assert (max_name_length, block_size) == (14, 16)
    assert encode_name(name) == data
    assert encode_name(name, max_name_length) == data
