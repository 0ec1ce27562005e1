"""Fixed size binary records found in a pack file.

Each record lists its fields as (name, offset, width, kind) in ``FIELDS``. The
layout is checked when the class is created and one generic routine converts
between the record and its bytes, so the on-disk layout never depends on how
Python lays anything out in memory.
"""

import struct
from dataclasses import dataclass, field
from typing import BinaryIO, ClassVar

from packmule.constants import (
    FILE_HEADER_SIZE,
    ITEM_INFO_SIZE,
    PACK_MAGIC,
    PACKAGE_HEADER_SIZE,
    ROOT_PATH_SIZE,
)
from packmule.errors import FormatError
from packmule.utils import encode_fixed_str

# struct formats for the integer kinds.
_INT_KINDS = {
    "u32": ("<I", 4),
    "i32": ("<i", 4),
    "i64": ("<q", 8),
}


@dataclass(frozen=True)
class Field:
    name: str
    offset: int
    width: int
    kind: str

    def pack_into(self, buffer: bytearray, value):
        if self.kind in _INT_KINDS:
            struct.pack_into(_INT_KINDS[self.kind][0], buffer, self.offset, value)
        elif self.kind == "flag":
            # One byte holding the flag, the rest of the field is zero.
            buffer[self.offset] = 1 if value else 0
        elif self.kind == "bytes":
            raw = bytes(value)[: self.width]
            buffer[self.offset : self.offset + len(raw)] = raw
        elif self.kind == "str":
            raw = encode_fixed_str(value, self.width)
            buffer[self.offset : self.offset + len(raw)] = raw
        else:
            raise ValueError(f"Unknown field kind {self.kind!r}")

    def unpack_from(self, data, base: int):
        start = base + self.offset
        if self.kind in _INT_KINDS:
            return struct.unpack_from(_INT_KINDS[self.kind][0], data, start)[0]
        raw = bytes(data[start : start + self.width])
        if self.kind == "flag":
            return any(raw)
        elif self.kind == "bytes":
            return raw
        elif self.kind == "str":
            return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")
        raise ValueError(f"Unknown field kind {self.kind!r}")


def _check_layout(name: str, table: tuple[Field, ...], size: int):
    offset = 0
    for f in table:
        if f.offset != offset:
            raise TypeError(f"{name}.{f.name} is at offset 0x{f.offset:X}, expected 0x{offset:X}")
        if f.kind in _INT_KINDS and _INT_KINDS[f.kind][1] != f.width:
            raise TypeError(f"{name}.{f.name} has width {f.width} which does not match {f.kind}")
        offset += f.width
    if offset != size:
        raise TypeError(f"{name} fields cover 0x{offset:X} bytes, expected 0x{size:X}")


class Record:
    FIELDS: ClassVar[tuple[Field, ...]] = ()
    SIZE: ClassVar[int] = 0

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        _check_layout(cls.__name__, cls.FIELDS, cls.SIZE)

    def encode(self) -> bytes:
        buffer = bytearray(self.SIZE)
        for f in self.FIELDS:
            f.pack_into(buffer, getattr(self, f.name))
        return bytes(buffer)

    @classmethod
    def decode(cls, data, offset: int = 0):
        if offset < 0 or len(data) - offset < cls.SIZE:
            raise FormatError(
                f"Not enough data to read a {cls.__name__}: need 0x{cls.SIZE:X} bytes at offset 0x{offset:X}"
            )
        return cls(**{f.name: f.unpack_from(data, offset) for f in cls.FIELDS})

    @classmethod
    def read(cls, fobj: BinaryIO):
        return cls.decode(fobj.read(cls.SIZE))

    def write(self, fobj: BinaryIO):
        fobj.write(self.encode())


@dataclass
class FileHeader(Record):
    FIELDS: ClassVar[tuple[Field, ...]] = (
        Field("signature", 0x0, 8, "bytes"),
        Field("revision", 0x8, 4, "u32"),
        Field("entry_count", 0xC, 4, "i32"),
        Field("ft1", 0x10, 8, "i64"),
        Field("ft2", 0x18, 8, "i64"),
        Field("root", 0x20, ROOT_PATH_SIZE, "str"),
    )
    SIZE: ClassVar[int] = FILE_HEADER_SIZE

    signature: bytes = PACK_MAGIC
    revision: int = 0
    entry_count: int = 0
    ft1: int = 0
    ft2: int = 0
    root: str = ""

    def __str__(self):
        return (
            f"Pack Header:\n"
            f" Signature {self.signature.hex(' ')}\n"
            f" Revision {self.revision}\n"
            f" Entries: {self.entry_count}\n"
            f" Root: {self.root!r}\n"
        )


@dataclass
class PackageHeader(Record):
    FIELDS: ClassVar[tuple[Field, ...]] = (
        Field("entry_count", 0x0, 4, "i32"),
        Field("info_header_size", 0x4, 4, "i32"),
        # Space left after the index, possibly to allow the index to grow.
        Field("blank_size", 0x8, 4, "i32"),
        Field("data_section_size", 0xC, 4, "u32"),
        Field("zero", 0x10, 16, "bytes"),
    )
    SIZE: ClassVar[int] = PACKAGE_HEADER_SIZE

    entry_count: int = 0
    info_header_size: int = 0
    blank_size: int = 0
    data_section_size: int = 0
    zero: bytes = field(default=b"\x00" * 16)


@dataclass
class PackageItemInfo(Record):
    FIELDS: ClassVar[tuple[Field, ...]] = (
        Field("seed", 0x0, 4, "i32"),
        Field("zero", 0x4, 4, "i32"),
        Field("offset", 0x8, 4, "u32"),
        Field("compressed_size", 0xC, 4, "i32"),
        Field("decompressed_size", 0x10, 4, "i32"),
        Field("is_compressed", 0x14, 4, "flag"),
        Field("creation_time", 0x18, 8, "i64"),
        Field("creation_time2", 0x20, 8, "i64"),
        Field("last_access_time", 0x28, 8, "i64"),
        Field("modified_time", 0x30, 8, "i64"),
        Field("modified_time2", 0x38, 8, "i64"),
    )
    SIZE: ClassVar[int] = ITEM_INFO_SIZE

    seed: int = 0
    zero: int = 0
    offset: int = 0
    compressed_size: int = 0
    decompressed_size: int = 0
    is_compressed: bool = False
    creation_time: int = 0
    creation_time2: int = 0
    last_access_time: int = 0
    modified_time: int = 0
    modified_time2: int = 0
