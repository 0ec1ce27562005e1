"""Encoding of entry names in the pack index.

Every name is stored UTF-8 encoded with a trailing NUL. Bytes which are not
valid UTF-8 are kept as lone surrogates so that they are written back unchanged.
The first byte of each block describes how big the block is:

* 0-3: the block is ``0x10 * (class + 1)`` bytes long.
* 4: the block is 0x60 bytes long.
* 5 and above: the next 4 bytes hold the length of the name (including the NUL)
  and the block is that length plus 5 bytes long.
"""

import struct

from packmule.constants import (
    LONG_NAME_CLASS,
    MEDIUM_NAME_BLOCK,
    MEDIUM_NAME_CLASS,
    MEDIUM_NAME_LIMIT,
    SHORT_NAME_LIMIT,
)
from packmule.errors import FormatError


def length_prefix_size(name_class: int) -> int:
    """The number of bytes in front of the name itself."""
    return 5 if name_class > MEDIUM_NAME_CLASS else 1


def name_to_bytes(name: str) -> bytes:
    """The bytes stored for a name. Names which were not valid UTF-8 when read are
    written back as the bytes they were read from."""
    return name.encode("utf-8", errors="surrogateescape")


def encode_name(name: str, min_length: int = 0) -> bytes:
    """Encode a name for storage in a pack file.

    Parameters
    ----------
    name:
        The name to encode.
    min_length:
        The name is padded with NUL bytes up to this many bytes. This is used when
        re-encoding an existing entry so that it keeps the size of block it was
        read from.
    """
    name_raw = name_to_bytes(name)
    if len(name_raw) < min_length:
        name_raw += b"\x00" * (min_length - len(name_raw))

    required_length = len(name_raw) + 1

    if required_length <= SHORT_NAME_LIMIT:
        scale = required_length // 0x10
        buffer = bytearray((scale + 1) * 0x10)
        buffer[0] = scale
        buffer[1 : 1 + len(name_raw)] = name_raw
    elif required_length <= MEDIUM_NAME_LIMIT:
        buffer = bytearray(MEDIUM_NAME_BLOCK)
        buffer[0] = MEDIUM_NAME_CLASS
        buffer[1 : 1 + len(name_raw)] = name_raw
    else:
        buffer = bytearray(required_length + 5)
        buffer[0] = LONG_NAME_CLASS
        struct.pack_into("<i", buffer, 1, required_length)
        buffer[5 : 5 + len(name_raw)] = name_raw
    return bytes(buffer)


def name_block_size(data, offset: int = 0) -> int:
    """Determine the size of the name block starting at offset."""
    if offset >= len(data):
        raise FormatError(f"Name block at offset 0x{offset:X} is past the end of the index")
    name_class = data[offset]
    if name_class < MEDIUM_NAME_CLASS:
        return 0x10 * (name_class + 1)
    elif name_class == MEDIUM_NAME_CLASS:
        return MEDIUM_NAME_BLOCK
    if offset + 5 > len(data):
        raise FormatError(f"Name length at offset 0x{offset + 1:X} is past the end of the index")
    (required_length,) = struct.unpack_from("<i", data, offset + 1)
    if required_length < 1:
        raise FormatError(f"Invalid name length {required_length} at offset 0x{offset + 1:X}")
    return required_length + 5


def decode_name(data, offset: int = 0) -> tuple[str, int, int]:
    """Decode the name block starting at offset.

    Returns
    -------
    A tuple of the name, the maximum length of a name which fits in the same block
    and the total size of the block.
    """
    block_size = name_block_size(data, offset)
    if offset + block_size > len(data):
        raise FormatError(
            f"Name block at offset 0x{offset:X} (0x{block_size:X} bytes) is past the end of the index"
        )
    prefix = length_prefix_size(data[offset])
    # The trailing NUL doesn't count towards the length.
    max_name_length = block_size - prefix - 1
    start = offset + prefix
    raw = bytes(data[start : start + max_name_length])
    name = raw.rstrip(b"\x00").decode("utf-8", errors="surrogateescape")
    return name, max_name_length, block_size
