from enum import Enum

# 'P' 'A' 'C' 'K' followed by the format version 2.1
PACK_MAGIC = b"PACK\x02\x01\x00\x00"

FILE_HEADER_SIZE = 0x200
PACKAGE_HEADER_SIZE = 0x20
ITEM_INFO_SIZE = 0x40
# Offset of the first name block.
INDEX_OFFSET = FILE_HEADER_SIZE + PACKAGE_HEADER_SIZE

ROOT_PATH_SIZE = 480
MAX_ROOT_LENGTH = ROOT_PATH_SIZE - 1

# Cipher seed derivation: mt_seed = (seed << 7) ^ SEED_XOR
SEED_XOR = 0xA9C36DE1
DEFAULT_MT_SEED = 5489

# Name block size classes.
SHORT_NAME_CLASS_MAX = 3
MEDIUM_NAME_CLASS = 4
LONG_NAME_CLASS = 5
SHORT_NAME_LIMIT = 0x10 * 4 - 1
MEDIUM_NAME_BLOCK = 0x60
MEDIUM_NAME_LIMIT = MEDIUM_NAME_BLOCK - 1

# Chunk size used when moving entry data between streams.
COPY_CHUNK_SIZE = 0x10000

INT32_MAX = 0x7FFFFFFF
UINT32_MAX = 0xFFFFFFFF


class PackState(str, Enum):
    UNOPENED = "unopened"
    HEADER_VALIDATED = "header-validated"
    INDEX_LOADED = "index-loaded"
    READY = "ready"
    CORRUPT = "corrupt"
