import fnmatch
import io
import os
import os.path as op
import tempfile
from contextlib import suppress
from datetime import datetime, timezone
from io import SEEK_END, SEEK_SET, BytesIO
from logging import NullHandler, getLogger
from typing import BinaryIO, Iterable, Iterator, Mapping, Optional, Union

from packmule.buffers import SegmentStream, copy_stream, read_up_to
from packmule.compressors import Compressor
from packmule.constants import (
    FILE_HEADER_SIZE,
    INDEX_OFFSET,
    INT32_MAX,
    ITEM_INFO_SIZE,
    MAX_ROOT_LENGTH,
    PACK_MAGIC,
    PACKAGE_HEADER_SIZE,
    UINT32_MAX,
    PackState,
)
from packmule.crypto import PackCryptoStream
from packmule.errors import BoundsError, FormatError, PackError, UnsupportedOperationError
from packmule.names import decode_name, encode_name, name_to_bytes
from packmule.structs import FileHeader, PackageHeader, PackageItemInfo
from packmule.utils import (
    clean_path,
    datetime_to_filetime,
    filetime_to_datetime,
    normalise_path,
    now_filetime,
    parse_manifest,
    to_filetime,
)

logger = getLogger(__name__)
logger.addHandler(NullHandler())

PathLike = Union[str, os.PathLike[str]]


class PackEntry:
    """An entry (a single packed file) within a pack file."""

    __slots__ = (
        "_name",
        "_max_name_length",
        "seed",
        "is_compressed",
        "size_in_pack",
        "decompressed_size",
        "data_offset",
        "creation_time",
        "modified_time",
        "access_time",
    )

    def __init__(
        self,
        name: str,
        seed: int,
        is_compressed: bool,
        size_in_pack: int,
        decompressed_size: int,
        data_offset: int,
        creation_time: int = 0,
        modified_time: int = 0,
        access_time: int = 0,
    ):
        # -1 means there is no limit on the length of the name.
        self._max_name_length = -1
        self._name = name
        self.seed = seed
        self.is_compressed = is_compressed
        self.size_in_pack = size_in_pack
        self.decompressed_size = decompressed_size
        # Relative to the start of the data section, not the file.
        self.data_offset = data_offset
        self.creation_time = creation_time
        self.modified_time = modified_time
        self.access_time = access_time

    @classmethod
    def from_info(cls, info: PackageItemInfo, name: str, max_name_length: int) -> "PackEntry":
        """Create an entry from an item record read from the index of a pack file."""
        if len(name_to_bytes(name)) > max_name_length:
            raise BoundsError(f"Name {name!r} is longer than its maximum length of {max_name_length} bytes")
        entry = cls(
            name,
            info.seed,
            info.is_compressed,
            info.compressed_size,
            info.decompressed_size,
            info.offset,
            info.creation_time,
            info.modified_time2,
            info.last_access_time,
        )
        entry._max_name_length = max_name_length
        return entry

    def to_info(self) -> PackageItemInfo:
        """Build the item record for this entry.
        The creation and modification times are each written to two fields."""
        return PackageItemInfo(
            seed=self.seed,
            offset=self.data_offset,
            compressed_size=self.size_in_pack,
            decompressed_size=self.decompressed_size,
            is_compressed=self.is_compressed,
            creation_time=self.creation_time,
            creation_time2=self.creation_time,
            last_access_time=self.access_time,
            modified_time=self.modified_time,
            modified_time2=self.modified_time,
        )

    @property
    def name(self) -> str:
        """The name (AKA the path) of the entry."""
        return self._name

    @name.setter
    def name(self, value: str):
        if self._max_name_length >= 0 and len(name_to_bytes(value)) > self._max_name_length:
            raise BoundsError(
                f"Name {value!r} is longer than the maximum length of {self._max_name_length} bytes"
            )
        self._name = value

    @property
    def max_name_length(self) -> int:
        """The maximum length in bytes of the name, or -1 if there is no limit."""
        return self._max_name_length

    @property
    def normalised_name(self) -> str:
        return normalise_path(self._name)

    @property
    def created(self) -> datetime:
        return filetime_to_datetime(self.creation_time)

    @created.setter
    def created(self, value: datetime):
        self.creation_time = datetime_to_filetime(value)

    @property
    def modified(self) -> datetime:
        return filetime_to_datetime(self.modified_time)

    @modified.setter
    def modified(self, value: datetime):
        self.modified_time = datetime_to_filetime(value)

    @property
    def accessed(self) -> datetime:
        return filetime_to_datetime(self.access_time)

    @accessed.setter
    def accessed(self, value: datetime):
        self.access_time = datetime_to_filetime(value)

    def __str__(self):
        return (
            f"File: {self._name}: Offset: 0x{self.data_offset:X}, Size: 0x{self.size_in_pack:X}, "
            f"Decompressed size: 0x{self.decompressed_size:X}, Compressed: {self.is_compressed}, "
            f"Seed: {self.seed}"
        )

    def __repr__(self):
        return str(self)


def _check_revision(revision: int) -> int:
    if not 0 <= revision <= UINT32_MAX:
        raise BoundsError(f"Revision {revision} does not fit in an unsigned 32 bit value")
    return revision


def _build_index(entries: Iterable[PackEntry], pad_names: bool) -> tuple[list[tuple[bytes, bytes]], int]:
    """Encode the name block and item record of each entry.
    Returns the encoded pairs and the total size of them."""
    infos = []
    info_size = 0
    for entry in entries:
        name_block = encode_name(entry.name, entry.max_name_length if pad_names else 0)
        infos.append((name_block, entry.to_info().encode()))
        info_size += len(name_block) + ITEM_INFO_SIZE
    return infos, info_size


class PackFile:
    """A pack file opened for reading.

    The entries and the metadata of the pack may be modified and written back with
    ``save``, but the contained data can't be.

    Parameters
    ----------
    source:
        Either the path to the pack file, or a seekable binary file object. A path
        is opened when the pack is opened and closed with it. A file object is
        never closed by this class.
    name:
        The name of the pack. Defaults to the name of the file.
    mode:
        The mode used to open the file when ``source`` is a path. Use ``"r+b"`` to
        allow ``save`` to write back to it.
    """

    fobj: BinaryIO

    def __init__(self, source: Union[PathLike, BinaryIO], name: Optional[str] = None, mode: str = "rb"):
        self.compressor = Compressor()
        self._owns_fobj = isinstance(source, (str, os.PathLike))
        if self._owns_fobj:
            self.fpath = source
            self.fobj = None
        else:
            self.fpath = getattr(source, "name", None)
            self.fobj = source
        self.mode = mode
        self.name = name or (op.basename(self.fpath) if isinstance(self.fpath, (str, os.PathLike)) else "<stream>")

        self.header = FileHeader()
        self.package_header = PackageHeader()
        self._files: dict[str, PackEntry] = {}
        self._data_start = 0
        self.state = PackState.UNOPENED

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def open(self) -> "PackFile":
        """Open the source (if required) and read the header and index."""
        if self.fobj is None:
            self.fobj = open(self.fpath, self.mode)
        if not self.fobj.seekable():
            raise ValueError("Source must be seekable")
        try:
            self._parse()
        except PackError:
            self.state = PackState.CORRUPT
            self.close()
            raise
        except Exception:
            self.close()
            raise
        return self

    def close(self):
        if self._owns_fobj and self.fobj is not None:
            self.fobj.close()
            self.fobj = None

    def _require_ready(self):
        if self.state == PackState.CORRUPT:
            raise FormatError(f"{self.name} is corrupted")
        if self.state != PackState.READY or self.fobj is None:
            raise ValueError(f"{self.name} has not been opened")

    def _parse(self):
        self.fobj.seek(0, SEEK_SET)
        self._files = {}

        self.header = FileHeader.read(self.fobj)
        if self.header.signature != PACK_MAGIC:
            raise FormatError(f"{self.name} does not appear to be a valid pack file.")
        self.state = PackState.HEADER_VALIDATED

        self.package_header = PackageHeader.read(self.fobj)
        if any(self.package_header.zero):
            raise FormatError(f"{self.name} is corrupted: reserved header bytes are not zero.")

        self._read_index()
        self.state = PackState.INDEX_LOADED

        self._data_start = self.fobj.tell()
        logger.debug(
            f"Read {len(self._files)} entries from {self.name}. Data section starts at 0x{self._data_start:X}"
        )
        self.state = PackState.READY

    def _read_index(self):
        info_header_size = self.package_header.info_header_size
        if info_header_size < 0:
            raise FormatError(f"{self.name} has an invalid index size ({info_header_size})")
        index = self.fobj.read(info_header_size)
        if len(index) != info_header_size:
            raise FormatError(
                f"{self.name} is truncated: expected 0x{info_header_size:X} bytes of index, got 0x{len(index):X}"
            )

        ptr = 0
        for i in range(self.package_header.entry_count):
            name, max_name_length, block_size = decode_name(index, ptr)
            ptr += block_size
            info = PackageItemInfo.decode(index, ptr)
            if info.zero != 0:
                raise FormatError(f"Entry {i} ({name!r}) is corrupted!")
            key = normalise_path(name)
            if key in self._files:
                logger.warning(f"Entry {i} ({name!r}) replaces an earlier entry with the same name")
            self._files[key] = PackEntry.from_info(info, name, max_name_length)
            ptr += ITEM_INFO_SIZE

    # Container metadata

    @property
    def revision(self) -> int:
        return self.header.revision

    @revision.setter
    def revision(self, value: int):
        self.header.revision = _check_revision(value)

    @property
    def root(self) -> str:
        return self.header.root

    @root.setter
    def root(self, value: str):
        if len(value.encode("utf-8")) > MAX_ROOT_LENGTH:
            raise BoundsError(f"Root is longer than {MAX_ROOT_LENGTH} bytes")
        self.header.root = value

    @property
    def created(self) -> datetime:
        return filetime_to_datetime(self.header.ft1)

    @created.setter
    def created(self, value: datetime):
        self.header.ft1 = datetime_to_filetime(value)

    @property
    def modified(self) -> datetime:
        return filetime_to_datetime(self.header.ft2)

    @modified.setter
    def modified(self, value: datetime):
        self.header.ft2 = datetime_to_filetime(value)

    @property
    def data_start(self) -> int:
        """The offset in the file of the start of the data section."""
        return self._data_start

    # Entry registry. This is read-only, entries can only be changed in place.

    @property
    def filenames(self) -> list[str]:
        return [entry.name for entry in self._files.values()]

    @property
    def normalised_names(self) -> list[str]:
        return list(self._files.keys())

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[PackEntry]:
        return iter(self._files.values())

    def __contains__(self, item: Union[str, PackEntry]) -> bool:
        if isinstance(item, PackEntry):
            return any(entry is item for entry in self._files.values())
        return normalise_path(item) in self._files

    def __getitem__(self, path: str) -> PackEntry:
        return self._files[normalise_path(path)]

    def get(self, path: str) -> Optional[PackEntry]:
        return self._files.get(normalise_path(path))

    def __setitem__(self, path: str, entry: PackEntry):
        raise UnsupportedOperationError("Entries can't be added to a pack file")

    def __delitem__(self, path: str):
        raise UnsupportedOperationError("Entries can't be removed from a pack file")

    def add(self, entry: PackEntry):
        raise UnsupportedOperationError("Entries can't be added to a pack file")

    def remove(self, entry: PackEntry):
        raise UnsupportedOperationError("Entries can't be removed from a pack file")

    def clear(self):
        raise UnsupportedOperationError("Entries can't be removed from a pack file")

    # Extraction

    def _resolve(self, entry: Union[str, PackEntry]) -> PackEntry:
        if isinstance(entry, PackEntry):
            return entry
        if (found := self.get(entry)) is None:
            raise FileNotFoundError(f"The specified file path ({entry!r}) doesn't exist in this pack")
        return found

    def extract(self, entry: Union[str, PackEntry]) -> io.RawIOBase:
        """Get a stream which reads the decoded contents of an entry.

        The stream reads directly from the pack file, so only one stream returned
        by this method should be read from at a time. To read several entries
        concurrently open a separate ``PackFile`` for each.
        """
        self._require_ready()
        entry = self._resolve(entry)
        stream = SegmentStream(self.fobj, self._data_start + entry.data_offset, entry.size_in_pack)
        stream = PackCryptoStream(stream, entry.seed)
        if entry.is_compressed:
            stream = self.compressor.open_decompressor(stream)
        return stream

    def _get_filtered_filelist(self, filters: Union[list[str], str, None] = None) -> Mapping[str, PackEntry]:
        """Filter the known file list.
        Filters are glob patterns (or plain names) matched case insensitively against the normalised names.
        """
        if filters is None:
            return dict(self._files)
        if isinstance(filters, str):
            filters = [filters]
        files = {}
        for filter_ in filters:
            filter_ = normalise_path(filter_)
            if "*" in filter_ or "?" in filter_:
                for filtered in fnmatch.filter(self._files, filter_):
                    files[filtered] = self._files[filtered]
            elif filter_ in self._files:
                files[filter_] = self._files[filter_]
        return files

    def extract_all(
        self,
        filters: Union[list[str], str, None] = None,
        max_bytes: int = -1,
    ) -> Iterable[tuple[str, bytes]]:
        """Extract the specified file(s) out of the pack iteratively.

        Parameters
        ----------
        filters:
            An optional list of glob patterns to pattern match against when extracting.
            Only files which match the pattern will be extracted.
            This can also just be a single string in which case just this file will be extracted.
        max_bytes:
            Maximum number of bytes to extract per-file. If this is -1 (the default) it will extract the
            entire file.

        Returns
        -------
        An iterable over the names and contents of the extracted files.
        """
        self._require_ready()
        for entry in self._get_filtered_filelist(filters).values():
            with self.extract(entry) as stream:
                yield (entry.name, read_up_to(stream, max_bytes))

    def unpack(
        self,
        dest: PathLike,
        filters: Union[list[str], str, None] = None,
        upper: bool = False,
        write_manifest: bool = False,
        use_root: bool = False,
    ) -> int:
        """Unpack the contained files to the specified destination

        Parameters
        ----------
        dest:
            The target folder to extract the files to.
        filters:
            An optional list of glob patterns to pattern match against when unpacking.
            This can also just be a single string in which case just this file will be unpacked.
        upper:
            If True, file names will be normalised to upper case.
            Note: This setting will be ignored if ``write_manifest`` is True.
        write_manifest:
            Whether or not to write the manifest for the pack to disk.
            This is required if you want to repack the archive.
            This file will be written at the top level of the extraction directory.
        use_root:
            Extract files below the root path recorded in the pack header.

        Returns
        -------
        Total number of files unpacked.
        """
        self._require_ready()
        files = self._get_filtered_filelist(filters)

        if len(files) == 0:
            return 0

        if upper and write_manifest:
            logger.warning(
                "`upper` and `write_manifest` arguments are both set to True. This combination is not valid."
                " The value for `upper` will be ignored."
            )

        base = op.join(dest, clean_path(self.root)) if use_root and self.root else dest

        real_base = op.realpath(base)
        extracted = []
        for entry in files.values():
            _export_path, fname = op.split(clean_path(entry.name).lstrip("/"))
            dir_ = op.join(base, _export_path)
            if upper and not write_manifest:
                dir_ = op.join(base, _export_path.upper())
                fname = fname.upper()
            target = op.realpath(op.join(dir_, fname))
            if not fname or op.commonpath([real_base, target]) != real_base or target == real_base:
                logger.warning(f"Skipping {entry.name!r}: it would be extracted outside of {base}")
                continue
            os.makedirs(dir_, exist_ok=True)
            logger.debug(f"Extracting {entry.name}")
            with open(op.join(dir_, fname), "wb") as f, self.extract(entry) as stream:
                copy_stream(stream, f)
            extracted.append(entry)

        if write_manifest:
            os.makedirs(base, exist_ok=True)
            manifest_path = op.join(base, f"{self.name}.manifest")
            with open(manifest_path, "w", encoding="utf-8", errors="surrogateescape", newline="") as f:
                for entry in extracted:
                    f.write(clean_path(entry.name) + "\r\n")

        return len(extracted)

    def dump_index(self, dest: PathLike):
        """Dump the index of the pack file to disk

        Parameters
        ----------
        dest
            The file to dump the info into
        """
        with open(dest, "w", encoding="utf-8") as f:
            f.write(str(self.header))
            for entry in self._files.values():
                f.write(f"{entry}\n")

    def validate(self) -> list[str]:
        """Check that the data of every entry lies within the data section and that no two entries overlap.
        This doesn't change anything, it only returns a description of each problem found."""
        self._require_ready()
        problems = []
        data_size = self.package_header.data_section_size
        ranges = sorted(self._files.values(), key=lambda e: (e.data_offset, e.size_in_pack))
        for entry in ranges:
            if entry.size_in_pack < 0 or entry.data_offset + entry.size_in_pack > data_size:
                problems.append(
                    f"{entry.name}: 0x{entry.data_offset:X}+0x{entry.size_in_pack:X} is outside of the "
                    f"data section (0x{data_size:X} bytes)"
                )
        furthest = None
        for entry in ranges:
            if entry.size_in_pack <= 0:
                continue
            end = entry.data_offset + entry.size_in_pack
            if furthest is not None:
                if entry.data_offset < furthest.data_offset + furthest.size_in_pack:
                    problems.append(f"{entry.name} overlaps {furthest.name}")
                if end <= furthest.data_offset + furthest.size_in_pack:
                    continue
            furthest = entry
        for problem in problems:
            logger.debug(problem)
        return problems

    def save(self):
        """Write the headers and the index back to the pack file.

        Only the metadata (names, timestamps, revision, root etc.) is written; the
        data section is left untouched. Names are padded so that each entry keeps
        the size of its name block, and any space left before the data section is
        zeroed.
        """
        self._require_ready()
        if not self.fobj.writable():
            raise UnsupportedOperationError(f"{self.name} was not opened for writing")

        infos, info_size = _build_index(self._files.values(), pad_names=True)
        blank_size = self._data_start - (INDEX_OFFSET + info_size)
        if blank_size < 0:
            raise BoundsError(f"The index of {self.name} no longer fits before the data section")

        self.fobj.seek(0, SEEK_END)
        data_section_size = self.fobj.tell() - self._data_start

        self.header.signature = PACK_MAGIC
        self.header.entry_count = len(self._files)
        self.package_header = PackageHeader(
            entry_count=len(self._files),
            info_header_size=info_size + blank_size,
            blank_size=blank_size,
            data_section_size=data_section_size,
        )

        self.fobj.seek(0, SEEK_SET)
        self.header.write(self.fobj)
        self.package_header.write(self.fobj)
        for name_block, info in infos:
            self.fobj.write(name_block)
            self.fobj.write(info)
        self.fobj.write(b"\x00" * blank_size)
        self.fobj.flush()
        # Renamed entries are looked up by their new names from now on.
        files = {}
        for entry in self._files.values():
            key = entry.normalised_name
            if key in files:
                logger.warning(f"{entry.name!r} replaces an earlier entry with the same name")
            files[key] = entry
        self._files = files
        logger.info(f"Saved the index of {self.name} ({len(infos)} entries, 0x{blank_size:X} blank bytes)")


class PackWriter:
    """Build a new pack file.

    Entry data is compressed and encrypted as it is written and stored in a
    temporary file until ``save_to`` is called. The temporary file is removed when
    the writer is closed, including when it is used as a context manager and an
    error is raised.
    """

    def __init__(self, revision: int, root: str = "", compressor: Optional[Compressor] = None):
        if len(root.encode("utf-8")) > MAX_ROOT_LENGTH:
            raise BoundsError(f"Root is longer than {MAX_ROOT_LENGTH} bytes")
        self.revision = _check_revision(revision)
        self.root = root
        self.compressor = compressor or Compressor()
        self.entries: list[PackEntry] = []
        self._body = tempfile.TemporaryFile(prefix="packmule-", suffix=".body")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        # Removing the temporary file is best effort.
        with suppress(OSError):
            self._body.close()

    @property
    def body_size(self) -> int:
        return self._body.seek(0, SEEK_END)

    def write(
        self,
        source: Union[bytes, bytearray, memoryview, BinaryIO],
        name: str,
        seed: Optional[int] = None,
        compress: bool = True,
        created: Optional[Union[datetime, int]] = None,
        modified: Optional[Union[datetime, int]] = None,
        accessed: Optional[Union[datetime, int]] = None,
    ) -> PackEntry:
        """Add an entry to the pack.

        Parameters
        ----------
        source:
            The data of the entry, either as bytes or as a readable binary stream.
            A stream is read from its current position to its end.
        name:
            The name of the entry within the pack.
        seed:
            The seed used to encrypt the entry. Defaults to the revision of the pack.
        compress:
            Whether or not to compress the entry.
        created, modified, accessed:
            Timestamps for the entry, as datetimes or FILETIME values. They default
            to the current time.

        Returns
        -------
        The new entry.
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = BytesIO(source)
        if seed is None:
            # Seeds are signed 32-bit values, revisions unsigned.
            seed = ((self.revision + 0x80000000) & UINT32_MAX) - 0x80000000
        if not -0x80000000 <= seed <= INT32_MAX:
            raise BoundsError(f"Seed {seed} does not fit in 32 bits")
        now = now_filetime()

        output_start = self._body.seek(0, SEEK_END)
        cipher = PackCryptoStream(self._body, seed)
        try:
            if compress:
                consumed = self.compressor.compress_stream(source, cipher)
            else:
                consumed = copy_stream(source, cipher)
            cipher.close()
        except Exception:
            # Drop whatever part of the entry made it into the body.
            self._body.truncate(output_start)
            raise
        size_in_pack = self._body.tell() - output_start

        if consumed > INT32_MAX or size_in_pack > INT32_MAX or self._body.tell() > UINT32_MAX:
            self._body.truncate(output_start)
            raise BoundsError(f"{name} is too large to be stored in a pack file")

        entry = PackEntry(
            name,
            seed,
            compress,
            size_in_pack,
            consumed,
            output_start,
            to_filetime(created, now),
            to_filetime(modified, now),
            to_filetime(accessed, now),
        )
        self.entries.append(entry)
        logger.debug(f"Added {entry}")
        return entry

    def write_file(self, fpath: PathLike, name: Optional[str] = None, **kwargs) -> PackEntry:
        """Add a file on disk to the pack, using its timestamps unless others are given."""
        stat = os.stat(fpath)
        kwargs.setdefault("created", datetime.fromtimestamp(stat.st_ctime, timezone.utc))
        kwargs.setdefault("modified", datetime.fromtimestamp(stat.st_mtime, timezone.utc))
        kwargs.setdefault("accessed", datetime.fromtimestamp(stat.st_atime, timezone.utc))
        with open(fpath, "rb") as f:
            return self.write(f, name or clean_path(op.basename(fpath)), **kwargs)

    def save_to(self, dest: Union[PathLike, BinaryIO]) -> int:
        """Write the complete pack file to the given path or binary stream.

        Returns
        -------
        The number of bytes written.
        """
        if isinstance(dest, (str, os.PathLike)):
            with open(dest, "wb") as f:
                return self.save_to(f)

        timestamp = now_filetime()
        infos, info_size = _build_index(self.entries, pad_names=False)
        body_size = self.body_size

        header = FileHeader(
            revision=self.revision,
            entry_count=len(self.entries),
            ft1=timestamp,
            ft2=timestamp,
            root=self.root,
        )
        package_header = PackageHeader(
            entry_count=len(self.entries),
            info_header_size=info_size,
            blank_size=0,
            data_section_size=body_size,
        )

        header.write(dest)
        package_header.write(dest)
        for name_block, info in infos:
            dest.write(name_block)
            dest.write(info)

        self._body.seek(0, SEEK_SET)
        copy_stream(self._body, dest)
        logger.info(f"Wrote {len(self.entries)} entries (0x{body_size:X} bytes of data)")
        return FILE_HEADER_SIZE + PACKAGE_HEADER_SIZE + info_size + body_size

    def pack_files(self, filepaths: list[str], root_dir: PathLike, compress: bool = True) -> int:
        """Add the provided files, given relative to root_dir, to the pack.
        Returns the number of files added."""
        for fpath in filepaths:
            realpath = op.realpath(op.join(root_dir, fpath))
            self.write_file(realpath, clean_path(fpath), compress=compress)
        return len(filepaths)

    @classmethod
    def repack(
        cls,
        manifest: PathLike,
        out_fpath: Optional[PathLike] = None,
        revision: int = 0,
        root: str = "",
        compress: bool = True,
    ) -> str:
        """Repack the provided manifest file

        Parameters
        ----------
        manifest:
            The path to the manifest file to be repacked.
            This file should be the one written by ``PackFile.unpack``. Each line is the path of one file
            relative to the directory of the manifest.
        out_fpath:
            The destination pack path. If not provided this will fallback to the name of the pack based on
            the manifest and will be written to the same directory as the manifest.
        revision:
            The revision of the new pack.
        root:
            The root path recorded in the pack header.
        compress:
            Whether or not to compress the data contained within the pack file.

        Returns
        -------
        The path of the written pack.
        """
        real_manifest_path = op.realpath(manifest)
        manifest_dir = op.dirname(real_manifest_path)
        pack_name, _ = op.splitext(op.basename(manifest))
        file_list = parse_manifest(manifest)
        if out_fpath is None:
            out_fpath = op.join(manifest_dir, pack_name)
        with cls(revision, root) as writer:
            writer.pack_files(file_list, manifest_dir, compress)
            writer.save_to(out_fpath)
        return os.fspath(out_fpath)
