import os
import os.path as op
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

# FILETIME values count 100ns intervals since this date.
FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)
_MIN_FILETIME = 0
_MAX_FILETIME = (datetime(9999, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc) - FILETIME_EPOCH) // timedelta(
    microseconds=1
) * 10


def should_unpack(filenames: list[str]) -> bool:
    """Determine whether we should unpack or not.
    This will return true if every file in the list has the extension .pack or we get a folder.
    """
    return all([x.lower().endswith(".pack") for x in filenames]) or (
        len(filenames) == 1 and op.isdir(filenames[0])
    )


def clean_path(path: str) -> str:
    """Convert any windows separators in the path to forward slashes, keeping the case."""
    return path.replace("\\", "/")


def normalise_path(path: str) -> str:
    """The key a path is stored under in a pack. Lookups are case insensitive."""
    return clean_path(path).lower()


def filetime_to_datetime(filetime: int) -> datetime:
    """Convert a FILETIME value to an aware UTC datetime.
    Values outside of the range datetime can represent are clamped."""
    filetime = min(max(filetime, _MIN_FILETIME), _MAX_FILETIME)
    return FILETIME_EPOCH + timedelta(microseconds=filetime // 10)


def datetime_to_filetime(dt: datetime) -> int:
    """Convert a datetime to a FILETIME value. Naive datetimes are taken to be local time."""
    if dt.tzinfo is None:
        dt = dt.astimezone()
    delta = dt - FILETIME_EPOCH
    return (delta // timedelta(microseconds=1)) * 10


def now_filetime() -> int:
    return datetime_to_filetime(datetime.now(timezone.utc))


def to_filetime(value: Optional[Union[datetime, int]], default: int) -> int:
    """Accept either a datetime or a raw FILETIME, falling back to ``default``."""
    if value is None:
        return default
    if isinstance(value, datetime):
        return datetime_to_filetime(value)
    return int(value)


def encode_fixed_str(value: str, width: int) -> bytes:
    """Encode a string as UTF-8 so that it fits in ``width`` bytes with a trailing NUL.
    The string is cut at a character boundary if it is too long."""
    raw = value.encode("utf-8")
    if len(raw) >= width:
        raw = raw[: width - 1].decode("utf-8", errors="ignore").encode("utf-8")
    return raw


def parse_manifest(manifest: Union[str, os.PathLike[str]]) -> list[str]:
    """Parse the manifest file and extract the list of files contained."""
    fnames = []
    with open(manifest, "r", encoding="utf-8") as f:
        for line in f:
            sline = line.strip()
            if not sline:
                continue
            fnames.append(clean_path(sline))
    return fnames
