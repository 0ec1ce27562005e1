import io
import os
import random
from typing import Iterable, Union

from packmule import PackWriter

PAYLOAD_B = random.Random(0x5EED).randbytes(10000)
SAMPLE_ENTRIES = [("a.txt", b"hello"), ("dir/b.bin", PAYLOAD_B)]


def get_files(fpath: os.PathLike) -> list[str]:
    file_list = []
    for root, _, files in os.walk(fpath):
        for file in files:
            file_list.append(os.path.join(root, file))
    return file_list


def build_pack(
    entries: Iterable[tuple[str, Union[bytes, io.BytesIO]]] = SAMPLE_ENTRIES,
    revision: int = 7,
    root: str = "data",
    **kwargs,
) -> bytes:
    """Write the entries into a new pack and return its bytes."""
    out = io.BytesIO()
    with PackWriter(revision, root) as writer:
        for name, data in entries:
            writer.write(data, name, **kwargs)
        writer.save_to(out)
    return out.getvalue()
