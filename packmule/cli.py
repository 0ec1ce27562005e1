import argparse
import logging
import os
import os.path as op
import pathlib
import sys
import time
from typing import Literal, Optional

from packmule import __version__
from packmule.api import PackFile, PackWriter
from packmule.errors import FormatError
from packmule.utils import clean_path, parse_manifest, should_unpack

logger = logging.getLogger("packmule")
logger.addHandler(logging.StreamHandler())

CLI_VERSION = __version__ or "unknown"


class SmartFormatter(argparse.HelpFormatter):
    # "Smaerter" help formatter c/o https://stackoverflow.com/a/22157136
    def _split_lines(self, text, width):
        if text.startswith("R|"):
            return text[2:].splitlines()
        # this is the RawTextHelpFormatter._split_lines
        return argparse.HelpFormatter._split_lines(self, text, width)


class PackNamespace(argparse.Namespace):
    list: bool
    unpack: bool
    pack: bool
    output: Optional[pathlib.Path]
    filter: Optional[list[str]]
    upper: bool
    manifest: bool
    use_root: bool
    min_revision: int
    max_revision: int
    revision: int
    root: str
    no_compress: bool
    verbose: int
    filenames: list[str]


def find_packs(filenames: list[str]) -> list[str]:
    """Expand any directories in the list into the .pack files they contain."""
    pack_paths = []
    for filename in filenames:
        if op.isdir(filename):
            for fname in sorted(os.listdir(filename)):
                if not fname.lower().endswith(".pack"):
                    logger.debug(f"{fname} is not a valid path to extract.")
                    continue
                pack_paths.append(op.join(filename, fname))
        else:
            pack_paths.append(filename)
    return pack_paths


def open_packs(filenames: list[str], min_revision: int, max_revision: int) -> list[PackFile]:
    """Open every valid pack within the revision window, sorted by revision."""
    packs = []
    for pack_path in find_packs(filenames):
        logger.debug(f"Reading {pack_path}")
        pack = PackFile(pack_path)
        try:
            pack.open()
        except FormatError:
            logger.debug(f"{pack_path} is not a valid .pack file. Skipping")
            continue
        if min_revision <= pack.revision <= max_revision:
            packs.append(pack)
        else:
            logger.debug(f"Skipping {pack_path}: revision {pack.revision} is outside of the requested range")
            pack.close()
    packs.sort(key=lambda p: p.revision)
    return packs


def collect_files(filenames: list[str]) -> list[tuple[str, str]]:
    """Get the (path on disk, name in pack) pairs for the files to pack."""
    files = []
    for filename in filenames:
        if filename.lower().endswith(".manifest"):
            manifest_dir = op.dirname(op.realpath(filename))
            for fname in parse_manifest(filename):
                files.append((op.join(manifest_dir, fname), fname))
        elif op.isdir(filename):
            for root, _, fnames in os.walk(filename):
                for fname in sorted(fnames):
                    fpath = op.join(root, fname)
                    files.append((fpath, clean_path(op.relpath(fpath, filename))))
        else:
            files.append((filename, clean_path(op.basename(filename))))
    return files


def run_unpack(args: PackNamespace) -> tuple[int, int]:
    output = op.abspath(args.output or "EXTRACTED")
    if not args.list:
        os.makedirs(output, exist_ok=True)
    pack_count = 0
    file_count = 0
    for pack in open_packs(args.filenames, args.min_revision, args.max_revision):
        try:
            logger.info(f"Processing {pack.name}...")
            if args.list:
                for entry in pack._get_filtered_filelist(args.filter).values():
                    name = entry.name.upper() if args.upper else entry.name
                    print(f"{pack.name}\t{name}\t{entry.decompressed_size}\t{pack.revision}")
            else:
                file_count += pack.unpack(output, args.filter, args.upper, args.manifest, args.use_root)
            pack_count += 1
        finally:
            pack.close()
    return pack_count, file_count


def run_pack(args: PackNamespace) -> str:
    files = collect_files(args.filenames)
    if args.output is not None:
        out_fpath = os.fspath(args.output)
    elif len(args.filenames) == 1 and args.filenames[0].lower().endswith(".manifest"):
        out_fpath = op.splitext(args.filenames[0])[0]
    else:
        out_fpath = f"{args.revision}.pack"
    with PackWriter(args.revision, args.root) as writer:
        for fpath, name in files:
            logger.debug(f"Packing {fpath} as {name}")
            writer.write_file(fpath, name, compress=not args.no_compress)
        writer.save_to(out_fpath)
    return out_fpath


def run(argv: Optional[list[str]] = None):
    parser = argparse.ArgumentParser(
        prog=f"packmule ({CLI_VERSION})",
        description="A tool for handling .pack archive files",
        formatter_class=SmartFormatter,
    )
    parser.add_argument(
        "-O",
        "--output",
        required=False,
        help=(
            "R|When unpacking, the directory to place extracted files in. If not provided, falls back to a\n"
            "folder called 'EXTRACTED' in the current directory.\n"
            "When packing, the path of the pack file to create."
        ),
        type=pathlib.Path,
    )
    parser.add_argument(
        "-f",
        "--filter",
        action="append",
        help=(
            "R|A glob pattern which can be used to filter out the files which are to be extracted.\n"
            "This argument can be provided multiple times and the filters will be individually be applied to "
            "full set of files in each pack (ie. filters are OR'd, not AND'd)."
        ),
    )
    parser.add_argument(
        "--upper",
        action="store_true",
        default=False,
        help="If provided, extracted filenames will be converted to UPPERCASE.",
    )
    parser.add_argument(
        "--manifest",
        action="store_true",
        default=False,
        help="Write a manifest for each unpacked pack so that it can be repacked.",
    )
    parser.add_argument(
        "--use-root",
        dest="use_root",
        action="store_true",
        default=False,
        help="Extract files below the root path recorded in each pack.",
    )
    parser.add_argument("--min-revision", type=int, default=0, help="Minimum pack revision to unpack.")
    parser.add_argument(
        "--max-revision", type=int, default=0xFFFFFFFF, help="Maximum pack revision to unpack."
    )
    parser.add_argument("--revision", type=int, default=0, help="The revision of the pack being created.")
    parser.add_argument("--root", default="", help="The root path recorded in the pack being created.")
    parser.add_argument(
        "--no-compress",
        dest="no_compress",
        action="store_true",
        default=False,
        help="Store the packed files without compressing them.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase logging verbosity")
    pup_group = parser.add_mutually_exclusive_group()  # pup = pack/unpack
    pup_group.add_argument(
        "-L",
        "--list",
        action="store_true",
        default=False,
        help="List the files contained within the pack files.",
    )
    pup_group.add_argument(
        "-U",
        "--unpack",
        action="store_true",
        help="Unpack the files from the provided pack files.",
    )
    pup_group.add_argument(
        "-P",
        "--pack",
        action="store_true",
        help="Pack the provided files into a pack file.",
    )
    parser.add_argument(
        "filenames",
        nargs="+",
        help=(
            "The file(s) to pack or unpack. If this is a list of .pack files or a directory, then it will be "
            "assumed that the files need to be unpacked.\nA .manifest file written when unpacking will be "
            "repacked."
        ),
    )

    args = PackNamespace()
    args = parser.parse_args(argv, namespace=args)

    verbosity = args.verbose
    if verbosity == 1:
        logger.setLevel(logging.INFO)
    elif verbosity >= 2:
        logger.setLevel(logging.DEBUG)

    mode: Literal["pack", "unpack"]
    if args.pack:
        mode = "pack"
    elif args.unpack or args.list:
        mode = "unpack"
    elif should_unpack(args.filenames):
        mode = "unpack"
    else:
        mode = "pack"

    t1 = time.perf_counter()

    if mode == "unpack":
        pack_count, file_count = run_unpack(args)
        if args.list:
            logger.info(f"Listed contents of {pack_count} .pack's in {time.perf_counter() - t1:.3f}s")
        else:
            logger.info(
                f"Unpacked {file_count} files from {pack_count} .pack's in {time.perf_counter() - t1:.3f}s"
            )
    else:
        try:
            out_fpath = run_pack(args)
        except FileNotFoundError as e:
            logger.error(f"Unable to pack: {e}")
            sys.exit(1)
        logger.info(f"Packed {out_fpath} in {time.perf_counter() - t1:.3f}s")


if __name__ == "__main__":
    run()
