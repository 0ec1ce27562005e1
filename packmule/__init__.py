from importlib.metadata import PackageNotFoundError, version

from .api import PackEntry, PackFile, PackWriter  # noqa

try:
    __version__ = version("packmule")
except PackageNotFoundError:
    __version__ = None
