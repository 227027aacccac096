"""typemirror - Translate struct type graphs into TypeScript declarations."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("typemirror")
except PackageNotFoundError:
    __version__ = "(local)"
