"""Tuplecodec - Value-type codec generator for embedded key-value stores."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tuplecodec")
except PackageNotFoundError:
    __version__ = "(local)"
