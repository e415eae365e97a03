"""Fitlite - FIT message record decoder."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fitlite")
except PackageNotFoundError:
    __version__ = "(local)"
