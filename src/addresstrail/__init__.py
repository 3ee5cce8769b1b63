"""Streaming ingestion of business registry exports into a company address history."""

from importlib import metadata

try:
    __version__ = metadata.version("addresstrail")
except metadata.PackageNotFoundError:
    __version__ = "0.0.0+local"
