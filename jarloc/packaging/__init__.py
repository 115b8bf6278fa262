"""Zip archive access."""

from jarloc.packaging.archive import ZipArchive
