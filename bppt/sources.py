#
# Copyright (C) 2026 The bppt developers
#
# This file is part of bppt.
#
# bppt is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# bppt is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with bppt.  If not, see <http://www.gnu.org/licenses/>.
#
"""
Byte-range readable data sources for sample files.

A source knows its total size and can return any ``[start, end)`` byte range
either as raw bytes or as decoded text. Sources are read-only, so any number
of reads may be in flight at once.
"""
import logging
import os

from . import exceptions

logger = logging.getLogger(__name__)

ENCODING = "utf-8"


class DataSource:
    """
    Abstract superclass of byte-range readable, length-known sources.
    """

    name = None

    @property
    def size(self):
        raise NotImplementedError()

    def read_bytes(self, start, end):
        """
        Returns the bytes in the half-open range ``[start, end)``. The range is
        clipped to the available data.
        """
        raise NotImplementedError()

    def read_text(self, start, end):
        """
        Returns the text in the half-open byte range ``[start, end)``. Invalid
        UTF-8 sequences are replaced rather than raising an error.
        """
        return self.read_bytes(start, end).decode(ENCODING, errors="replace")

    def _check_range(self, start, end):
        if start < 0 or end < start:
            raise ValueError(f"Invalid byte range [{start}, {end})")


class FileSource(DataSource):
    """
    A data source backed by a file on disk. Each read opens its own handle so
    that concurrent reads never share a file position.

    :param str path: The path of the file.
    """

    def __init__(self, path):
        self.path = os.fspath(path)
        self.name = os.path.basename(self.path)
        try:
            self._size = os.path.getsize(self.path)
        except OSError as e:
            raise exceptions.SourceReadError(
                f"Cannot open '{self.path}': {e.strerror or e}"
            ) from e

    def __repr__(self):
        return f"FileSource(path={self.path!r}, size={self._size})"

    @property
    def size(self):
        return self._size

    def read_bytes(self, start, end):
        self._check_range(start, end)
        end = min(end, self._size)
        if start >= end:
            return b""
        try:
            with open(self.path, "rb") as f:
                f.seek(start)
                data = f.read(end - start)
        except OSError as e:
            raise exceptions.SourceReadError(
                f"Error reading bytes [{start}, {end}) of '{self.path}': "
                f"{e.strerror or e}"
            ) from e
        if len(data) != end - start:
            raise exceptions.SourceReadError(
                f"Short read from '{self.path}': expected {end - start} bytes "
                f"at offset {start}, got {len(data)}. Was the file truncated?"
            )
        return data


class BytesSource(DataSource):
    """
    A data source backed by an in-memory bytes object.

    :param bytes data: The contents of the source. Text is encoded as UTF-8.
    :param str name: An optional name used in messages.
    """

    def __init__(self, data, name="<bytes>"):
        if isinstance(data, str):
            data = data.encode(ENCODING)
        self._data = bytes(data)
        self.name = name

    def __repr__(self):
        return f"BytesSource(name={self.name!r}, size={len(self._data)})"

    @property
    def size(self):
        return len(self._data)

    def read_bytes(self, start, end):
        self._check_range(start, end)
        return self._data[start:end]


def open_source(path_or_data):
    """
    Returns a :class:`DataSource` for the specified argument. Existing sources
    are returned unchanged, bytes are wrapped in a :class:`BytesSource` and
    anything else is treated as a path.
    """
    if isinstance(path_or_data, DataSource):
        return path_or_data
    if isinstance(path_or_data, (bytes, bytearray, memoryview)):
        return BytesSource(path_or_data)
    source = FileSource(path_or_data)
    logger.debug("Opened %s", source)
    return source
