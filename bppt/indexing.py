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
Random access to the lines of very large sample files.

MCMC runs write one tree per line and routinely produce files with millions
of samples. Rather than reading these into memory we record the byte offset
at which each line starts, after which any sample can be fetched with a
single ranged read.
"""
import concurrent.futures
import dataclasses
import logging
import math

import numpy as np

from . import sources

logger = logging.getLogger(__name__)

# Files are scanned in chunks of this many bytes. Each chunk is a suspension
# point for the caller driving the build.
CHUNK_SIZE = 1024 * 1024

# Rough number of bytes per sample line, used only for progress estimates.
BYTES_PER_LINE_ESTIMATE = 150

NEWLINE = 10


@dataclasses.dataclass(frozen=True)
class IndexProgress:
    """
    A best-effort report on the progress of an index build.

    :ivar indexed: The number of line starts found so far.
    :ivar total: The estimated number of lines in the source. This is exact
        once ``phase`` is ``"complete"``.
    :ivar bytes_read: The number of bytes of the source scanned so far.
    :ivar phase: Either ``"scanning"`` or ``"complete"``.
    """

    indexed: int
    total: int
    bytes_read: int
    phase: str = "scanning"

    @property
    def complete(self):
        return self.phase == "complete"


class IndexBuilder:
    """
    Incrementally builds a :class:`LineIndex`. Iterating over the builder
    scans the source one chunk at a time, yielding an :class:`IndexProgress`
    after each chunk; when iteration finishes the finished index is available
    from :attr:`index`. Abandoning the iteration discards the partial build.
    """

    def __init__(self, source, *, skip_first_line=False, chunk_size=None):
        if chunk_size is None:
            chunk_size = CHUNK_SIZE
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        self.source = sources.open_source(source)
        self.skip_first_line = skip_first_line
        self.chunk_size = int(chunk_size)
        self._index = None
        self._started = False

    def __iter__(self):
        if self._started:
            raise ValueError("An IndexBuilder can only be iterated over once")
        self._started = True
        size = self.source.size
        estimate = math.ceil(size / BYTES_PER_LINE_ESTIMATE)
        logger.info("Indexing %s (%d bytes)", self.source.name, size)
        found = [np.zeros(1, dtype=np.int64)]
        num_found = 1
        offset = 0
        while offset < size:
            end = min(offset + self.chunk_size, size)
            chunk = np.frombuffer(self.source.read_bytes(offset, end), dtype=np.uint8)
            # Newlines are single bytes, so a terminator can never straddle
            # two chunks.
            starts = np.flatnonzero(chunk == NEWLINE).astype(np.int64) + offset + 1
            found.append(starts)
            num_found += len(starts)
            offset = end
            logger.debug("Scanned %d of %d bytes: %d lines", offset, size, num_found)
            yield IndexProgress(
                indexed=num_found, total=max(estimate, num_found), bytes_read=offset
            )

        offsets = np.concatenate(found)
        # A file ending with a newline would otherwise get an empty last line.
        if len(offsets) > 0 and offsets[-1] >= size:
            offsets = offsets[:-1]
        if self.skip_first_line and len(offsets) > 0:
            offsets = offsets[1:]
        self._index = LineIndex(self.source, offsets)
        logger.info("Indexed %d lines in %s", len(offsets), self.source.name)
        yield IndexProgress(
            indexed=len(offsets), total=len(offsets), bytes_read=size, phase="complete"
        )

    @property
    def index(self):
        """
        The finished :class:`LineIndex`. Raises ValueError if the build has not
        run to completion.
        """
        if self._index is None:
            raise ValueError("Index build has not completed")
        return self._index


class LineIndex:
    """
    An immutable index of line start offsets within a data source. Instances
    are normally created with :meth:`LineIndex.build` or an
    :class:`IndexBuilder`.

    :param source: The :class:`.DataSource` the offsets refer to.
    :param offsets: A strictly increasing sequence of line start offsets.
    """

    def __init__(self, source, offsets):
        self.source = sources.open_source(source)
        offsets = np.array(offsets, dtype=np.int64)
        if len(offsets) > 1 and np.any(np.diff(offsets) <= 0):
            raise ValueError("Line offsets must be strictly increasing")
        offsets.flags.writeable = False
        self._offsets = offsets

    @staticmethod
    def iter_build(source, *, skip_first_line=False, chunk_size=None):
        """
        Returns an :class:`IndexBuilder` for the specified source. Iterating
        over it performs the build one chunk at a time::

            builder = LineIndex.iter_build("r1.mcmc.txt")
            for progress in builder:
                print(progress.indexed, progress.total)
            index = builder.index
        """
        return IndexBuilder(
            source, skip_first_line=skip_first_line, chunk_size=chunk_size
        )

    @staticmethod
    def build(source, *, skip_first_line=False, chunk_size=None, progress=None):
        """
        Scans the specified source and returns the resulting index.

        :param source: A :class:`.DataSource`, path or bytes object.
        :param bool skip_first_line: If True, do not index the first line.
            BPP writes the starting tree on the first line of its species
            tree sample files.
        :param int chunk_size: The number of bytes read per chunk.
        :param progress: An optional callable which is passed an
            :class:`IndexProgress` after each chunk.
        :rtype: LineIndex
        """
        builder = IndexBuilder(
            source, skip_first_line=skip_first_line, chunk_size=chunk_size
        )
        for report in builder:
            if progress is not None:
                progress(report)
        return builder.index

    def __len__(self):
        return len(self._offsets)

    def __repr__(self):
        return f"LineIndex(source={self.source!r}, num_lines={len(self)})"

    def count(self):
        """
        Returns the number of indexed lines.
        """
        return len(self._offsets)

    @property
    def offsets(self):
        """
        A read-only numpy array of line start offsets.
        """
        return self._offsets

    def _line_range(self, index):
        index = int(index)
        if index < 0 or index >= len(self._offsets):
            raise IndexError(
                f"Line index {index} out of bounds for {len(self._offsets)} lines"
            )
        start = int(self._offsets[index])
        if index + 1 < len(self._offsets):
            end = int(self._offsets[index + 1])
        else:
            end = self.source.size
        return start, end

    def get(self, index):
        """
        Returns the text of the specified line with surrounding whitespace,
        including the line terminator, removed.
        """
        start, end = self._line_range(index)
        return self.source.read_text(start, end).strip()

    def get_many(self, indexes, *, batch_size=50, num_threads=None):
        """
        Returns the text of each of the specified lines, in the order
        requested. Lines are fetched concurrently in batches of at most
        ``batch_size``; no locking is needed as the index and source are
        read-only.
        """
        indexes = [int(j) for j in indexes]
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        # Check bounds before any I/O is started.
        for j in indexes:
            self._line_range(j)
        results = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=num_threads) as pool:
            for k in range(0, len(indexes), batch_size):
                batch = indexes[k : k + batch_size]
                results.extend(pool.map(self.get, batch))
        return results

    def lines(self, start=0, stop=None):
        """
        Returns an iterator over the text of lines ``start`` to ``stop``.
        """
        if stop is None:
            stop = len(self)
        for j in range(start, min(stop, len(self))):
            yield self.get(j)

    def sample_indexes(self, max_samples):
        """
        Returns line indexes spread evenly across the index, starting at
        zero, using a whole-number step of at least one. When the number of
        lines is not a multiple of ``max_samples`` slightly more than
        ``max_samples`` indexes are returned.
        """
        n = len(self)
        if n == 0 or max_samples <= 0:
            return []
        step = max(1, n // min(max_samples, n))
        return list(range(0, n, step))
