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
Choosing a shared time scale for the trees in a sample file and labelling
it with a scale bar.
"""
import logging
import math
import re

from . import core
from . import geometry
from . import species_trees

logger = logging.getLogger(__name__)

DEPTH_SAMPLE_COUNT = 200
DEPTH_MARGIN = 1.1
GENE_HEIGHT_SAMPLE_COUNT = 100
GENE_HEIGHT_MARGIN = 1.05
BATCH_SIZE = 50

_TREE_HEIGHT = re.compile(r"\[TH=([0-9.eE+-]+)")


def nice_scale_value(max_depth):
    """
    Returns a round number close to 40% of the specified depth, suitable for
    the length of a scale bar. The result is 1, 2, 5 or 10 times a power of
    ten.
    """
    if not max_depth > 0:
        raise ValueError("Depth must be > 0")
    target = max_depth * 0.4
    magnitude = 10 ** math.floor(math.log10(target))
    normalised = target / magnitude
    if normalised < 1.5:
        nice = 1
    elif normalised < 3.5:
        nice = 2
    elif normalised < 7.5:
        nice = 5
    else:
        nice = 10
    return nice * magnitude


def format_scale_value(value):
    """
    Formats a scale bar length for display: three decimal places down to
    0.01, four down to 0.001 and exponent notation below that.

    >>> format_scale_value(0.0001)
    '1.0e-4'
    """
    if value >= 0.01:
        return f"{value:.3f}"
    if value >= 0.001:
        return f"{value:.4f}"
    mantissa, exponent = f"{value:.1e}".split("e")
    return f"{mantissa}e{int(exponent):+d}"


def estimate_max_depth(
    index, sample_count=DEPTH_SAMPLE_COUNT, batch_size=BATCH_SIZE, num_threads=None
):
    """
    Estimates the largest depth of the species trees in the specified
    :class:`.LineIndex` from up to ``sample_count`` trees spread across the
    file. When only a subset of the trees is examined the estimate is
    increased by 10% to allow for deeper trees among those not sampled.
    Returns 0 if no sampled line holds a readable tree.
    """
    indexes = index.sample_indexes(sample_count)
    lines = index.get_many(indexes, batch_size=batch_size, num_threads=num_threads)
    max_depth = 0.0
    for j, line in zip(indexes, lines):
        tree = species_trees.parse_species_tree(line)
        if tree is None:
            logger.debug("Skipping unreadable tree at line %d", j)
            continue
        max_depth = max(max_depth, geometry.depth(tree))
    if min(sample_count, len(index)) < len(index):
        max_depth *= DEPTH_MARGIN
    logger.info("Estimated maximum depth %g from %d trees", max_depth, len(indexes))
    return max_depth


def estimate_max_gene_height(
    index, sample_count=GENE_HEIGHT_SAMPLE_COUNT, batch_size=BATCH_SIZE
):
    """
    Estimates the largest height of the gene trees in the specified
    :class:`.LineIndex` from the ``TH`` annotations of up to
    ``sample_count`` trees, increased by 5%.
    """
    indexes = index.sample_indexes(sample_count)
    max_height = 0.0
    for line in index.get_many(indexes, batch_size=batch_size):
        match = _TREE_HEIGHT.search(line)
        if match is not None:
            height = core.parse_number(match.group(1)) or 0.0
            max_height = max(max_height, height)
    return max_height * GENE_HEIGHT_MARGIN
