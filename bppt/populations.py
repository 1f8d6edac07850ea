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
Ancestral population intervals derived from a species tree.

Each branch of a species tree corresponds to a population which exists for
a window of time: from the age of the node below the branch (nearer the
tips) to the age of its parent. A gene tree coalescence involving lineages
from a set of species can only happen within a population whose
descendant species include all of them.
"""
import dataclasses
import logging
from typing import FrozenSet

from . import geometry

logger = logging.getLogger(__name__)

ROOT_POPULATION_NAME = "root"

# The number of distinct colour slots used when drawing populations.
DEFAULT_NUM_SLOTS = 8


@dataclasses.dataclass(frozen=True)
class PopulationInterval:
    """
    A population and the window of time over which it exists.

    :ivar name: The population name: the species name for leaves, the node
        name for labelled internal nodes, and the concatenated names of the
        descendant species otherwise.
    :ivar start_time: The age at which the population begins, nearer the
        tips.
    :ivar end_time: The age at which the population merges into its parent.
    :ivar species: The set of leaf species descended from the population.
    :ivar left: The left edge of the population's tube, if laid out.
    :ivar right: The right edge of the population's tube, if laid out.
    """

    name: str
    start_time: float
    end_time: float
    species: FrozenSet[str]
    left: float = 0.0
    right: float = 0.0

    def contains_time(self, time):
        return self.start_time <= time <= self.end_time

    @property
    def width(self):
        return self.right - self.left


class PopulationIntervalModel:
    """
    The set of population intervals for one species tree. Instances are
    usually created with :meth:`.from_species_tree` and are rebuilt for
    each tree drawn.
    """

    def __init__(self, intervals):
        self.intervals = tuple(intervals)

    def __len__(self):
        return len(self.intervals)

    def __iter__(self):
        return iter(self.intervals)

    def __repr__(self):
        names = ", ".join(interval.name for interval in self.intervals)
        return f"PopulationIntervalModel([{names}])"

    def __getitem__(self, name):
        for interval in self.intervals:
            if interval.name == name:
                return interval
        raise KeyError(name)

    @property
    def species(self):
        """
        The set of all leaf species.
        """
        return frozenset().union(*(interval.species for interval in self.intervals))

    @staticmethod
    def from_species_tree(tree, total_depth=None, bands=None):
        """
        Returns the population intervals for the specified species tree.

        Every node gives one interval, from the node's age to its age plus
        the length of the branch above it. If ``total_depth`` is larger than
        the extent of the tree (its height plus the root branch length), a
        further interval named ``"root"`` covers the remaining time with all
        species as members.

        :param TreeNode tree: The root of the species tree.
        :param float total_depth: The time up to which populations should be
            defined, usually a depth shared by many sampled trees.
        :param dict bands: An optional mapping of species name to
            :class:`.SpeciesBand` giving the horizontal extent of each leaf
            population. Internal populations span their children.
        """
        ages = geometry.node_ages(tree)
        species = {}
        extent = {}
        intervals = []
        for node in geometry.postorder(tree):
            if node.is_leaf:
                members = frozenset([node.name])
                name = node.name
                band = None if bands is None else bands.get(node.name)
                if band is None:
                    extent[node] = None
                else:
                    extent[node] = (band.left, band.right)
            else:
                members = frozenset().union(*(species[child] for child in node.children))
                name = node.name
                if name == "":
                    name = "".join(geometry.leaf_names(node))
                child_extents = [
                    extent[c] for c in node.children if extent[c] is not None
                ]
                if len(child_extents) == 0:
                    extent[node] = None
                else:
                    extent[node] = (
                        min(e[0] for e in child_extents),
                        max(e[1] for e in child_extents),
                    )
            species[node] = members
            left, right = extent[node] if extent[node] is not None else (0.0, 0.0)
            intervals.append(
                PopulationInterval(
                    name=name,
                    start_time=ages[node],
                    end_time=ages[node] + node.branch_length,
                    species=members,
                    left=left,
                    right=right,
                )
            )

        tree_depth = ages[tree] + tree.branch_length
        if total_depth is not None and total_depth > tree_depth:
            left, right = extent[tree] if extent[tree] is not None else (0.0, 0.0)
            intervals.append(
                PopulationInterval(
                    name=ROOT_POPULATION_NAME,
                    start_time=tree_depth,
                    end_time=total_depth,
                    species=species[tree],
                    left=left,
                    right=right,
                )
            )
        logger.debug("Built %d population intervals", len(intervals))
        return PopulationIntervalModel(intervals)

    def contains_taxa_at(self, taxa, time):
        """
        Returns the most specific population which includes all of the
        specified species and exists at the specified time, or None if
        there is no such population. A population exists over the closed
        window from its start to its end time.
        """
        taxa = frozenset(taxa)
        best = None
        for interval in self.intervals:
            if not interval.contains_time(time):
                continue
            if not taxa <= interval.species:
                continue
            if best is None or len(interval.species) < len(best.species):
                best = interval
        return best


class PopulationSlots:
    """
    Assigns each population name a colour slot, in order of first use and
    wrapping around after ``num_slots`` names. The caller owns the table and
    must call :meth:`reset` at the start of each drawing pass so that the
    same populations get the same slots from one tree to the next.
    """

    def __init__(self, num_slots=DEFAULT_NUM_SLOTS):
        if num_slots < 1:
            raise ValueError("num_slots must be >= 1")
        self.num_slots = num_slots
        self.reset()

    def reset(self):
        self._slots = {}
        self._next_slot = 0

    def __len__(self):
        return len(self._slots)

    def slot(self, name):
        if name not in self._slots:
            self._slots[name] = self._next_slot
            self._next_slot = (self._next_slot + 1) % self.num_slots
        return self._slots[name]
