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
Embedding gene tree lineages within the populations of a species tree.
"""
import collections
import dataclasses
import logging
from typing import Dict
from typing import FrozenSet
from typing import List
from typing import Optional
from typing import Tuple

from . import geometry

logger = logging.getLogger(__name__)

# The x coordinate used for tips whose species has no band.
UNPLACED_X = 100.0


@dataclasses.dataclass(frozen=True)
class Violation:
    """
    A gene tree coalescence which cannot have happened in any population of
    the species tree.

    :ivar species: The species descended from the coalescence.
    :ivar age: The age of the coalescence.
    :ivar node: The gene tree node at which the lineages coalesce.
    """

    species: FrozenSet[str]
    age: float
    node: object

    def __str__(self):
        names = ",".join(sorted(self.species))
        return (
            f"Invalid coalescence: species {names} at time {self.age:.6f}"
            " - no valid population found"
        )


@dataclasses.dataclass
class EdgePath:
    """
    A polyline drawn for part of the lineage above the specified node.
    """

    node: object
    points: List[Tuple[float, float]]


@dataclasses.dataclass
class Embedding:
    """
    The result of embedding a gene tree.

    :ivar anchors: Maps each gene tree node to its (x, y) point: the tip
        for leaves and the coalescence for internal nodes.
    :ivar edges: The lineage polylines, in the order they were computed.
    :ivar violations: The coalescences with no containing population.
    :ivar populations: Maps each internal node to the population in which
        it coalesces, or None.
    :ivar species: Maps each node to the set of resolved species below it.
    :ivar root_age: The age of the root coalescence.
    """

    anchors: Dict[object, Tuple[float, float]]
    edges: List[EdgePath]
    violations: List[Violation]
    populations: Dict[object, Optional[object]]
    species: Dict[object, FrozenSet[str]]
    root_age: float

    @property
    def num_violations(self):
        return len(self.violations)


def tip_positions(leaves, bands, spread=0.8):
    """
    Returns a dictionary mapping the specified gene tree leaves to their x
    coordinates. The tips of each species are spread evenly over the middle
    ``spread`` fraction of the species band, and a species with one tip is
    placed at the band center. Tips with no species, or a species with no
    band, are placed at :data:`UNPLACED_X`.
    """
    by_species = collections.defaultdict(list)
    x = {}
    for leaf in leaves:
        if leaf.species is not None and leaf.species in bands:
            by_species[leaf.species].append(leaf)
        else:
            x[leaf] = UNPLACED_X
    for name, tips in by_species.items():
        band = bands[name]
        width = band.width * spread
        if len(tips) == 1:
            x[tips[0]] = band.center
        else:
            for j, tip in enumerate(tips):
                x[tip] = band.center - width / 2 + width * j / (len(tips) - 1)
    return x


def embed_gene_tree(gene_tree, model, bands, *, tip_y, y_scale, spread=0.8):
    """
    Places the nodes and lineages of a gene tree within the tubes of a
    species tree and checks that each coalescence happens in a population
    which contains all of the species below it.

    :param GeneTree gene_tree: The gene tree to embed.
    :param PopulationIntervalModel model: The populations of the species
        tree.
    :param dict bands: Maps species names to their :class:`.SpeciesBand`.
    :param float tip_y: The y coordinate of the tips.
    :param float y_scale: Drawing units per unit of time.
    :param float spread: The fraction of each band over which tips are
        spread.
    :rtype: Embedding
    """
    root = gene_tree.root
    ages = geometry.node_ages(root)
    x = tip_positions(geometry.leaves(root), bands, spread)
    anchors = {}
    end_y = {}
    species = {}
    edges = []
    violations = []
    populations = {}

    for node in geometry.postorder(root):
        age = ages[node]
        y = tip_y + age * y_scale
        end_y[node] = tip_y + (age + node.branch_length) * y_scale
        if node.is_leaf:
            anchors[node] = (x[node], y)
            species[node] = frozenset()
            if node.species is not None:
                species[node] = frozenset([node.species])
            edges.append(EdgePath(node, [(x[node], y), (x[node], end_y[node])]))
            continue

        node_x = sum(anchors[child][0] for child in node.children)
        node_x /= len(node.children)
        anchors[node] = (node_x, y)
        species[node] = frozenset().union(*(species[c] for c in node.children))
        for child in node.children:
            child_x = anchors[child][0]
            edges.append(
                EdgePath(child, [(child_x, end_y[child]), (child_x, y), (node_x, y)])
            )
        edges.append(EdgePath(node, [(node_x, y), (node_x, end_y[node])]))

        # Unresolved tips take no part in the containment check.
        if len(species[node]) == 0:
            populations[node] = None
            continue
        population = model.contains_taxa_at(species[node], age)
        populations[node] = population
        if population is None:
            violation = Violation(species=frozenset(species[node]), age=age, node=node)
            logger.warning("%s", violation)
            violations.append(violation)

    return Embedding(
        anchors=anchors,
        edges=edges,
        violations=violations,
        populations=populations,
        species=species,
        root_age=ages[root],
    )
