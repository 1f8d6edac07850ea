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
Tests for embedding gene trees within species trees.
"""
import logging

import bppt
from bppt import embedding
from bppt import geometry

SPECIES_TREE = "((A:1,B:1):1,C:2):0;"
BANDS = {
    "A": bppt.SpeciesBand(center=100, half_width=10),
    "B": bppt.SpeciesBand(center=200, half_width=10),
    "C": bppt.SpeciesBand(center=300, half_width=10),
}


def embed(species_text, gene_text, *, total_depth=None, bands=None, imap=None):
    species_tree = bppt.parse_species_tree(species_text)
    gene_tree = bppt.parse_gene_tree(gene_text, imap)
    if bands is None:
        bands = BANDS
    model = bppt.PopulationIntervalModel.from_species_tree(
        species_tree, total_depth=total_depth, bands=bands
    )
    return bppt.embed_gene_tree(gene_tree, model, bands, tip_y=50, y_scale=100)


class TestContainment:
    def test_coalescence_below_divergence(self):
        # Lineages from A and B meet at 0.5, before the species split at 1, so
        # no population holds both A and B at that age.
        result = embed("(A:1,B:1):0;", "(A^a1:0.5,B^b1:0.5):0;[TH=0.5,TL=1.0]")
        assert result.root_age == 0.5
        assert result.num_violations == 1
        violation = result.violations[0]
        assert violation.species == {"A", "B"}
        assert violation.age == 0.5

    def test_coalescence_at_divergence(self):
        result = embed("(A:0.5,B:0.5):0;", "(A^a1:0.5,B^b1:0.5):0;[TH=0.5,TL=1.0]")
        assert result.root_age == 0.5
        assert result.num_violations == 0
        (population,) = result.populations.values()
        assert population.name == "AB"

    def test_non_sister_species(self):
        result = embed(SPECIES_TREE, "(a1^A:0.5,c1^C:0.5);")
        assert result.num_violations == 1
        assert result.violations[0].species == {"A", "C"}

    def test_valid_nested(self):
        gene = "(((a1^A:0.75,a2^A:0.75):0.75,b1^B:1.5):1,c1^C:2.5);"
        result = embed(SPECIES_TREE, gene, total_depth=3)
        assert result.num_violations == 0
        names = {}
        for node, population in result.populations.items():
            names[geometry.node_age(node)] = population.name
        assert names == {0.75: "A", 1.5: "AB", 2.5: "root"}

    def test_same_species_below_split(self):
        result = embed(SPECIES_TREE, "(a1^A:0.2,a2^A:0.2);")
        assert result.num_violations == 0
        (population,) = result.populations.values()
        assert population.name == "A"

    def test_unknown_species(self):
        result = embed(SPECIES_TREE, "(a1^A:3,z1^Z:3);", total_depth=5)
        assert result.num_violations == 1
        assert result.violations[0].species == {"A", "Z"}

    def test_violations_do_not_stop_embedding(self):
        gene = "((a1^A:0.5,c1^C:0.5):1.5,(b1^B:0.5,c2^C:0.5):1.5);"
        result = embed(SPECIES_TREE, gene)
        assert result.num_violations == 2
        assert len(result.anchors) == 7

    def test_violation_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="bppt.embedding"):
            embed(SPECIES_TREE, "(a1^A:0.5,c1^C:0.5);")
        assert len(caplog.records) == 1
        message = caplog.records[0].getMessage()
        assert message.startswith("Invalid coalescence: species A,C at time 0.5")
        assert "no valid population found" in message

    def test_violation_str(self):
        violation = embedding.Violation(species=frozenset("CA"), age=0.25, node=None)
        assert str(violation) == (
            "Invalid coalescence: species A,C at time 0.250000"
            " - no valid population found"
        )


class TestUnresolved:
    def test_unresolved_tip_placed(self):
        result = embed(SPECIES_TREE, "(a1^A:0.5,stranger:0.5);")
        leaves = geometry.leaves(result_root(result))
        assert result.anchors[leaves[1]][0] == embedding.UNPLACED_X
        assert leaves[1].species is None

    def test_unresolved_tip_ignored_in_check(self):
        result = embed(SPECIES_TREE, "(a1^A:0.5,stranger:0.5);")
        assert result.num_violations == 0
        (population,) = result.populations.values()
        assert population.name == "A"

    def test_all_unresolved(self):
        result = embed(SPECIES_TREE, "(x:0.5,y:0.5);")
        assert result.num_violations == 0
        assert list(result.populations.values()) == [None]

    def test_imap(self):
        imap = bppt.parse_imap("x A\ny C\n")
        result = embed(SPECIES_TREE, "(x:0.5,y:0.5);", imap=imap)
        assert result.num_violations == 1


def result_root(result):
    for node in result.anchors:
        if all(node not in parent.children for parent in result.anchors):
            return node
    raise AssertionError("no root")


class TestGeometry:
    def test_tip_spread(self):
        result = embed(SPECIES_TREE, "((a1^A:0.5,a2^A:0.5):1,c1^C:1.5);")
        tips = geometry.leaves(result_root(result))
        assert result.anchors[tips[0]] == (92, 50)
        assert result.anchors[tips[1]] == (108, 50)
        assert result.anchors[tips[2]] == (300, 50)

    def test_single_tip_at_center(self):
        x = embedding.tip_positions(
            [bppt.GeneTreeNode(name="b1^B", species="B")], BANDS, 0.8
        )
        assert list(x.values()) == [200]

    def test_no_band(self):
        node = bppt.GeneTreeNode(name="q1^Q", species="Q")
        x = embedding.tip_positions([node], BANDS, 0.8)
        assert x[node] == embedding.UNPLACED_X

    def test_internal_anchor(self):
        result = embed(SPECIES_TREE, "((a1^A:0.5,a2^A:0.5):1,c1^C:1.5):0.5;")
        root = result_root(result)
        inner = root.children[0]
        assert result.anchors[inner] == (100, 100)
        assert result.anchors[root] == (200, 200)

    def test_edges(self):
        result = embed(SPECIES_TREE, "((a1^A:0.5,a2^A:0.5):1,c1^C:1.5):0.5;")
        root = result_root(result)
        inner = root.children[0]
        # Leaves get one edge each; internal nodes one per child and a stem.
        assert len(result.edges) == 3 + 3 + 3
        stems = [e for e in result.edges if e.node is root and len(e.points) == 2]
        assert stems[0].points == [(200, 200), (200, 250)]
        joins = [e for e in result.edges if e.node is inner and len(e.points) == 3]
        assert joins[0].points == [(100, 200), (100, 200), (200, 200)]

    def test_species_sets(self):
        result = embed(SPECIES_TREE, "((a1^A:0.5,b1^B:0.5):1,c1^C:1.5);")
        root = result_root(result)
        assert result.species[root] == {"A", "B", "C"}
        assert result.species[root.children[0]] == {"A", "B"}
        assert result.species[root.children[1]] == {"C"}

    def test_single_leaf(self):
        result = embed(SPECIES_TREE, "a1^A:0.5;")
        assert result.root_age == 0
        assert result.num_violations == 0
        assert len(result.edges) == 1
