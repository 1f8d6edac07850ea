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
Tests for the parsing and formatting of species trees.
"""
import pytest

import bppt
from bppt import species_trees
from tests import find_node

BPP_TREE = (
    "(K #0.003327: 0.001873, ((L #0.007904: 0.001468, H #0.002273: 0.001468) "
    "#0.004023: 0.000404, C #0.012111: 0.001873) #0.001427: 0.000001) #0.001673; 4"
)


def assert_trees_equal(t1, t2):
    stack = [(t1, t2)]
    while len(stack) > 0:
        u, v = stack.pop()
        assert u.name == v.name
        assert u.branch_length == pytest.approx(v.branch_length)
        if u.theta is None:
            assert v.theta is None
        else:
            assert u.theta == pytest.approx(v.theta)
        assert len(u.children) == len(v.children)
        stack.extend(zip(u.children, v.children))


class TestCleanSampleLine:
    @pytest.mark.parametrize(
        "line, expected",
        [
            ("1→(A:0.1,B:0.1):0.05; 3", "(A:0.1,B:0.1):0.05;"),
            ("     12→(A,B);", "(A,B);"),
            ("12 → (A,B);", "(A,B);"),
            ("7   (A,B);", "(A,B);"),
            ("(A,B); 15", "(A,B);"),
            ("(A,B);   2  ", "(A,B);"),
            ("  (A,B);  ", "(A,B);"),
            ("(A,B)", "(A,B)"),
        ],
    )
    def test_examples(self, line, expected):
        assert species_trees.clean_sample_line(line) == expected

    def test_leading_number_in_name_kept(self):
        # A leading number not followed by whitespace and '(' is a name.
        assert species_trees.clean_sample_line("12A;") == "12A;"


class TestParseSpeciesTree:
    def test_sample_line_with_prefix_and_count(self):
        tree = bppt.parse_species_tree("1→(A:0.1,B:0.1):0.05; 3")
        assert tree is not None
        assert tree.branch_length == 0.05
        assert len(tree.children) == 2
        a, b = tree.children
        assert a.name == "A"
        assert b.name == "B"
        assert a.branch_length == 0.1
        assert b.branch_length == 0.1
        assert a.is_leaf and b.is_leaf

    def test_bpp_tree(self):
        tree = bppt.parse_species_tree(BPP_TREE)
        assert tree.theta == 0.001673
        assert tree.branch_length == 0
        assert tree.name == ""
        k = find_node(tree, "K")
        assert k.theta == 0.003327
        assert k.branch_length == 0.001873
        h = find_node(tree, "H")
        assert h.theta == 0.002273
        assert h.branch_length == 0.001468
        names = [u.name for u in tree.children[1].children[0].children]
        assert names == ["L", "H"]
        assert tree.children[1].theta == 0.001427
        assert tree.children[1].branch_length == 0.000001

    def test_named_internal_node(self):
        tree = bppt.parse_species_tree("((A:1,B:1)AB #0.5:2,C:3)ABC;")
        assert tree.name == "ABC"
        ab = tree.children[0]
        assert ab.name == "AB"
        assert ab.theta == 0.5
        assert ab.branch_length == 2

    def test_no_branch_lengths(self):
        tree = bppt.parse_species_tree("((A,B),C);")
        for name in "ABC":
            node = find_node(tree, name)
            assert node.branch_length == 0
            assert node.theta is None

    def test_single_leaf(self):
        tree = bppt.parse_species_tree("A #0.1:0.5;")
        assert tree.is_leaf
        assert tree.name == "A"
        assert tree.theta == 0.1
        assert tree.branch_length == 0.5

    def test_whitespace_in_names_trimmed(self):
        tree = bppt.parse_species_tree("(  long name : 1 ,\tB\t:2 );")
        assert tree.children[0].name == "long name"
        assert tree.children[0].branch_length == 1
        assert tree.children[1].name == "B"

    def test_multifurcation(self):
        tree = bppt.parse_species_tree("(A:1,B:1,C:1,D:1);")
        assert [u.name for u in tree.children] == ["A", "B", "C", "D"]

    def test_scientific_notation(self):
        tree = bppt.parse_species_tree("(A:1e-3,B #2.5E-4:0.001);")
        assert tree.children[0].branch_length == 0.001
        assert tree.children[1].theta == 0.00025

    def test_unparsable_theta_unset(self):
        tree = bppt.parse_species_tree("(A #abc:1,B #:1);")
        assert tree.children[0].theta is None
        assert tree.children[1].theta is None
        assert tree.children[0].branch_length == 1

    def test_unparsable_length_zero(self):
        tree = bppt.parse_species_tree("(A:xyz,B:):1;")
        assert tree.children[0].branch_length == 0
        assert tree.children[1].branch_length == 0
        assert tree.branch_length == 1

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            ";",
            "1→",
            "(A,B",
            "((A,B);",
            "(A,B));",
            "(A,,B);",
            "(,A);",
            "(A,B)C(D);",
            "A,B;",
            "();",
            "(A:1,B:1);(C:1,D:1);",
            "(A,B);x",
        ],
    )
    def test_malformed(self, text):
        assert bppt.parse_species_tree(text) is None

    @pytest.mark.parametrize("text", ["(((", ")))", "#:#:", ":::;", "(A#,B:)#:"])
    def test_garbage_never_raises(self, text):
        result = bppt.parse_species_tree(text)
        assert result is None or isinstance(result, bppt.TreeNode)

    def test_too_deep(self):
        n = 10000
        text = "(" * n + "A" + ")" * n + ";"
        assert bppt.parse_species_tree(text) is None


class TestFormatSpeciesTree:
    def test_simple(self):
        tree = bppt.parse_species_tree("(A #0.1:0.1,B:0.2);")
        assert bppt.format_species_tree(tree) == "(A #0.1:0.1,B:0.2);"

    def test_precision(self):
        tree = bppt.parse_species_tree("(A:0.123456,B:1)AB #0.5;")
        assert bppt.format_species_tree(tree, precision=2) == "(A:0.12,B:1.00)AB #0.50;"

    def test_zero_lengths_omitted(self):
        tree = bppt.parse_species_tree("((A,B),C);")
        assert bppt.format_species_tree(tree) == "((A,B),C);"

    @pytest.mark.parametrize(
        "text",
        [
            BPP_TREE,
            "(A:0.1,B:0.1):0.05;",
            "((A:1,B:1)AB #0.5:2,C:3)ABC;",
            "((A #0.1: 1.0, B #0.2: 1.0) #0.3: 1.0, C #0.4: 2.0) #0.5;",
            "(((A:1,B:1):1,(C:1,D:1):1):1,E:3);",
            "A;",
            "(A #0.00000012:0.0000004,B #0.0000025:0.0000004);",
            "(A #0.0012345678:0.00098765432,B #0.0031:0.00098765432) #1.23456789e-5;",
        ],
    )
    def test_round_trip(self, text):
        tree = bppt.parse_species_tree(text)
        other = bppt.parse_species_tree(bppt.format_species_tree(tree))
        assert_trees_equal(tree, other)

    def test_small_values_exact(self):
        text = "(A #0.00000012:0.0000004,B #0.0000025:0.0000004):0.000001;"
        tree = bppt.parse_species_tree(text)
        formatted = bppt.format_species_tree(tree)
        assert formatted == "(A #1.2e-07:4e-07,B #2.5e-06:4e-07):1e-06;"
        other = bppt.parse_species_tree(formatted)
        a, b = other.children
        assert a.theta == 0.00000012
        assert a.branch_length == 0.0000004
        assert b.theta == 0.0000025
        assert other.branch_length == 0.000001

    def test_many_significant_digits_exact(self):
        tree = bppt.parse_species_tree("(A #0.0012345678:0.00098765432,B:1);")
        other = bppt.parse_species_tree(bppt.format_species_tree(tree))
        assert other.children[0].theta == 0.0012345678
        assert other.children[0].branch_length == 0.00098765432

    def test_precision_is_for_display(self):
        tree = bppt.parse_species_tree("(A:0.0000004,B:1);")
        assert bppt.format_species_tree(tree, precision=3) == "(A:0.000,B:1.000);"
