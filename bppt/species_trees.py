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
Module responsible for parsing species trees sampled by BPP.

Species trees are written in an extended Newick format in which each node
may carry a population size annotation introduced by ``#``, e.g.::

    ((A #0.0031: 0.0014, B #0.0022: 0.0014) #0.0040: 0.0004, C #0.0121: 0.0018);

The ``#theta`` annotation precedes the branch length.
"""
import dataclasses
import logging
import re
from typing import List
from typing import Optional

from .core import format_number
from .core import parse_number

logger = logging.getLogger(__name__)

# Characters which terminate a node name, and a theta or length value.
NAME_TERMINATORS = "#,:();"
VALUE_TERMINATORS = ",:();"

_LINE_NUMBER_ARROW = re.compile(r"^\s*\d+\s*→\s*")
_LINE_NUMBER_SPACE = re.compile(r"^\s*\d+\s+(?=\()")
_TRAILING_COUNT = re.compile(r";\s*\d+\s*$")


@dataclasses.dataclass(eq=False)
class TreeNode:
    """
    A node in a species tree. Nodes compare by identity.

    :ivar name: The taxon label; the empty string for unlabelled internal
        nodes.
    :ivar branch_length: The length of the branch above this node.
    :ivar theta: The population size parameter for the branch above
        this node, or None if not given.
    :ivar children: The child nodes, in input order.
    """

    name: str = ""
    branch_length: float = 0.0
    theta: Optional[float] = None
    children: List["TreeNode"] = dataclasses.field(default_factory=list)

    @property
    def is_leaf(self):
        return len(self.children) == 0


class NewickSyntaxError(ValueError):
    """
    Raised internally when a tree string cannot be parsed.
    """


def clean_sample_line(text):
    """
    Removes the decorations BPP and common pagers add around a sampled tree:
    a leading line number (``12→`` or ``12`` followed by whitespace) and a
    trailing ``; <count>`` suffix. The result is stripped of whitespace.
    """
    text = _LINE_NUMBER_ARROW.sub("", text, count=1)
    text = _LINE_NUMBER_SPACE.sub("", text, count=1)
    text = _TRAILING_COUNT.sub(";", text, count=1)
    return text.strip()


class _SpeciesTreeParser:
    def __init__(self, text):
        self.text = text
        self.pos = 0

    def peek(self):
        if self.pos < len(self.text):
            return self.text[self.pos]
        return ""

    def skip_whitespace(self):
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def read_until(self, terminators):
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in terminators:
            self.pos += 1
        return self.text[start : self.pos].strip()

    def parse(self):
        node = self.parse_node()
        self.skip_whitespace()
        if self.peek() == ";":
            self.pos += 1
            self.skip_whitespace()
        if self.pos != len(self.text):
            raise NewickSyntaxError(f"Unexpected text at position {self.pos}")
        return node

    def parse_node(self):
        node = TreeNode()
        self.skip_whitespace()
        if self.peek() == "(":
            self.pos += 1
            while True:
                node.children.append(self.parse_node())
                self.skip_whitespace()
                c = self.peek()
                if c == ",":
                    self.pos += 1
                elif c == ")":
                    self.pos += 1
                    break
                elif c == "":
                    raise NewickSyntaxError("Unmatched '('")
                else:
                    raise NewickSyntaxError(f"Unexpected {c!r} at position {self.pos}")
        self.skip_whitespace()
        node.name = self.read_until(NAME_TERMINATORS)
        self.skip_whitespace()
        if self.peek() == "#":
            self.pos += 1
            node.theta = parse_number(self.read_until(VALUE_TERMINATORS))
        self.skip_whitespace()
        if self.peek() == ":":
            self.pos += 1
            length = parse_number(self.read_until(VALUE_TERMINATORS))
            if length is not None:
                node.branch_length = length
        if node.is_leaf and node.name == "":
            raise NewickSyntaxError(f"Empty leaf at position {self.pos}")
        return node


def parse_species_tree(text):
    """
    Parses the specified species tree sample line and returns the root
    :class:`TreeNode`, or None if the text is empty or not a well formed
    tree. Line numbers and trailing sample counts are removed first (see
    :func:`clean_sample_line`).

    Theta values which cannot be parsed are left unset, and branch lengths
    which cannot be parsed are taken to be zero.
    """
    text = clean_sample_line(text)
    if text == "" or text == ";":
        return None
    try:
        return _SpeciesTreeParser(text).parse()
    except NewickSyntaxError as nse:
        logger.debug("Cannot parse species tree: %s", nse)
    except RecursionError:
        logger.debug("Species tree nested too deeply to parse")
    return None


def format_species_tree(node, precision=None):
    """
    Returns the specified species tree in the extended Newick format
    accepted by :func:`parse_species_tree`. Theta values and branch lengths
    are written exactly unless ``precision`` decimal places are requested
    for display (see :func:`.format_number`). Zero branch lengths are
    omitted.
    """
    return _format_node(node, precision) + ";"


def _format_node(node, precision):
    s = ""
    if len(node.children) > 0:
        s = "(" + ",".join(_format_node(child, precision) for child in node.children)
        s += ")"
    s += node.name
    if node.theta is not None:
        s += " #" + format_number(node.theta, precision)
    if node.branch_length > 0:
        s += ":" + format_number(node.branch_length, precision)
    return s
