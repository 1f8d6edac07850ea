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
Gene trees and individual to species maps.

BPP writes one gene tree per line for each locus, with tips tagged by
individual and species and a trailing tree height/length annotation::

    ((a1^A:0.0012,b1^B:0.0012):0.0031,c1^C:0.0043); [TH=0.0043, TL=0.0098]
"""
import collections.abc
import dataclasses
import logging
import re
import types
from typing import List
from typing import Optional

from . import sources
from .core import format_number
from .core import parse_number

logger = logging.getLogger(__name__)

_LINE_NUMBER_ARROW = re.compile(r"^\s*\d+\s*→\s*")
_ANNOTATION = re.compile(r"\[TH=([0-9.eE+-]+),\s*TL=([0-9.eE+-]+)\]")
_ANNOTATION_SUFFIX = re.compile(r"\s*\[TH=[^\]]+\].*$", re.DOTALL)
_TRAILING_COUNT = re.compile(r";\s*\d*\s*$")
_BRANCH_LENGTH = re.compile(r":([0-9.eE+-]+)")
_SPECIES_CODE = re.compile(r"^[A-Z]+$")


@dataclasses.dataclass(eq=False)
class GeneTreeNode:
    """
    A node in a gene tree. Nodes compare by identity.

    :ivar name: The tip label, e.g. ``a1^A``; empty for internal nodes.
    :ivar branch_length: The length of the branch above this node.
    :ivar children: The child nodes, in input order.
    :ivar species: The species a tip belongs to, or None if unresolved.
    :ivar individual: The individual a tip was sampled from, if known.
    """

    name: str = ""
    branch_length: float = 0.0
    children: List["GeneTreeNode"] = dataclasses.field(default_factory=list)
    species: Optional[str] = None
    individual: Optional[str] = None

    @property
    def is_leaf(self):
        return len(self.children) == 0


@dataclasses.dataclass
class GeneTree:
    """
    A parsed gene tree sample.

    :ivar root: The root :class:`GeneTreeNode`.
    :ivar tree_height: The ``TH`` value from the sample annotation, or 0.
    :ivar tree_length: The ``TL`` value from the sample annotation, or 0.
    """

    root: GeneTreeNode
    tree_height: float = 0.0
    tree_length: float = 0.0


def parse_imap(text):
    """
    Parses the text of an Imap file and returns a read-only mapping of
    individual to species. Each line gives an individual and its species
    separated by whitespace; lines with fewer than two fields are ignored.
    """
    imap = {}
    for line in text.splitlines():
        fields = line.split()
        if len(fields) >= 2:
            imap[fields[0]] = fields[1]
    return types.MappingProxyType(imap)


def load_imap(path):
    """
    Reads the Imap file at the specified path. Raises
    :class:`.SourceReadError` if the file cannot be read.
    """
    source = sources.open_source(path)
    return parse_imap(source.read_text(0, source.size))


def resolve_tag(name, imap=None):
    """
    Returns the ``(species, individual)`` tuple for the specified gene tree
    tip label.

    Tags join a species code and an individual with a caret, in either
    order. BPP writes ``individual^SPECIES``, so if the part after the caret
    is a short upper case code it is taken as the species; otherwise the
    part before the caret is. Untagged names are looked up in the Imap,
    and the species is None if there is no entry.
    """
    head, caret, tail = name.partition("^")
    if caret:
        if len(tail) <= 2 and _SPECIES_CODE.match(tail) is not None:
            return tail, head
        return head, tail
    if imap is None:
        return None, None
    if not isinstance(imap, collections.abc.Mapping):
        raise TypeError("imap must be a mapping")
    return imap.get(name), name


class _UnmatchedParenthesis(ValueError):
    pass


def _split_children(text):
    parts = []
    depth = 0
    start = 0
    for j, c in enumerate(text):
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
        elif c == "," and depth == 0:
            parts.append(text[start:j])
            start = j + 1
    parts.append(text[start:])
    return [part.strip() for part in parts if part.strip() != ""]


def _parse_node(text, imap):
    text = text.strip()
    if not text.startswith("("):
        return _parse_leaf(text, imap)
    depth = 0
    close = -1
    for j, c in enumerate(text):
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth == 0:
                close = j
                break
    if close == -1:
        raise _UnmatchedParenthesis(text)
    node = GeneTreeNode()
    for child_text in _split_children(text[1:close]):
        node.children.append(_parse_node(child_text, imap))
    if len(node.children) == 0:
        raise _UnmatchedParenthesis(text)
    match = _BRANCH_LENGTH.search(text, close + 1)
    if match is not None:
        node.branch_length = parse_number(match.group(1)) or 0.0
    return node


def _parse_leaf(text, imap):
    name, colon, length = text.partition(":")
    node = GeneTreeNode(name=name.strip())
    if colon:
        node.branch_length = parse_number(length) or 0.0
    node.species, node.individual = resolve_tag(node.name, imap)
    return node


def parse_gene_tree(text, imap=None):
    """
    Parses the specified gene tree sample line and returns a
    :class:`GeneTree`, or None if the line is empty or has unbalanced
    parentheses. Tip species are resolved with :func:`resolve_tag`.
    """
    text = _LINE_NUMBER_ARROW.sub("", text, count=1)
    tree_height = 0.0
    tree_length = 0.0
    match = _ANNOTATION.search(text)
    if match is not None:
        tree_height = parse_number(match.group(1)) or 0.0
        tree_length = parse_number(match.group(2)) or 0.0
    text = _ANNOTATION_SUFFIX.sub("", text).strip()
    text = _TRAILING_COUNT.sub("", text).strip()
    if text == "":
        return None
    try:
        root = _parse_node(text, imap)
    except _UnmatchedParenthesis:
        logger.debug("Unmatched parenthesis in gene tree %.60s", text)
        return None
    except RecursionError:
        logger.debug("Gene tree nested too deeply to parse")
        return None
    return GeneTree(root=root, tree_height=tree_height, tree_length=tree_length)


def format_gene_tree(tree, precision=None):
    """
    Returns the specified :class:`GeneTree` as a Newick string followed by
    its ``[TH=..., TL=...]`` annotation. Numbers are written as by
    :func:`.format_species_tree`.
    """
    s = _format_node(tree.root, precision)
    return (
        f"{s}; [TH={format_number(tree.tree_height, precision)}, "
        f"TL={format_number(tree.tree_length, precision)}]"
    )


def _format_node(node, precision):
    s = node.name
    if len(node.children) > 0:
        s = "(" + ",".join(_format_node(child, precision) for child in node.children)
        s += ")"
    if node.branch_length > 0:
        s += ":" + format_number(node.branch_length, precision)
    return s
