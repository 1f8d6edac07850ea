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
Geometric properties of species and gene trees.

These functions work on any node type with ``name``, ``branch_length`` and
``children`` attributes. All traversals use explicit stacks so that very
deep, unbalanced trees do not hit the recursion limit.
"""


def preorder(node):
    """
    Returns an iterator over the nodes in the subtree rooted at the specified
    node, parents before children and children in input order.
    """
    stack = [node]
    while len(stack) > 0:
        u = stack.pop()
        yield u
        stack.extend(reversed(u.children))


def postorder(node):
    """
    Returns an iterator over the nodes in the subtree rooted at the specified
    node, children (in input order) before their parents.
    """
    stack = [(node, False)]
    while len(stack) > 0:
        u, expanded = stack.pop()
        if expanded or len(u.children) == 0:
            yield u
        else:
            stack.append((u, True))
            for child in reversed(u.children):
                stack.append((child, False))


def leaves(node):
    """
    Returns the list of leaf nodes below the specified node in input order.
    """
    return [u for u in preorder(node) if len(u.children) == 0]


def leaf_names(node):
    return [u.name for u in leaves(node)]


def num_leaves(node):
    return sum(1 for u in preorder(node) if len(u.children) == 0)


def height(node):
    """
    Returns the largest sum of branch lengths on a path from the specified
    node to one of its leaves. The branch above the node itself is not
    included.
    """
    max_height = 0.0
    stack = [(node, 0.0)]
    while len(stack) > 0:
        u, distance = stack.pop()
        if len(u.children) == 0:
            max_height = max(max_height, distance)
        for child in u.children:
            stack.append((child, distance + child.branch_length))
    return max_height


def depth(node):
    """
    Returns the height of the specified node plus the length of the branch
    above it; for a root node this is the full extent of the drawn tree.
    """
    return height(node) + node.branch_length


def node_age(node):
    """
    Returns the age of the specified node: zero for leaves, and otherwise the
    age of its first child plus that child's branch length. The other
    children are assumed to agree.
    """
    age = 0.0
    while len(node.children) > 0:
        node = node.children[0]
        age += node.branch_length
    return age


def node_ages(root):
    """
    Returns a dictionary mapping each node in the tree to its age, as
    defined by :func:`node_age`, computed in a single pass.
    """
    ages = {}
    for u in postorder(root):
        if len(u.children) == 0:
            ages[u] = 0.0
        else:
            first = u.children[0]
            ages[u] = ages[first] + first.branch_length
    return ages


def max_theta(node):
    """
    Returns the largest theta value in the specified species tree, or None
    if no node has a theta.
    """
    thetas = [u.theta for u in preorder(node) if u.theta is not None]
    if len(thetas) == 0:
        return None
    return max(thetas)


def clade_depth(node):
    """
    Returns the number of edges on the longest path from the specified node
    to a leaf.
    """
    max_edges = 0
    stack = [(node, 0)]
    while len(stack) > 0:
        u, edges = stack.pop()
        max_edges = max(max_edges, edges)
        for child in u.children:
            stack.append((child, edges + 1))
    return max_edges
