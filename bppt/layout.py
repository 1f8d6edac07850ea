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
Coordinates for drawing species trees.

Trees are drawn vertically, with the tips at the top of the drawing and the
root at the bottom, so that y coordinates increase with age.
"""
import dataclasses
from typing import Dict
from typing import List
from typing import Tuple

from . import geometry


@dataclasses.dataclass
class Style:
    """
    Dimensions and colours used when drawing trees. All lengths are in
    drawing units (pixels in SVG output).
    """

    margin_left: float = 60
    margin_right: float = 100
    margin_top: float = 50
    margin_bottom: float = 50
    min_tip_spacing: float = 30
    # Fraction of the distance between adjacent species used for each tube.
    tube_fraction: float = 0.6
    min_tube_width: float = 20
    # Fraction of a tube over which the gene tree tips of a species are spread.
    gene_spread: float = 0.8
    branch_width: float = 4
    gene_width: float = 2
    show_theta: bool = True
    branch_colour: str = "#4a7c59"
    label_colour: str = "#1e3a29"
    theta_colour: str = "#1e3a29"
    gene_colour: str = "#8B4513"
    background_colour: str = "#ffffff"
    font_family: str = "sans-serif"
    font_size: float = 11


@dataclasses.dataclass(frozen=True)
class SpeciesBand:
    """
    The horizontal extent of a species' tube.

    :ivar center: The x coordinate of the middle of the tube.
    :ivar half_width: Half of the width of the tube.
    """

    center: float
    half_width: float

    @property
    def left(self):
        return self.center - self.half_width

    @property
    def right(self):
        return self.center + self.half_width

    @property
    def width(self):
        return 2 * self.half_width


@dataclasses.dataclass
class TreeLayout:
    """
    The coordinates of a laid out tree.

    :ivar anchors: Maps each node to the (x, y) point at which it is drawn.
    :ivar branches: Maps each node to the ``(x, top, bottom)`` of the
        vertical branch above it, where ``top`` is the node end.
    :ivar edges: The polylines making up the drawn tree.
    :ivar tip_y: The y coordinate of the tips.
    :ivar root_y: The y coordinate of the bottom of the root branch.
    :ivar y_scale: Drawing units per unit of branch length; zero for
        cladograms.
    """

    anchors: Dict[object, Tuple[float, float]]
    branches: Dict[object, Tuple[float, float, float]]
    edges: List[List[Tuple[float, float]]]
    tip_y: float
    root_y: float
    y_scale: float = 0.0


def species_bands(
    leaf_names,
    width,
    *,
    margin_left,
    margin_right,
    tube_fraction=0.6,
    min_tube=20,
):
    """
    Returns a dictionary mapping each species to its :class:`SpeciesBand`,
    in the order given. Species are spaced evenly between the margins, inset
    by half a tube so that the outer tubes stay within them; a single
    species is centred.
    """
    n = len(leaf_names)
    available = width - margin_left - margin_right
    spacing = available / max(n - 1, 1)
    tube = max(min_tube, spacing * tube_fraction)
    bands = {}
    for j, name in enumerate(leaf_names):
        if n > 1:
            x = margin_left + tube / 2 + j * (available - tube) / (n - 1)
        else:
            x = margin_left + available / 2
        bands[name] = SpeciesBand(center=x, half_width=tube / 2)
    return bands


def _leaf_x(tree, x_offset, spacing):
    x = {}
    for j, leaf in enumerate(geometry.leaves(tree)):
        x[leaf] = x_offset + j * spacing
    for node in geometry.postorder(tree):
        if not node.is_leaf:
            x[node] = sum(x[child] for child in node.children) / len(node.children)
    return x


def phylogram_layout(tree, *, width, height, style=None, scale_depth=None):
    """
    Lays out the specified species tree with branch lengths drawn to scale.
    If ``scale_depth`` is given, the vertical scale is chosen so that this
    depth spans the available height, which lets trees sampled from the
    same run be drawn on a common scale.
    """
    if style is None:
        style = Style()
    tree_depth = geometry.depth(tree)
    if scale_depth is None or scale_depth <= 0:
        scale_depth = tree_depth if tree_depth > 0 else 1
    n = geometry.num_leaves(tree)
    available_width = width - style.margin_left - style.margin_right
    available_height = height - style.margin_top - style.margin_bottom
    spacing = available_width / (n - 1) if n > 1 else 0
    x_offset = style.margin_left if n > 1 else style.margin_left + available_width / 2
    x = _leaf_x(tree, x_offset, spacing)
    y_scale = available_height / scale_depth
    tip_y = style.margin_top
    root_y = tip_y + tree_depth * y_scale

    anchors = {}
    branches = {}
    edges = []
    parent_y = {tree: root_y}
    for node in geometry.preorder(tree):
        bottom = parent_y[node]
        y = bottom - node.branch_length * y_scale
        anchors[node] = (x[node], y)
        branches[node] = (x[node], y, bottom)
        if node is tree and node.branch_length > 0:
            edges.append([(x[node], bottom), (x[node], y)])
        for child in node.children:
            parent_y[child] = y
            child_y = y - child.branch_length * y_scale
            edges.append([(x[node], y), (x[child], y), (x[child], child_y)])
    return TreeLayout(
        anchors=anchors,
        branches=branches,
        edges=edges,
        tip_y=tip_y,
        root_y=root_y,
        y_scale=y_scale,
    )


def cladogram_layout(tree, *, width, height, style=None):
    """
    Lays out the specified species tree with every branch drawn the same
    length, so that only the topology is shown. Tips are at least
    ``style.min_tip_spacing`` apart and the tree is centred horizontally.
    """
    if style is None:
        style = Style()
    max_depth = geometry.clade_depth(tree) or 1
    n = geometry.num_leaves(tree)
    available_width = width - style.margin_left - style.margin_right
    available_height = height - style.margin_top - style.margin_bottom
    spacing = max(style.min_tip_spacing, available_width / max(n - 1, 1))
    actual_width = spacing * (n - 1) if n > 1 else 0
    x_offset = style.margin_left
    if actual_width < available_width:
        x_offset += (available_width - actual_width) / 2
    x = _leaf_x(tree, x_offset, spacing)
    y_step = available_height / max_depth
    root_y = height - style.margin_bottom
    tip_y = style.margin_top

    anchors = {}
    branches = {}
    edges = []
    node_y = {tree: root_y}
    for node in geometry.preorder(tree):
        y = node_y[node]
        anchors[node] = (x[node], y)
        for child in node.children:
            child_y = tip_y if child.is_leaf else y - y_step
            node_y[child] = child_y
            branches[child] = (x[child], child_y, y)
            edges.append([(x[node], y), (x[child], y), (x[child], child_y)])
    branches[tree] = (x[tree], root_y, root_y)
    return TreeLayout(
        anchors=anchors,
        branches=branches,
        edges=edges,
        tip_y=tip_y,
        root_y=root_y,
    )
