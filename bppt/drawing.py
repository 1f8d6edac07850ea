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
Module responsible for visualisations.
"""
import logging

import svgwrite

from . import embedding
from . import geometry
from . import layout
from . import populations
from . import scale

logger = logging.getLogger(__name__)

# Population tube colours, assigned to populations in order of first use.
PALETTE = [
    "#4285f4",  # blue
    "#ea4335",  # red
    "#34a853",  # green
    "#fbbc04",  # yellow
    "#9b59b6",  # purple
    "#e67e22",  # orange
    "#1abc9c",  # teal
    "#f1c40f",  # gold
]
ROOT_COLOUR = "#787878"
TUBE_FILL_OPACITY = 0.2
ROOT_FILL_OPACITY = 0.15
TUBE_STROKE_OPACITY = 0.5


class DrawingSurface:
    """
    The primitives needed to draw trees. Coordinates have their origin at
    the top left with y increasing downwards.
    """

    def polygon(self, points, *, fill, fill_opacity=1, stroke=None):
        raise NotImplementedError()

    def polyline(self, points, *, stroke, stroke_width=1, stroke_opacity=1):
        raise NotImplementedError()

    def circle(self, center, r, *, fill=None, stroke=None):
        raise NotImplementedError()

    def text(self, text, position, *, fill, font_size, anchor="middle", bold=False):
        """
        Draws the specified text with its baseline at the specified
        position. The anchor is one of "start", "middle" or "end".
        """
        raise NotImplementedError()

    def finish(self):
        """
        Completes the drawing and returns the result.
        """
        raise NotImplementedError()


class SvgSurface(DrawingSurface):
    """
    Draws in SVG format using the svgwrite library.
    """

    def __init__(self, width, height, *, background=None, font_family="sans-serif"):
        self.dwg = svgwrite.Drawing(size=(width, height), debug=True)
        if background is not None:
            self.dwg.add(
                self.dwg.rect(insert=(0, 0), size=(width, height), fill=background)
            )
        self.shapes = self.dwg.add(
            self.dwg.g(id="shapes", stroke_linecap="round", stroke_linejoin="round")
        )
        self.labels = self.dwg.add(self.dwg.g(id="labels", font_family=font_family))

    def polygon(self, points, *, fill, fill_opacity=1, stroke=None):
        kwargs = {"fill": fill, "fill_opacity": fill_opacity}
        if stroke is not None:
            kwargs["stroke"] = stroke
        self.shapes.add(self.dwg.polygon(points, **kwargs))

    def polyline(self, points, *, stroke, stroke_width=1, stroke_opacity=1):
        self.shapes.add(
            self.dwg.polyline(
                points,
                fill="none",
                stroke=stroke,
                stroke_width=stroke_width,
                stroke_opacity=stroke_opacity,
            )
        )

    def circle(self, center, r, *, fill=None, stroke=None):
        self.shapes.add(
            self.dwg.circle(
                center=center,
                r=r,
                fill="none" if fill is None else fill,
                stroke="none" if stroke is None else stroke,
            )
        )

    def text(self, text, position, *, fill, font_size, anchor="middle", bold=False):
        kwargs = {"fill": fill, "font_size": font_size, "text_anchor": anchor}
        if bold:
            kwargs["font_weight"] = "bold"
        self.labels.add(self.dwg.text(text, insert=position, **kwargs))

    def finish(self):
        return self.dwg.tostring()


def _draw_scale_bar(surface, style, bar_x, bottom, y_scale, max_depth):
    nice = scale.nice_scale_value(max_depth)
    top = bottom - nice * y_scale
    surface.polyline(
        [(bar_x, bottom), (bar_x, top)], stroke=style.label_colour, stroke_width=2
    )
    for y in [bottom, top]:
        surface.polyline([(bar_x - 5, y), (bar_x + 5, y)], stroke=style.label_colour)
    surface.text(
        scale.format_scale_value(nice),
        (bar_x, bottom + 8 + style.font_size),
        fill=style.label_colour,
        font_size=style.font_size,
        bold=True,
    )


def _draw_tube(surface, interval, y0, y1, colour, fill_opacity, bar):
    left, right = interval.left, interval.right
    surface.polygon(
        [(left, y0), (left, y1), (right, y1), (right, y0)],
        fill=colour,
        fill_opacity=fill_opacity,
    )
    for x in [left, right]:
        surface.polyline(
            [(x, y0), (x, y1)],
            stroke=colour,
            stroke_width=1.5,
            stroke_opacity=TUBE_STROKE_OPACITY,
        )
    if bar:
        surface.polyline(
            [(left, y0), (right, y0)],
            stroke=colour,
            stroke_width=1.5,
            stroke_opacity=TUBE_STROKE_OPACITY,
        )


def render_embedded(
    species_tree,
    gene_tree=None,
    *,
    width=800,
    height=600,
    style=None,
    total_depth=None,
    slots=None,
    surface=None,
):
    """
    Draws the populations of a species tree as tubes, with the lineages of a
    gene tree embedded within them, and returns the result of the drawing
    surface (SVG text by default).

    :param TreeNode species_tree: The species tree.
    :param GeneTree gene_tree: The gene tree to embed, if any.
    :param float total_depth: The age drawn at the bottom of the figure.
        Defaults to the larger of the species and gene tree depths.
    :param PopulationSlots slots: The table used to assign colours to
        populations. It is reset before drawing.
    :param DrawingSurface surface: The surface to draw on. Defaults to a
        new :class:`SvgSurface`.
    """
    if style is None:
        style = layout.Style()
    if slots is None:
        slots = populations.PopulationSlots(len(PALETTE))
    if surface is None:
        surface = SvgSurface(
            width,
            height,
            background=style.background_colour,
            font_family=style.font_family,
        )
    slots.reset()

    species_depth = geometry.depth(species_tree)
    if total_depth is None or total_depth <= 0:
        total_depth = species_depth
        if gene_tree is not None:
            total_depth = max(total_depth, geometry.depth(gene_tree.root))
        if total_depth <= 0:
            total_depth = 0.01
    leaf_names = geometry.leaf_names(species_tree)
    bands = layout.species_bands(
        leaf_names,
        width,
        margin_left=style.margin_left,
        margin_right=style.margin_right,
        tube_fraction=style.tube_fraction,
        min_tube=style.min_tube_width,
    )
    available_height = height - style.margin_top - style.margin_bottom
    y_scale = available_height / total_depth
    tip_y = style.margin_top
    root_y = height - style.margin_bottom
    model = populations.PopulationIntervalModel.from_species_tree(
        species_tree, total_depth=total_depth, bands=bands
    )

    for interval in model:
        y0 = tip_y + interval.start_time * y_scale
        y1 = tip_y + interval.end_time * y_scale
        if interval.name == populations.ROOT_POPULATION_NAME:
            _draw_tube(surface, interval, y0, y1, ROOT_COLOUR, ROOT_FILL_OPACITY, True)
        else:
            colour = PALETTE[slots.slot(interval.name) % len(PALETTE)]
            bar = len(interval.species) > 1
            _draw_tube(surface, interval, y0, y1, colour, TUBE_FILL_OPACITY, bar)

    if gene_tree is not None:
        result = embedding.embed_gene_tree(
            gene_tree,
            model,
            bands,
            tip_y=tip_y,
            y_scale=y_scale,
            spread=style.gene_spread,
        )
        for edge in result.edges:
            surface.polyline(
                edge.points, stroke=style.gene_colour, stroke_width=style.gene_width
            )
        for node, point in result.anchors.items():
            if node.is_leaf:
                label = node.individual or node.name
                surface.text(
                    label,
                    (point[0], tip_y - 4),
                    fill=style.gene_colour,
                    font_size=style.font_size - 1,
                )
            else:
                surface.circle(point, 3, fill=style.gene_colour)

    for name, band in bands.items():
        surface.text(
            name,
            (band.center, tip_y - 28),
            fill=style.label_colour,
            font_size=style.font_size,
            bold=True,
        )

    if style.show_theta:
        _draw_embedded_thetas(surface, style, species_tree, bands, tip_y, y_scale)

    _draw_scale_bar(surface, style, width - 50, root_y, y_scale, total_depth)
    return surface.finish()


def _draw_embedded_thetas(surface, style, tree, bands, tip_y, y_scale):
    ages = geometry.node_ages(tree)
    center = {}
    for node in geometry.postorder(tree):
        if node.is_leaf:
            band = bands.get(node.name)
            center[node] = None if band is None else band.center
        else:
            xs = [center[c] for c in node.children if center[c] is not None]
            center[node] = None if len(xs) == 0 else sum(xs) / len(xs)
        if node.theta is None or center[node] is None:
            continue
        y = tip_y + (ages[node] + node.branch_length / 2) * y_scale
        if node.is_leaf:
            x = bands[node.name].right + 4
        else:
            x = center[node] + 30
        surface.text(
            f"θ={node.theta:.4f}",
            (x, y),
            fill=style.theta_colour,
            font_size=style.font_size + 1,
            anchor="start",
        )


def render_phylogram(
    tree,
    *,
    width=800,
    height=600,
    style=None,
    scale_depth=None,
    cladogram=False,
    surface=None,
):
    """
    Draws the specified species tree and returns the result of the drawing
    surface (SVG text by default). Branch lengths are drawn to scale unless
    ``cladogram`` is True, in which case every branch has the same length
    and no scale bar is shown. A ``scale_depth`` which is not positive is
    ignored and the tree's own depth used instead.
    """
    if style is None:
        style = layout.Style()
    if scale_depth is not None and scale_depth <= 0:
        scale_depth = None
    if surface is None:
        surface = SvgSurface(
            width,
            height,
            background=style.background_colour,
            font_family=style.font_family,
        )
    if cladogram:
        tree_layout = layout.cladogram_layout(
            tree, width=width, height=height, style=style
        )
    else:
        tree_layout = layout.phylogram_layout(
            tree, width=width, height=height, style=style, scale_depth=scale_depth
        )
    for points in tree_layout.edges:
        surface.polyline(
            points, stroke=style.branch_colour, stroke_width=style.branch_width
        )

    for node, (x, y) in tree_layout.anchors.items():
        if node.is_leaf:
            label_y = tree_layout.tip_y if cladogram else y
            surface.text(
                node.name,
                (x, label_y - 6),
                fill=style.label_colour,
                font_size=style.font_size,
                bold=True,
            )
        if cladogram or not style.show_theta or node.theta is None:
            continue
        if not node.is_leaf and node.branch_length <= 0:
            continue
        _, top, bottom = tree_layout.branches[node]
        surface.text(
            f"{node.theta:.4f}",
            (x + 6, (top + bottom) / 2),
            fill=style.theta_colour,
            font_size=style.font_size + 1,
            anchor="start",
        )

    if not cladogram:
        depth = tree_layout.root_y - tree_layout.tip_y
        if depth > 0:
            _draw_scale_bar(
                surface,
                style,
                width - 30,
                tree_layout.root_y,
                tree_layout.y_scale,
                depth / tree_layout.y_scale if scale_depth is None else scale_depth,
            )
    return surface.finish()
