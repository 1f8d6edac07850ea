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
bppt is a toolkit for browsing the species and gene trees sampled by BPP.
"""
from bppt.core import __version__

from bppt.exceptions import BpptException, SourceReadError

from bppt.sources import BytesSource, DataSource, FileSource, open_source

from bppt.indexing import IndexBuilder, IndexProgress, LineIndex

from bppt.species_trees import (
    TreeNode,
    clean_sample_line,
    format_species_tree,
    parse_species_tree,
)

from bppt.gene_trees import (
    GeneTree,
    GeneTreeNode,
    format_gene_tree,
    load_imap,
    parse_gene_tree,
    parse_imap,
    resolve_tag,
)

from bppt.populations import (
    PopulationInterval,
    PopulationIntervalModel,
    PopulationSlots,
)

from bppt.layout import (
    SpeciesBand,
    Style,
    cladogram_layout,
    phylogram_layout,
    species_bands,
)

from bppt.embedding import EdgePath, Embedding, Violation, embed_gene_tree

from bppt.scale import (
    estimate_max_depth,
    estimate_max_gene_height,
    format_scale_value,
    nice_scale_value,
)

from bppt.drawing import DrawingSurface, SvgSurface, render_embedded, render_phylogram

__all__ = [
    "__version__",
    "BpptException",
    "SourceReadError",
    "BytesSource",
    "DataSource",
    "FileSource",
    "open_source",
    "IndexBuilder",
    "IndexProgress",
    "LineIndex",
    "TreeNode",
    "clean_sample_line",
    "format_species_tree",
    "parse_species_tree",
    "GeneTree",
    "GeneTreeNode",
    "format_gene_tree",
    "load_imap",
    "parse_gene_tree",
    "parse_imap",
    "resolve_tag",
    "PopulationInterval",
    "PopulationIntervalModel",
    "PopulationSlots",
    "SpeciesBand",
    "Style",
    "cladogram_layout",
    "phylogram_layout",
    "species_bands",
    "EdgePath",
    "Embedding",
    "Violation",
    "embed_gene_tree",
    "estimate_max_depth",
    "estimate_max_gene_height",
    "format_scale_value",
    "nice_scale_value",
    "DrawingSurface",
    "SvgSurface",
    "render_embedded",
    "render_phylogram",
]
