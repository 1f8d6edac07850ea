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
Command line interface to the bppt library.
"""
import argparse
import logging
import os
import signal
import sys

import daiquiri
import tqdm

from . import core
from . import drawing
from . import embedding
from . import gene_trees
from . import geometry
from . import indexing
from . import layout
from . import populations
from . import scale
from . import species_trees

logger = logging.getLogger(__name__)


def set_sigpipe_handler():
    if os.name == "posix":
        # Set signal handler for SIGPIPE to quietly kill the program.
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)


def setup_logging(args):
    log_level = "WARN"
    if args.verbose == 1:
        log_level = "INFO"
    elif args.verbose >= 2:
        log_level = "DEBUG"
    daiquiri.setup(level=log_level)


def exit(message):
    """
    Exits with the specified error message, setting error status.
    """
    sys.exit(f"error: {message}")


def positive_int(value):
    int_value = int(value)
    if int_value <= 0:
        msg = f"{value} is not a valid sample number"
        raise argparse.ArgumentTypeError(msg)
    return int_value


def load_index(path, skip_first_line=False):
    """
    Indexes the specified file, showing a progress bar on a terminal.
    """
    builder = indexing.LineIndex.iter_build(path, skip_first_line=skip_first_line)
    with tqdm.tqdm(
        total=builder.source.size,
        unit="B",
        unit_scale=True,
        desc="Indexing",
        disable=None,
    ) as progress:
        for report in builder:
            progress.update(report.bytes_read - progress.n)
    return builder.index


def get_sample(index, sample, path):
    if sample > len(index):
        exit(f"sample {sample} out of range: {path} has {len(index)} samples")
    return index.get(sample - 1)


def run_count(args):
    index = load_index(args.file, args.skip_first_line)
    print(len(index))


def run_show(args):
    index = load_index(args.file, args.skip_first_line)
    line = get_sample(index, args.sample, args.file)
    if args.gene:
        tree = gene_trees.parse_gene_tree(line)
        if tree is None:
            exit("sample unreadable")
        print(gene_trees.format_gene_tree(tree, precision=args.precision))
    else:
        tree = species_trees.parse_species_tree(line)
        if tree is None:
            exit("sample unreadable")
        print(species_trees.format_species_tree(tree, precision=args.precision))


def run_depth(args):
    index = load_index(args.file, args.skip_first_line)
    max_depth = scale.estimate_max_depth(index, sample_count=args.num_samples)
    print(f"max_depth\t{max_depth:.6g}")
    if max_depth > 0:
        nice = scale.nice_scale_value(max_depth)
        print(f"scale_bar\t{scale.format_scale_value(nice)}")


def load_imap(args):
    if args.imap is None:
        return None
    return gene_trees.load_imap(args.imap)


def load_trees(args):
    imap = load_imap(args)
    species_index = load_index(args.species_file, skip_first_line=True)
    species_tree = species_trees.parse_species_tree(
        get_sample(species_index, args.sample, args.species_file)
    )
    if species_tree is None:
        exit(f"species tree sample {args.sample} unreadable")
    gene_index = None
    gene_tree = None
    if args.gene_file is not None:
        gene_index = load_index(args.gene_file)
        gene_tree = gene_trees.parse_gene_tree(
            get_sample(gene_index, args.sample, args.gene_file), imap
        )
        if gene_tree is None:
            exit(f"gene tree sample {args.sample} unreadable")
    return species_tree, gene_index, gene_tree


def run_embed(args):
    species_tree, _, gene_tree = load_trees(args)
    total_depth = max(geometry.depth(species_tree), geometry.depth(gene_tree.root))
    style = layout.Style()
    bands = layout.species_bands(
        geometry.leaf_names(species_tree),
        args.width,
        margin_left=style.margin_left,
        margin_right=style.margin_right,
    )
    model = populations.PopulationIntervalModel.from_species_tree(
        species_tree, total_depth=total_depth, bands=bands
    )
    result = embedding.embed_gene_tree(
        gene_tree, model, bands, tip_y=0, y_scale=1, spread=style.gene_spread
    )
    ages = geometry.node_ages(gene_tree.root)
    for node in geometry.postorder(gene_tree.root):
        if node.is_leaf:
            continue
        names = ",".join(sorted(result.species[node]))
        population = result.populations[node]
        label = "-" if population is None else population.name
        print(f"{ages[node]:.6f}\t{names}\t{label}")
    print(f"violations\t{len(result.violations)}")


def run_draw(args):
    species_tree, gene_index, gene_tree = load_trees(args)
    style = layout.Style(show_theta=not args.no_theta)
    if gene_tree is not None:
        total_depth = max(
            scale.estimate_max_gene_height(gene_index),
            geometry.depth(species_tree),
            geometry.depth(gene_tree.root),
        )
        svg = drawing.render_embedded(
            species_tree,
            gene_tree,
            width=args.width,
            height=args.height,
            style=style,
            total_depth=total_depth,
        )
    else:
        scale_depth = None
        if not args.cladogram:
            species_index = load_index(args.species_file, skip_first_line=True)
            scale_depth = scale.estimate_max_depth(species_index)
        svg = drawing.render_phylogram(
            species_tree,
            width=args.width,
            height=args.height,
            style=style,
            scale_depth=scale_depth,
            cladogram=args.cladogram,
        )
    with open(args.output, "w") as f:
        f.write(svg)
    logger.info("Wrote %s", args.output)


def add_file_argument(parser):
    parser.add_argument("file", help="A BPP sample file with one tree per line")


def add_skip_first_line_argument(parser):
    parser.add_argument(
        "--skip-first-line",
        action="store_true",
        default=False,
        help=(
            "Do not treat the first line as a sample. BPP writes the starting "
            "tree on the first line of the species tree sample file."
        ),
    )


def add_sample_argument(parser):
    parser.add_argument(
        "sample", type=positive_int, help="The sample number, starting from 1"
    )


def add_imap_argument(parser):
    parser.add_argument(
        "--imap",
        default=None,
        help="A file mapping individuals to species, one per line",
    )


def add_size_arguments(parser):
    parser.add_argument(
        "--width", type=int, default=800, help="The width of the drawing"
    )
    parser.add_argument(
        "--height", type=int, default=600, help="The height of the drawing"
    )


def add_count_subcommand(subparsers):
    parser = subparsers.add_parser("count", help="Print the number of samples.")
    add_file_argument(parser)
    add_skip_first_line_argument(parser)
    parser.set_defaults(runner=run_count)


def add_show_subcommand(subparsers):
    parser = subparsers.add_parser("show", help="Print a single sampled tree.")
    add_file_argument(parser)
    add_sample_argument(parser)
    add_skip_first_line_argument(parser)
    parser.add_argument(
        "--gene",
        action="store_true",
        default=False,
        help="The file holds gene trees rather than species trees",
    )
    parser.add_argument(
        "--precision",
        "-p",
        type=int,
        default=None,
        help=(
            "The number of decimal places to print. By default values are "
            "printed exactly."
        ),
    )
    parser.set_defaults(runner=run_show)


def add_depth_subcommand(subparsers):
    parser = subparsers.add_parser(
        "depth", help="Estimate the largest species tree depth in a sample file."
    )
    add_file_argument(parser)
    parser.add_argument(
        "--num-samples",
        "-n",
        type=positive_int,
        default=scale.DEPTH_SAMPLE_COUNT,
        help="The number of trees to examine",
    )
    parser.add_argument(
        "--no-skip-first-line",
        dest="skip_first_line",
        action="store_false",
        default=True,
        help="Treat the first line as a sample",
    )
    parser.set_defaults(runner=run_depth)


def add_embed_subcommand(subparsers):
    parser = subparsers.add_parser(
        "embed",
        help=(
            "Embed a gene tree in a species tree and print each coalescence "
            "with the population containing it."
        ),
    )
    parser.add_argument("species_file", help="The species tree sample file")
    parser.add_argument("gene_file", help="The gene tree sample file")
    add_sample_argument(parser)
    add_imap_argument(parser)
    parser.set_defaults(runner=run_embed, width=800)


def add_draw_subcommand(subparsers):
    parser = subparsers.add_parser("draw", help="Draw a sampled tree in SVG format.")
    parser.add_argument("species_file", help="The species tree sample file")
    add_sample_argument(parser)
    parser.add_argument("--output", "-o", required=True, help="The output SVG file")
    parser.add_argument(
        "--gene-file",
        default=None,
        help="A gene tree sample file; its tree is embedded in the species tree",
    )
    add_imap_argument(parser)
    parser.add_argument(
        "--cladogram",
        action="store_true",
        default=False,
        help="Draw all branches with the same length",
    )
    parser.add_argument(
        "--no-theta",
        action="store_true",
        default=False,
        help="Do not label branches with theta values",
    )
    add_size_arguments(parser)
    parser.set_defaults(runner=run_draw)


def get_bppt_parser():
    top_parser = argparse.ArgumentParser(
        description="Browse and draw trees sampled by BPP."
    )
    top_parser.add_argument(
        "-V", "--version", action="version", version=f"%(prog)s {core.__version__}"
    )
    top_parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase the logging verbosity; use -vv for debug output",
    )
    subparsers = top_parser.add_subparsers(dest="subcommand")
    subparsers.required = True

    add_count_subcommand(subparsers)
    add_show_subcommand(subparsers)
    add_depth_subcommand(subparsers)
    add_embed_subcommand(subparsers)
    add_draw_subcommand(subparsers)

    return top_parser


def bppt_main(arg_list=None):
    set_sigpipe_handler()
    parser = get_bppt_parser()
    args = parser.parse_args(arg_list)
    setup_logging(args)
    try:
        args.runner(args)
    except OSError as ose:
        exit(str(ose))
