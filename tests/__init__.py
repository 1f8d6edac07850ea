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
Common code for the bppt test cases.
"""
import bppt


def sample_data(lines, trailing_newline=True):
    """
    Returns the bytes of a sample file with the specified lines.
    """
    if len(lines) == 0:
        return b""
    text = "\n".join(lines)
    if trailing_newline:
        text += "\n"
    return text.encode("utf-8")


def write_sample_file(path, lines, trailing_newline=True):
    path.write_bytes(sample_data(lines, trailing_newline))
    return path


def make_index(lines, **kwargs):
    return bppt.LineIndex.build(bppt.BytesSource(sample_data(lines)), **kwargs)


def find_node(root, name):
    """
    Returns the first node in the tree with the specified name.
    """
    stack = [root]
    while len(stack) > 0:
        node = stack.pop()
        if node.name == name:
            return node
        stack.extend(node.children)
    raise ValueError(f"No node named {name}")
