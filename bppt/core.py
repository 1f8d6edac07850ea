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
Core functions and classes used throughout bppt.
"""
import re

__version__ = "0.1.0"

_NUMBER_PREFIX = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


def parse_number(text):
    """
    Returns the float value of the longest numeric prefix of the specified
    text, or None if it does not start with a number. Trailing garbage is
    ignored, so that ``"0.25)"`` gives 0.25.
    """
    match = _NUMBER_PREFIX.match(text)
    if match is None:
        return None
    return float(match.group(1))


def format_number(value, precision=None):
    """
    Formats the specified value for writing to a tree string. By default the
    shortest text which parses back to exactly the same float is used;
    otherwise the value is written with ``precision`` decimal places, which
    is lossy for values smaller than ``10 ** -precision``.
    """
    if precision is None:
        return repr(float(value))
    return f"{value:.{precision}f}"
