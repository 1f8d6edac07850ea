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
Configuration and fixtures for pytest. Only put test-suite wide fixtures in here. Module
specific fixtures should live in their modules.

To use a fixture in a test simply refer to it by name as an argument. This is called
dependancy injection. Note that all fixtures should have the suffix "_fixture" to make
it clear in test code.
"""
import pytest


def pytest_addoption(parser):
    """
    Add an option to skip tests marked with `@pytest.mark.slow`
    """
    parser.addoption(
        "--skip-slow", action="store_true", default=False, help="Skip slow tests"
    )


def pytest_configure(config):
    """
    Add docs on the "slow" marker
    """
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--skip-slow"):
        skip_slow = pytest.mark.skip(reason="--skip-slow specified")
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)


@pytest.fixture
def species_file_fixture(tmp_path):
    """
    A small species tree sample file in the format written by BPP, with the
    starting tree on the first line.
    """
    lines = [
        "((A, B), C);",
        "((A #0.1: 1.0, B #0.2: 1.0) #0.3: 1.0, C #0.4: 2.0) #0.5;",
        "((A #0.1: 0.5, B #0.2: 0.5) #0.3: 2.0, C #0.4: 2.5) #0.5;",
        "((A #0.1: 1.0, C #0.2: 1.0) #0.3: 0.5, B #0.4: 1.5) #0.5;",
    ]
    path = tmp_path / "r1.mcmc.txt"
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def gene_file_fixture(tmp_path):
    """
    A gene tree sample file matching the species trees of the
    species_file_fixture.
    """
    lines = [
        "((a1^A:1.5,b1^B:1.5):1.0,c1^C:2.5); [TH=2.5, TL=6.5]",
        "((a1^A:0.5,c1^C:0.5):1.0,b1^B:1.5); [TH=1.5, TL=3.5]",
        "((a1^A:1.2,c1^C:1.2):1.0,b1^B:2.2); [TH=2.2, TL=5.6]",
    ]
    path = tmp_path / "locus_1.txt"
    path.write_text("\n".join(lines) + "\n")
    return path
