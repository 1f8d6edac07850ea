import os
import re

from setuptools import setup


def get_version():
    path = os.path.join(os.path.dirname(__file__), "bppt", "core.py")
    with open(path) as f:
        match = re.search(r'^__version__ = "([^"]+)"', f.read(), re.MULTILINE)
    return match.group(1)


def main():
    setup(
        name="bppt",
        version=get_version(),
        description="Browse and draw the species and gene trees sampled by BPP",
        license="GPLv3+",
        packages=["bppt"],
        python_requires=">=3.8",
        install_requires=["numpy", "svgwrite", "daiquiri", "tqdm"],
        extras_require={"test": ["pytest"]},
        entry_points={"console_scripts": ["bppt=bppt.cli:bppt_main"]},
    )


if __name__ == "__main__":
    main()
