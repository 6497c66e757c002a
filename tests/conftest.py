"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FAKE_PANDOC = '''\
import sys

args = sys.argv[1:]
if "--fail" in args:
    sys.stderr.write("conversion failed\\n")
    sys.exit(3)

source = args[args.index("-s") + 1]
target = args[args.index("-o") + 1]
flags = [a for a in args if a.startswith("--")]

with open(source, encoding="utf-8") as src, open(target, "w", encoding="utf-8") as out:
    out.write("<!-- " + " ".join(flags) + " -->\\n")
    out.write('<div id="content">\\n')
    for line in src:
        if line.strip() and not line.startswith("% "):
            out.write("<p>" + line.strip() + "</p>\\n")
'''


@pytest.fixture
def fake_pandoc(tmp_path: Path) -> Path:
    """Write a python script that mimics ``pandoc [flags] -s SRC -o OUT``."""
    script = tmp_path / "fake_pandoc.py"
    script.write_text(FAKE_PANDOC)
    return script
