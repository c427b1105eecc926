import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pybookbuild.config import load_config
from pybookbuild.process import ProcessResult

FRAGMENTS = [
    "src/pages/index.md",
    "src/pages/basics/index.md",
    "src/pages/basics/actions.md",
    "src/pages/links.md",
]

SOURCES = {
    "pandoc/metadata.yaml": "---\ntitle: Essential Play\n---\n",
    "src/templates/template.html": "<html>$body$</html>\n",
    "src/templates/template.tex": "$body$\n",
    "src/filters/pandoc-tables.py": "#!/usr/bin/env python3\n",
    "src/filters/pandoc-callouts.py": "#!/usr/bin/env python3\n",
    "src/filters/pandoc-columns.py": "#!/usr/bin/env python3\n",
    "src/css/main.less": "@import 'fonts';\nbody { background: url(logo.png); }\n",
    "src/css/logo.png": "PNG",
    "src/js/main.coffee": "console.log 'hello'\n",
}


def scaffold(root, fragments=FRAGMENTS):
    """Write a minimal book tree under ``root``."""
    for name, text in SOURCES.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    for fragment in fragments:
        path = root / fragment
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"# {Path(fragment).stem}\n")
    (root / "running.order").write_text(
        "# chapter order\n" + "\n".join(fragments) + "\n\n"
    )
    return root


class FakeRunner:
    """Record commands and answer with a canned ProcessResult."""

    def __init__(self, returncode=0, stdout="", stderr="", error=None):
        self.calls = []
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.error = error

    def __call__(self, args, cwd=None):
        args = tuple(str(a) for a in args)
        self.calls.append({"args": args, "cwd": cwd})
        if self.error is not None:
            return ProcessResult(args=args, error=self.error)
        return ProcessResult(
            args=args,
            returncode=self.returncode,
            stdout=self.stdout,
            stderr=self.stderr,
        )

    @property
    def commands(self):
        return [call["args"] for call in self.calls]


@pytest.fixture
def project(tmp_path):
    return scaffold(tmp_path)


@pytest.fixture
def config(project):
    return load_config(project)


@pytest.fixture
def runner():
    return FakeRunner()
