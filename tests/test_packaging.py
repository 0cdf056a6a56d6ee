"""
Tests for the project metadata.
"""

import re
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent


class TestProjectMetadata:
    """Tests for pyproject.toml."""

    def test_readme_is_project_readme(self):
        text = (ROOT / "pyproject.toml").read_text(encoding="utf-8")
        match = re.search(r'^readme = "([^"]+)"', text, re.MULTILINE)
        assert match is not None
        assert match.group(1) == "README.md"
        assert (ROOT / match.group(1)).is_file()
