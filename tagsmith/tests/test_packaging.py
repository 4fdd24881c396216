"""Tests for the project metadata in pyproject.toml."""

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


@pytest.fixture
def project():
    if not PYPROJECT.exists():
        pytest.skip("pyproject.toml not available (installed package)")
    with PYPROJECT.open("rb") as f:
        return tomllib.load(f)["project"]


class TestProjectMetadata:

    @pytest.mark.unit
    def test_long_description_is_not_a_design_document(self, project):
        readme = project.get("readme")

        if readme is None:
            return
        name = readme if isinstance(readme, str) else readme.get("file", "")
        assert name not in ("SPEC_FULL.md", "spec.md", "DESIGN.md")
        assert (PYPROJECT.parent / name).exists()

    @pytest.mark.unit
    def test_console_script_points_at_cli(self, project):
        assert project["scripts"]["tagsmith"] == "tagsmith.services.tagger.cli:app"
