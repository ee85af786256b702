"""Pytest configuration and shared fixtures for dcdeploy tests."""

import shutil
from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixture_dir() -> Path:
    """Get path to the deployment repository fixture.

    Returns:
        Path to tests/fixtures/deploy
    """
    return FIXTURES / "deploy"


@pytest.fixture
def deploy_root(tmp_path: Path, fixture_dir: Path) -> Path:
    """Copy the deployment repository fixture into a writable directory.

    Returns a root that tests may extend with extra job or config files.
    """
    root = tmp_path / "deploy"
    shutil.copytree(fixture_dir, root)
    return root
