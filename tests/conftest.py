"""
Shared pytest fixtures for shapesketch tests.
"""

import logging
from datetime import datetime
from pathlib import Path

import pytest

from shapesketch import ColumnProfile, ProfileConfig


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """
    Root test_output directory, created once per session. Plots and data
    written here are kept after the run for inspection.
    """
    output_dir = Path(__file__).parent.parent / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """
    Per-test output directory: test_output/<module_name>/<test_name>/
    """
    module_name = request.module.__name__.split(".")[-1]
    test_dir = test_output_root / module_name / request.node.name
    test_dir.mkdir(parents=True, exist_ok=True)
    return test_dir


@pytest.fixture
def timestamped_output_dir(request, test_output_root) -> Path:
    """
    Like test_output_dir with a timestamp level, for comparing runs:
    test_output/<module>/<test>/<timestamp>/
    """
    module_name = request.module.__name__.split(".")[-1]
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    test_dir = test_output_root / module_name / request.node.name / timestamp
    test_dir.mkdir(parents=True, exist_ok=True)
    return test_dir


@pytest.fixture
def small_config() -> ProfileConfig:
    """Config with small caps so tests can cross them cheaply."""
    return ProfileConfig(max_shapes=20, k=5, max_cardinality=50)


@pytest.fixture
def make_profile(small_config):
    """Factory for profiles trained on a list of raw samples."""

    def _make(samples, name="column", config=None, **kwargs) -> ColumnProfile:
        profile = ColumnProfile(name, config or small_config, **kwargs)
        for sample in samples:
            profile.train(sample)
        return profile

    return _make


@pytest.fixture(autouse=True)
def reset_shapesketch_logging():
    """Reset the shapesketch logger around each test.

    Leaves only a NullHandler and an inherited level, so handlers added by
    one test never leak into another.
    """
    logger = logging.getLogger("shapesketch")

    def reset() -> None:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if not isinstance(handler, logging.NullHandler):
                handler.close()
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)

    reset()
    yield
    reset()
