"""Pytest fixtures shared by the py_vorclip tests."""

import pytest

from py_vorclip.core.geometry import Box


@pytest.fixture
def box() -> Box:
    """Return the 10 x 10 box anchored at the origin."""
    return Box(left=0.0, bottom=0.0, right=10.0, top=10.0)
