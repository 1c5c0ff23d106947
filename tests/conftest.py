"""Shared fixtures for metric_tagging tests."""

from __future__ import annotations

import pytest

from metric_tagging.naming import set_namer
from metric_tagging.scope import TagScope


@pytest.fixture(autouse=True)
def clean_tag_scope():
    """Start and finish every test with an empty TagScope."""
    TagScope.clear()
    yield
    TagScope.clear()


@pytest.fixture
def reset_default_namer():
    """Drop the process-wide namer before and after a test."""
    set_namer(None)
    yield
    set_namer(None)
