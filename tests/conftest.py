"""
Pytest Configuration and Fixtures for parspace
==============================================

Shared fixtures, configuration, and test utilities for the entire test suite.
"""

import numpy as np
import pytest

from parspace.config.options import Options

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for workflows")
    config.addinivalue_line("markers", "property: Property-based tests")
    config.addinivalue_line("markers", "slow: Slow tests (> 5 seconds)")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "property" in str(item.fspath):
            item.add_marker(pytest.mark.property)


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def rng():
    """Seeded random generator for reproducible synthetic data."""
    return np.random.default_rng(20240611)


@pytest.fixture
def unit_square():
    return ((0.0, 1.0), (0.0, 1.0))


@pytest.fixture
def half_plane_classifier():
    """Two patterns split at x = 0.5."""

    def classify(p):
        return "left" if p[0] < 0.5 else "right"

    return classify


@pytest.fixture
def single_pattern_classifier():
    def classify(p):
        return "A"

    return classify


@pytest.fixture
def base_options(unit_square):
    """Small, fast options on the unit square."""
    return Options(
        init_parms=[(0.25, 0.5)],
        bounds=unit_square,
        radius=0.1,
        n_iters=100,
        dedup_interval=25,
        seed=7,
    )
