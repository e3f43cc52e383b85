"""
Pytest configuration and shared fixtures for the shapeinfer tests.

Fixtures hand out immutable descriptor values, so they are safe to share
at session scope.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from shapeinfer.shared.types import TensorType, F32, I1, I32
from shapeinfer.ir.region import Region


# =============================================================================
# Session-scoped fixtures
# =============================================================================

@pytest.fixture(scope="session")
def f32_scalar():
    return TensorType(F32, ())


@pytest.fixture(scope="session")
def i32_scalar():
    return TensorType(I32, ())


@pytest.fixture(scope="session")
def pred_scalar():
    return TensorType(I1, ())


@pytest.fixture(scope="session")
def f32_add_region(f32_scalar):
    """(f32, f32) -> f32 scalar reducer."""
    return Region([f32_scalar, f32_scalar], [f32_scalar])


@pytest.fixture
def rng():
    """Seeded generator for randomized property tests."""
    import numpy as np
    return np.random.default_rng(20240917)
