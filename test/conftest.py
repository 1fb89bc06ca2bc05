import numpy as np
import pytest
from typing import Callable, Dict

from tfchain.common.rigid_transform import RigidTransform
from tfchain.config import TransformSetParams

# =============================================================================
# Index Fixtures
# =============================================================================


@pytest.fixture
def params() -> TransformSetParams:
    """Default tolerance with the level-table self-check run after every mutation."""
    return TransformSetParams(check_invariants=True)


@pytest.fixture
def vehicle_transforms() -> Dict[str, RigidTransform]:
    """
    Mounting of two lidars on a car, and the car in the map.

    Keys are "src->dst"; angles in degrees.
    """
    return {
        "map->car": RigidTransform.from_euler(0.0, 10.0, 20.0, [100.0, -70.0, 255.0], degrees=True),
        "car->lidar1": RigidTransform.from_euler(0.0, 0.0, 30.0, [10.0, 0.0, 3.0], degrees=True),
        "car->lidar2": RigidTransform.from_euler(0.0, 0.0, -30.0, [-10.0, 0.0, 3.0], degrees=True),
    }


# =============================================================================
# Test Utility Fixtures
# =============================================================================


@pytest.fixture
def numpy_seed():
    """Set numpy random seed for reproducible tests."""
    np.random.seed(42)
    yield


@pytest.fixture
def random_transform(numpy_seed) -> Callable[[], RigidTransform]:
    """Factory for random transforms: rotation up to ~1 rad, translation ~N(0, 10)."""
    def make() -> RigidTransform:
        rotvec = np.random.uniform(-1.0, 1.0, 3)
        trans = np.random.randn(3) * 10.0
        return RigidTransform.from_rotvec(rotvec, trans)
    return make
