from __future__ import annotations

import pytest

from townsmith.environment.generators.buildings import PrefabRegistry
from townsmith.environment.generators.pipeline import load_default_prefabs


@pytest.fixture(scope="session")
def default_prefabs() -> PrefabRegistry:
    """The bundled prefab catalogue, loaded once per test session."""
    return load_default_prefabs()
