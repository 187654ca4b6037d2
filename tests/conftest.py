import pytest

import tyx.registry
from tyx import Registry


@pytest.fixture
def registry(monkeypatch: pytest.MonkeyPatch) -> Registry:
    """Install a fresh default registry so decorated test classes do not collide."""
    fresh = Registry()
    monkeypatch.setattr(tyx.registry, "_default_registry", fresh)
    return fresh
