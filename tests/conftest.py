import pytest

from autoprop import AutoProp
from autoprop.events import _registry


@pytest.fixture(autouse=True)
def _isolated_runtime(monkeypatch):
    """Fresh settings and no leftover hooks for every test."""
    for name in ("STRICT_VALIDATION", "PRECHECK_ASSOCIATIONS", "LOG_LEVEL"):
        # set first so monkeypatch records it; values loaded from .env are undone too
        monkeypatch.setenv(f"AUTOPROP_{name}", "")
        monkeypatch.delenv(f"AUTOPROP_{name}")
    AutoProp.reset()
    _registry.clear()
    yield
    AutoProp.reset()
    _registry.clear()


@pytest.fixture
def changes():
    """Collects every `Change` emitted for any record."""
    from autoprop import Record, on

    seen = []
    on.change(Record)(seen.append)
    return seen
