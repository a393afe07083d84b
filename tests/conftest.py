from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_path() -> None:
    """Guarantee the repository root is discoverable for absolute imports."""

    root = Path(__file__).resolve().parent.parent
    root_str = str(root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


_ensure_project_root_on_path()


@pytest.fixture(autouse=True)
def _isolated_runtime_env(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Keep runtime installs and logs out of the real home directory."""

    home = tmp_path_factory.mktemp("decanter_home")
    monkeypatch.setenv("DECANTER_HOME", str(home))
    monkeypatch.setenv("DECANTER_LOG_DIR", str(home / "logs"))
    monkeypatch.delenv("DECANTER_WINE_LOCAL_FEED_DIR", raising=False)
    monkeypatch.delenv("DECANTER_WINE_BASE_URL", raising=False)

    from app.config import reset_runtime_config_cache

    reset_runtime_config_cache()
    yield
    reset_runtime_config_cache()
