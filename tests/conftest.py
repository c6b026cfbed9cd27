"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from scribe_cli import config


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests away from real configuration files and SCRIBE_* variables."""

    for name in ("URL", "USERNAME", "API_TOKEN", "PROVIDER"):
        monkeypatch.delenv(f"SCRIBE_{name}", raising=False)
    monkeypatch.setattr(
        config,
        "DEFAULT_CONFIG_PATHS",
        (tmp_path / "scribe-cli.toml", tmp_path / "home" / "config.toml"),
    )
    return tmp_path
