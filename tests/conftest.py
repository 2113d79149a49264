"""Shared fixtures: keep logs and saved configuration out of the user's home."""

import pytest

from terrakube_provider.provider_logging import reset_provider_logger


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Point logs and configuration at a temporary directory."""
    monkeypatch.setenv("TERRAKUBE_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("TERRAKUBE_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("TERRAKUBE_LOG", "DEBUG")
    for name in ("TERRAKUBE_ENDPOINT", "TERRAKUBE_TOKEN", "TERRAKUBE_INSECURE_HTTP_CLIENT",
                 "TERRAKUBE_ENCRYPTION_KEY"):
        monkeypatch.delenv(name, raising=False)
    reset_provider_logger()
    yield tmp_path
    reset_provider_logger()
