"""
Global pytest configuration and fixtures.
"""

import pytest

from idpkit.auth.models import LarkAuthConfigModel


@pytest.fixture
def lark_config() -> LarkAuthConfigModel:
    return LarkAuthConfigModel(
        client_id="cli_a1b2",
        client_secret="secret",
        redirect_url="https://server/lark/callback",
        user_id_type="open_id",
    )


@pytest.fixture(autouse=True)
def isolate_config_env(monkeypatch, tmp_path):
    """Keep tests from picking up a developer's real idpkit config."""
    monkeypatch.delenv("IDPKIT_CONFIG", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
