"""
Shared pytest fixtures for the influence test suite.

Usage in tests:
    def test_something(cast):
        cast.character("Beacon", influences=[entry("Legacy", have=True)])
        index = cast.index()

    def test_with_team(team):
        # team comes pre-populated with Beacon, Legacy and Nova
        index = team.cast.index()
"""

from types import SimpleNamespace

import pytest

from influence.config import ConfigManager
from tests.factories import CastFactory, FlakyStore, entry


@pytest.fixture
def cast():
    """Empty cast backed by a MemoryRecordStore."""
    return CastFactory()


@pytest.fixture
def flaky_cast():
    """Empty cast whose store can be told to reject writes."""
    return CastFactory(FlakyStore())


@pytest.fixture
def team(cast):
    """
    Three characters:
    - Beacon has Influence over Legacy
    - Nova has Influence over Beacon (declared on Beacon's sheet)
    - Legacy's sheet is empty
    """
    beacon = cast.character("Beacon", real_name="Alex Chen", influences=[
        entry("Legacy", have=True),
        entry("Nova", has=True),
    ])
    legacy = cast.character("Legacy")
    nova = cast.character("Nova")
    return SimpleNamespace(cast=cast, beacon=beacon, legacy=legacy, nova=nova)


@pytest.fixture(autouse=True)
def isolated_user_config(tmp_path, monkeypatch):
    """Never read or write the real ~/.influence/config.yaml."""
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_FILE", tmp_path / "home" / "config.yaml")
    for key in ConfigManager.ENV_OVERRIDES:
        monkeypatch.delenv(key, raising=False)
