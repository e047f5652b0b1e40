from __future__ import annotations

import pytest

from factions import config
from factions.config import Settings


def test_defaults_match_module_constants() -> None:
    settings = Settings()
    assert (settings.map_width, settings.map_height) == (config.MAP_WIDTH, config.MAP_HEIGHT)
    assert settings.neutral_strength == 5
    assert settings.start_strength == 20
    assert settings.generation_interval_ms == 1000
    assert settings.tick_rate_ms == 100


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FACTIONS_PORT", "8123")
    monkeypatch.setenv("FACTIONS_MAP_WIDTH", "20")
    monkeypatch.setenv("FACTIONS_SHUTDOWN_TIMEOUT_S", "2.5")
    monkeypatch.setenv("FACTIONS_LOG_LEVEL", "debug")
    settings = Settings.from_env()
    assert settings.port == 8123
    assert settings.map_width == 20
    assert settings.map_height == config.MAP_HEIGHT
    assert settings.shutdown_timeout_s == 2.5
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "overrides",
    [
        {"map_width": 0},
        {"neutral_strength": -1},
        {"tick_rate_ms": 0},
        {"generation_interval_ms": -5},
        {"min_player_id_length": 0},
    ],
)
def test_validate_rejects_nonsense(overrides) -> None:
    with pytest.raises(ValueError):
        Settings(**overrides).validate()
