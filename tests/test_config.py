import logging

import pytest

from focusflow.core.config import EngineConfig


def test_defaults_match_classic_pomodoro() -> None:
    config = EngineConfig()
    assert config.work_seconds == 25 * 60
    assert config.break_seconds == 5 * 60
    assert config.total_cycles == 4
    assert config.auto_break_enabled is False
    assert config.notifications_enabled is True


@pytest.mark.parametrize(
    "kwargs",
    [{"work_duration_minutes": 0}, {"break_duration_minutes": -5}, {"total_cycles": 0}],
)
def test_validate_rejects_non_positive_values(kwargs) -> None:
    with pytest.raises(ValueError):
        EngineConfig(**kwargs).validate()


def test_settings_round_trip() -> None:
    config = EngineConfig(work_duration_minutes=50, break_duration_minutes=10, auto_break_enabled=True)
    assert EngineConfig.from_settings(config.to_settings()) == config


def test_from_settings_skips_bad_values(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        config = EngineConfig.from_settings(
            {"work_duration_minutes": "long", "total_cycles": 0, "auto_break_enabled": 1, "theme": "forest"}
        )
    assert config == EngineConfig()
    assert "work_duration_minutes" in caplog.text


def test_from_settings_accepts_missing_payload() -> None:
    assert EngineConfig.from_settings(None) == EngineConfig()
    assert EngineConfig.from_settings("garbage") == EngineConfig()
