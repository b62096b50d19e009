import pytest

from engagement_tracking.classifier import EngagementClassifier
from engagement_tracking.config import (
    EngagementConfig,
    build_config,
    build_settings,
    merge_config
)
from engagement_tracking.errors import ConfigurationError

def test_defaults():
    config = EngagementConfig()
    assert config.eye_closed_duration == 1.0
    assert config.yawn_duration == 1.0
    assert config.look_away_duration == 1.0
    assert config.baseline_score == 70
    assert config.state_weights.engaged == 10
    assert config.state_weights.distracted == -15
    assert config.state_weights.sleepy == -25
    assert config.state_weights.away == -20

    settings = build_settings()
    assert settings.thresholds.eye_closed_threshold == 0.2
    assert settings.thresholds.yawn_threshold == 0.6
    assert settings.thresholds.look_away_threshold == 1.0
    assert settings.thresholds.fidgeting_threshold == 0.3

@pytest.mark.parametrize("field", ["eye_closed_duration", "yawn_duration", "look_away_duration"])
def test_negative_duration_rejected(field):
    with pytest.raises(ConfigurationError):
        build_config({field: -1.0})

def test_negative_threshold_rejected():
    with pytest.raises(ConfigurationError):
        build_settings({"thresholds": {"yawn_threshold": -0.1}})

def test_baseline_out_of_range_rejected():
    with pytest.raises(ConfigurationError):
        build_config({"baseline_score": 120})

def test_unknown_key_rejected():
    with pytest.raises(ConfigurationError):
        build_config({"eye_close_duration": 1.0})

def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        EngagementClassifier({"yawn_duration": -3})

def test_merge_keeps_other_weights():
    config = merge_config(EngagementConfig(), {"state_weights": {"sleepy": -40}, "yawn_duration": 2.5})
    assert config.state_weights.sleepy == -40
    assert config.state_weights.engaged == 10
    assert config.yawn_duration == 2.5
    assert config.eye_closed_duration == 1.0

def test_update_config_rejects_invalid_and_keeps_previous():
    classifier = EngagementClassifier()
    classifier.update_config(look_away_duration=2.0)

    with pytest.raises(ConfigurationError):
        classifier.update_config({"look_away_duration": -2.0})

    assert classifier.config.look_away_duration == 2.0
