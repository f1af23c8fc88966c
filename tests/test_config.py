import json

import pytest

from audioscribe.core.config import (
    DEFAULT_CONFIG,
    Config,
    PlaybackConfig,
    clamp_gap_ms,
    clamp_rate,
)


def test_missing_file_uses_defaults(tmp_path):
    config = Config(str(tmp_path / "missing.json"))
    assert config.config == DEFAULT_CONFIG
    assert config.speech_rate == 0.6
    assert config.gap_ms == 1000
    assert config.voice_name_hints == ["Male", "David", "Google US English"]
    assert config.session_title == "AudioScribe Dictation"
    assert config.session_artwork is None
    assert config.liveness_enabled
    # defaults are never written behind the caller's back
    assert not (tmp_path / "missing.json").exists()


def test_defaults_are_not_shared_between_instances(tmp_path):
    a = Config(str(tmp_path / "a.json"))
    a.set("speech.rate", 1.1)
    b = Config(str(tmp_path / "b.json"))
    assert b.speech_rate == 0.6


def test_loads_file_and_reads_dot_keys(tmp_path):
    path = tmp_path / "audioscribe.json"
    path.write_text(json.dumps({"speech": {"rate": 1.0, "gap_ms": 2000}, "liveness": {"enabled": False}}))

    config = Config(str(path))
    assert config.get("speech.rate") == 1.0
    assert config.gap_ms == 2000
    assert not config.liveness_enabled
    # sections absent from the file fall back to property defaults
    assert config.voice_locale_prefix == "en"
    assert config.get("nope.missing", "x") == "x"


def test_broken_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    config = Config(str(path))
    assert not config.load()
    assert config.gap_ms == 1000


def test_set_and_save(tmp_path):
    path = tmp_path / "out.json"
    config = Config(str(path))
    assert config.set("session.title", "Revision")
    assert config.set("new.section.value", 3)
    assert not config.set("logs_path.nested", 1)
    assert config.save()

    reloaded = Config(str(path))
    assert reloaded.session_title == "Revision"
    assert reloaded.get("new.section.value") == 3


def test_playback_config_is_clamped(tmp_path):
    path = tmp_path / "c.json"
    path.write_text(json.dumps({"speech": {"rate": 3, "gap_ms": 99999, "pitch": 1.2}}))
    assert Config(str(path)).playback_config() == PlaybackConfig(rate=1.5, gap_ms=4000, pitch=1.2)


@pytest.mark.parametrize("value, expected", [(0.3, 0.3), (1.5, 1.5), (0.0, 0.3), (2.0, 1.5), (1.04, 1.0), (0.96, 1.0)])
def test_clamp_rate(value, expected):
    assert clamp_rate(value) == expected


@pytest.mark.parametrize("value, expected", [(0, 0), (4000, 4000), (-1, 0), (260, 500), (3999, 4000), (700, 500)])
def test_clamp_gap_ms(value, expected):
    assert clamp_gap_ms(value) == expected
    assert isinstance(clamp_gap_ms(value), int)


def test_clamp_rejects_nan():
    with pytest.raises(ValueError):
        clamp_rate(float("nan"))


@pytest.mark.parametrize("value, expected", [
    (float("inf"), 1.5), (float("-inf"), 0.3), (1e308, 1.5), (-1e308, 0.3), (10 ** 400, 1.5),
])
def test_clamp_rate_handles_extreme_values(value, expected):
    assert clamp_rate(value) == expected


@pytest.mark.parametrize("value, expected", [
    (float("inf"), 4000), (float("-inf"), 0), (1e308, 4000), (-(10 ** 400), 0),
])
def test_clamp_gap_ms_handles_extreme_values(value, expected):
    assert clamp_gap_ms(value) == expected


@pytest.mark.parametrize("value, expected", [(250, 500), (750, 1000), (1250, 1500), (3750, 4000)])
def test_gap_ties_round_up(value, expected):
    assert clamp_gap_ms(value) == expected


def test_playback_config_replaces_unusable_values(tmp_path):
    path = tmp_path / "c.json"
    path.write_text('{"speech": {"rate": Infinity, "gap_ms": NaN, "pitch": "high"}}')
    assert Config(str(path)).playback_config() == PlaybackConfig(rate=1.5, gap_ms=1000, pitch=1.0)

    path.write_text('{"speech": {"rate": "fast", "gap_ms": null, "pitch": Infinity}}')
    assert Config(str(path)).playback_config() == PlaybackConfig(rate=0.6, gap_ms=1000, pitch=1.0)
