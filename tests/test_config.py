from pathlib import Path

import pytest

from workspace_rules.core.config import (
    DEFAULT_SETTINGS,
    SettingsConfigError,
    load_and_merge,
    load_settings_file,
)

EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


def test_defaults_without_file():
    assert load_and_merge(None) == DEFAULT_SETTINGS


def test_settings_file_overrides_defaults():
    settings = load_and_merge(str(EXAMPLES / "settings-strict.yaml"))
    assert settings == {"log_level": "INFO", "strict_parents": True}


def test_empty_settings_file(tmp_path):
    p = tmp_path / "settings.yaml"
    p.write_text("", encoding="utf-8")
    assert load_settings_file(p) == {}


def test_log_level_is_normalized(tmp_path):
    p = tmp_path / "settings.yaml"
    p.write_text("log_level: debug\n", encoding="utf-8")
    assert load_settings_file(p) == {"log_level": "DEBUG"}


@pytest.mark.parametrize(
    "text",
    [
        "- a\n",
        "colour: blue\n",
        "log_level: LOUD\n",
        "strict_parents: yes please\n",
    ],
)
def test_invalid_settings_rejected(tmp_path, text):
    p = tmp_path / "settings.yaml"
    p.write_text(text, encoding="utf-8")
    with pytest.raises(SettingsConfigError):
        load_settings_file(p)


def test_missing_settings_file():
    with pytest.raises(FileNotFoundError):
        load_and_merge(str(EXAMPLES / "nope.yaml"))


def test_malformed_yaml_is_a_settings_error(tmp_path):
    p = tmp_path / "settings.yaml"
    p.write_text("log_level: [unclosed\n", encoding="utf-8")
    with pytest.raises(SettingsConfigError, match="not valid YAML"):
        load_settings_file(p)
