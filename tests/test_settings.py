from pathlib import Path

import pytest

from mbot.config import ConfigError
from mbot.settings import (
    MbotSettings,
    load_settings,
    require_token,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path: Path) -> None:
    for name in (
        "TOKEN",
        "MBOT__TOKEN",
        "MBOT__PREFIX",
        "MBOT__OWNERS",
        "MBOT__DISPATCH_DURING_WAIT",
    ):
        monkeypatch.delenv(name, raising=False)
    # keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)


def test_defaults() -> None:
    settings = MbotSettings()

    assert settings.prefix == "m!"
    assert settings.owners == []
    assert settings.dispatch_during_wait is True
    assert settings.guess.max_attempts == 7
    assert settings.guess.timeout_s == 15.0
    assert settings.guess.cancel_keywords == ["cancel", "stop", "quit", "exit"]


def test_loads_toml_file(tmp_path: Path) -> None:
    config_path = tmp_path / "mbot.toml"
    config_path.write_text(
        'token = "abc"\n'
        'prefix = "?"\n'
        "owners = [1, 2]\n"
        "dispatch_during_wait = false\n"
        "[guess]\n"
        "max_attempts = 5\n"
        'cancel_keywords = [" Abort "]\n',
        encoding="utf-8",
    )

    settings, path = load_settings(config_path)

    assert path == config_path
    assert settings.prefix == "?"
    assert settings.owner_ids == frozenset({1, 2})
    assert settings.dispatch_during_wait is False
    assert settings.guess.max_attempts == 5
    assert settings.guess.cancel_keywords == ["abort"]
    assert require_token(settings, path) == "abc"


def test_token_from_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TOKEN", " secret ")

    settings = MbotSettings()

    assert require_token(settings, tmp_path / "mbot.toml") == "secret"


def test_missing_token_is_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Missing bot token"):
        require_token(MbotSettings(), tmp_path / "mbot.toml")


def test_explicit_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Missing config file"):
        load_settings(tmp_path / "nope.toml")


def test_malformed_toml(tmp_path: Path) -> None:
    config_path = tmp_path / "mbot.toml"
    config_path.write_text("prefix = \n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Malformed TOML"):
        load_settings(config_path)


@pytest.mark.parametrize(
    ("body", "match"),
    [
        ('prefix = "  "\n', "prefix"),
        ("owners = [true]\n", "owners"),
        ("[guess]\nmax_attempts = 0\n", "max_attempts"),
        ("[guess]\nlow = 10\nhigh = 5\n", "high"),
        ("[guess]\ntimeout_s = 0\n", "timeout_s"),
        ("[guess]\nrounds = 3\n", "rounds"),
    ],
)
def test_invalid_settings(tmp_path: Path, body: str, match: str) -> None:
    config_path = tmp_path / "mbot.toml"
    config_path.write_text(body, encoding="utf-8")

    with pytest.raises(ConfigError, match=match):
        load_settings(config_path)


def test_environment_overrides_toml(monkeypatch, tmp_path: Path) -> None:
    config_path = tmp_path / "mbot.toml"
    config_path.write_text('prefix = "?"\nowners = [1]\n', encoding="utf-8")
    monkeypatch.setenv("MBOT__PREFIX", "!!")
    monkeypatch.setenv("MBOT__OWNERS", "[5, 6]")
    monkeypatch.setenv("MBOT__DISPATCH_DURING_WAIT", "false")

    settings, _ = load_settings(config_path)

    assert settings.prefix == "!!"
    assert settings.owner_ids == frozenset({5, 6})
    assert settings.dispatch_during_wait is False


def test_unknown_environment_keys_are_ignored(monkeypatch, tmp_path: Path) -> None:
    config_path = tmp_path / "mbot.toml"
    config_path.write_text('token = "abc"\n', encoding="utf-8")
    monkeypatch.setenv("MBOT__GUILD_ID", "123")

    settings, path = load_settings(config_path)

    assert require_token(settings, path) == "abc"
    assert not hasattr(settings, "guild_id")
