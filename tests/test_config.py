import json

import pytest

from gptxt.config import AppConfig, config_file_path, ensure_config_file
from gptxt.llm.client import DEFAULT_API_URL, DEFAULT_MODEL

_ENV_VARS = (
    "GPTXT_CONFIG_FILE",
    "GPTXT_API_KEY",
    "OPENAI_API_KEY",
    "GPTXT_MODEL",
    "GPTXT_API_URL",
    "GPTXT_EDITOR",
    "VISUAL",
    "EDITOR",
    "GPTXT_TIMEOUT",
    "GPTXT_LOG_LEVEL",
    "XDG_CONFIG_HOME",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_app_config_loads_values_from_file(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "gptxt.json"
    config_path.write_text(
        json.dumps(
            {
                "openai": {"api_key": "test-key", "api_url": "https://proxy.test/v1/completions"},
                "model": "davinci-002",
                "editor": "nano",
                "timeout": 15,
                "log_level": "debug",
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("GPTXT_CONFIG_FILE", str(config_path))

    config = AppConfig.from_env()

    assert config.api_key == "test-key"
    assert config.api_url == "https://proxy.test/v1/completions"
    assert config.model == "davinci-002"
    assert config.editor == "nano"
    assert config.timeout == 15.0
    assert config.log_level == "DEBUG"
    assert config.config_path == str(config_path)


def test_defaults_without_file(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("GPTXT_CONFIG_FILE", str(tmp_path / "missing.json"))

    config = AppConfig.from_env()

    assert config.api_key is None
    assert config.model == DEFAULT_MODEL
    assert config.api_url == DEFAULT_API_URL
    assert config.editor == "vi"
    assert config.timeout == 60.0
    assert config.log_level == "WARNING"


def test_env_overrides_file(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "gptxt.json"
    config_path.write_text(
        json.dumps({"api_key": "file-key", "model": "file-model", "editor": "nano"}),
        encoding="utf-8",
    )
    monkeypatch.setenv("GPTXT_CONFIG_FILE", str(config_path))
    monkeypatch.setenv("GPTXT_API_KEY", "env-key")
    monkeypatch.setenv("GPTXT_MODEL", "env-model")
    monkeypatch.setenv("GPTXT_EDITOR", "emacs -nw")

    config = AppConfig.from_env()

    assert config.api_key == "env-key"
    assert config.model == "env-model"
    assert config.editor == "emacs -nw"


def test_openai_api_key_env_is_supported(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("GPTXT_CONFIG_FILE", str(tmp_path / "missing.json"))
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")

    assert AppConfig.from_env().api_key == "sk-openai"


def test_editor_falls_back_to_visual_then_editor(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("GPTXT_CONFIG_FILE", str(tmp_path / "missing.json"))
    monkeypatch.setenv("EDITOR", "nano")

    assert AppConfig.from_env().editor == "nano"

    monkeypatch.setenv("VISUAL", "vim")

    assert AppConfig.from_env().editor == "vim"


def test_malformed_file_and_bad_timeout_fall_back_to_defaults(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "gptxt.json"
    config_path.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv("GPTXT_CONFIG_FILE", str(config_path))
    monkeypatch.setenv("GPTXT_TIMEOUT", "-3")

    config = AppConfig.from_env()

    assert config.api_key is None
    assert config.timeout == 60.0


def test_default_path_uses_xdg_config_home(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert config_file_path() == tmp_path / "gptxt.json"


def test_ensure_config_file_creates_empty_key_once(tmp_path) -> None:
    config_path = tmp_path / "nested" / "gptxt.json"

    assert ensure_config_file(config_path) is True
    assert json.loads(config_path.read_text(encoding="utf-8")) == {"api_key": ""}
    assert ensure_config_file(config_path) is False
