"""Environment-backed application configuration."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from gptxt.llm.client import DEFAULT_API_URL, DEFAULT_MODEL

CONFIG_FILE_NAME = "gptxt.json"
DEFAULT_EDITOR = "vi"
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(slots=True)
class AppConfig:
    """Runtime settings loaded from the config file and environment variables."""

    api_key: str | None
    model: str
    api_url: str
    editor: str
    timeout: float
    log_level: str
    config_path: str

    @classmethod
    def from_env(cls) -> AppConfig:
        config_path = config_file_path()
        file_config = _load_file_config(config_path)
        openai_from_file = file_config.get("openai")
        openai_config = openai_from_file if isinstance(openai_from_file, dict) else {}

        return cls(
            api_key=(
                os.getenv("GPTXT_API_KEY")
                or os.getenv("OPENAI_API_KEY")
                or _to_optional_string(openai_config.get("api_key"))
                or _to_optional_string(file_config.get("api_key"))
            ),
            model=(
                os.getenv("GPTXT_MODEL")
                or _to_optional_string(file_config.get("model"))
                or DEFAULT_MODEL
            ),
            api_url=(
                os.getenv("GPTXT_API_URL")
                or _to_optional_string(openai_config.get("api_url"))
                or _to_optional_string(file_config.get("api_url"))
                or DEFAULT_API_URL
            ),
            editor=(
                os.getenv("GPTXT_EDITOR")
                or _to_optional_string(file_config.get("editor"))
                or os.getenv("VISUAL")
                or os.getenv("EDITOR")
                or DEFAULT_EDITOR
            ),
            timeout=_to_positive_float(
                os.getenv("GPTXT_TIMEOUT") or file_config.get("timeout"),
                default=DEFAULT_TIMEOUT_SECONDS,
            ),
            log_level=(
                os.getenv("GPTXT_LOG_LEVEL")
                or _to_optional_string(file_config.get("log_level"))
                or DEFAULT_LOG_LEVEL
            ).upper(),
            config_path=str(config_path),
        )


def config_file_path() -> Path:
    """Resolve the config file, honouring ``GPTXT_CONFIG_FILE`` and ``XDG_CONFIG_HOME``."""
    explicit_path = os.getenv("GPTXT_CONFIG_FILE")
    if explicit_path:
        return Path(explicit_path).expanduser()
    config_home = os.getenv("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / CONFIG_FILE_NAME


def ensure_config_file(path: str | Path) -> bool:
    """Create a config file with an empty key; return True when one was created."""
    config_path = Path(path)
    if config_path.exists():
        return False
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as fh:
        json.dump({"api_key": ""}, fh, indent=2)
        fh.write("\n")
    return True


def _to_optional_string(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _load_file_config(path: Path) -> dict[str, object]:
    if not path.exists() or not path.is_file():
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            parsed = json.load(fh)
    except (OSError, json.JSONDecodeError):
        return {}
    if isinstance(parsed, dict):
        return parsed
    return {}


def _to_positive_float(value: object, *, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else default
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return default
        return parsed if parsed > 0 else default
    return default
