from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_MODEL = "global.anthropic.claude-haiku-4-5-20251001-v1:0"
CONFIG_FILE_NAME = "assistant.json"

CONFIG_DIR_ENV = "CLAWS_CONFIG_DIR"
PROFILE_ENV = "CLAWS_AI_PROFILE"
REGION_ENV = "CLAWS_AI_REGION"


@dataclass
class AppConfig:
    model: str
    max_tokens: int
    temperature: float | None
    thinking_budget: int
    max_sessions: int
    save_sessions: bool
    max_tool_rounds: int
    max_tool_calls_per_query: int
    max_tool_result_chars: int
    docs_search_timeout: float
    profile: str | None
    region: str | None
    config_dir: Path
    log_level: str
    log_consumers: list | None


def config_dir() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "claws"


def load_json_config(directory: Path | None = None) -> dict:
    """Read <config dir>/assistant.json, falling back to ./config.json."""
    load_dotenv()
    for config_path in ((directory or config_dir()) / CONFIG_FILE_NAME, Path.cwd() / "config.json"):
        if config_path.exists():
            with open(config_path) as f:
                return json.load(f)
    return {}


def _to_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return bool(value)


def _optional_str(value: object) -> str | None:
    text = str(value or "").strip()
    return text or None


def parse_app_config(config: dict, *, directory: Path | None = None) -> AppConfig:
    temperature = config.get("Temperature")
    return AppConfig(
        model=config.get("Model") or DEFAULT_MODEL,
        max_tokens=int(config.get("MaxTokens", 16000)),
        temperature=float(temperature) if temperature is not None else None,
        thinking_budget=int(config.get("ThinkingBudget", 8000)),
        max_sessions=int(config.get("MaxSessions", 100)),
        save_sessions=_to_bool(config.get("SaveSessions", True), default=True),
        max_tool_rounds=int(config.get("MaxToolRounds", 15)),
        max_tool_calls_per_query=int(config.get("MaxToolCallsPerQuery", 50)),
        max_tool_result_chars=int(config.get("MaxToolResultChars", 40_000)),
        docs_search_timeout=float(config.get("DocsSearchTimeout", 10)),
        profile=_optional_str(os.environ.get(PROFILE_ENV) or config.get("Profile")),
        region=_optional_str(os.environ.get(REGION_ENV) or config.get("Region")),
        config_dir=directory or config_dir(),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )
