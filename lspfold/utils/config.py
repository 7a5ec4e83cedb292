import copy
import logging
import os
from pathlib import Path
from typing import Any

import tomli
import tomli_w


def get_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        base = Path(xdg)
    else:
        base = Path.home() / ".config"
    return base / "lspfold"


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


DEFAULT_CONFIG: dict[str, Any] = {
    "logging": {
        "level": "warning",
    },
    "folding": {
        "dynamic_registration": False,
        "maximum_number_of_ranges": 5000,
        "complete_line_folding_only": False,
        "on_character_offsets": "strip",
        "truncate": False,
    },
}

OFFSET_POLICIES = ("strip", "reject")


class ConfigError(Exception):
    pass


def load_config() -> dict[str, Any]:
    config_path = get_config_path()
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path.exists():
        with open(config_path, "rb") as f:
            try:
                user_config = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise ConfigError(f"Invalid config file {config_path}: {e}") from e
            _merge_config(config, user_config)

    validate_config(config)
    return config


def save_config(config: dict[str, Any]) -> None:
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)


def _merge_config(base: dict, override: dict) -> None:
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_config(base[key], value)
        else:
            base[key] = value


def validate_config(config: dict[str, Any]) -> None:
    folding = config.get("folding", {})

    policy = folding.get("on_character_offsets", "strip")
    if policy not in OFFSET_POLICIES:
        raise ConfigError(
            f"folding.on_character_offsets must be one of {', '.join(OFFSET_POLICIES)}, got {policy!r}"
        )

    maximum = folding.get("maximum_number_of_ranges")
    if maximum is not None and (not isinstance(maximum, int) or isinstance(maximum, bool) or maximum < 0):
        raise ConfigError(f"folding.maximum_number_of_ranges must be a non-negative integer, got {maximum!r}")

    level = config.get("logging", {}).get("level", "warning")
    if get_log_level(level) is None:
        raise ConfigError(f"Unknown logging.level: {level!r}")


def get_log_level(name: str) -> int | None:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else None
