from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

import yaml

from .models import RuleMode

ENV_PREFIX = "BINGO_ASSIST_"

DEFAULT_STORE_PATH = "~/.bingo-assist/store.json"

PATH_KEYS = ("store_path", "log_file")


def _read_config_file(config_path: Path | None) -> Dict[str, Any]:
    if not config_path:
        return {}
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            raise ValueError("Top-level YAML config must be a mapping")
        return data
    if suffix == ".json":
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("Top-level JSON config must be a mapping")
        return data
    raise ValueError(f"Unsupported config extension: {suffix}")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _collect_env_vars(env: Mapping[str, str]) -> Dict[str, Any]:
    """Map ENV variables with BINGO_ASSIST_ prefix to config keys."""
    mapping: Dict[str, str] = {
        f"{ENV_PREFIX}STORE_PATH": "store_path",
        f"{ENV_PREFIX}RULE_MODE": "rule_mode",
        f"{ENV_PREFIX}DETECT_WINS": "detect_wins",
        f"{ENV_PREFIX}COLORS": "colors",
        f"{ENV_PREFIX}LOG_LEVEL": "log_level",
        f"{ENV_PREFIX}LOG_FORMAT": "log_format",
        f"{ENV_PREFIX}LOG_FILE": "log_file",
    }

    result: Dict[str, Any] = {}
    for env_key, cfg_key in mapping.items():
        if env_key not in env:
            continue
        raw = env[env_key]
        if cfg_key == "detect_wins":
            result[cfg_key] = _parse_bool(raw)
        else:
            result[cfg_key] = raw
    return result


def _apply_overrides(base: Dict[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = json.loads(json.dumps(base))  # deep copy via JSON
    for key, value in overrides.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def resolve_paths(
    resolved: Dict[str, Any],
    config_file: Path | None,
    cli_overrides: Mapping[str, Any],
) -> Dict[str, Any]:
    """Normalize paths per policy.

    - Paths from config file: resolve relative to config directory
    - Paths from CLI, ENV or defaults: resolve relative to CWD
    - A leading ~ expands to the home directory
    """
    cwd = Path.cwd()
    cfg_dir = config_file.parent if config_file else None

    def normalize(path_value: str, from_config: bool) -> str:
        p = Path(path_value).expanduser()
        if p.is_absolute():
            return str(p)
        base = (cfg_dir or cwd) if from_config else cwd
        return str((base / p).resolve())

    result = dict(resolved)
    for key in PATH_KEYS:
        from_config = bool(result.pop(f"_{key}_from_config", False))
        value = resolved.get(key)
        if value is None or value == "":
            result[key] = None
            continue
        if cli_overrides.get(key) is not None:
            from_config = False
        result[key] = normalize(str(value), from_config)
    return result


def _validate(resolved: Dict[str, Any]) -> Dict[str, Any]:
    mode = str(resolved.get("rule_mode", RuleMode.STANDARD.value)).upper()
    try:
        resolved["rule_mode"] = RuleMode(mode).value
    except ValueError:
        allowed = ", ".join(m.value for m in RuleMode)
        raise ValueError(f"Unknown rule mode {mode!r}; expected one of {allowed}") from None
    resolved["log_level"] = str(resolved.get("log_level", "INFO")).upper()
    if not isinstance(resolved.get("detect_wins"), bool):
        resolved["detect_wins"] = _parse_bool(str(resolved.get("detect_wins")))
    return resolved


def resolve_parameters(
    *,
    config_path_str: str | None,
    cli_overrides: Dict[str, Any],
    env: Mapping[str, str] | None = None,
) -> Tuple[Dict[str, Any], Path | None]:
    """Resolve parameters with precedence CLI > ENV > config > defaults.

    Returns (resolved_params, config_path)
    """
    config_path = Path(config_path_str).resolve() if config_path_str else None
    file_cfg = _read_config_file(config_path) if config_path else {}
    env_map = _collect_env_vars(os.environ if env is None else env)

    defaults: Dict[str, Any] = {
        "store_path": DEFAULT_STORE_PATH,
        "rule_mode": RuleMode.STANDARD.value,
        "detect_wins": True,
        "colors": "auto",
        "log_level": "INFO",
        "log_format": "text",
        "log_file": None,
    }

    # Merge: config > defaults, then ENV, then CLI
    merged = _apply_overrides(defaults, file_cfg)
    for key in PATH_KEYS:
        if key in file_cfg and key not in env_map:
            merged[f"_{key}_from_config"] = True
    merged = _apply_overrides(merged, env_map)
    merged = _apply_overrides(merged, cli_overrides)

    merged = resolve_paths(merged, config_path, cli_overrides)
    return _validate(merged), config_path
