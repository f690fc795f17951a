# src/glide/config_loader.py

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict
import yaml


class ConfigError(ValueError):
    pass


KNOWN_PROVIDERS = ("gemini", "openai", "echo")

# section -> key -> accepted types
_NUMERIC: Dict[str, Dict[str, tuple]] = {
    "generation": {
        "temperature": (int, float),
        "max_output_tokens": (int,),
        "top_p": (int, float),
        "top_k": (int,),
        "structured_temperature": (int, float),
        "structured_max_output_tokens": (int,),
    },
    "timeouts": {
        "base_ms": (int,),
        "per_block_ms": (int,),
        "block_chars": (int,),
        "max_ms": (int,),
    },
    "retry": {
        "max_retries": (int,),
        "initial_delay_ms": (int, float),
        "backoff_factor": (int, float),
        "jitter_ratio": (int, float),
    },
}


def _require(d: Dict[str, Any], dotted: str, typ: type) -> Any:
    cur: Any = d
    for k in dotted.split("."):
        if not isinstance(cur, dict) or k not in cur:
            raise ConfigError(f"Missing config key: {dotted}")
        cur = cur[k]
    if typ is str and not isinstance(cur, str):
        raise ConfigError(f"'{dotted}' must be a string")
    return cur


def _check_numeric(raw: Dict[str, Any]) -> None:
    for section, keys in _NUMERIC.items():
        block = raw.get(section)
        if block is None:
            continue
        if not isinstance(block, dict):
            raise ConfigError(f"'{section}' must be a mapping")
        for key, val in block.items():
            if key not in keys:
                raise ConfigError(f"Unknown config key: {section}.{key}")
            if isinstance(val, bool) or not isinstance(val, keys[key]):
                raise ConfigError(f"'{section}.{key}' must be a number")


def load_config(path: Path) -> Dict[str, Any]:
    if not path or not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict) or not raw:
        raise ConfigError(f"Config is empty or invalid YAML: {path}")

    # Required keys (no defaults here)
    _require(raw, "model.provider", str)
    _require(raw, "model.name", str)

    provider = str(raw["model"]["provider"]).lower()
    if provider not in KNOWN_PROVIDERS:
        raise ConfigError(
            f"Unknown model.provider '{provider}' (expected one of {', '.join(KNOWN_PROVIDERS)})."
        )
    raw["model"]["provider"] = provider

    _check_numeric(raw)

    log_cfg = raw.get("logging") or {}
    if not isinstance(log_cfg, dict):
        raise ConfigError("'logging' must be a mapping")
    if "json" in log_cfg and not isinstance(log_cfg["json"], bool):
        raise ConfigError("'logging.json' must be a boolean")

    return raw
