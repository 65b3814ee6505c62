# civic_node/config.py
import copy
import logging
import os
from typing import Any, Dict, List

import yaml

log = logging.getLogger(__name__)

CONFIG_FILENAME = "civic_config.yaml"

# -------- Defaults (non-secret) --------
_DEFAULT: Dict[str, Any] = {
    "genesis": {
        # Holds Admin from the first call on; there is no way to add another.
        "admin": "@admin",
        "members": [],
    },
    "token": {
        "decimals": 18,
        # principal -> balance in the smallest unit (dev / test funding)
        "balances": {},
    },
    "funds": {
        # principal -> native balance before any payout
        "balances": {},
    },
    "governance": {"public_action_suffix": " [token holder action]"},
    "persistence": {
        "enabled": False,
        "data_dir": "data",
        "filename": "civic_state.json",
        "keep_backups": 2,
    },
    "logging": {"level": "INFO"},
    "server": {
        "host": "127.0.0.1",
        "port": 8000,
    },
    "cors": {
        "origins": [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    },
}


def _to_bool(raw: str) -> bool:
    return str(raw).strip().lower() in ("1", "true", "yes", "on")


# -------- ENV overrides --------
_ENV_MAP = {
    ("genesis", "admin"): ("CIVIC_ADMIN", str),
    ("token", "decimals"): ("CIVIC_TOKEN_DECIMALS", int),
    ("persistence", "enabled"): ("CIVIC_PERSIST", _to_bool),
    ("persistence", "data_dir"): ("CIVIC_DATA_DIR", str),
    ("logging", "level"): ("CIVIC_LOG_LEVEL", str),
    ("server", "host"): ("CIVIC_HOST", str),
    ("server", "port"): ("CIVIC_PORT", int),
}


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (overlay or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for (section, key), (env_name, cast) in _ENV_MAP.items():
        val = os.getenv(env_name)
        if val is None:
            continue
        try:
            casted = cast(val)
        except ValueError:
            log.warning("ignoring %s=%r: not a valid %s", env_name, val, getattr(cast, "__name__", cast))
            continue
        cfg.setdefault(section, {})
        cfg[section][key] = casted
    return cfg


def default_config() -> Dict[str, Any]:
    return copy.deepcopy(_DEFAULT)


def load_config(path: str = CONFIG_FILENAME) -> Dict[str, Any]:
    """
    Loads the YAML config at ``path`` (default: ./civic_config.yaml) over
    the built-in defaults. A missing or unparseable file means defaults.
    ENV overrides are applied last.
    """
    cfg = default_config()

    if path and os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            log.warning("could not read %s, using defaults: %s", path, e)
            data = {}
        if isinstance(data, dict):
            cfg = _deep_merge(cfg, data)
        else:
            log.warning("%s is not a mapping, using defaults", path)

    cfg = _apply_env_overrides(cfg)

    origins = cfg.get("cors", {}).get("origins")
    if isinstance(origins, str):
        cfg["cors"]["origins"] = [origins]

    return cfg


# -------- Small helpers used by the app --------
def get_genesis_admin(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("genesis", {}).get("admin") or "@admin")


def get_genesis_members(cfg: Dict[str, Any]) -> List[str]:
    return [str(m) for m in cfg.get("genesis", {}).get("members", []) or []]


def get_token_decimals(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("token", {}).get("decimals", 18))


def get_token_balances(cfg: Dict[str, Any]) -> Dict[str, int]:
    raw = cfg.get("token", {}).get("balances", {}) or {}
    return {str(k): int(v) for k, v in raw.items()}


def get_fund_balances(cfg: Dict[str, Any]) -> Dict[str, int]:
    raw = cfg.get("funds", {}).get("balances", {}) or {}
    return {str(k): int(v) for k, v in raw.items()}


def get_public_action_suffix(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("governance", {}).get("public_action_suffix", " [token holder action]"))


def persistence_enabled(cfg: Dict[str, Any]) -> bool:
    return bool(cfg.get("persistence", {}).get("enabled", False))


def get_data_dir(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("persistence", {}).get("data_dir", "data"))


def get_state_filename(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("persistence", {}).get("filename", "civic_state.json"))


def get_keep_backups(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("persistence", {}).get("keep_backups", 2))


def get_log_level(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("logging", {}).get("level", "INFO")).upper()


def get_bind_host(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("server", {}).get("host", "127.0.0.1"))


def get_bind_port(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("server", {}).get("port", 8000))


def get_cors_origins(cfg: Dict[str, Any]) -> List[str]:
    return list(cfg.get("cors", {}).get("origins", []))
