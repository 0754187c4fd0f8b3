# src/autojoin/services/settings.py
from __future__ import annotations
from dataclasses import dataclass, fields, replace, asdict
import os
import socket
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from autojoin.config import const

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_env_file(path: str) -> Dict[str, str]:
    data: Dict[str, str] = {}
    p = Path(path)
    if not p.exists():
        return data
    for line in p.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            k, v = line.split("=", 1)
            data[k.strip()] = v.strip().strip('"').strip("'")
    return data


def _load_yaml(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    p = Path(path).expanduser()
    if not p.exists():
        raise FileNotFoundError(f"autojoin config file not found: {p}")
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{p}: top-level YAML value must be a mapping")
    return data


def _is_unset(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip().lower() in ("", "undefined"))


def as_bool(value: Any, *, key: str = "") -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"{key or 'value'}: cannot interpret {value!r} as a boolean")


def as_int(value: Any, *, key: str = "") -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key or 'value'}: cannot interpret {value!r} as an integer") from None


def _default_node_name() -> str:
    host = socket.gethostname().split(".", 1)[0]
    return f"{const.DEFAULT_NODE_PREFIX}@{host}"


@dataclass(frozen=True, slots=True)
class Settings:
    """Read-only view of the cluster configuration; ``None`` means "not configured"."""

    backend: str = const.DEFAULT_BACKEND
    node_name: str = ""

    consul_scheme: str = const.DEFAULT_CONSUL_SCHEME
    consul_host: str = const.DEFAULT_CONSUL_HOST
    consul_port: int = const.DEFAULT_CONSUL_PORT
    consul_svc: str = const.DEFAULT_CONSUL_SVC
    consul_svc_port: int = const.DEFAULT_CONSUL_SVC_PORT

    # адрес сервиса: статический, авто (hostname), из имени узла или с NIC
    consul_svc_addr: Optional[str] = None
    consul_svc_addr_auto: bool = False
    consul_svc_addr_nic: Optional[str] = None
    consul_svc_addr_nodename: bool = False

    consul_svc_ttl: Optional[int] = const.DEFAULT_CONSUL_SVC_TTL
    consul_deregister_after: Optional[int] = None
    consul_acl_token: Optional[str] = None
    cluster_name: Optional[str] = None
    consul_include_nodes_with_warnings: bool = False
    consul_use_longname: bool = False
    consul_domain: str = const.DEFAULT_CONSUL_DOMAIN

    http_timeout: float = const.DEFAULT_HTTP_TIMEOUT
    log_level: str = "INFO"
    logs_dir: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.node_name:
            object.__setattr__(self, "node_name", _default_node_name())
        for key in ("consul_svc_ttl", "consul_deregister_after"):
            value = getattr(self, key)
            if value is not None and value <= 0:
                raise ValueError(f"{key} must be a positive number of seconds, got {value!r}")

    @property
    def node_prefix(self) -> str:
        return self.node_name.split("@", 1)[0]

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "Settings":
        """Build settings from loosely typed values (YAML/ENV strings), dropping unknown keys."""
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            raw = data[f.name]
            optional = "Optional" in str(f.type)
            if _is_unset(raw):
                if optional:
                    kwargs[f.name] = None
                continue
            kind = str(f.type)
            if "bool" in kind:
                kwargs[f.name] = as_bool(raw, key=f.name)
            elif "int" in kind:
                kwargs[f.name] = as_int(raw, key=f.name)
            elif "float" in kind:
                kwargs[f.name] = float(raw)
            else:
                kwargs[f.name] = str(raw)
        return cls(**kwargs)

    @staticmethod
    def from_sources(env_file: Optional[str] = ".env", config_file: Optional[str] = None) -> "Settings":
        """
        Приоритет источников:
          ENV (AUTOJOIN_*) > .env > YAML (AUTOJOIN_CONFIG или config_file) > значения по умолчанию
        """
        env_file_vars = _parse_env_file(env_file) if env_file else {}

        def pick_env(key: str) -> Optional[str]:
            name = const.ENV_PREFIX + key.upper()
            if name in os.environ:
                return os.environ[name]
            return env_file_vars.get(name)

        yaml_path = config_file or pick_env("config")
        data: Dict[str, Any] = dict(_load_yaml(yaml_path))

        for f in fields(Settings):
            value = pick_env(f.name)
            if value is not None:
                data[f.name] = value

        return Settings.from_mapping(data)

    def with_overrides(self, **kw) -> "Settings":
        # None из CLI означает "не задано", такие ключи пропускаем
        safe = {k: v for k, v in kw.items() if v is not None and k in {f.name for f in fields(self)}}
        return replace(self, **safe)

    def to_dict(self, *, redact: bool = True) -> Dict[str, Any]:
        data = asdict(self)
        if redact and data.get("consul_acl_token"):
            data["consul_acl_token"] = "***"
        return data
