"""Single config object: built from the environment and available via DI."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

_TRUE = {"1", "true", "yes", "on"}


class Config:
    """
    Base for application config. Subclass it and pass an instance to
    Application(config=...); then available via container.resolve(YourConfig).
    """

    @classmethod
    def load_from_env(cls, prefix: str = "APP_", **defaults: Any) -> dict[str, Any]:
        """Load from os.environ with prefix and defaults. Returns dict for MyConfig(**Config.load_from_env())."""
        result = dict(defaults)
        for key, value in os.environ.items():
            if key.startswith(prefix):
                name = key[len(prefix):].lower()
                result[name] = value
        return result

    @staticmethod
    def services_from_env(suffix: str = "_SERVICE_URL") -> dict[str, str]:
        """
        Build service name -> URL map from env for discovery.
        PRODUCTS_SERVICE_URL=http://... -> {"products": "http://..."}.
        """
        out: dict[str, str] = {}
        for key, value in os.environ.items():
            if not value or not key.endswith(suffix):
                continue
            name = key[: -len(suffix)].lower()
            if name:
                out[name] = value.strip()
        return out


@dataclass
class Settings(Config):
    """Orders service settings. Env vars use the ORDERS_ prefix."""

    database_url: str = "sqlite+aiosqlite:///./orders.db"
    rpc_timeout: float = 5.0
    currency: str = "usd"
    log_level: str = "INFO"
    name_fallback: bool = False
    host: str = "127.0.0.1"
    port: int = 3002
    services: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, prefix: str = "ORDERS_") -> Settings:
        known = {name for name in cls.__dataclass_fields__ if name != "services"}
        raw = {k: v for k, v in cls.load_from_env(prefix).items() if k in known}
        if "rpc_timeout" in raw:
            raw["rpc_timeout"] = float(raw["rpc_timeout"])
        if "port" in raw:
            raw["port"] = int(raw["port"])
        if "name_fallback" in raw:
            raw["name_fallback"] = str(raw["name_fallback"]).strip().lower() in _TRUE
        if "log_level" in raw:
            raw["log_level"] = raw["log_level"].upper()
        return cls(services=cls.services_from_env(), **raw)
