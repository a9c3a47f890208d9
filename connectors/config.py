"""
Connection settings, from a yaml file or from the environment.

The password itself never lives in the file: `password_env` names the
environment variable that holds it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_ENDPOINT = "http://127.0.0.1:8080/opendma/"


@dataclass(frozen=True)
class ConnectionConfig:
    endpoint: str = DEFAULT_ENDPOINT
    username: Optional[str] = None
    password_env: Optional[str] = None
    timeout_s: float = 30.0
    trace_level: int = 0

    def password(self) -> Optional[str]:
        if not self.password_env:
            return None
        value = os.getenv(self.password_env, "")
        if not value:
            if not self.username:
                return None
            raise ValueError(f"env var {self.password_env} not set for user {self.username!r}")
        return value


def load_config(path: Path) -> ConnectionConfig:
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("connection config must be a mapping")

    conn = raw.get("connection", raw)
    if not isinstance(conn, dict):
        raise ValueError("`connection` must be a mapping")

    endpoint = str(conn.get("endpoint", "")).strip()
    if not endpoint:
        raise ValueError("connection config missing `endpoint`")

    trace_level = int(conn.get("trace_level", 0))
    if not 0 <= trace_level <= 3:
        raise ValueError(f"trace_level must be between 0 and 3, got {trace_level}")

    return ConnectionConfig(
        endpoint=endpoint,
        username=conn.get("username"),
        password_env=conn.get("password_env"),
        timeout_s=float(conn.get("timeout_s", 30.0)),
        trace_level=trace_level,
    )


def config_from_env() -> ConnectionConfig:
    return ConnectionConfig(
        endpoint=os.environ.get("ODMA_ENDPOINT", DEFAULT_ENDPOINT),
        username=os.environ.get("ODMA_USERNAME") or None,
        password_env=os.environ.get("ODMA_PASSWORD_ENV", "ODMA_PASSWORD"),
        timeout_s=float(os.environ.get("ODMA_TIMEOUT_S", "30")),
        trace_level=int(os.environ.get("ODMA_TRACE_LEVEL", "0")),
    )
