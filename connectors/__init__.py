"""
Connectors to remote repository services.

- `odma_connection` is the HTTP transport the object model fetches through
- `config` loads connection settings (yaml or environment)
- `odma_cli` is a small browsing tool on top of a session
"""

from .config import ConnectionConfig, config_from_env, load_config
from .odma_connection import OdmaAuth, OdmaConnection

__all__ = ["ConnectionConfig", "OdmaAuth", "OdmaConnection", "config_from_env", "load_config"]
