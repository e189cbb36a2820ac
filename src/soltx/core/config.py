"""
CLI Configuration

Reads the Solana CLI config file (`~/.config/solana/cli/config.yml`) for the
RPC endpoint, the default keypair and the commitment level. Command-line
flags override whatever it says.
"""

import logging
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".config" / "solana" / "cli" / "config.yml"
DEFAULT_JSON_RPC_URL = "https://api.mainnet-beta.solana.com"
DEFAULT_KEYPAIR_PATH = str(Path.home() / ".config" / "solana" / "id.json")


def default_config_file() -> Optional[Path]:
    """The standard config file, if there is one."""
    return CONFIG_FILE if CONFIG_FILE.exists() else None


@dataclass
class CliConfig:
    json_rpc_url: str = DEFAULT_JSON_RPC_URL
    keypair_path: str = DEFAULT_KEYPAIR_PATH
    commitment: str = "confirmed"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CliConfig':
        known = {f.name for f in fields(cls)}
        return cls(**{k: str(v) for k, v in data.items() if k in known and v is not None})

    @classmethod
    def load(cls, path) -> 'CliConfig':
        """
        Load a config file, falling back to defaults if it is missing or
        malformed (the Solana CLI behaves the same way).
        """
        path = Path(path).expanduser()
        try:
            with open(path) as handle:
                data = yaml.safe_load(handle) or {}
            if not isinstance(data, dict):
                raise ValueError("top level is not a mapping")
        except (OSError, yaml.YAMLError, ValueError) as e:
            print(f"Warning: Could not load config {path}: {e}", file=sys.stderr)
            return cls()
        logger.debug("Loaded config from %s", path)
        return cls.from_dict(data)
