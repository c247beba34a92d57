"""
Central configuration for FocusCoin (agent and ingestion API).
All values can be overridden via environment variables or a local config.json.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

_ROOT = Path(__file__).parent.parent
_CONFIG_FILE = _ROOT / "config.json"


@dataclass
class Config:
    # API
    api_host: str = "127.0.0.1"
    api_port: int = 3000
    api_base: str = "http://localhost:3000/api"   # where the agent syncs to
    http_timeout_s: float = 5.0

    # Coin economy
    tick_interval_s: float = 5.0             # one accrual tick
    productive_reward: int = 3               # coins per productive tick
    distracting_penalty: int = 4             # coins per distracting tick
    initial_coins: int = 10

    # Heartbeat sync
    max_buffer_size: int = 10                # flush threshold
    buffer_capacity: int = 1000              # hard cap while offline
    sync_interval_s: int = 300

    # Blocking
    interstitial_url: str = "http://localhost:3000/blocked"

    # Storage
    data_dir: Path = field(default_factory=lambda: _ROOT / "data")
    heartbeat_db: str = "focuscoin.db"
    agent_state_file: str = "agent_state.json"

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def load(cls) -> "Config":
        cfg = cls()
        if _CONFIG_FILE.exists():
            overrides = json.loads(_CONFIG_FILE.read_text())
            for k, v in overrides.items():
                if hasattr(cfg, k):
                    setattr(cfg, k, v)
        # environment variable overrides (FOCUSCOIN_*)
        for k in cfg.__dataclass_fields__:  # type: ignore[attr-defined]
            env_key = f"FOCUSCOIN_{k.upper()}"
            if env_key in os.environ:
                setattr(cfg, k, type(getattr(cfg, k))(os.environ[env_key]))
        cfg.data_dir = Path(cfg.data_dir)
        return cfg


# Module-level singleton
config = Config.load()
