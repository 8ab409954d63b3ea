"""
Configuration loading for the execution engine.

Example gqlexec.yaml:

    executor:
      timeout: 5.0
      grace_period: 0.1
      max_depth: 15
      max_batch_size: 100
      internal_error_message: Internal server error
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

CONFIG_ENV_VAR = "GQLEXEC_CONFIG"
DEFAULT_CONFIG_PATH = "gqlexec.yaml"


@dataclass
class ExecutorConfig:
    """Execution limits and error reporting."""
    timeout: Optional[float] = None  # seconds per operation, None = no limit
    grace_period: float = 0.1  # extra seconds for resolvers already started at the deadline
    max_depth: Optional[int] = None  # max nested field depth, None = no limit
    max_batch_size: Optional[int] = None  # max keys per batch function call
    internal_error_message: str = "Internal server error"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExecutorConfig":
        """Create config from dictionary (the 'executor' section or the whole file)."""
        data = data.get("executor", data) or {}
        return cls(
            timeout=_optional_float(data.get("timeout")),
            grace_period=float(data.get("grace_period", 0.1)),
            max_depth=_optional_int(data.get("max_depth")),
            max_batch_size=_optional_int(data.get("max_batch_size")),
            internal_error_message=data.get("internal_error_message", "Internal server error"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for YAML serialization."""
        return {
            "executor": {
                "timeout": self.timeout,
                "grace_period": self.grace_period,
                "max_depth": self.max_depth,
                "max_batch_size": self.max_batch_size,
                "internal_error_message": self.internal_error_message,
            }
        }

    def save(self, path: Path | str = DEFAULT_CONFIG_PATH) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        content = yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)
        path.write_text(content)


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def load_config(path: Path | str | None = None) -> ExecutorConfig | None:
    """
    Load configuration from YAML file.

    The path defaults to $GQLEXEC_CONFIG, then ./gqlexec.yaml.
    Returns None if the file does not exist.
    """
    path = Path(path or os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    if not path.exists():
        return None

    data = yaml.safe_load(path.read_text()) or {}
    return ExecutorConfig.from_dict(data)
