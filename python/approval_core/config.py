"""Configuration loading for approval-core.

Configuration is read from a YAML file and validated with Pydantic.

File discovery priority:
1. Explicit ``path`` argument
2. APPROVAL_CORE_CONFIG_PATH environment variable
3. Built-in defaults (no file)

APPROVAL_CORE_LOG_LEVEL overrides ``log_level`` from any source.

Example YAML:
    duplicate_policy: reject
    instance_id_separator: "_"
    payload_type_keys: [type, approval_type]
    handlers:
      leave_approval: myapp.approvals.LeaveApprovalHandler
    discovery_packages:
      - myapp.approvals
    log_level: debug
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigurationError
from .logging import log_debug
from .registry import DuplicatePolicy

CONFIG_PATH_ENV = "APPROVAL_CORE_CONFIG_PATH"
LOG_LEVEL_ENV = "APPROVAL_CORE_LOG_LEVEL"


class ApprovalCoreConfig(BaseModel):
    """Settings for building an ApprovalService.

    Example:
        >>> config = ApprovalCoreConfig(duplicate_policy="reject", log_level="debug")
        >>> service = build_service(config, remote_client)
    """

    duplicate_policy: DuplicatePolicy = Field(
        default=DuplicatePolicy.LAST_WINS,
        description="Behavior when an approval type is registered twice.",
    )
    instance_id_separator: str = Field(
        default="_",
        min_length=1,
        description="Segment separator of type-prefixed instance ids.",
    )
    payload_type_keys: list[str] = Field(
        default_factory=lambda: ["type", "approval_type"],
        description="Payload keys naming the approval type.",
    )
    handlers: dict[str, str] = Field(
        default_factory=dict,
        description="Approval type id -> dotted handler class path.",
    )
    discovery_packages: list[str] = Field(
        default_factory=list,
        description="Packages scanned for handler classes.",
    )
    log_level: str = Field(
        default="info",
        pattern="^(trace|debug|info|warn|error)$",
        description="Log level (trace, debug, info, warn, error).",
    )

    model_config = {"extra": "forbid"}


def load_config(path: str | Path | None = None) -> ApprovalCoreConfig:
    """Load configuration from YAML and the environment.

    Args:
        path: Explicit config file path. Falls back to
            APPROVAL_CORE_CONFIG_PATH, then to defaults.

    Returns:
        Validated ApprovalCoreConfig.

    Raises:
        ConfigurationError: If the file cannot be read or parsed, or the
            settings are invalid.
    """
    data: dict[str, Any] = {}

    config_path = path or os.environ.get(CONFIG_PATH_ENV)
    if config_path:
        data = _read_yaml(Path(config_path))

    env_level = os.environ.get(LOG_LEVEL_ENV)
    if env_level:
        data["log_level"] = env_level.strip().lower()

    try:
        config = ApprovalCoreConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid approval-core configuration: {e}",
            metadata={"path": str(config_path) if config_path else None},
        ) from e

    log_debug(
        "Loaded approval-core configuration",
        {"path": config_path or "<defaults>", "handlers": len(config.handlers)},
    )
    return config


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Failed to read configuration {path}: {e}",
            metadata={"path": str(path)},
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration {path} must be a mapping, got {type(data).__name__}",
            metadata={"path": str(path)},
        )
    return data


__all__ = [
    "ApprovalCoreConfig",
    "CONFIG_PATH_ENV",
    "LOG_LEVEL_ENV",
    "load_config",
]
