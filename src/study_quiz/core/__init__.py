"""Core shared helpers for study-quiz."""

from __future__ import annotations

from .config import (
    CONFIG_FILENAME,
    QuizConfig,
    TomlConfigError,
    find_config,
    load_config,
    load_toml,
    merge_defaults,
    write_config_template,
)
from .logging import JsonLogFormatter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "CONFIG_FILENAME",
    "QuizConfig",
    "TomlConfigError",
    "find_config",
    "load_config",
    "load_toml",
    "merge_defaults",
    "write_config_template",
    "JsonLogFormatter",
    "configure_logger",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
