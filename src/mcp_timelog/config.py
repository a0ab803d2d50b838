"""Configuration loading for mcp-timelog.

Supports three tiers:
1. Simple config via .toml or .json - most users
2. Python config via .py - hooks, custom groupings and tools
3. Constructing TimelogConfig directly - embedding and tests
"""

from __future__ import annotations

import importlib.util
import json
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

# Python 3.11+ has tomllib in stdlib; older versions use the tomli backport
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .models import utc_now
from .writer import default_host

DEFAULT_CSV_FIELDS = ["TIMESTAMP", "DURATION", "TITLE", "TAGS"]


@dataclass
class TimelogConfig:
    """Configuration for a project's timelog."""

    # Project identification
    project_name: str = "unnamed"
    project_root: Path = field(default_factory=Path.cwd)

    # Directory structure (relative to project_root)
    log_dir: str = "timelog"
    export_dir: str = "timelog/exports"

    # Active source document, relative to log_dir; {host} and {date} are filled in
    document_name: str = "{host}.org"
    host: str = field(default_factory=default_host)

    # Report defaults
    csv_fields: list[str] = field(default_factory=lambda: list(DEFAULT_CSV_FIELDS))
    group_by: list[str] = field(default_factory=list)

    log_level: str = "INFO"
    lock_timeout: float = 10.0

    # Hooks (populated from Python config)
    hooks: dict[str, Callable] = field(default_factory=dict)

    # Named grouping derivations (populated from Python config)
    derivations: dict[str, Callable] = field(default_factory=dict)

    # Custom tools (populated from Python config)
    custom_tools: dict[str, Callable] = field(default_factory=dict)

    def get_log_path(self) -> Path:
        return self.project_root / self.log_dir

    def get_export_path(self) -> Path:
        return self.project_root / self.export_dir

    def get_active_document(self, now: Optional[datetime] = None) -> Path:
        """Path of the source document new entries are appended to."""
        now = now or utc_now()
        name = self.document_name.format(host=self.host, date=now.strftime("%Y-%m-%d"))
        return self.get_log_path() / name


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_python_config(path: Path) -> tuple[dict[str, Any], dict[str, Callable], dict[str, Callable], dict[str, Callable]]:
    """Load configuration from Python file.

    Returns:
        Tuple of (config_dict, hooks, derivations, custom_tools)

    Convention:
        - CONFIG dict or config dict for static configuration
        - Functions named hook_* become hooks
        - Functions named group_* become grouping derivations
        - Functions named custom_tool_* become MCP tools
    """
    spec = importlib.util.spec_from_file_location("timelog_config", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load Python config from {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules["timelog_config"] = module
    spec.loader.exec_module(module)

    config_dict = {}
    if hasattr(module, "CONFIG"):
        config_dict = module.CONFIG
    elif hasattr(module, "config"):
        config_dict = module.config

    hooks = {}
    derivations = {}
    custom_tools = {}
    for name in dir(module):
        if name.startswith("hook_"):
            hooks[name[len("hook_"):]] = getattr(module, name)
        elif name.startswith("group_"):
            derivations[name[len("group_"):]] = getattr(module, name)
        elif name.startswith("custom_tool_"):
            custom_tools[name[len("custom_tool_"):]] = getattr(module, name)

    return config_dict, hooks, derivations, custom_tools


def dict_to_config(data: dict[str, Any], project_root: Path) -> TimelogConfig:
    """Convert dictionary to TimelogConfig."""
    config = TimelogConfig(project_root=project_root)

    if "project" in data:
        proj = data["project"]
        if "name" in proj:
            config.project_name = proj["name"]

    if "directories" in data:
        dirs = data["directories"]
        if "log" in dirs:
            config.log_dir = dirs["log"]
        if "export" in dirs:
            config.export_dir = dirs["export"]

    if "log" in data:
        log = data["log"]
        if "document" in log:
            config.document_name = log["document"]
        if "host" in log:
            config.host = log["host"]
        if "level" in log:
            config.log_level = str(log["level"]).upper()
        if "lock_timeout" in log:
            config.lock_timeout = float(log["lock_timeout"])

    if "report" in data:
        report = data["report"]
        if "csv_fields" in report:
            config.csv_fields = [str(f) for f in report["csv_fields"]]
        if "group_by" in report:
            group_by = report["group_by"]
            config.group_by = [group_by] if isinstance(group_by, str) else list(group_by)

    return config


def find_config_file(project_root: Path) -> Optional[Path]:
    """Find configuration file in project root.

    Search order:
    1. timelog_config.py (most flexible)
    2. timelog_config.toml
    3. timelog_config.json
    4. .timelog.toml
    5. .timelog.json
    """
    candidates = [
        "timelog_config.py",
        "timelog_config.toml",
        "timelog_config.json",
        ".timelog.toml",
        ".timelog.json",
    ]

    for name in candidates:
        path = project_root / name
        if path.exists():
            return path

    return None


def load_config(project_root: Path, config_path: Optional[Path] = None) -> TimelogConfig:
    """Load project configuration.

    Args:
        project_root: Root directory of the project
        config_path: Optional explicit path to config file

    Returns:
        TimelogConfig instance
    """
    if config_path is None:
        config_path = find_config_file(project_root)

    if config_path is None:
        return TimelogConfig(project_root=project_root)

    suffix = config_path.suffix.lower()

    if suffix == ".py":
        config_dict, hooks, derivations, custom_tools = load_python_config(config_path)
        config = dict_to_config(config_dict, project_root)
        config.hooks = hooks
        config.derivations = derivations
        config.custom_tools = custom_tools
        return config

    elif suffix == ".toml":
        return dict_to_config(load_toml_config(config_path), project_root)

    elif suffix == ".json":
        return dict_to_config(load_json_config(config_path), project_root)

    else:
        raise ValueError(f"Unsupported config file type: {suffix}")
