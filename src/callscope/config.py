"""Configuration system for callscope.

This module handles loading settings from environment variables and an INI
file, providing defaults from a schema and validating value ranges.
"""

from configparser import ConfigParser
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
import os

from callscope.constants import (
    BINARY_CHECK_BYTES,
    GRID_SCALE_X,
    GRID_SCALE_Y,
    IGNORE_FILE_NAME,
    LAYOUT_PROG,
    MAX_FILE_SIZE_KB,
    MAX_NESTING_DEPTH,
    MAX_WORKERS,
    MINIFIED_AVG_LINE_LENGTH,
    RANK_DIR,
)


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# Schema: section -> key -> (type, default, min, max, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "analysis": {
        "max_workers": (int, MAX_WORKERS, 1, 64, "Parallel reference lookups per level"),
        "max_nesting_depth": (
            int,
            MAX_NESTING_DEPTH,
            1,
            1000,
            "Enclosing functions walked per reference site",
        ),
        "include_stubs": (bool, True, None, None, "Index .pyi stub files"),
    },
    "layout": {
        "prog": (str, LAYOUT_PROG, None, None, "Graphviz layout program"),
        "rank_dir": (str, RANK_DIR, None, None, "Graphviz rank direction"),
        "grid_scale_x": (float, GRID_SCALE_X, 0.01, 100.0, "Horizontal grid scale"),
        "grid_scale_y": (float, GRID_SCALE_Y, 0.01, 100.0, "Vertical grid scale"),
    },
    "files": {
        "max_file_size_kb": (int, MAX_FILE_SIZE_KB, 1, 10000, "File size limit in KB"),
        "binary_check_bytes": (
            int,
            BINARY_CHECK_BYTES,
            64,
            8192,
            "Bytes checked for binary detection",
        ),
        "minified_line_length": (
            int,
            MINIFIED_AVG_LINE_LENGTH,
            100,
            5000,
            "Threshold for minified file detection",
        ),
    },
    "paths": {
        "ignore_file": (str, IGNORE_FILE_NAME, None, None, "Ignore file name"),
    },
}

RANK_DIRS = ("LR", "RL", "TB", "BT")


@dataclass(frozen=True)
class AnalysisConfig:
    """Call graph analysis configuration."""

    max_workers: int
    max_nesting_depth: int
    include_stubs: bool


@dataclass(frozen=True)
class LayoutConfig:
    """Graphviz layout configuration."""

    prog: str
    rank_dir: str
    grid_scale_x: float
    grid_scale_y: float


@dataclass(frozen=True)
class FilesConfig:
    """Source file discovery configuration."""

    max_file_size_kb: int
    binary_check_bytes: int
    minified_line_length: int


@dataclass(frozen=True)
class PathsConfig:
    """Path names configuration."""

    ignore_file: str


def _load_section(
    parser: ConfigParser, section: str, schema: dict[str, tuple[type, Any, Any, Any, str]]
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}

    for key, (typ, default, min_val, max_val, _) in schema.items():
        if parser.has_option(section, key):
            raw_value = parser.get(section, key)
            value: bool | int | float | str
            try:
                if typ is bool:
                    value = raw_value.lower() in ("true", "1", "yes", "on")
                elif typ is int:
                    value = int(raw_value)
                elif typ is float:
                    value = float(raw_value)
                else:
                    value = raw_value.strip()
            except ValueError as e:
                raise ConfigError(
                    f"Invalid value for [{section}].{key}: {raw_value!r} (expected {typ.__name__})"
                ) from e
        else:
            value = default

        # Validate range for numeric types
        if typ in (int, float) and value is not None:
            if min_val is not None and value < min_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but minimum is {min_val}"
                )
            if max_val is not None and value > max_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but maximum is {max_val}"
                )

        result[key] = value

    if section == "layout" and result["rank_dir"].upper() not in RANK_DIRS:
        raise ConfigError(
            f"Value for [layout].rank_dir is {result['rank_dir']!r}, "
            f"expected one of {', '.join(RANK_DIRS)}"
        )

    return result


def _defaults(section: str) -> dict[str, Any]:
    """Schema defaults for one section."""
    return {key: default for key, (_, default, _, _, _) in CONFIG_SCHEMA[section].items()}


def _load_config(config_path: Optional[Path] = None) -> "Config":
    """Load configuration from an INI file (internal use only).

    Returns a Config with a placeholder workspace_path that load_settings()
    replaces with the actual workspace path.

    Args:
        config_path: Path to config file. If None, uses defaults from schema.

    Returns:
        Config object with all sections populated.

    Raises:
        ConfigError: If validation fails
    """
    parser = ConfigParser()

    if config_path and config_path.exists():
        parser.read(config_path)

    analysis = AnalysisConfig(**_load_section(parser, "analysis", CONFIG_SCHEMA["analysis"]))
    layout = LayoutConfig(**_load_section(parser, "layout", CONFIG_SCHEMA["layout"]))
    files = FilesConfig(**_load_section(parser, "files", CONFIG_SCHEMA["files"]))
    paths = PathsConfig(**_load_section(parser, "paths", CONFIG_SCHEMA["paths"]))

    return Config(
        workspace_path=Path("."),  # Placeholder, will be overwritten
        analysis=analysis,
        layout=layout,
        files=files,
        paths=paths,
    )


@dataclass(frozen=True)
class Config:
    """Complete application configuration."""

    workspace_path: Path
    workspace_display_path: Optional[str] = None

    # Section configs - defaults set in __post_init__
    analysis: AnalysisConfig = None  # type: ignore[assignment]
    layout: LayoutConfig = None  # type: ignore[assignment]
    files: FilesConfig = None  # type: ignore[assignment]
    paths: PathsConfig = None  # type: ignore[assignment]

    def __post_init__(self):
        """Initialize section configs with defaults if not provided."""
        # Since frozen=True, we need to use object.__setattr__
        if self.analysis is None:
            object.__setattr__(self, "analysis", AnalysisConfig(**_defaults("analysis")))
        if self.layout is None:
            object.__setattr__(self, "layout", LayoutConfig(**_defaults("layout")))
        if self.files is None:
            object.__setattr__(self, "files", FilesConfig(**_defaults("files")))
        if self.paths is None:
            object.__setattr__(self, "paths", PathsConfig(**_defaults("paths")))

    @property
    def display_path(self) -> str:
        """Path to display to users (uses workspace_display_path if set)."""
        return self.workspace_display_path or str(self.workspace_path)


@lru_cache(maxsize=1)
def load_settings() -> Config:
    """Load settings from environment variables and config file.

    Settings are cached for the lifetime of the application.
    Use load_settings.cache_clear() to reload settings.

    Returns:
        Config object populated from environment variables and config file.

    Raises:
        ValueError: If WORKSPACE_PATH is not set.
        ConfigError: If the config file or an override is invalid.
    """
    workspace_path_str = os.getenv("WORKSPACE_PATH")
    if not workspace_path_str:
        raise ValueError("WORKSPACE_PATH environment variable must be set")

    workspace_path = Path(workspace_path_str)

    config_env = os.getenv("CALLSCOPE_CONFIG")
    config_file = Path(config_env) if config_env else workspace_path / "callscope.ini"
    try:
        config_exists = config_file.exists()
    except PermissionError:
        config_exists = False
    base_config = _load_config(config_file if config_exists else None)

    analysis = base_config.analysis
    max_workers_env = os.getenv("CALLSCOPE_MAX_WORKERS")
    if max_workers_env:
        try:
            max_workers = int(max_workers_env)
        except ValueError as e:
            raise ConfigError(
                f"Invalid value for CALLSCOPE_MAX_WORKERS: {max_workers_env!r} (expected int)"
            ) from e
        if max_workers < 1:
            raise ConfigError(f"CALLSCOPE_MAX_WORKERS is {max_workers}, but minimum is 1")
        analysis = AnalysisConfig(
            max_workers=max_workers,
            max_nesting_depth=analysis.max_nesting_depth,
            include_stubs=analysis.include_stubs,
        )

    layout = base_config.layout
    prog_env = os.getenv("CALLSCOPE_LAYOUT_PROG")
    if prog_env:
        layout = LayoutConfig(
            prog=prog_env,
            rank_dir=layout.rank_dir,
            grid_scale_x=layout.grid_scale_x,
            grid_scale_y=layout.grid_scale_y,
        )

    return Config(
        workspace_path=workspace_path,
        workspace_display_path=os.getenv("WORKSPACE_DISPLAY_PATH"),
        analysis=analysis,
        layout=layout,
        files=base_config.files,
        paths=base_config.paths,
    )


def get_settings_or_defaults() -> Config:
    """Return loaded settings, or schema defaults when none are available.

    Library code that can run outside a configured workspace (tests, scripts)
    uses this instead of load_settings().
    """
    try:
        return load_settings()
    except (ValueError, OSError, ConfigError):
        return Config(workspace_path=Path("."))
