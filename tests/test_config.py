"""Configuration tests.

Tests verify behavior (types, ranges, loading) not specific values.
"""

from pathlib import Path

import pytest

from callscope.config import (
    CONFIG_SCHEMA,
    Config,
    ConfigError,
    _load_config,
    get_settings_or_defaults,
    load_settings,
)


@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    """Create temporary workspace directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


def write_config(workspace: Path, content: str) -> Path:
    """Write a callscope.ini file to the workspace and return the path."""
    config_path = workspace / "callscope.ini"
    config_path.write_text(content)
    return config_path


# =============================================================================
# Type Validation Tests
# =============================================================================


def test_all_settings_have_correct_types():
    """Every setting matches its declared type from schema."""
    config = _load_config(None)

    for section_name, keys in CONFIG_SCHEMA.items():
        section = getattr(config, section_name)
        for key, (expected_type, *_) in keys.items():
            value = getattr(section, key)
            assert isinstance(value, expected_type), (
                f"{section_name}.{key}: expected {expected_type.__name__}, "
                f"got {type(value).__name__}"
            )


def test_defaults_are_within_ranges():
    """Schema defaults satisfy their own bounds."""
    for section_name, keys in CONFIG_SCHEMA.items():
        for key, (_, default, min_val, max_val, _) in keys.items():
            if min_val is not None:
                assert default >= min_val, f"{section_name}.{key}"
            if max_val is not None:
                assert default <= max_val, f"{section_name}.{key}"


def test_config_fills_missing_sections():
    """Config built with only a workspace has every section."""
    config = Config(workspace_path=Path("/tmp/ws"))

    assert config.analysis.max_workers >= 1
    assert config.layout.rank_dir == "LR"
    assert config.display_path == "/tmp/ws"


# =============================================================================
# File Loading Tests
# =============================================================================


def test_config_file_overrides_defaults(temp_workspace: Path):
    """Values from the INI file replace schema defaults."""
    config_path = write_config(
        temp_workspace,
        "[analysis]\nmax_workers = 8\ninclude_stubs = no\n\n[layout]\ngrid_scale_y = 1.0\n",
    )

    config = _load_config(config_path)

    assert config.analysis.max_workers == 8
    assert config.analysis.include_stubs is False
    assert config.layout.grid_scale_y == 1.0


@pytest.mark.parametrize(
    "content",
    [
        "[analysis]\nmax_workers = 0\n",
        "[analysis]\nmax_workers = many\n",
        "[layout]\ngrid_scale_x = -1\n",
        "[layout]\nrank_dir = diagonal\n",
    ],
)
def test_invalid_values_raise(temp_workspace: Path, content: str):
    """Out-of-range or mistyped values raise ConfigError."""
    config_path = write_config(temp_workspace, content)

    with pytest.raises(ConfigError):
        _load_config(config_path)


# =============================================================================
# Environment Tests
# =============================================================================


def test_load_settings_requires_workspace():
    """WORKSPACE_PATH must be set."""
    with pytest.raises(ValueError):
        load_settings()


def test_load_settings_reads_workspace_config(temp_workspace: Path, monkeypatch):
    """The workspace's callscope.ini is picked up."""
    write_config(temp_workspace, "[layout]\nprog = neato\n")
    monkeypatch.setenv("WORKSPACE_PATH", str(temp_workspace))

    settings = load_settings()

    assert settings.workspace_path == temp_workspace
    assert settings.layout.prog == "neato"


def test_env_overrides(temp_workspace: Path, monkeypatch):
    """Environment variables override file values."""
    write_config(temp_workspace, "[analysis]\nmax_workers = 2\n")
    monkeypatch.setenv("WORKSPACE_PATH", str(temp_workspace))
    monkeypatch.setenv("CALLSCOPE_MAX_WORKERS", "6")
    monkeypatch.setenv("CALLSCOPE_LAYOUT_PROG", "fdp")

    settings = load_settings()

    assert settings.analysis.max_workers == 6
    assert settings.layout.prog == "fdp"


def test_explicit_config_path(temp_workspace: Path, tmp_path: Path, monkeypatch):
    """CALLSCOPE_CONFIG points at a config file outside the workspace."""
    other = tmp_path / "elsewhere.ini"
    other.write_text("[files]\nmax_file_size_kb = 42\n")
    monkeypatch.setenv("WORKSPACE_PATH", str(temp_workspace))
    monkeypatch.setenv("CALLSCOPE_CONFIG", str(other))

    assert load_settings().files.max_file_size_kb == 42


def test_invalid_worker_override(temp_workspace: Path, monkeypatch):
    """A non-numeric worker count is rejected."""
    monkeypatch.setenv("WORKSPACE_PATH", str(temp_workspace))
    monkeypatch.setenv("CALLSCOPE_MAX_WORKERS", "lots")

    with pytest.raises(ConfigError):
        load_settings()


def test_settings_or_defaults_without_workspace():
    """Library code falls back to defaults when nothing is configured."""
    settings = get_settings_or_defaults()

    assert settings.workspace_path == Path(".")
    assert settings.layout.prog == "dot"
