"""ScriptLex configuration settings.

Values are resolved from, lowest precedence first: field defaults, a ``.env``
file, ``SCRIPTLEX_`` environment variables, configuration files (later files
win) and command line flags. Unless a command is given ``--config``, the
files ``~/.config/scriptlex/config.{yaml,toml,json}`` and
``./scriptlex.{yaml,toml,json}`` are picked up when present.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scriptlex.exceptions import ConfigurationError, check_config_keys

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("console", "json", "structured")

# Discovery order; also the order in which discovered files are merged
CONFIG_SUFFIXES = (".yaml", ".toml", ".json")


def _read_yaml(path: Path) -> Any:
    with path.open(encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _read_toml(path: Path) -> Any:
    with path.open("rb") as f:
        return tomllib.load(f)


def _read_json(path: Path) -> Any:
    with path.open(encoding="utf-8") as f:
        return json.load(f)


CONFIG_READERS: dict[str, Callable[[Path], Any]] = {
    ".yaml": _read_yaml,
    ".yml": _read_yaml,
    ".toml": _read_toml,
    ".json": _read_json,
}


def read_config_file(path: Path) -> dict[str, Any]:
    """Read the raw settings mapping stored in a configuration file.

    Args:
        path: YAML, TOML or JSON file.

    Returns:
        Setting names mapped to their unvalidated values.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the format is not supported, the file does not
            hold a mapping, or it uses a known misspelled key.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    suffix = path.suffix.lower()
    reader = CONFIG_READERS.get(suffix)
    if reader is None:
        raise ConfigurationError(
            message=f"Unsupported configuration file format: {suffix}",
            hint="Use a .yaml, .yml, .toml or .json file",
            details={
                "file": str(path),
                "detected_format": suffix,
                "supported_formats": sorted(CONFIG_READERS),
            },
        )

    data = reader(path)
    if not isinstance(data, dict):
        raise ConfigurationError(
            message=f"{path.name} does not contain a mapping of settings",
            hint="Write one 'setting_name: value' entry per line",
            details={"file": str(path), "found_type": type(data).__name__},
        )
    check_config_keys(data)
    return data


class ScriptLexSettings(BaseSettings):
    """Parser, statistics, export and logging options."""

    model_config = SettingsConfigDict(
        env_prefix="SCRIPTLEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(default=False, description="Enable debug mode")

    # Logging
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="console",
        description="Log output format (console, json, structured)",
    )
    log_file: Path | None = Field(
        default=None,
        description="Also write logs to this file",
    )

    # Parser
    parser_resolve_emphasis: bool = Field(
        default=True,
        description="Resolve *emphasis* markers into spans and strip them from text",
    )
    parser_incremental: bool = Field(
        default=True,
        description="Reclassify only the edited region when reparsing after edits",
    )
    parser_latency_budget_ms: float = Field(
        default=16.0,
        description="Parses slower than this many milliseconds are logged as slow",
        gt=0.0,
    )

    # Statistics and export
    stats_words_per_page: int = Field(
        default=250,
        description="Words per page used for page count estimates",
        ge=1,
    )
    export_page_width: int = Field(
        default=60,
        description="Character width of plain-text exports",
        ge=40,
        le=200,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        """Accept log levels in any case."""
        if not isinstance(v, str) or v.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v.upper()

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_log_format(cls, v: Any) -> str:
        """Accept log formats in any case."""
        if not isinstance(v, str) or v.lower() not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")
        return v.lower()

    @field_validator("log_file", mode="before")
    @classmethod
    def resolve_log_file(cls, v: Any) -> Path | None:
        """Expand ``~`` and environment variables in the log file path."""
        if v is None or v == "":
            return None
        if not isinstance(v, str | Path):
            raise ValueError(f"log_file must be a path, got {type(v).__name__}")
        return Path(os.path.expandvars(str(v))).expanduser().resolve()

    def with_overrides(self, overrides: dict[str, Any] | None) -> ScriptLexSettings:
        """Return these settings with every non-``None`` override applied."""
        changes = {k: v for k, v in (overrides or {}).items() if v is not None}
        if not changes:
            return self
        return type(self)(**{**self.model_dump(), **changes})

    @classmethod
    def from_file(cls, config_path: Path | str) -> ScriptLexSettings:
        """Load settings from a single YAML, TOML or JSON file.

        Environment variables still fill in the settings the file omits.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the file cannot be used as configuration.
        """
        return cls(**read_config_file(Path(config_path)))

    @classmethod
    def from_multiple_sources(
        cls,
        config_files: Iterable[Path | str] | None = None,
        env_file: Path | str | None = None,
        cli_args: dict[str, Any] | None = None,
    ) -> ScriptLexSettings:
        """Merge settings from every source in precedence order.

        Args:
            config_files: Configuration files, later ones overriding earlier
                ones. Missing files are skipped with a warning.
            env_file: ``.env`` file to read instead of ``./.env``.
            cli_args: Command line values; ``None`` entries are ignored.

        Returns:
            The merged settings.
        """
        data: dict[str, Any] = {}
        for config_file in config_files or ():
            try:
                data.update(read_config_file(Path(config_file)))
            except FileNotFoundError:
                # Imported here to avoid a config <-> logging import cycle
                from scriptlex.config.logging import get_logger

                get_logger(__name__).warning(
                    "Configuration file not found, skipping",
                    config_file=str(config_file),
                )

        if env_file is not None:
            # pydantic-settings takes the env file as an init keyword
            settings = cast("ScriptLexSettings", cast(Any, cls)(_env_file=env_file, **data))
        else:
            settings = cls(**data)
        return settings.with_overrides(cli_args)


_settings: ScriptLexSettings | None = None


def discover_config_files() -> list[Path]:
    """Return the user and project configuration files that exist.

    User files come first so project files override them.
    """
    user_dir = Path.home() / ".config" / "scriptlex"
    candidates = [user_dir / f"config{suffix}" for suffix in CONFIG_SUFFIXES]
    candidates += [Path.cwd() / f"scriptlex{suffix}" for suffix in CONFIG_SUFFIXES]

    found: list[Path] = []
    for path in candidates:
        try:
            if path.is_file():
                found.append(path)
        except OSError:
            continue
    return found


def get_settings() -> ScriptLexSettings:
    """Return the global settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = ScriptLexSettings.from_multiple_sources(
            config_files=discover_config_files()
        )
    return _settings


def set_settings(settings: ScriptLexSettings) -> None:
    """Replace the global settings instance."""
    global _settings
    _settings = settings


def clear_settings_cache() -> None:
    """Forget the global settings so the next lookup reloads every source."""
    global _settings
    _settings = None


def get_settings_for_cli(
    config_file: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> ScriptLexSettings:
    """Settings for one command invocation.

    Args:
        config_file: Configuration file used instead of the discovered ones.
        cli_overrides: Values of command flags; ``None`` marks a flag that
            was not given.

    Returns:
        The effective settings.

    Raises:
        FileNotFoundError: If ``config_file`` does not exist.
    """
    if config_file is None:
        return get_settings().with_overrides(cli_overrides)
    if not config_file.is_file():
        raise FileNotFoundError(f"Config file not found: {config_file}")
    return ScriptLexSettings.from_multiple_sources(
        config_files=[config_file], cli_args=cli_overrides
    )
