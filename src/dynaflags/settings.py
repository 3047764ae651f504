"""Configuration for dynaflags CLIs.

A YAML file provides the base ``CLIConfig``; environment variables read
through pydantic-settings with a per-CLI prefix take precedence over it.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError
from .logging_config import level_number
from .paths import default_user_config_path


class CLIConfig(BaseModel):
    log_level: str = Field(default="info", description="CLI log level")
    log_format: str = Field(default="text", description="Log format: json or text")
    plugins: List[str] = Field(
        default_factory=list, description="Dotted module paths of plugins to load"
    )
    disabled_plugins: List[str] = Field(
        default_factory=list, description="Plugin names that are never loaded"
    )

    @field_validator("log_level")
    def validate_log_level(cls, v):
        if level_number(v) is None:
            raise ValueError(f"Unknown log level: {v}")
        return v.lower()

    @field_validator("log_format")
    def validate_log_format(cls, v):
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()

    @classmethod
    def from_file(cls, path: Path) -> "CLIConfig":
        """Load configuration from a YAML file."""
        if not path.exists():
            raise ConfigError(f"configuration file not found: {path}", str(path))

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML: {e}", str(path)) from e

        if not isinstance(data, dict):
            raise ConfigError("top level must be a mapping", str(path))

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(str(e), str(path)) from e


class RuntimeSettings(BaseSettings):
    """Environment overrides, e.g. ``MYCLI_LOG_LEVEL`` for a CLI named mycli.

    Instantiate with ``RuntimeSettings(_env_prefix="MYCLI_")``.
    """

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    log_level: Optional[str] = None
    log_format: Optional[str] = None
    log_dir: Optional[Path] = None
    # Comma separated dotted module paths
    plugins: Optional[str] = None

    def plugin_list(self) -> List[str]:
        if not self.plugins:
            return []
        return [p.strip() for p in self.plugins.split(",") if p.strip()]

    def to_config(self, base: Optional[CLIConfig] = None) -> CLIConfig:
        """Merge environment settings into a CLIConfig; environment wins."""
        if base is None:
            base = CLIConfig()

        data = base.model_dump()
        if self.log_level:
            data["log_level"] = self.log_level
        if self.log_format:
            data["log_format"] = self.log_format
        for plugin in self.plugin_list():
            if plugin not in data["plugins"]:
                data["plugins"].append(plugin)

        try:
            return CLIConfig(**data)
        except ValidationError as e:
            raise ConfigError(str(e)) from e


def find_config_file(cli_name: str, config_path: Optional[Path] = None) -> Optional[Path]:
    """Explicit path, then ./<name>.yaml, then ~/.<name>/<name>.yaml."""
    if config_path is not None:
        return Path(config_path)

    local = Path(f"{cli_name}.yaml")
    if local.exists():
        return local

    user_cfg = default_user_config_path(cli_name)
    if user_cfg.exists():
        return user_cfg
    return None


def load_config(
    cli_name: str,
    config_path: Optional[Path] = None,
    settings: Optional[RuntimeSettings] = None,
) -> CLIConfig:
    path = find_config_file(cli_name, config_path)
    base = CLIConfig.from_file(path) if path is not None else CLIConfig()
    if settings is None:
        settings = RuntimeSettings(_env_prefix=f"{env_prefix(cli_name)}_")
    return settings.to_config(base)


def env_prefix(cli_name: str) -> str:
    return cli_name.upper().replace("-", "_")
