"""Configuration management for the resultant rights tool.

Settings are expressed as YAML (or TOML) and validated with Pydantic models.
Command-line flags are layered on top through :meth:`RightsSettings.with_overrides`
so the rest of the code only ever sees one validated settings object.
"""
from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from resultant_rights.utils.errors import ConfigurationError
from resultant_rights.utils.logging import get_logger

logger = get_logger(__name__)

BUILTIN_ADMINISTRATOR = "7fb2b853-24f0-4498-9534-4e10589723c4"
BUILTIN_SYNCHRONIZATION_ACCOUNT = "fb89aefa-5ea1-47f1-8890-abe7797d6497"
DEFAULT_CONFIG_PATH = Path("config/default.yml")


def _validation_message(exc: ValidationError) -> str:
    """Collapse a pydantic error report into ``loc: msg`` pairs on one line."""

    return "; ".join(
        f"{'.'.join(map(str, error['loc'])) or 'settings'}: {error['msg']}" for error in exc.errors()
    )


class StoreSettings(BaseModel):
    """Location of the policy store."""

    server: str = "localhost"
    database: str = "resultant_rights.db"


class ResolverSettings(BaseModel):
    """Identifier resolution knobs."""

    separator: str = ":"
    domain: Optional[str] = Field(default_factory=lambda: os.environ.get("USERDOMAIN") or None)
    verify_guids: bool = Field(default=False, description="Look GUID identifiers up instead of trusting them")

    @field_validator("separator")
    @classmethod
    def validate_separator(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError("separator must be exactly one character")
        if value == "\\" or value.isspace():
            raise ValueError("separator may not be a backslash or whitespace")
        return value


class DefaultIdentities(BaseModel):
    """Identities used when the command line names none."""

    requestor: str = BUILTIN_ADMINISTRATOR
    target: str = BUILTIN_SYNCHRONIZATION_ACCOUNT


class LoggingSettings(BaseModel):
    level: str = "WARNING"
    log_dir: Optional[Path] = None


class RightsSettings(BaseModel):
    """Root configuration schema."""

    store: StoreSettings = Field(default_factory=StoreSettings)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    defaults: DefaultIdentities = Field(default_factory=DefaultIdentities)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def with_overrides(self, **overrides: Any) -> "RightsSettings":
        """Return a copy with dotted-path overrides applied, skipping ``None`` values."""

        data = self.model_dump()
        for dotted, value in overrides.items():
            if value is None:
                continue
            section, _, key = dotted.partition("__")
            data[section][key] = value
        try:
            return RightsSettings(**data)
        except ValidationError as exc:
            raise ConfigurationError(_validation_message(exc)) from exc


class ConfigManager:
    """Load configuration from disk.

    The path comes from the caller, then ``$RIGHTS_CONFIG``, then
    ``config/default.yml``. Only the implicit default may be absent.
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        env_path = os.environ.get("RIGHTS_CONFIG")
        self.explicit = config_path is not None or bool(env_path)
        self.config_path = config_path or (Path(env_path) if env_path else DEFAULT_CONFIG_PATH)

    def load(self) -> RightsSettings:
        """Load configuration from disk and validate it."""

        if not self.config_path.exists():
            if self.explicit:
                raise ConfigurationError(f"Configuration file {self.config_path} does not exist")
            return RightsSettings()
        logger.debug("loading configuration", extra={"path": str(self.config_path)})
        data = self._read_file(self.config_path)
        try:
            return RightsSettings(**data)
        except ValidationError as exc:
            raise ConfigurationError(_validation_message(exc)) from exc

    @staticmethod
    def _read_file(path: Path) -> Dict[str, Any]:
        try:
            if path.suffix in {".yml", ".yaml"}:
                with path.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle) or {}
            elif path.suffix == ".toml":
                with path.open("rb") as handle:
                    data = tomllib.load(handle)
            else:
                raise ConfigurationError(f"Unsupported configuration format: {path.suffix}")
        except (OSError, yaml.YAMLError, tomllib.TOMLDecodeError) as exc:
            raise ConfigurationError(f"Cannot read configuration {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration {path} must be a mapping")
        return data


__all__ = [
    "BUILTIN_ADMINISTRATOR",
    "BUILTIN_SYNCHRONIZATION_ACCOUNT",
    "ConfigManager",
    "DefaultIdentities",
    "LoggingSettings",
    "ResolverSettings",
    "RightsSettings",
    "StoreSettings",
]
