"""ncreate configuration.

Typed, immutable settings loaded once at startup.  All settings use Pydantic
v2 models so a bad config file is reported when it is read, not halfway
through creating a project.  Instances are frozen: components receive the
``Config`` they need and can never change it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ncreate.errors import ConfigError

APP_NAME = "ncreate"


class AIConfig(BaseModel):
    """Settings for the AI text-generation provider."""

    model_config = ConfigDict(frozen=True)

    provider: str = Field(default="ollama", description="'ollama' or 'openai'")
    model: str | None = Field(default=None, description="Defaults to the provider's usual model")
    url: str | None = Field(default=None, description="Defaults to the provider's public endpoint")
    api_key: str | None = Field(default=None, repr=False)
    timeout: int = Field(default=120, ge=10, description="Per-request timeout in seconds")
    max_response_bytes: int = Field(
        default=1_000_000, ge=1024, description="Larger replies are rejected"
    )


class Config(BaseModel):
    """Global ncreate configuration."""

    model_config = ConfigDict(frozen=True)

    default_template: str | None = Field(
        default=None,
        description="Template for `n nw` without --template; None creates an empty workspace",
    )
    storage_root: Path | None = Field(
        default=None,
        description="Overrides the data directory that holds user templates",
    )
    ai: AIConfig = Field(default_factory=AIConfig)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def data_dir(self) -> Path:
        """Root of the per-user data directory."""
        if self.storage_root is not None:
            return self.storage_root.expanduser()
        xdg = os.environ.get("XDG_DATA_HOME")
        base = Path(xdg) if xdg else Path.home() / ".local" / "share"
        return base / APP_NAME

    @property
    def templates_dir(self) -> Path:
        """Directory searched for user template definitions."""
        return self.data_dir / "templates"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to :func:`default_config_path`.

        Returns:
            The path where the file was written.
        """
        target = path or default_config_path()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a configuration file.

        A missing file is not an error: defaults are returned.

        Raises:
            ConfigError: The file cannot be read or fails validation.
        """
        path = Path(path)
        if not path.exists():
            return cls()
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise ConfigError(f"Config file {path} is not valid UTF-8") from exc
        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise ConfigError(f"Invalid config file {path}: {exc}") from exc

    @classmethod
    def from_env(cls, base: "Config | None" = None) -> "Config":
        """Apply environment overrides on top of *base* (or the defaults).

        Recognised variables (all optional):
            NCREATE_DEFAULT_TEMPLATE, NCREATE_STORAGE_ROOT,
            NCREATE_AI_PROVIDER, NCREATE_AI_MODEL, NCREATE_AI_URL,
            NCREATE_API_KEY, NCREATE_AI_TIMEOUT.
        """
        base = base or cls()

        ai_kwargs: dict[str, Any] = {}
        if os.environ.get("NCREATE_AI_PROVIDER"):
            ai_kwargs["provider"] = os.environ["NCREATE_AI_PROVIDER"]
        if os.environ.get("NCREATE_AI_MODEL"):
            ai_kwargs["model"] = os.environ["NCREATE_AI_MODEL"]
        if os.environ.get("NCREATE_AI_URL"):
            ai_kwargs["url"] = os.environ["NCREATE_AI_URL"]
        if os.environ.get("NCREATE_API_KEY"):
            ai_kwargs["api_key"] = os.environ["NCREATE_API_KEY"]
        if os.environ.get("NCREATE_AI_TIMEOUT"):
            try:
                ai_kwargs["timeout"] = int(os.environ["NCREATE_AI_TIMEOUT"])
            except ValueError as exc:
                raise ConfigError(
                    f"NCREATE_AI_TIMEOUT must be an integer, got {os.environ['NCREATE_AI_TIMEOUT']!r}"
                ) from exc

        kwargs: dict[str, Any] = {}
        if os.environ.get("NCREATE_DEFAULT_TEMPLATE"):
            kwargs["default_template"] = os.environ["NCREATE_DEFAULT_TEMPLATE"]
        if os.environ.get("NCREATE_STORAGE_ROOT"):
            kwargs["storage_root"] = Path(os.environ["NCREATE_STORAGE_ROOT"])

        try:
            ai = AIConfig.model_validate({**base.ai.model_dump(), **ai_kwargs})
            return cls.model_validate({**base.model_dump(exclude={"ai"}), **kwargs, "ai": ai})
        except ValidationError as exc:
            raise ConfigError(f"Invalid environment configuration: {exc}") from exc


def default_config_path() -> Path:
    """Where the config file lives: ``$NCREATE_CONFIG`` or the XDG location."""
    override = os.environ.get("NCREATE_CONFIG")
    if override:
        return Path(override).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / APP_NAME / "config.json"


def load_config(path: Path | None = None) -> Config:
    """Load the config file (if any) and apply environment overrides."""
    return Config.from_env(Config.load(path or default_config_path()))
