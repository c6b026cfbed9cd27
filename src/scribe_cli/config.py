"""Configuration helpers for the scribe CLI."""

from __future__ import annotations

import dataclasses
import enum
import os
import tomllib
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, HttpUrl, ValidationError

from .errors import ConfigurationError


class ProviderType(str, enum.Enum):
    """Wiki service flavours the client knows how to talk to."""

    CLOUD = "cloud"
    CHALK = "chalk"


class ScribeCredentials(BaseModel):
    """Connection information for the wiki REST API."""

    url: HttpUrl = Field(..., description="Base URL of the wiki instance")
    username: Optional[str] = Field(
        None, description="Account name for basic authentication; omitted for token-only providers"
    )
    api_token: str = Field(..., description="API token or personal access token")


class ScribeConfig(BaseModel):
    """Aggregate configuration for the CLI."""

    credentials: ScribeCredentials
    provider: Optional[ProviderType] = Field(
        None, description="Explicit provider; detected from the credentials when omitted"
    )
    timeout: float = Field(30.0, gt=0, description="HTTP timeout in seconds")

    @property
    def resolved_provider(self) -> ProviderType:
        """Return the explicit provider, or detect it from the credentials.

        A username means Confluence basic authentication, a bare token means a
        Chalk server with bearer authentication.
        """

        if self.provider is not None:
            return self.provider
        if self.credentials.username:
            return ProviderType.CLOUD
        return ProviderType.CHALK


ENV_PREFIX = "SCRIBE"
DEFAULT_CONFIG_PATHS = (
    Path.cwd() / "scribe-cli.toml",
    Path.home() / ".config" / "scribe-cli" / "config.toml",
)


@dataclasses.dataclass
class ConfigSource:
    """Result of attempting to resolve configuration data."""

    config: Optional[ScribeConfig]
    path: Optional[Path]
    error: Optional[Exception]


def _load_from_env() -> dict[str, object]:
    """Return configuration values extracted from ``SCRIBE_*`` environment variables."""

    def _get(name: str) -> Optional[str]:
        return os.getenv(f"{ENV_PREFIX}_{name}") or None

    credentials = {key.lower(): _get(key) for key in ("URL", "USERNAME", "API_TOKEN")}
    if not credentials["url"] and not credentials["api_token"]:
        return {}

    data: dict[str, object] = {"credentials": credentials}
    provider = _get("PROVIDER")
    if provider:
        data["provider"] = provider.lower()
    return data


def _load_toml(path: Path) -> Optional[dict]:
    if not path.exists():
        return None
    with path.open("rb") as handle:
        return tomllib.load(handle)


def resolve_config(explicit_path: Optional[Path] = None) -> ConfigSource:
    """Discover configuration using the first available source.

    The priority order is:
    1. Explicit path provided via CLI argument.
    2. Default configuration files in the working directory or the user's config directory.
    3. Environment variables with the `SCRIBE_` prefix.
    """

    errors: list[Exception] = []
    sources: list[tuple[Optional[Path], dict]] = []

    if explicit_path:
        try:
            data = _load_toml(explicit_path)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            errors.append(exc)
        else:
            if data is None:
                errors.append(ConfigurationError(f"Configuration file {explicit_path} does not exist"))
            else:
                sources.append((explicit_path, data))

    if not sources:
        for path in DEFAULT_CONFIG_PATHS:
            try:
                data = _load_toml(path)
            except (OSError, tomllib.TOMLDecodeError) as exc:
                errors.append(exc)
                continue
            if data is not None:
                sources.append((path, data))
                break

    if not sources:
        env_data = _load_from_env()
        if env_data:
            sources.append((None, env_data))

    for path, data in sources:
        try:
            config = ScribeConfig.model_validate(data)
            return ConfigSource(config=config, path=path, error=None)
        except ValidationError as exc:
            errors.append(exc)

    error = errors[0] if errors else None
    return ConfigSource(config=None, path=None, error=error)


def ensure_config(
    *,
    url: Optional[str] = None,
    username: Optional[str] = None,
    api_token: Optional[str] = None,
    provider: Optional[str] = None,
    config_path: Optional[Path] = None,
) -> ScribeConfig:
    """Resolve configuration from precedence order and apply explicit CLI options."""

    source = resolve_config(config_path)

    try:
        if source.config:
            config = source.config.model_copy(deep=True)
        else:
            if not (url and api_token):
                hint = f" ({source.error})" if source.error else ""
                raise ConfigurationError(
                    "Missing wiki credentials. Provide them via CLI options, SCRIBE_* environment "
                    "variables or a configuration file" + hint
                )
            config = ScribeConfig(
                credentials=ScribeCredentials(url=url, username=username, api_token=api_token),
            )

        overrides = {
            key: value
            for key, value in (("url", url), ("username", username), ("api_token", api_token))
            if value
        }
        if overrides:
            config.credentials = ScribeCredentials.model_validate(
                {**config.credentials.model_dump(), **overrides}
            )
        if provider:
            config.provider = ProviderType(provider.lower())
    except ValueError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    return config
