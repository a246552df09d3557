"""Settings for twitch-auth, loaded with pydantic-settings.

Sources, lowest precedence first:

- built-in defaults
- the `[tool.twitch_auth]` table of `./pyproject.toml`
- `./twitch_auth.toml`
- the per-user `twitch_auth/config.toml`
- the file named by `TWITCH_AUTH_CONFIG_FILE`
- environment variables, `TWITCH_AUTH_<SECTION>__<FIELD>`
  (e.g. `TWITCH_AUTH_OAUTH__CLIENT_ID`, `TWITCH_AUTH_TIMEOUT__AUTH`)

The client ID may also come from a bare `CLIENT_ID` variable.
"""

from __future__ import annotations

import os
import sys

from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any, ClassVar, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .exceptions import ConfigurationError


if TYPE_CHECKING:
    from collections.abc import Iterator

    from pydantic.fields import FieldInfo


if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib  # type: ignore[import-not-found]
    except ImportError:
        tomllib = None


DEFAULT_SCOPES: tuple[str, ...] = ("openid", "user:read:email", "user:read:follows")

_SECTION_TITLES = {"oauth": "OAuth", "api": "API", "timeout": "Timeouts", "log": "Logging"}


def _user_config_path() -> Path:
    """Per-user config file (``%APPDATA%`` on Windows, ``~/.config`` elsewhere)."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", "~"))
    else:
        base = Path("~/.config")
    return (base / "twitch_auth" / "config.toml").expanduser()


def _find_config_files() -> list[Path]:
    """List the configuration files that exist, lowest precedence first."""
    candidates = [Path("pyproject.toml"), Path("twitch_auth.toml"), _user_config_path()]
    override = os.environ.get("TWITCH_AUTH_CONFIG_FILE")
    if override:
        candidates.append(Path(override))
    return [path for path in candidates if path.is_file()]


def _read_toml(path: Path) -> dict[str, Any]:
    """Read one file; ``pyproject.toml`` contributes only ``[tool.twitch_auth]``."""
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        # UnicodeDecodeError and TOMLDecodeError are both ValueError
        return {}
    if path.name == "pyproject.toml":
        tool = data.get("tool")
        data = tool.get("twitch_auth", {}) if isinstance(tool, dict) else {}
    return data if isinstance(data, dict) else {}


def _load_toml_config() -> dict[str, Any]:
    """Merge every configuration file into one mapping."""
    if tomllib is None:
        return {}
    merged: dict[str, Any] = {}
    for path in _find_config_files():
        merged = _deep_merge(merged, _read_toml(path))
    return merged


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``, descending into tables."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _env_value(value: Any) -> str:
    """Format a setting the way the env source parses it back."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value)
    return str(value)


class TomlSectionSource(PydanticBaseSettingsSource):
    """Settings source serving one table of the merged TOML files."""

    def __init__(self, settings_cls: type[BaseSettings], section: str) -> None:
        super().__init__(settings_cls)
        self.section = section

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        # The whole table is returned by __call__
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        table = _load_toml_config().get(self.section, {})
        return dict(table) if isinstance(table, dict) else {}


class _SectionSettings(BaseSettings):
    """A configuration section: keyword arguments, then environment, then TOML."""

    toml_section: ClassVar[str] = ""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Rank the environment above configuration files."""
        return (init_settings, env_settings, TomlSectionSource(settings_cls, cls.toml_section))


class OAuthSettings(_SectionSettings):
    """Twitch OAuth2 implicit grant configuration.

    Environment prefix: TWITCH_AUTH_OAUTH__
    Example: TWITCH_AUTH_OAUTH__CLIENT_ID=your-client-id

    TOML section: [tool.twitch_auth.oauth]
    """

    model_config = SettingsConfigDict(
        env_prefix="TWITCH_AUTH_OAUTH__",
        extra="ignore",
        populate_by_name=True,
    )

    toml_section: ClassVar[str] = "oauth"

    client_id: str = Field(
        default="",
        validation_alias=AliasChoices("client_id", "TWITCH_AUTH_OAUTH__CLIENT_ID", "CLIENT_ID"),
        description="OAuth2 client ID registered with the Twitch developer console",
    )
    scopes: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_SCOPES),
        description="Requested scopes, in request order",
    )
    force_verify: bool = Field(
        default=True,
        description="Force the user to re-approve the app on every sign-in",
    )
    state_length: int = Field(
        default=30,
        ge=16,
        le=128,
        description="Length of the anti-forgery state token",
    )

    authorize_url: str = Field(default="https://id.twitch.tv/oauth2/authorize")
    revocation_url: str = Field(default="https://id.twitch.tv/oauth2/revoke")

    # Loopback redirect used by the browser launcher
    redirect_host: str = Field(default="localhost", description="Loopback host name")
    redirect_port: int = Field(default=3000, ge=0, le=65535, description="Loopback port")
    redirect_path: str = Field(default="/callback", description="Loopback callback path")

    @field_validator("scopes", mode="before")
    @classmethod
    def parse_scopes(cls, v: Any) -> Any:
        """Accept a space or comma separated string as well as a list."""
        if isinstance(v, str):
            return [s.strip() for s in v.replace(",", " ").split() if s.strip()]
        return v

    @field_validator("redirect_path")
    @classmethod
    def validate_redirect_path(cls, v: str) -> str:
        """Ensure the callback path is absolute."""
        if not v.startswith("/"):
            return f"/{v}"
        return v

    @property
    def redirect_uri(self) -> str:
        """The loopback redirect URI registered with the provider."""
        return f"http://{self.redirect_host}:{self.redirect_port}{self.redirect_path}"


class ApiSettings(_SectionSettings):
    """Twitch resource API settings.

    Environment prefix: TWITCH_AUTH_API__
    """

    model_config = SettingsConfigDict(
        env_prefix="TWITCH_AUTH_API__",
        extra="ignore",
    )

    toml_section: ClassVar[str] = "api"

    base_url: str = Field(default="https://api.twitch.tv/helix", description="Helix API root")
    users_path: str = Field(default="/users", description="User resource path")


class TimeoutSettings(_SectionSettings):
    """Timeout settings.

    Environment prefix: TWITCH_AUTH_TIMEOUT__
    Example: TWITCH_AUTH_TIMEOUT__AUTH=300
    """

    model_config = SettingsConfigDict(
        env_prefix="TWITCH_AUTH_TIMEOUT__",
        extra="ignore",
    )

    toml_section: ClassVar[str] = "timeout"

    auth: float = Field(default=120.0, gt=0, description="Redirect session timeout in seconds")
    request: float = Field(default=10.0, gt=0, description="Profile fetch timeout in seconds")
    revoke: float = Field(default=10.0, gt=0, description="Token revocation timeout in seconds")


class LogSettings(_SectionSettings):
    """Logging settings.

    Environment prefix: TWITCH_AUTH_LOG__
    Example: TWITCH_AUTH_LOG__LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="TWITCH_AUTH_LOG__",
        extra="ignore",
    )

    toml_section: ClassVar[str] = "log"

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: str = "%(name)s - %(levelname)s - %(message)s"


class TwitchAuthSettings(BaseSettings):
    """All configuration sections.

    Each section loads itself from the environment and the TOML files,
    the environment taking precedence. A section passed as a keyword
    argument is used as given.
    """

    model_config = SettingsConfigDict(extra="ignore")

    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    timeout: TimeoutSettings = Field(default_factory=TimeoutSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Only keyword arguments; the sections read everything else."""
        return (init_settings,)

    def require_client_id(self) -> str:
        """Return the configured client ID.

        Raises
        ------
        ConfigurationError
            If no client ID has been configured.
        """
        client_id = self.oauth.client_id.strip()
        if not client_id:
            msg = "OAuth client ID is not configured (set TWITCH_AUTH_OAUTH__CLIENT_ID)"
            raise ConfigurationError(msg, setting="oauth.client_id")
        return client_id

    def _section_items(self) -> Iterator[tuple[str, str, Any]]:
        """Yield ``(section, field, value)`` for every setting."""
        for section in _SECTION_TITLES:
            for name, value in getattr(self, section).model_dump().items():
                yield section, name, value

    def to_env(self) -> str:
        """Render the settings as ``export`` lines for a POSIX shell."""
        lines = [
            "# twitch-auth Environment Variables",
            "# Generated by: twitch-auth config --env",
            "",
        ]
        for section, name, value in self._section_items():
            env_name = f"TWITCH_AUTH_{section.upper()}__{name.upper()}"
            lines.append(f'export {env_name}="{_env_value(value)}"')
        return "\n".join(lines)

    def show(self) -> str:
        """Render the settings as a table, one block per section."""
        lines = ["twitch-auth Configuration", "=" * 60]
        current = None
        for section, name, value in self._section_items():
            if section != current:
                lines += ["", _SECTION_TITLES[section], "-" * 40]
                current = section
            text = str(value)
            if len(text) > 50:
                text = text[:47] + "..."
            lines.append(f"  {name:20} = {text}")
        return "\n".join(lines)


@lru_cache(maxsize=1)
def get_settings() -> TwitchAuthSettings:
    """Return the process-wide settings, loading them on first use."""
    return TwitchAuthSettings()


def clear_settings() -> None:
    """Forget the cached settings so the next `get_settings()` reloads."""
    get_settings.cache_clear()


def reload_settings() -> TwitchAuthSettings:
    """Reload settings from files and environment and return them."""
    clear_settings()
    return get_settings()
