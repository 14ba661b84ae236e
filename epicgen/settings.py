"""Settings resolution with profile support, plus the Jira credential source."""

import json
import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from epicgen.models import Credentials

CONFIG_PATH = Path.home() / ".config" / "epicgen" / "config.toml"


class EpicgenSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="EPICGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_tracker: str | None = None  # profile name

    # Jira
    jira_url: str | None = None
    jira_user: str | None = None
    jira_password: SecretStr | None = None
    auth_file: Path = Path("auth.json")  # used when user/password are not set
    request_timeout: float = 30.0

    # Inputs, relative to cwd unless absolute
    tickets_file: Path = Path("tickets.json")
    summary_template: Path = Path("summary.jira.tmpl")
    description_template: Path = Path("description.jira.tmpl")

    # Logging
    log_level: str = "WARNING"
    json_logs: bool = False


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/epicgen/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    with CONFIG_PATH.open() as fh:
        return tomlkit.load(fh)


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(tracker: str | None = None) -> EpicgenSettings:
    """Resolve the active profile and return a fully populated EpicgenSettings.

    Profile precedence (highest to lowest):
    1. tracker argument (--tracker CLI flag)
    2. EPICGEN_DEFAULT_TRACKER env var
    3. default_tracker key in ~/.config/epicgen/config.toml
    4. First profile defined in ~/.config/epicgen/config.toml

    Env vars and .env always override values from the profile.
    """
    toml_config = _load_toml()

    active = (
        tracker
        or os.environ.get("EPICGEN_DEFAULT_TRACKER")
        or toml_config.get("default_tracker")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = dict(toml_config[active])
        else:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(1)

    return EpicgenSettings(**profile_defaults)


def _read_auth_file(path: Path) -> Credentials:
    data = json.loads(path.read_text(encoding="utf-8"))
    return Credentials.model_validate(data)


def load_credentials(settings: EpicgenSettings, auth_file: Path | None = None) -> Credentials:
    """Return the Jira user/password pair; exits the CLI if none can be found.

    jira_user/jira_password from settings win over the JSON auth file
    (``{"user": ..., "password": ...}``).
    """
    if settings.jira_user and settings.jira_password:
        return Credentials(user=settings.jira_user, password=settings.jira_password)

    path = auth_file or settings.auth_file
    try:
        return _read_auth_file(path)
    except FileNotFoundError:
        typer.echo(
            f"Missing Jira credentials. Set EPICGEN_JIRA_USER and EPICGEN_JIRA_PASSWORD, "
            f"jira_user/jira_password in your profile in {CONFIG_PATH}, or create {path}"
        )
        raise typer.Exit(1)
    except (OSError, ValueError, ValidationError) as exc:
        typer.echo(f"Could not read credentials from {path}: {exc}")
        raise typer.Exit(1)
