"""Settings resolution with workspace profile support."""

from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from beadgraph.models import GraphView

CONFIG_PATH = Path.home() / ".config" / "beadgraph" / "config.toml"

# Auto-refresh faster than this would keep br permanently busy
MIN_AUTO_REFRESH_INTERVAL = 1.0


class BeadGraphSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BEADGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Workspace selection
    default_workspace: str | None = None  # profile name

    # br CLI
    br_command: str = "br"
    workdir: Path | None = None  # directory holding the .beads workspace; cwd if unset

    # Graph pane
    default_view: GraphView = GraphView.ACTIVE
    auto_refresh_interval: float = Field(default=5.0, ge=0)  # seconds, 0 disables
    fetch_timeout: float = Field(default=30.0, gt=0)
    detail_timeout: float = Field(default=10.0, gt=0)

    log_level: str = "WARNING"

    def effective_auto_refresh(self) -> float | None:
        """Return the auto-refresh interval clamped to the minimum, or None when disabled."""
        if self.auto_refresh_interval <= 0:
            return None
        return max(self.auto_refresh_interval, MIN_AUTO_REFRESH_INTERVAL)


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/beadgraph/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(workspace: str | None = None) -> BeadGraphSettings:
    """Resolve the active workspace profile and return a fully populated BeadGraphSettings.

    Precedence (highest to lowest):
    1. workspace argument (--workspace CLI flag)
    2. BEADGRAPH_DEFAULT_WORKSPACE env var
    3. default_workspace key in ~/.config/beadgraph/config.toml
    4. First profile defined in ~/.config/beadgraph/config.toml

    With no profile at all, settings come from env vars and defaults only.
    """
    import os

    toml_config = _load_toml()

    active = (
        workspace
        or os.environ.get("BEADGRAPH_DEFAULT_WORKSPACE")
        or toml_config.get("default_workspace")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = dict(toml_config[active])
        else:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Workspace '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(1)

    # Init kwargs outrank env vars in pydantic-settings, so drop profile keys the environment sets
    env_overrides = {name for name in BeadGraphSettings.model_fields if f"BEADGRAPH_{name.upper()}" in os.environ}
    profile_defaults = {k: v for k, v in profile_defaults.items() if k not in env_overrides}
    return BeadGraphSettings(**profile_defaults)
