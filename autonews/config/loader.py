"""Configuration loader."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError
from rich.console import Console

from .models import ConfigModel, SourceConfig

console = Console()

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "autonews"

# Secrets that were never replaced with real values
PLACEHOLDER_SECRETS = {"", "YOUR_CRON_SECRET_HERE", "changeme"}


def _resolve_secret(value: Optional[str], env_name: Optional[str]) -> Optional[str]:
    """Prefer the environment variable, fall back to the inline value."""
    if env_name:
        from_env = os.environ.get(env_name)
        if from_env:
            return from_env
    return value


class Config:
    """Configuration manager."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """Initialize config manager."""
        if config_path is None:
            env_path = os.environ.get("AUTONEWS_CONFIG")
            config_path = Path(env_path) if env_path else DEFAULT_CONFIG_DIR / "config.yaml"
        self.config_path = config_path
        self._config: Optional[ConfigModel] = None

    @classmethod
    def from_model(cls, model: ConfigModel, config_path: Optional[Path] = None) -> "Config":
        """Build a manager around an already-loaded model."""
        config = cls(config_path or DEFAULT_CONFIG_DIR / "config.yaml")
        config._config = model
        return config

    @property
    def config(self) -> ConfigModel:
        """Get loaded config."""
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    @property
    def sources_path(self) -> Path:
        """Get sources.yaml path next to the config file."""
        return self.config_path.parent / "sources.yaml"

    @property
    def workspace_root(self) -> Path:
        """Get workspace root path."""
        path = Path(self.config.workspace_root).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def media_dir(self) -> Path:
        """Get directory where imported media files are stored."""
        path = self.workspace_root / "media"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration dict."""
        db_config = self.config.postgres.model_dump()
        db_config["password"] = _resolve_secret(db_config.get("password"), db_config.get("password_env"))
        return db_config

    def get_llm_config(self) -> Dict[str, Any]:
        """Get LLM configuration dict."""
        llm_config = self.config.llm.model_dump()
        llm_config["api_key"] = _resolve_secret(llm_config.get("api_key"), llm_config.get("api_key_env"))
        return llm_config

    def get_youtube_api_key(self) -> Optional[str]:
        """Get the YouTube Data API key, if any."""
        youtube = self.config.youtube
        return _resolve_secret(youtube.api_key, youtube.api_key_env)

    def get_cron_secret(self) -> Optional[str]:
        """Get the shared secret for the trigger surface; placeholders count as unset."""
        secret = os.environ.get(self.config.server.cron_secret_env)
        if secret is None or secret in PLACEHOLDER_SECRETS:
            return None
        return secret


def load_config(config_path: Path) -> ConfigModel:
    """Load configuration from YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return ConfigModel(**config_data)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")


def load_sources(sources_path: Path) -> List[SourceConfig]:
    """Load sources from YAML file."""
    if not sources_path.exists():
        raise FileNotFoundError(f"Sources file not found: {sources_path}")

    try:
        with open(sources_path) as f:
            sources_data = yaml.safe_load(f)

        if sources_data is None or "sources" not in sources_data:
            return []

        sources = []
        for source_data in sources_data["sources"] or []:
            try:
                sources.append(SourceConfig(**source_data))
            except ValidationError as e:
                console.print(
                    f"[yellow]Skipping invalid source {source_data.get('name', 'unknown')}: {e}[/yellow]"
                )

        return sources
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in sources file: {e}")


def save_config(config: ConfigModel, config_path: Path) -> None:
    """Save configuration to YAML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def save_sources(sources: List[SourceConfig], sources_path: Path) -> None:
    """Save sources to YAML file."""
    sources_path.parent.mkdir(parents=True, exist_ok=True)

    sources_data = {"sources": [s.model_dump() for s in sources]}

    with open(sources_path, "w") as f:
        yaml.dump(sources_data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
