"""Configuration management for the news pipeline."""

from .loader import Config, load_config, load_sources, save_config, save_sources
from .models import (
    ConfigModel,
    LLMConfig,
    MediaConfig,
    PipelineConfig,
    SchedulerConfig,
    ServerConfig,
    SourceConfig,
    TranscriptConfig,
    YouTubeConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "LLMConfig",
    "MediaConfig",
    "PipelineConfig",
    "SchedulerConfig",
    "ServerConfig",
    "SourceConfig",
    "TranscriptConfig",
    "YouTubeConfig",
    "load_config",
    "load_sources",
    "save_config",
    "save_sources",
]
