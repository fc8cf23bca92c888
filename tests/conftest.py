"""
Shared pytest fixtures for autonews tests.

Fixture Organization
--------------------
- **store**: In-memory ContentStore with one active source
- **provider**: Scripted VideoProvider serving one page of two videos
- **extractor / generator / thumbnails**: Fakes for the pipeline collaborators
- **orchestrator**: PipelineOrchestrator wired from the fakes above
"""

import random

import pytest

from autonews.config.models import PipelineConfig
from autonews.ingestion import VideoSourceClient
from autonews.models import Source
from autonews.pipeline import PipelineOrchestrator

from .fakes import (
    FakeExtractor,
    FakeGenerator,
    FakeThumbnails,
    InMemoryContentStore,
    ScriptedProvider,
    make_source,
    make_video,
)


@pytest.fixture
def source() -> Source:
    return make_source()


@pytest.fixture
def store(source: Source) -> InMemoryContentStore:
    return InMemoryContentStore([source])


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider([[make_video("vid1"), make_video("vid2")]])


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor(default="transcript text")


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def thumbnails() -> FakeThumbnails:
    return FakeThumbnails()


@pytest.fixture
def settings() -> PipelineConfig:
    return PipelineConfig(max_videos_per_run=5)


@pytest.fixture
def orchestrator(store, provider, extractor, generator, thumbnails, settings) -> PipelineOrchestrator:
    return PipelineOrchestrator(
        store=store,
        video_source=VideoSourceClient(provider),
        extractor=extractor,
        generator=generator,
        thumbnails=thumbnails,
        settings=settings,
        rng=random.Random(0),
    )
