"""Transcript extraction with ordered fallback strategies."""

import asyncio
import html
import re
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Sequence

import requests
from rich.console import Console
from youtube_transcript_api import (
    CouldNotRetrieveTranscript,
    NoTranscriptFound,
    RequestBlocked,
    TranscriptsDisabled,
    VideoUnavailable,
    YouTubeTranscriptApi,
)

from ..retry import retry_async

console = Console()

_TAG_RE = re.compile(r"<[^>]*>")
_CUE_TIMING_RE = re.compile(
    r"\d{1,2}:\d{2}:\d{2}[.,]\d{3}\s*-->\s*\d{1,2}:\d{2}:\d{2}[.,]\d{3}"
)
_WHITESPACE_RE = re.compile(r"\s+")

# Outcomes that mean "this video has no usable captions", never retried
DEFINITIVE_ERRORS = (NoTranscriptFound, TranscriptsDisabled, VideoUnavailable)


def is_transient_transcript_error(error: BaseException) -> bool:
    """Network hiccups and rate limiting are worth another attempt."""
    return isinstance(error, (requests.RequestException, RequestBlocked))


def _snippet_text(snippet: Any) -> str:
    if isinstance(snippet, dict):
        return snippet.get("text") or ""
    return getattr(snippet, "text", "") or ""


def normalize_caption_text(snippets: Iterable[Any]) -> str:
    """Join caption snippets into plain text without markup, cue timings or extra whitespace."""
    text = " ".join(_snippet_text(s) for s in snippets)
    text = html.unescape(text)
    text = _CUE_TIMING_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


class TranscriptStrategy(ABC):
    """One way of obtaining captions for a video."""

    name = "strategy"

    def __init__(self, api: Optional[YouTubeTranscriptApi] = None) -> None:
        """Initialize the strategy with a transcript API client."""
        self.api = api or YouTubeTranscriptApi()

    @abstractmethod
    def fetch_sync(self, video_id: str, language: str) -> Optional[str]:
        """
        Fetch normalized transcript text (blocking).

        Returns None for definitive negatives; raises for transient failures.
        """
        pass


class RequestedLanguageStrategy(TranscriptStrategy):
    """Captions in the requested language only."""

    name = "requested-language"

    def _languages(self, language: str) -> List[str]:
        languages = [language]
        if "-" in language:
            languages.append(language.split("-", 1)[0])
        return languages

    def fetch_sync(self, video_id: str, language: str) -> Optional[str]:
        try:
            fetched = self.api.fetch(video_id, languages=self._languages(language))
        except DEFINITIVE_ERRORS:
            return None
        return normalize_caption_text(fetched) or None


class AnyLanguageStrategy(TranscriptStrategy):
    """Any available caption track, manual tracks before generated ones."""

    name = "any-language"

    def fetch_sync(self, video_id: str, language: str) -> Optional[str]:
        try:
            transcripts = list(self.api.list(video_id))
        except DEFINITIVE_ERRORS:
            return None

        transcripts.sort(key=lambda t: bool(getattr(t, "is_generated", False)))
        for transcript in transcripts:
            try:
                text = normalize_caption_text(transcript.fetch())
            except DEFINITIVE_ERRORS:
                continue
            if text:
                return text
        return None


class TranscriptExtractor:
    """Try each strategy in order until one yields text."""

    def __init__(
        self,
        strategies: Optional[Sequence[TranscriptStrategy]] = None,
        max_attempts: int = 3,
        retry_base_delay: float = 1.0,
    ) -> None:
        """
        Initialize the extractor.

        Args:
            strategies: Strategies in priority order (default: requested language, then any)
            max_attempts: Attempts per strategy on transient errors
            retry_base_delay: First backoff delay in seconds
        """
        if strategies is None:
            api = YouTubeTranscriptApi()
            strategies = [RequestedLanguageStrategy(api), AnyLanguageStrategy(api)]
        self.strategies = list(strategies)
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay

    async def _run_strategy(
        self,
        strategy: TranscriptStrategy,
        video_id: str,
        language: str,
    ) -> Optional[str]:
        """Run one strategy with retries; any leftover failure exhausts it."""
        try:
            return await retry_async(
                lambda: asyncio.to_thread(strategy.fetch_sync, video_id, language),
                is_retryable=is_transient_transcript_error,
                attempts=self.max_attempts,
                base_delay=self.retry_base_delay,
                label=f"Transcript:{strategy.name}",
            )
        except CouldNotRetrieveTranscript as e:
            console.print(f"[yellow][Transcript] {strategy.name} failed for {video_id}: {type(e).__name__}[/yellow]")
        except requests.RequestException as e:
            console.print(f"[yellow][Transcript] {strategy.name} network error for {video_id}: {e}[/yellow]")
        return None

    async def extract(self, video_id: str, language_hint: str = "ar") -> Optional[str]:
        """
        Extract a plain-text transcript.

        Returns:
            Transcript text, or None once every strategy is exhausted
        """
        for strategy in self.strategies:
            text = await self._run_strategy(strategy, video_id, language_hint)
            if text:
                return text

        console.print(f"[yellow][Transcript] No transcript available for video {video_id}[/yellow]")
        return None
