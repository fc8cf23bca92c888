"""Exception hierarchy for the news pipeline."""

from typing import Optional


class AutonewsError(Exception):
    """Base class for all pipeline errors."""


class PipelineError(AutonewsError):
    """The pipeline could not run at all (e.g. content store unreachable)."""


class VideoSourceError(AutonewsError):
    """The video provider could not be reached or returned garbage."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GenerationError(AutonewsError):
    """The generative text service failed or returned an unusable response."""

    def __init__(self, message: str, transient: bool = False) -> None:
        super().__init__(message)
        self.transient = transient


class StoreError(AutonewsError):
    """A content store read or write failed."""


class DuplicateVideoError(StoreError):
    """A video record with the same external id already exists."""

    def __init__(self, video_id: str) -> None:
        super().__init__(f"Video already recorded: {video_id}")
        self.video_id = video_id


class InvalidTransitionError(StoreError):
    """A video status change that the state machine does not allow."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Invalid status transition: {current} -> {target}")
        self.current = current
        self.target = target
