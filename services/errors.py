"""
Exceptions raised by the video generation pipeline.
"""

from typing import Optional


class VideoStudioError(Exception):
    """Base class for pipeline failures that end a job."""


class GenerationBackendError(VideoStudioError):
    """A generation backend returned an error or an unusable response."""

    def __init__(self, message: str, backend: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.backend = backend


class UnknownBackendError(VideoStudioError):
    """No generation backend is registered under the requested name."""


class SceneGenerationError(VideoStudioError):
    """A single scene could not be generated or validated."""

    def __init__(self, scene_index: int, message: str):
        super().__init__(f"Failed to generate segment {scene_index + 1}: {message}")
        self.scene_index = scene_index
        self.message = message


class RenderError(VideoStudioError):
    """The external renderer failed, timed out or produced no output."""


class JobCancelledError(VideoStudioError):
    """The job record was deleted while the job was still running."""


class JobInterruptedError(VideoStudioError):
    """A job was found mid-run when its task was delivered again."""

    def __init__(self, job_id: str):
        super().__init__("The worker running this job stopped before it finished")
        self.job_id = job_id
