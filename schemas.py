"""
Pydantic models for data validation in the Motion Studio video generator.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from config import (
    ALLOWED_FPS,
    DEFAULT_VIDEO_CONFIG,
    MAX_DURATION_SECONDS,
    MAX_PROMPT_LENGTH,
    MIN_DURATION_SECONDS,
    MIN_PROMPT_LENGTH,
)


class VideoConfig(BaseModel):
    """Video settings; unset fields fall back to the defaults."""
    duration: float = Field(DEFAULT_VIDEO_CONFIG["duration"], ge=MIN_DURATION_SECONDS, le=MAX_DURATION_SECONDS)
    fps: int = DEFAULT_VIDEO_CONFIG["fps"]
    width: int = Field(DEFAULT_VIDEO_CONFIG["width"], ge=100, le=3840)
    height: int = Field(DEFAULT_VIDEO_CONFIG["height"], ge=100, le=2160)

    @field_validator("fps")
    @classmethod
    def fps_must_be_supported(cls, value: int) -> int:
        if value not in ALLOWED_FPS:
            raise ValueError(f"FPS must be one of {', '.join(str(f) for f in ALLOWED_FPS)}")
        return value


class SceneRequest(BaseModel):
    """Request model for generating a video from a text prompt."""
    prompt: str
    config: VideoConfig = Field(default_factory=VideoConfig)
    provider: Optional[str] = None
    model: Optional[str] = None

    @field_validator("prompt")
    @classmethod
    def prompt_length(cls, value: str) -> str:
        trimmed = value.strip()
        if len(trimmed) < MIN_PROMPT_LENGTH:
            raise ValueError(f"Prompt must be at least {MIN_PROMPT_LENGTH} characters long")
        if len(trimmed) > MAX_PROMPT_LENGTH:
            raise ValueError(f"Prompt must be less than {MAX_PROMPT_LENGTH} characters")
        return trimmed


class CodeRequest(BaseModel):
    """Request model for rendering ready-made component source."""
    tsx_code: str = Field(..., min_length=1)
    config: VideoConfig = Field(default_factory=VideoConfig)


class JobResponse(BaseModel):
    """Response when submitting a background generation job."""
    job_id: str
    status: str  # e.g., "pending"
    message: str
    is_multi_segment: bool = False
    estimated_segments: int = 1


class StatusResponse(BaseModel):
    """Response for checking background job status."""
    job_id: str
    status: str  # "pending" | "processing" | "completed" | "failed"
    status_message: str
    progress: int
    video_url: Optional[str] = None
    error: Optional[str] = None
    is_multi_segment: bool
    segment_count: int
    scene_statuses: List[str]
    config: Dict[str, Any]
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class DeleteResponse(BaseModel):
    success: bool
    message: str


class SegmentInfoResponse(BaseModel):
    multi_segment_threshold: float
    max_segment_duration: float
    ideal_segment_duration: float
    description: str
