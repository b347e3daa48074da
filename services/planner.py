"""
Segment planning for long videos.

Videos up to MAX_SEGMENT_DURATION seconds are rendered as a single scene.
Longer videos are split evenly into scenes of roughly IDEAL_SEGMENT_DURATION
seconds that are generated independently and placed on one timeline.
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from config import IDEAL_SEGMENT_DURATION, MAX_SEGMENT_DURATION


@dataclass(frozen=True)
class Segment:
    index: int
    start_time: float
    duration: float
    start_frame: int
    end_frame: int
    is_first: bool
    is_last: bool
    has_transition_in: bool = False
    has_transition_out: bool = False

    @property
    def frame_count(self) -> int:
        return self.end_frame - self.start_frame

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Segment":
        return cls(**data)


def to_frame(seconds: float, fps: float) -> int:
    """Convert a time boundary to a frame index, rounding half up."""
    return int(math.floor(seconds * fps + 0.5))


def should_use_multi_segment(duration: float, max_segment_duration: float = MAX_SEGMENT_DURATION) -> bool:
    return duration > max_segment_duration


def estimate_segment_count(
    duration: float,
    max_segment_duration: float = MAX_SEGMENT_DURATION,
    ideal_segment_duration: float = IDEAL_SEGMENT_DURATION,
) -> int:
    if not should_use_multi_segment(duration, max_segment_duration):
        return 1
    return math.ceil(duration / ideal_segment_duration)


def plan_segments(
    total_duration: float,
    fps: float,
    max_segment_duration: float = MAX_SEGMENT_DURATION,
    ideal_segment_duration: float = IDEAL_SEGMENT_DURATION,
) -> List[Segment]:
    """
    Split a video of `total_duration` seconds into ordered segments.

    Frame boundaries are computed from each segment's time boundaries
    independently, so consecutive segments always share a boundary frame and
    the last one ends at round(total_duration * fps).
    """
    if not should_use_multi_segment(total_duration, max_segment_duration):
        return [
            Segment(
                index=0,
                start_time=0.0,
                duration=total_duration,
                start_frame=0,
                end_frame=to_frame(total_duration, fps),
                is_first=True,
                is_last=True,
            )
        ]

    segment_count = math.ceil(total_duration / ideal_segment_duration)
    actual_duration = total_duration / segment_count

    segments = []
    for i in range(segment_count):
        is_first = i == 0
        is_last = i == segment_count - 1
        start_time = i * actual_duration
        # The last segment absorbs float remainder so the ends sum to total_duration.
        duration = total_duration - start_time if is_last else actual_duration
        end_time = total_duration if is_last else (i + 1) * actual_duration

        segments.append(
            Segment(
                index=i,
                start_time=start_time,
                duration=duration,
                start_frame=to_frame(start_time, fps),
                end_frame=to_frame(end_time, fps),
                is_first=is_first,
                is_last=is_last,
                has_transition_in=not is_first,
                has_transition_out=not is_last,
            )
        )

    return segments
