# tests/test_planner.py

import pytest

from services.planner import (
    Segment,
    estimate_segment_count,
    plan_segments,
    should_use_multi_segment,
    to_frame,
)


def test_short_video_is_a_single_segment():
    """
    A 5 second video at 30fps is one segment covering frames 0-150.
    """
    segments = plan_segments(5, 30)

    assert len(segments) == 1
    segment = segments[0]
    assert segment.start_frame == 0
    assert segment.end_frame == 150
    assert segment.is_first and segment.is_last
    assert not segment.has_transition_in and not segment.has_transition_out


def test_threshold_duration_stays_single():
    assert len(plan_segments(15, 30)) == 1
    assert not should_use_multi_segment(15)
    assert should_use_multi_segment(15.5)


def test_long_video_is_split_evenly():
    """
    32 seconds with 10 second ideal segments gives 4 segments of 8 seconds.
    """
    segments = plan_segments(32, 30)

    assert len(segments) == 4
    boundaries = [s.start_frame for s in segments] + [segments[-1].end_frame]
    assert boundaries == [0, 240, 480, 720, 960]
    assert all(s.duration == pytest.approx(8) for s in segments)


def test_transition_flags_follow_position():
    segments = plan_segments(32, 30)

    assert [s.is_first for s in segments] == [True, False, False, False]
    assert [s.is_last for s in segments] == [False, False, False, True]
    assert [s.has_transition_in for s in segments] == [False, True, True, True]
    assert [s.has_transition_out for s in segments] == [True, True, True, False]


@pytest.mark.parametrize("duration,fps", [(16, 30), (33.3, 24), (47, 25), (120.7, 60), (300, 50)])
def test_segments_partition_the_timeline(duration, fps):
    """
    Segments are contiguous, never overlap and end exactly at the total frame count.
    """
    segments = plan_segments(duration, fps)

    assert [s.index for s in segments] == list(range(len(segments)))
    assert segments[0].start_frame == 0
    for previous, current in zip(segments, segments[1:]):
        assert current.start_frame == previous.end_frame
    assert segments[-1].end_frame == to_frame(duration, fps)
    assert sum(s.duration for s in segments) == pytest.approx(duration)
    assert all(s.frame_count > 0 for s in segments)


def test_to_frame_rounds_half_up():
    assert to_frame(2.5, 1) == 3
    assert to_frame(0.1, 30) == 3
    assert to_frame(10, 30) == 300


def test_estimate_segment_count_matches_plan():
    for duration in (5, 15, 16, 32, 95, 300):
        assert estimate_segment_count(duration) == len(plan_segments(duration, 30))


def test_segment_serialization_roundtrip():
    segment = plan_segments(32, 30)[2]
    assert Segment.from_dict(segment.to_dict()) == segment
