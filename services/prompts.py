"""
Scene prompt synthesis.

Turns one user request into one generation instruction per segment, framing
the first scene as an opening, the last as a closing and everything between
as a continuation, plus the matching system instructions.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from config import (
    OUTPUT_RULES,
    SYSTEM_PROMPT_HEADER,
    TRANSITION_FRAMES,
    TSX_RULES,
    TSX_TEMPLATE,
)
from services.planner import Segment, to_frame

SINGLE_COMPONENT_NAME = "MyVideo"

THEME_KEYWORDS = {
    "intro": ["intro", "opening", "start", "beginning"],
    "outro": ["outro", "ending", "conclusion", "end"],
    "tutorial": ["tutorial", "how to", "guide", "learn"],
    "promo": ["promo", "advertisement", "ad", "commercial", "product"],
    "story": ["story", "narrative", "tale"],
    "presentation": ["presentation", "slides", "showcase"],
}


@dataclass(frozen=True)
class ScenePrompt:
    segment_index: int
    prompt: str
    theme: str
    duration: float
    start_frame: int
    end_frame: int
    is_first: bool
    is_last: bool
    has_transition_in: bool
    has_transition_out: bool


def expected_component_name(segment_index: int, segment_count: int) -> str:
    """Export name a scene's source must use."""
    if segment_count == 1:
        return SINGLE_COMPONENT_NAME
    return f"Scene{segment_index}"


def classify_theme(text: str) -> str:
    lowered = text.lower()
    for theme, keywords in THEME_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return theme
    return "general"


def _seconds(value: float) -> str:
    return f"{value:g}"


def _opening(prompt: str, position: int, total: int, duration: float, theme: str) -> str:
    return (
        f"SCENE {position} of {total} (INTRO - {_seconds(duration)}s, {theme} video):\n"
        f'Create an attention-grabbing opening for: "{prompt}"\n'
        "- Start with an impactful entrance animation\n"
        "- Establish the visual theme and color palette\n"
        "- Include a hook element that draws viewers in\n"
        "- End with a smooth transition setup for the next scene\n"
        "- This is the FIRST segment, so make a strong first impression"
    )


def _closing(prompt: str, position: int, total: int, duration: float, theme: str) -> str:
    return (
        f"SCENE {position} of {total} (OUTRO - {_seconds(duration)}s, {theme} video):\n"
        f'Create a compelling conclusion for: "{prompt}"\n'
        "- Begin with a transition from the previous scene\n"
        "- Build to a climax or key message\n"
        "- Include a call-to-action or memorable ending\n"
        "- End with a satisfying conclusion animation\n"
        "- This is the FINAL segment, so leave a lasting impression"
    )


def _continuation(
    prompt: str, position: int, total: int, duration: float, theme: str, middle_position: float
) -> str:
    return (
        f"SCENE {position} of {total} (MIDDLE - {_seconds(duration)}s, {theme} video):\n"
        f'Continue the story for: "{prompt}"\n'
        "- Begin with a smooth transition from the previous scene\n"
        f"- Progress the narrative ({round(middle_position * 100)}% through the middle)\n"
        "- Maintain visual consistency with the established theme\n"
        "- Add new elements or develop existing ones\n"
        "- End with a transition setup for the next scene\n"
        "- Keep the momentum and viewer engagement high"
    )


def synthesize_scene_prompts(prompt: str, segments: List[Segment]) -> List[ScenePrompt]:
    """Build one generation instruction per segment, in segment order."""
    total = len(segments)
    theme = classify_theme(prompt)
    if total > 1:
        logging.info(f"🎭 Detected '{theme}' theme for {total}-scene video")

    scene_prompts = []
    for segment in segments:
        index = segment.index
        if total == 1:
            text = prompt
        elif segment.is_first:
            text = _opening(prompt, index + 1, total, segment.duration, theme)
        elif segment.is_last:
            text = _closing(prompt, index + 1, total, segment.duration, theme)
        else:
            middle_count = total - 2
            text = _continuation(
                prompt, index + 1, total, segment.duration, theme, (index - 1) / middle_count
            )

        scene_prompts.append(
            ScenePrompt(
                segment_index=index,
                prompt=text,
                theme=theme,
                duration=segment.duration,
                start_frame=segment.start_frame,
                end_frame=segment.end_frame,
                is_first=segment.is_first,
                is_last=segment.is_last,
                has_transition_in=segment.has_transition_in,
                has_transition_out=segment.has_transition_out,
            )
        )

    return scene_prompts


def _rules_for(component_name: str) -> str:
    return (TSX_RULES + "\n" + TSX_TEMPLATE).replace("__COMPONENT__", component_name)


def single_scene_system_prompt(config: Dict[str, Any]) -> str:
    """System instruction for a job rendered as one component."""
    total_frames = to_frame(config["duration"], config["fps"])
    return "\n".join([
        SYSTEM_PROMPT_HEADER,
        "## VIDEO SPECIFICATIONS",
        f"- Duration: {_seconds(config['duration'])} seconds ({total_frames} frames at {config['fps']}fps)",
        f"- Resolution: {config['width']}x{config['height']}",
        f"- Sequence the animation over the full {total_frames}-frame timeline: intro, hold, outro.",
        "",
        _rules_for(SINGLE_COMPONENT_NAME),
        OUTPUT_RULES,
    ])


def segment_system_prompt(scene_prompt: ScenePrompt, config: Dict[str, Any], segment_count: int) -> str:
    """System instruction for one scene of a multi-scene job."""
    component_name = expected_component_name(scene_prompt.segment_index, segment_count)
    total_frames = scene_prompt.end_frame - scene_prompt.start_frame
    if scene_prompt.is_first:
        position = "FIRST"
    elif scene_prompt.is_last:
        position = "LAST"
    else:
        position = "MIDDLE"

    lines = [
        f"You are an expert motion graphics designer creating SEGMENT {scene_prompt.segment_index + 1} "
        f"of {segment_count} in a multi-segment video.",
        "",
        "## SEGMENT SPECIFICATIONS",
        f"- Duration: {_seconds(scene_prompt.duration)} seconds ({total_frames} frames at {config['fps']}fps)",
        f"- Resolution: {config['width']}x{config['height']}",
        f"- Position: {position} segment",
    ]
    if scene_prompt.has_transition_in:
        lines.append(
            f"- Has TRANSITION IN from the previous segment: frames 0-{TRANSITION_FRAMES} fade or slide in "
            f"(e.g. interpolate(frame, [0, {TRANSITION_FRAMES}], [0, 1], ...) applied to opacity)"
        )
    if scene_prompt.has_transition_out:
        out_start = total_frames - TRANSITION_FRAMES
        lines.append(
            f"- Has TRANSITION OUT to the next segment: frames {out_start}-{total_frames} prepare the exit "
            f"(e.g. a slight scale down to 0.95). Don't fully exit, the next segment handles that"
        )
    lines.extend(["", _rules_for(component_name), OUTPUT_RULES])
    return "\n".join(lines)
