"""
Composition assembly.

Builds an in-memory timeline of scene placements and serializes it to the
Remotion entry files (`Root.tsx`, `index.ts`) at the renderer boundary.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from config import COMPOSITION_ID
from services.planner import Segment, to_frame
from services.prompts import SINGLE_COMPONENT_NAME, expected_component_name

ROOT_FILENAME = "Root.tsx"
ENTRY_FILENAME = "index.ts"
SCENES_DIRNAME = "scenes"
BACKGROUND_COLOR = "#0f172a"


@dataclass(frozen=True)
class ScenePlacement:
    component_name: str
    module_path: str
    from_frame: int
    duration_in_frames: int

    @property
    def end_frame(self) -> int:
        return self.from_frame + self.duration_in_frames


@dataclass(frozen=True)
class Composition:
    composition_id: str
    fps: int
    width: int
    height: int
    duration_in_frames: int
    placements: List[ScenePlacement] = field(default_factory=list)

    @property
    def is_multi_segment(self) -> bool:
        return len(self.placements) > 1


def scene_module_path(component_name: str, segment_count: int) -> str:
    """Import path of a scene module, relative to the job's entry directory."""
    if segment_count == 1:
        return f"./{component_name}"
    return f"./{SCENES_DIRNAME}/{component_name}"


def assemble_single(config: Dict[str, Any]) -> Composition:
    total_frames = to_frame(config["duration"], config["fps"])
    return Composition(
        composition_id=COMPOSITION_ID,
        fps=config["fps"],
        width=config["width"],
        height=config["height"],
        duration_in_frames=total_frames,
        placements=[
            ScenePlacement(
                component_name=SINGLE_COMPONENT_NAME,
                module_path=scene_module_path(SINGLE_COMPONENT_NAME, 1),
                from_frame=0,
                duration_in_frames=total_frames,
            )
        ],
    )


def assemble_multi(segments: List[Segment], config: Dict[str, Any]) -> Composition:
    count = len(segments)
    placements = []
    for segment in segments:
        name = expected_component_name(segment.index, count)
        placements.append(
            ScenePlacement(
                component_name=name,
                module_path=scene_module_path(name, count),
                from_frame=segment.start_frame,
                duration_in_frames=segment.end_frame - segment.start_frame,
            )
        )

    return Composition(
        composition_id=COMPOSITION_ID,
        fps=config["fps"],
        width=config["width"],
        height=config["height"],
        duration_in_frames=segments[-1].end_frame if segments else 0,
        placements=placements,
    )


def assemble(segments: List[Segment], config: Dict[str, Any]) -> Composition:
    if len(segments) == 1:
        return assemble_single(config)
    return assemble_multi(segments, config)


def _composition_element(component: str, composition: Composition) -> str:
    return f"""    <Composition
      id="{composition.composition_id}"
      component={{{component}}}
      durationInFrames={{{composition.duration_in_frames}}}
      fps={{{composition.fps}}}
      width={{{composition.width}}}
      height={{{composition.height}}}
    />"""


def render_root_tsx(composition: Composition) -> str:
    """Serialize a composition to the Remotion `Root.tsx` module."""
    imports = "\n".join(
        f"import {{ {p.component_name} }} from '{p.module_path}';" for p in composition.placements
    )

    if not composition.is_multi_segment:
        component = composition.placements[0].component_name
        return f"""import React from 'react';
import {{ Composition }} from 'remotion';
{imports}

export const RemotionRoot: React.FC = () => {{
  return (
{_composition_element(component, composition)}
  );
}};
"""

    sequences = "\n".join(
        f"""      <Sequence from={{{p.from_frame}}} durationInFrames={{{p.duration_in_frames}}}>
        <{p.component_name} />
      </Sequence>"""
        for p in composition.placements
    )
    return f"""import React from 'react';
import {{ AbsoluteFill, Composition, Sequence }} from 'remotion';
{imports}

const MultiSegmentVideo: React.FC = () => {{
  return (
    <AbsoluteFill style={{{{ backgroundColor: '{BACKGROUND_COLOR}' }}}}>
{sequences}
    </AbsoluteFill>
  );
}};

export const RemotionRoot: React.FC = () => {{
  return (
{_composition_element("MultiSegmentVideo", composition)}
  );
}};
"""


def render_entry_ts() -> str:
    return """import { registerRoot } from 'remotion';
import { RemotionRoot } from './Root';

registerRoot(RemotionRoot);
"""
