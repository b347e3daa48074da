"""
Configuration file for the Motion Studio video generator.
Contains all global constants and prompt engineering templates.
"""

import os
import shlex


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# --- Constants ---
PROJECT_ROOT = os.getcwd()
OUTPUT_DIR = os.getenv("OUTPUT_DIR", os.path.join(PROJECT_ROOT, "videos"))
REMOTION_PROJECT_DIR = os.getenv("REMOTION_PROJECT_DIR", os.path.join(PROJECT_ROOT, "remotion"))
# Per-job sources live inside the Remotion project so node_modules resolve.
JOBS_SUBDIR = os.getenv("JOBS_SUBDIR", os.path.join("src", "jobs"))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./jobs.db")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")
CELERY_TASK_ALWAYS_EAGER = _env_bool("CELERY_TASK_ALWAYS_EAGER", False)

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# --- Rendering ---
RENDER_COMMAND = shlex.split(os.getenv("RENDER_COMMAND", "npx remotion render"))
RENDER_TIMEOUT_SECONDS = int(os.getenv("RENDER_TIMEOUT_SECONDS", "600"))
RENDER_MAX_OUTPUT_BYTES = int(os.getenv("RENDER_MAX_OUTPUT_BYTES", str(50 * 1024 * 1024)))
COMPOSITION_ID = "MyVideo"

# --- Generation backends ---
AI_PROVIDER = os.getenv("AI_PROVIDER", "openrouter")
AI_API_KEY = os.getenv("AI_API_KEY", "")
AI_MODEL = os.getenv("AI_MODEL", "qwen/qwen3-coder:free")
OLLAMA_API_URL = os.getenv("OLLAMA_API_URL", "http://localhost:11434/api/chat")
GENERATION_TIMEOUT_SECONDS = int(os.getenv("GENERATION_TIMEOUT_SECONDS", "180"))

ENHANCER_BACKEND = os.getenv("ENHANCER_BACKEND", "a4f")
ENHANCER_API_KEY = os.getenv("ENHANCER_API_KEY", "")
ENHANCER_MODEL = os.getenv("ENHANCER_MODEL", "provider-3/deepseek-v3")

# --- Segmenting ---
MAX_SEGMENT_DURATION = float(os.getenv("MAX_SEGMENT_DURATION", "15"))
IDEAL_SEGMENT_DURATION = float(os.getenv("IDEAL_SEGMENT_DURATION", "10"))
TRANSITION_FRAMES = 15

# --- Retention ---
JOB_RETENTION_HOURS = float(os.getenv("JOB_RETENTION_HOURS", "24"))
CLEANUP_INTERVAL_SECONDS = int(os.getenv("CLEANUP_INTERVAL_SECONDS", "3600"))

# --- Video defaults & limits ---
DEFAULT_VIDEO_CONFIG = {
    "duration": 5,
    "fps": 30,
    "width": 1920,
    "height": 1080,
}
ALLOWED_FPS = (24, 25, 30, 50, 60)
MIN_DURATION_SECONDS = 1
MAX_DURATION_SECONDS = 300
MIN_PROMPT_LENGTH = 5
MAX_PROMPT_LENGTH = 1000

# --- Component source rules ---
ALLOWED_IMPORT_SOURCES = ("react", "remotion")
REMOTION_IMPORT = (
    "import { AbsoluteFill, useCurrentFrame, useVideoConfig, interpolate, "
    "spring, Sequence, Easing } from 'remotion';"
)
REACT_IMPORT = "import React from 'react';"

# --- Prompt Engineering Section ---

TSX_RULES = """## MANDATORY TECHNICAL RULES
1. The component MUST be exported exactly as: `export const __COMPONENT__: React.FC = () => { ... }`
2. ONLY these imports are allowed: `react`, and AbsoluteFill, useCurrentFrame, useVideoConfig, interpolate, spring, Sequence, Easing from `remotion`.
3. FORBIDDEN: useState, useEffect, useRef, setTimeout, setInterval, requestAnimationFrame, CSS animations, @keyframes, fetch, require.
4. Every visual value MUST be derived from `useCurrentFrame()`.
5. ALWAYS call interpolate() with `{ extrapolateLeft: 'clamp', extrapolateRight: 'clamp' }`.
6. Use web-safe fonts: Arial, Helvetica, Georgia, 'Segoe UI', sans-serif.
7. NO pure white (#FFFFFF) or pure black (#000000) backgrounds. Use rich, designed colors.
8. Minimum text size: 48px for primary text, 32px for secondary text.
"""

TSX_TEMPLATE = """## TEMPLATE STRUCTURE
```tsx
import React from 'react';
import { AbsoluteFill, useCurrentFrame, useVideoConfig, interpolate, spring, Easing } from 'remotion';

export const __COMPONENT__: React.FC = () => {
  const frame = useCurrentFrame();
  const { fps, width, height } = useVideoConfig();

  return (
    <AbsoluteFill
      style={{
        backgroundColor: '#0f172a',
        justifyContent: 'center',
        alignItems: 'center',
        fontFamily: 'Arial, sans-serif',
      }}
    >
      {/* animated elements */}
    </AbsoluteFill>
  );
};
```
"""

SYSTEM_PROMPT_HEADER = """You are an expert motion graphics designer and React developer creating animated videos with Remotion.
Think through the request, plan the timeline, then write polished, broadcast-quality TSX.
"""

OUTPUT_RULES = "Generate ONLY the complete TSX code. No explanations, no text before or after the code."

ENHANCER_SYSTEM_PROMPT = """You are a prompt enhancement assistant for AI video generation. Take a simple user prompt and expand it into a detailed, professional prompt for an animated video.

Guidelines:
- Add specific details about colors, animations and timing
- Suggest professional animation techniques (easing, transitions)
- Include visual polish (shadows, gradients, glows)
- Keep the core idea but make it more specific
- Output ONLY the enhanced prompt, no explanations
"""

# --- Examples ---
EXAMPLE_PROMPTS = [
    {
        "title": "Bouncing Subscribe Button",
        "prompt": "Create a red Subscribe button that appears with a bounce effect",
        "description": "A simple animated button with bounce animation",
    },
    {
        "title": "Countdown Timer",
        "prompt": "Make a countdown from 5 to 1 with blue neon effect",
        "description": "Animated countdown with glowing numbers",
    },
    {
        "title": "Typewriter Text",
        "prompt": "Create text that says NEW VIDEO with a typewriter effect",
        "description": "Text appearing letter by letter",
    },
    {
        "title": "Spinning Logo",
        "prompt": "Create a circular logo that spins and glows",
        "description": "Rotating logo with glow effect",
    },
]
