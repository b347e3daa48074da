"""
Video generation job orchestration.

The orchestrator is the only writer of job records. It creates a job,
drives it through generation, validation, composition and rendering, and
moves it to a terminal state:

    pending -> processing -> completed | failed

Progress bands: scene generation 10-70, scene files 72, composition 75,
rendering 80-90, done 100. Any failure resets progress to 0.
"""

import logging
import os
import shutil
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from config import (
    DEFAULT_VIDEO_CONFIG,
    JOB_RETENTION_HOURS,
    JOBS_SUBDIR,
    OUTPUT_DIR,
    REMOTION_PROJECT_DIR,
)
from models import COMPLETED, FAILED, PENDING, PROCESSING, Job, utcnow
from services.composition import (
    ENTRY_FILENAME,
    ROOT_FILENAME,
    assemble,
    render_entry_ts,
    render_root_tsx,
    scene_module_path,
)
from services.errors import JobCancelledError, JobInterruptedError, SceneGenerationError
from services.gateway import ContentGenerationGateway
from services.job_store import JobStore
from services.planner import Segment, plan_segments
from services.prompts import (
    expected_component_name,
    segment_system_prompt,
    single_scene_system_prompt,
    synthesize_scene_prompts,
)
from services.renderer import RemotionRunner
from services.validator import validate_and_repair

GENERATION_START = 10
GENERATION_SPAN = 60


def resolve_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Fill unset video settings with defaults."""
    resolved = dict(DEFAULT_VIDEO_CONFIG)
    for key, value in (config or {}).items():
        if value is not None:
            resolved[key] = value
    return resolved


@dataclass
class _JobRun:
    """Working state of one job while it runs."""

    job_id: str
    segments: List[Segment]
    config: Dict[str, Any]
    progress: int = 0
    artifacts: List[str] = field(default_factory=list)
    scene_statuses: List[str] = field(default_factory=list)


class JobOrchestrator:
    def __init__(
        self,
        store: JobStore,
        gateway: ContentGenerationGateway,
        runner: RemotionRunner,
        output_dir: str = OUTPUT_DIR,
        workspace_root: Optional[str] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.runner = runner
        self.output_dir = output_dir
        self.workspace_root = workspace_root or os.path.join(REMOTION_PROJECT_DIR, JOBS_SUBDIR)

    # ------------------------------------------------------------------
    # Job lifecycle
    # ------------------------------------------------------------------

    def create_job(
        self,
        config: Optional[Dict[str, Any]] = None,
        prompt: Optional[str] = None,
        source_code: Optional[str] = None,
        backend: Optional[str] = None,
        model: Optional[str] = None,
    ) -> Job:
        """Record a new pending job. Inputs must already be validated."""
        if (prompt is None) == (source_code is None):
            raise ValueError("Exactly one of prompt or source_code is required")

        resolved = resolve_config(config)
        if source_code is not None:
            # Ready-made source is a single component spanning the whole video.
            segments = plan_segments(resolved["duration"], resolved["fps"], max_segment_duration=float("inf"))
        else:
            segments = plan_segments(resolved["duration"], resolved["fps"])

        job = Job(
            id=str(uuid.uuid4()),
            status=PENDING,
            status_message="Initializing video generation...",
            progress=0,
            prompt=prompt,
            source_code=source_code,
            config=resolved,
            backend=backend,
            model=model,
            plan=[segment.to_dict() for segment in segments],
            scene_artifacts=[],
            scene_statuses=[PENDING] * len(segments),
        )
        job = self.store.add(job)
        logging.info(f"✨ Job {job.id} created ({len(segments)} segment(s), {resolved['duration']}s)")
        return job

    def get_status(self, job_id: str) -> Optional[Job]:
        return self.store.get(job_id)

    def run(self, job_id: str) -> None:
        """Drive a pending job to a terminal state. A job left processing is failed."""
        job = self.store.get(job_id)
        if job is None:
            logging.warning(f"Job {job_id} no longer exists, skipping.")
            return
        if job.status not in (PENDING, PROCESSING):
            logging.warning(f"Job {job_id} is already {job.status}, skipping.")
            return

        run = _JobRun(
            job_id=job.id,
            segments=[Segment.from_dict(data) for data in job.plan],
            config=dict(job.config),
            scene_statuses=list(job.scene_statuses),
        )
        workspace = self._workspace(job_id)

        if job.status == PROCESSING:
            # Redelivered after the worker running it was lost.
            logging.warning(f"⚠️ Job {job_id} was interrupted while processing, marking it failed.")
            run.scene_statuses = [FAILED if status == PROCESSING else status for status in run.scene_statuses]
            self._fail(run, JobInterruptedError(job_id))
            self._cleanup_workspace(workspace)
            return

        try:
            self._advance(run, "Starting video generation...", 0, status=PROCESSING)
            self._execute(job, run, workspace)
        except JobCancelledError:
            logging.info(f"🛑 Job {job_id} was deleted while running, stopping.")
            self._remove_file(self._output_path(job_id))
        except Exception as e:
            logging.exception(f"❌ Job {job_id} failed: {e}")
            self._fail(run, e)
        finally:
            self._cleanup_workspace(workspace)

    def delete_job(self, job_id: str) -> bool:
        """Remove a job record and its video. Deleting a missing job is a no-op."""
        job = self.store.delete(job_id)
        if job is None:
            return False

        for path in {job.artifact_path, self._output_path(job_id)}:
            if path:
                self._remove_file(path)
        logging.info(f"🗑️ Deleted job {job_id}")
        return True

    def sweep_expired(self, max_age_hours: float = JOB_RETENTION_HOURS, now=None) -> int:
        """Delete jobs older than the retention window. Returns how many were removed."""
        cutoff = (now or utcnow()) - timedelta(hours=max_age_hours)
        removed = 0
        for job in self.store.list_created_before(cutoff):
            if self.delete_job(job.id):
                removed += 1
                logging.info(f"Cleaned up old job: {job.id}")
        return removed

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def _execute(self, job: Job, run: _JobRun, workspace: str) -> None:
        if job.source_code is not None:
            run.artifacts = [job.source_code]
            run.scene_statuses = [COMPLETED]
            self._advance(
                run, "Writing video code...", GENERATION_START,
                scene_artifacts=list(run.artifacts), scene_statuses=list(run.scene_statuses),
            )
        else:
            prompt = self._enhance(job)
            self._generate_scenes(job, run, prompt)

        self._advance(run, "Writing segment files...", 72)
        self._write_scene_files(run, workspace)

        self._advance(run, "Creating composition...", 75)
        composition = assemble(run.segments, run.config)
        self._write(os.path.join(workspace, ROOT_FILENAME), render_root_tsx(composition))
        entry_point = os.path.join(workspace, ENTRY_FILENAME)
        self._write(entry_point, render_entry_ts())

        self._advance(run, "Rendering video...", 80)
        output_path = self.runner.render(entry_point, self._output_path(run.job_id))

        self._advance(run, "Finalizing video...", 90)
        self._update(
            run.job_id,
            status=COMPLETED,
            status_message="Video ready for download!",
            progress=100,
            artifact_path=os.path.abspath(output_path),
            completed_at=utcnow(),
        )
        logging.info(f"✅ Job {run.job_id} completed. Video at: {output_path}")

    def _enhance(self, job: Job) -> str:
        enhanced = self.gateway.enhance_prompt(job.prompt)
        if enhanced != job.prompt:
            self._update(job.id, enhanced_prompt=enhanced)
        return enhanced

    def _generate_scenes(self, job: Job, run: _JobRun, prompt: str) -> None:
        total = len(run.segments)
        scene_prompts = synthesize_scene_prompts(prompt, run.segments)
        logging.info(f"📊 Generating {total} segment(s) for {run.config['duration']}s video")

        for scene_prompt in scene_prompts:
            index = scene_prompt.segment_index
            run.scene_statuses[index] = PROCESSING
            message = "Generating video code..." if total == 1 else f"Generating scene {index + 1} of {total}..."
            self._advance(
                run, message, round(GENERATION_START + index / total * GENERATION_SPAN),
                scene_statuses=list(run.scene_statuses),
            )

            if total == 1:
                system_instruction = single_scene_system_prompt(run.config)
            else:
                system_instruction = segment_system_prompt(scene_prompt, run.config, total)
            component_name = expected_component_name(index, total)

            try:
                raw_code = self.gateway.generate(
                    scene_prompt.prompt, system_instruction, backend=job.backend, model=job.model
                )
                code, result = validate_and_repair(raw_code, component_name)
                if not result.valid:
                    raise SceneGenerationError(index, "; ".join(result.messages))
            except Exception as e:
                logging.error(f"❌ Failed to generate segment {index}: {e}")
                run.scene_statuses[index] = FAILED
                if isinstance(e, SceneGenerationError):
                    raise
                raise SceneGenerationError(index, str(e)) from e

            run.artifacts.append(code)
            run.scene_statuses[index] = COMPLETED
            self._update(
                run.job_id,
                scene_artifacts=list(run.artifacts),
                scene_statuses=list(run.scene_statuses),
            )
            logging.info(f"✅ Segment {index + 1}/{total} generated")

    def _write_scene_files(self, run: _JobRun, workspace: str) -> None:
        total = len(run.segments)
        for segment, code in zip(run.segments, run.artifacts):
            name = expected_component_name(segment.index, total)
            relative = scene_module_path(name, total)[2:] + ".tsx"
            self._write(os.path.join(workspace, relative), code)
        logging.info(f"📝 Written {len(run.artifacts)} scene file(s) to {workspace}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _workspace(self, job_id: str) -> str:
        return os.path.join(self.workspace_root, job_id)

    def _output_path(self, job_id: str) -> str:
        return os.path.join(self.output_dir, f"{job_id}.mp4")

    @staticmethod
    def _write(path: str, content: str) -> None:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)

    def _update(self, job_id: str, **fields) -> Job:
        job = self.store.update(job_id, **fields)
        if job is None:
            raise JobCancelledError(job_id)
        return job

    def _advance(self, run: _JobRun, message: str, progress: int, **fields) -> None:
        run.progress = max(run.progress, progress)
        self._update(run.job_id, status_message=message, progress=run.progress, **fields)

    def _fail(self, run: _JobRun, error: Exception) -> None:
        # The record may have been deleted meanwhile; store.update ignores that.
        self.store.update(
            run.job_id,
            status=FAILED,
            status_message="Generation failed",
            error=str(error) or error.__class__.__name__,
            progress=0,
            scene_statuses=list(run.scene_statuses),
        )
        self._remove_file(self._output_path(run.job_id))

    @staticmethod
    def _remove_file(path: str) -> None:
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            logging.warning(f"Could not delete file {path}: {e}")

    @staticmethod
    def _cleanup_workspace(workspace: str) -> None:
        try:
            if os.path.exists(workspace):
                shutil.rmtree(workspace)
        except OSError as e:
            logging.warning(f"Could not delete job workspace {workspace}: {e}")


def build_orchestrator(session_factory: sessionmaker) -> JobOrchestrator:
    """Wire an orchestrator with the configured gateway and renderer."""
    return JobOrchestrator(
        store=JobStore(session_factory),
        gateway=ContentGenerationGateway(),
        runner=RemotionRunner(),
    )
