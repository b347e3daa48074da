"""
Router for video generation endpoints.
Handles job submission, status polling, video download and deletion.
"""

import os
import logging
from fastapi import APIRouter, HTTPException, Depends, Request
from fastapi.responses import FileResponse

from tasks import generate_video_task
from schemas import (
    SceneRequest,
    CodeRequest,
    JobResponse,
    StatusResponse,
    DeleteResponse,
    SegmentInfoResponse,
)
from config import AI_PROVIDER, EXAMPLE_PROMPTS, IDEAL_SEGMENT_DURATION, MAX_SEGMENT_DURATION
from models import COMPLETED
from services.gateway import BACKENDS, is_backend_configured
from services.orchestrator import JobOrchestrator
from services.planner import estimate_segment_count
from services.prompts import SINGLE_COMPONENT_NAME
from services.validator import validate_and_repair


# Create the router
router = APIRouter(tags=["generation"])


def get_orchestrator(request: Request) -> JobOrchestrator:
    """The orchestrator built once at application startup."""
    return request.app.state.orchestrator


def _dispatch(orchestrator: JobOrchestrator, job_id: str) -> None:
    try:
        generate_video_task.delay(job_id)
    except Exception as e:
        logging.error(f"Failed to submit task to Celery: {e}")
        orchestrator.delete_job(job_id)
        raise HTTPException(status_code=500, detail="Failed to start the video generation job.")


@router.get("/examples/")
def get_examples():
    """Example prompts for the front end."""
    return {"examples": EXAMPLE_PROMPTS}


@router.get("/segment-info/", response_model=SegmentInfoResponse)
def get_segment_info():
    """Describes when videos are split into multiple scenes."""
    return SegmentInfoResponse(
        multi_segment_threshold=MAX_SEGMENT_DURATION,
        max_segment_duration=MAX_SEGMENT_DURATION,
        ideal_segment_duration=IDEAL_SEGMENT_DURATION,
        description=(
            f"Videos longer than {MAX_SEGMENT_DURATION:g} seconds are automatically split into "
            "multiple segments for better quality and reliability."
        ),
    )


@router.post("/generate-scene/", response_model=JobResponse)
def generate_scene(request: SceneRequest, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """
    Creates a job from a text prompt, sends it to Celery,
    and immediately returns a job ID.
    """
    provider = (request.provider or AI_PROVIDER).lower()
    if provider not in BACKENDS:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown AI provider: {provider}. Supported: {', '.join(sorted(BACKENDS))}",
        )
    if not is_backend_configured(provider):
        raise HTTPException(
            status_code=503,
            detail="AI service not configured. Set AI_API_KEY to enable AI generation.",
        )

    config = request.config.model_dump()
    job = orchestrator.create_job(config=config, prompt=request.prompt, backend=provider, model=request.model)
    _dispatch(orchestrator, job.id)

    segments = estimate_segment_count(config["duration"])
    logging.info(f"✨ Job {job.id} submitted for prompt: '{request.prompt[:60]}'")
    return JobResponse(
        job_id=job.id,
        status=job.status,
        message=(
            f"Multi-segment video generation started ({config['duration']:g}s video)"
            if segments > 1 else "AI video generation started"
        ),
        is_multi_segment=segments > 1,
        estimated_segments=segments,
    )


@router.post("/render-code/", response_model=JobResponse)
def render_code(request: CodeRequest, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Creates a job that renders ready-made component source."""
    code, result = validate_and_repair(request.tsx_code, SINGLE_COMPONENT_NAME)
    if not result.valid:
        raise HTTPException(status_code=400, detail={"error": "Invalid TSX code", "details": result.messages})

    job = orchestrator.create_job(config=request.config.model_dump(), source_code=code)
    _dispatch(orchestrator, job.id)
    logging.info(f"✨ Job {job.id} submitted with supplied source")
    return JobResponse(job_id=job.id, status=job.status, message="Video generation started")


@router.get("/task-status/{job_id}", response_model=StatusResponse)
def get_task_status(job_id: str, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """
    Returns the latest snapshot of a job. Never waits on the job itself.
    """
    job = orchestrator.get_status(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found.")

    return StatusResponse(
        job_id=job.id,
        status=job.status,
        status_message=job.status_message or "",
        progress=job.progress or 0,
        video_url=f"/get-video/{job.id}" if job.status == COMPLETED else None,
        error=job.error,
        is_multi_segment=job.is_multi_segment,
        segment_count=job.segment_count,
        scene_statuses=list(job.scene_statuses or []),
        config=job.config,
        created_at=job.created_at,
        completed_at=job.completed_at,
    )


@router.get("/get-video/{job_id}")
def get_video(job_id: str, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """
    Streams the rendered video. Range requests are answered with partial content.
    """
    job = orchestrator.get_status(job_id)
    if not job or job.status != COMPLETED or not job.artifact_path:
        raise HTTPException(status_code=404, detail="Video not found or not ready.")

    if not os.path.exists(job.artifact_path):
        raise HTTPException(status_code=404, detail="Video file not found.")

    return FileResponse(job.artifact_path, media_type="video/mp4", filename=f"{job.id}.mp4")


@router.delete("/video/{job_id}", response_model=DeleteResponse)
def delete_video(job_id: str, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Deletes a job record and its video file."""
    if not orchestrator.delete_job(job_id):
        raise HTTPException(status_code=404, detail="Job not found.")
    return DeleteResponse(success=True, message="Video deleted successfully")
