# tests/test_job_store.py

from datetime import timedelta

from sqlalchemy import inspect

from database import build_engine
from init_db import init_database
from models import COMPLETED, PENDING, Job, utcnow


def make_job(job_id="job-1", **fields):
    values = {
        "id": job_id,
        "status": PENDING,
        "config": {"duration": 5, "fps": 30, "width": 1920, "height": 1080},
        "plan": [{"index": 0}],
        "scene_statuses": [PENDING],
        "prompt": "A blue circle",
    }
    values.update(fields)
    return Job(**values)


def test_add_and_get_returns_detached_snapshot(store):
    store.add(make_job())

    job = store.get("job-1")

    assert job.status == PENDING
    assert job.config["fps"] == 30
    assert job.created_at is not None


def test_get_missing_job_returns_none(store):
    assert store.get("missing") is None


def test_update_applies_fields(store):
    store.add(make_job())

    updated = store.update("job-1", status=COMPLETED, progress=100, scene_statuses=[COMPLETED])

    assert updated.status == COMPLETED
    reloaded = store.get("job-1")
    assert reloaded.progress == 100
    assert reloaded.scene_statuses == [COMPLETED]


def test_update_missing_job_returns_none(store):
    assert store.update("missing", status=COMPLETED) is None


def test_delete_returns_last_snapshot(store):
    store.add(make_job(artifact_path="/tmp/job-1.mp4"))

    deleted = store.delete("job-1")

    assert deleted.artifact_path == "/tmp/job-1.mp4"
    assert store.get("job-1") is None
    assert store.delete("job-1") is None


def test_list_created_before(store):
    now = utcnow()
    store.add(make_job("old", created_at=now - timedelta(hours=30)))
    store.add(make_job("new", created_at=now))

    old_jobs = store.list_created_before(now - timedelta(hours=24))

    assert [job.id for job in old_jobs] == ["old"]


def test_multi_segment_properties():
    assert not make_job().is_multi_segment
    job = make_job(plan=[{"index": 0}, {"index": 1}])
    assert job.is_multi_segment
    assert job.segment_count == 2


def test_init_database_creates_table_and_directories(tmp_path):
    engine = build_engine("sqlite://")
    videos, jobs = tmp_path / "videos", tmp_path / "remotion" / "src" / "jobs"

    init_database(bind=engine, directories=(str(videos), str(jobs)))

    assert "jobs" in inspect(engine).get_table_names()
    assert videos.is_dir() and jobs.is_dir()
