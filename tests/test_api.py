"""HTTP-level tests with auth, database and runners replaced by fakes."""

from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from app.controllers import admin as admin_controller
from app.controllers import analysis as analysis_controller
from app.controllers import recordings as recordings_controller
from app.controllers.analysis import get_chunked_runner, get_w4_runner
from app.controllers.dependencies import get_current_user
from app.database import get_session
from app.main import app
from app.models.analysis import ProcessingStage, ProcessingStatus
from app.models.recording import RecordingStatus
from app.models.user import UserRole
from app.services.storage import StorageError
from conftest import FakeSession


class FakeRunner:
    def __init__(self) -> None:
        self.jobs = []

    async def run(self, job) -> None:
        self.jobs.append(job)


def _user(role: UserRole = UserRole.USER) -> SimpleNamespace:
    return SimpleNamespace(
        id=11,
        email="rep@example.com",
        full_name="Rep",
        role=role,
        is_admin=role == UserRole.ADMIN,
    )


def _recording(**overrides) -> SimpleNamespace:
    values = {
        "id": uuid4(),
        "user_id": 11,
        "file_path": "11/call.mp3",
        "analysis_file_path": None,
        "analysis_file_size": None,
        "file_size": 2 * 1024 * 1024,
        "duration": 95 * 60.0,
        "status": RecordingStatus.DONE,
    }
    values.update(overrides)
    recording = SimpleNamespace(**values)
    recording.source_path = recording.analysis_file_path or recording.file_path
    return recording


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def runners() -> SimpleNamespace:
    return SimpleNamespace(chunked=FakeRunner(), w4=FakeRunner())


@pytest.fixture
def current_user() -> SimpleNamespace:
    return _user()


@pytest.fixture(autouse=True)
def override_dependencies(session, runners, current_user):
    """Bypass authentication, the database and the AI runners."""

    async def fake_get_current_user():
        return current_user

    async def fake_get_session():
        yield session

    app.dependency_overrides[get_current_user] = fake_get_current_user
    app.dependency_overrides[get_session] = fake_get_session
    app.dependency_overrides[get_chunked_runner] = lambda: runners.chunked
    app.dependency_overrides[get_w4_runner] = lambda: runners.w4

    yield

    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def test_health_and_root(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/").json()["status"] == "operational"


def test_upload_recording_stores_audio(client, session, monkeypatch):
    uploads = []

    async def fake_upload(user_id, filename, audio_bytes, *, content_type=None):
        uploads.append((user_id, filename, audio_bytes, content_type))
        return "11/abc.mp3"

    monkeypatch.setattr(recordings_controller, "upload_recording_audio", fake_upload)

    response = client.post(
        "/recordings/",
        files={"file": ("call.mp3", b"ID3-audio", "audio/mpeg")},
        data={"duration": "125.5"},
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["fileName"] == "call.mp3"
    assert payload["filePath"] == "11/abc.mp3"
    assert payload["fileSize"] == 9
    assert payload["duration"] == 125.5
    assert payload["status"] == "done"
    assert uploads == [(11, "call.mp3", b"ID3-audio", "audio/mpeg")]
    assert session.commits == 1


def test_upload_rejects_unsupported_type(client):
    response = client.post(
        "/recordings/",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported audio format"


def test_upload_reports_storage_failure(client, monkeypatch):
    async def failing_upload(*args, **kwargs):
        raise StorageError("bucket missing")

    monkeypatch.setattr(recordings_controller, "upload_recording_audio", failing_upload)

    response = client.post(
        "/recordings/",
        files={"file": ("call.wav", b"RIFF", "audio/wav")},
    )

    assert response.status_code == 502


def test_start_transcription_queues_chunked_job(client, session, runners, monkeypatch):
    recording = _recording()

    async def fake_owned(recording_id, _session, _user):
        assert recording_id == recording.id
        return recording

    monkeypatch.setattr(analysis_controller, "get_owned_recording", fake_owned)

    response = client.post(f"/analysis/{recording.id}/transcribe")

    assert response.status_code == 202
    body = response.json()
    assert body["message"] == "Processing started"

    created = session.added[0]
    assert str(created.id) == body["analysisId"]
    assert created.processing_status == ProcessingStatus.PROCESSING.value
    assert created.processing_stage == ProcessingStage.TRANSCRIBING.value
    assert created.total_chunks == 3
    assert created.current_chunk_message == "Starting..."
    assert created.sections == []
    assert recording.status == RecordingStatus.PROCESSING

    (job,) = runners.chunked.jobs
    assert job.analysis_id == UUID(body["analysisId"])
    assert job.file_path == "11/call.mp3"
    assert job.total_chunks == 3
    assert runners.w4.jobs == []


def test_start_w4_prefers_compressed_copy(client, runners, monkeypatch):
    recording = _recording(analysis_file_path="11/call-small.m4a", analysis_file_size=1024)

    async def fake_owned(recording_id, _session, _user):
        return recording

    monkeypatch.setattr(analysis_controller, "get_owned_recording", fake_owned)

    response = client.post(f"/analysis/{recording.id}/w4")

    assert response.status_code == 202
    (job,) = runners.w4.jobs
    assert job.file_path == "11/call-small.m4a"
    assert job.file_size_bytes == 1024


def test_start_rejects_when_already_processing(client, session, runners, monkeypatch):
    recording = _recording()
    session.result = SimpleNamespace(processing_status=ProcessingStatus.PROCESSING.value)

    async def fake_owned(recording_id, _session, _user):
        return recording

    monkeypatch.setattr(analysis_controller, "get_owned_recording", fake_owned)

    response = client.post(f"/analysis/{recording.id}/transcribe")

    assert response.status_code == 409
    assert response.json()["detail"] == "Analysis already in progress"
    assert runners.chunked.jobs == []


def test_get_analysis_returns_camel_case_payload(client, session, monkeypatch):
    recording = _recording()
    analysis_id = uuid4()
    session.result = SimpleNamespace(
        id=analysis_id,
        recording_id=recording.id,
        processing_status="done",
        processing_stage="done",
        total_chunks=3,
        completed_chunks=3,
        current_chunk_message="Complete!",
        error_message=None,
        sections=[],
        title="Call",
        summary="Summary",
        transcript="",
        timeline=[],
        main_topics=["Roof"],
        glossary=[],
        insights=[],
        conclusion="",
        w4_report=None,
        language="en",
        confidence_score=0.9,
        duration_analyzed=5700.0,
        input_tokens=10,
        output_tokens=5,
        total_tokens=15,
        model_used="gemini-2.5-flash",
        estimated_cost_usd=0.0001,
    )

    async def fake_owned(recording_id, _session, _user):
        return recording

    monkeypatch.setattr(analysis_controller, "get_owned_recording", fake_owned)

    response = client.get(f"/analysis/{recording.id}")

    assert response.status_code == 200
    payload = response.json()
    assert payload["id"] == str(analysis_id)
    assert payload["processingStatus"] == "done"
    assert payload["mainTopics"] == ["Roof"]
    assert payload["confidenceScore"] == 0.9
    assert payload["totalTokens"] == 15


def test_get_analysis_missing(client, monkeypatch):
    async def fake_owned(recording_id, _session, _user):
        return _recording()

    monkeypatch.setattr(analysis_controller, "get_owned_recording", fake_owned)

    response = client.get(f"/analysis/{uuid4()}")

    assert response.status_code == 404
    assert response.json()["detail"] == "Analysis not found"


def test_admin_routes_reject_regular_users(client):
    response = client.get("/admin/prompts/default")

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin access required"


def test_default_prompt_for_admin(client, current_user):
    current_user.role = UserRole.ADMIN
    current_user.is_admin = True

    response = client.get("/admin/prompts/default")

    assert response.status_code == 200
    payload = response.json()
    assert payload["prompt"]
    assert "JSON" in payload["lockedOutput"]


def test_save_prompt_requires_name_and_prompt(client, current_user):
    current_user.is_admin = True

    response = client.put("/admin/prompts", json={"name": "w4_analysis", "prompt": "  "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Name and prompt are required"


def test_save_prompt_creates_record(client, session, current_user):
    current_user.is_admin = True

    response = client.put(
        "/admin/prompts",
        json={"name": "w4_analysis", "prompt": "Custom rubric", "description": "v2"},
    )

    assert response.status_code == 200
    prompt = response.json()["prompt"]
    assert prompt["name"] == "w4_analysis"
    assert prompt["prompt"] == "Custom rubric"
    assert prompt["isActive"] is True
    assert prompt["updatedBy"] == 11
    assert session.commits == 1


def test_token_stats_for_admin(client, current_user, monkeypatch):
    current_user.is_admin = True

    async def fake_platform(_session):
        return {"total_users": 2, "total_tokens": 1500}

    async def fake_users(_session):
        return [{"user_id": 11, "total_tokens": 1500}]

    async def fake_logs(_session, limit):
        assert limit == 50
        return []

    async def fake_rows(_session, time_range):
        assert time_range.key == "week"
        return [{"created_at": datetime.utcnow(), "total_tokens": 1500, "model_used": None}]

    monkeypatch.setattr(admin_controller, "get_platform_token_stats", fake_platform)
    monkeypatch.setattr(admin_controller, "get_user_token_stats", fake_users)
    monkeypatch.setattr(admin_controller, "get_token_logs", fake_logs)
    monkeypatch.setattr(admin_controller, "get_usage_rows", fake_rows)

    response = client.get("/admin/token-stats", params={"range": "week"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["range"] == "week"
    assert payload["platform"]["total_users"] == 2
    assert len(payload["dailyUsage"]) == 7
    assert payload["dailyUsage"][-1]["tokens"] == 1500
    assert payload["modelDistribution"] == {"unknown": 1}
