# confluence-video-backend/tests/test_services.py

import pytest
import requests
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from conftest import FakeResponse, FakeSession, invalid_json_response
from schemas import DocumentPayload, Requester, VideoSpecs
from services import ScriptService, VideoJobSubmitter, VideoService


def words(n):
    return " ".join(["word"] * n)


def gemini_reply(text):
    return FakeResponse(json_data={"candidates": [{"content": {"parts": [{"text": text}]}}]})


class EchoScriptService:
    """Returns the page text unchanged, like the real service without an API key."""

    def __init__(self):
        self.calls = []

    def generate_script(self, text, specs=None, description=None):
        self.calls.append((text, specs, description))
        return text


class FakeUserClient:
    def __init__(self, user=None, error=None):
        self.user = user
        self.error = error

    def get_current_user(self):
        if self.error:
            raise self.error
        return self.user


class BrokenStore:
    def put(self, record):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    def add_active(self, job_id):
        raise AssertionError("should not be reached")


# --- ScriptService ---

def test_script_service_returns_generated_text():
    session = FakeSession(gemini_reply("  A short script.  "))
    service = ScriptService(api_key="key", api_url="https://gemini.test", session=session)

    script = service.generate_script("page text", VideoSpecs(language="fr", duration="1 min"), "Focus on pricing")

    assert script == "A short script."
    prompt = session.calls[0]["json"]["contents"][0]["parts"][0]["text"]
    assert "French" in prompt
    assert "Focus on pricing" in prompt
    assert "page text" in prompt
    assert session.calls[0]["params"] == {"key": "key"}


def test_script_service_without_api_key_returns_original_text():
    session = FakeSession()
    service = ScriptService(api_key="", session=session)
    assert service.generate_script("original") == "original"
    assert session.calls == []


@pytest.mark.parametrize("reply", [
    FakeResponse(status_code=500, text="boom"),
    invalid_json_response(),
    FakeResponse(json_data={"candidates": []}),
    requests.ConnectionError("refused"),
])
def test_script_service_falls_back_to_original_text(reply):
    service = ScriptService(api_key="key", api_url="https://gemini.test", session=FakeSession(reply))
    assert service.generate_script("original") == "original"


def test_script_service_reads_top_level_script_field():
    service = ScriptService(api_key="key", api_url="https://gemini.test",
                            session=FakeSession(FakeResponse(json_data={"script": "from fallback path"})))
    assert service.generate_script("original") == "from fallback path"


# --- VideoService ---

def test_video_service_requires_api_key():
    with pytest.raises(HTTPException) as exc:
        VideoService(api_key="", session=FakeSession()).submit({})
    assert exc.value.status_code == 500


def test_video_service_surfaces_vendor_error_detail():
    session = FakeSession(FakeResponse(status_code=422, json_data={"detail": "duration too short"}))
    with pytest.raises(HTTPException) as exc:
        VideoService(api_key="k", api_url="https://golpo.test", session=session).submit({})
    assert exc.value.status_code == 502
    assert "duration too short" in exc.value.detail


def test_video_service_malformed_json_is_a_format_error():
    session = FakeSession(invalid_json_response())
    with pytest.raises(HTTPException) as exc:
        VideoService(api_key="k", api_url="https://golpo.test", session=session).submit({})
    assert "invalid response format" in exc.value.detail


def test_video_service_network_error_is_503():
    session = FakeSession(requests.Timeout("slow"))
    with pytest.raises(HTTPException) as exc:
        VideoService(api_key="k", api_url="https://golpo.test", session=session).get_status("j1")
    assert exc.value.status_code == 503


def test_status_url_and_headers():
    session = FakeSession(FakeResponse(json_data={"status": "processing"}))
    body = VideoService(api_key="k", api_url="https://golpo.test/", session=session).get_status("j1")
    assert body == {"status": "processing"}
    assert session.calls[0]["url"] == "https://golpo.test/api/v1/videos/status/j1"
    assert session.calls[0]["headers"]["x-api-key"] == "k"


def test_fetch_chunk_encodes_bytes_and_reads_total_size():
    session = FakeSession(FakeResponse(
        status_code=206,
        content=b"\x00\x01video",
        headers={"Content-Range": "bytes 0-6/1000", "Content-Type": "video/mp4"},
    ))
    chunk = VideoService(api_key="k", session=session).fetch_chunk("https://cdn.test/v.mp4", 0, 6)

    assert chunk.status == 206
    assert chunk.base64_data == "AAF2aWRlbw=="
    assert chunk.total_size == 1000
    assert chunk.content_type == "video/mp4"
    assert session.calls[0]["headers"] == {"Range": "bytes=0-6"}


def test_fetch_chunk_rejects_non_http_urls():
    with pytest.raises(HTTPException) as exc:
        VideoService(api_key="k", session=FakeSession()).fetch_chunk("file:///etc/passwd", 0, 10)
    assert exc.value.status_code == 400


# --- VideoJobSubmitter ---

def make_submitter(store, vendor_reply, script_service=None):
    session = FakeSession(vendor_reply)
    video_service = VideoService(api_key="k", api_url="https://golpo.test", session=session)
    submitter = VideoJobSubmitter(script_service or EchoScriptService(), video_service, store)
    return submitter, session


def test_three_hundred_word_page_is_sent_as_three_minutes(store):
    submitter, session = make_submitter(store, FakeResponse(json_data={"job_id": "job-42"}))
    document = DocumentPayload(page_id="123", title="Runbook", text=words(300))

    response = submitter.submit(document, VideoSpecs(), None)

    payload = session.calls[0]["json"]
    assert payload["duration"] == "3"
    assert response.duration == "3"
    assert response.job_id == "job-42"
    assert response.tracked is True


def test_payload_forces_landscape_video_output(store):
    submitter, session = make_submitter(store, FakeResponse(json_data={"job_id": "j"}))
    document = DocumentPayload(page_id="1", text="hello world")

    submitter.submit(document, VideoSpecs(voice="Solo Male", language="es", duration="5 min"), None)

    payload = session.calls[0]["json"]
    assert payload["orientation"] == "landscape"
    assert payload["video_orientation"] == "landscape"
    assert payload["aspect_ratio"] == "16:9"
    assert payload["aspectRatio"] == "16:9"
    assert payload["audio_only"] is False
    assert payload["voice_type"] == "solo-male"
    assert payload["language"] == "spanish"
    assert payload["duration"] == "5"
    assert payload["prompt"] == "hello world"


def test_submission_records_job_with_requester(store):
    submitter, _ = make_submitter(store, FakeResponse(json_data={"data": {"jobId": "nested-1"}}))
    document = DocumentPayload(page_id="77", title="Design doc", text=words(10))
    user = FakeUserClient(user=Requester(account_id="acc-1", display_name="Ana"))

    response = submitter.submit(document, VideoSpecs(), None, user_client=user)

    assert response.job_id == "nested-1"
    record = store.get("nested-1")
    assert record.page_id == "77"
    assert record.status == "processing"
    assert record.document.title == "Design doc"
    assert record.requested_by.display_name == "Ana"
    assert store.list_active() == ["nested-1"]


def test_identity_lookup_failure_does_not_block_tracking(store):
    submitter, _ = make_submitter(store, FakeResponse(json_data={"id": 991}))
    user = FakeUserClient(error=HTTPException(status_code=502, detail="nope"))

    response = submitter.submit(DocumentPayload(page_id="5", text="x"), VideoSpecs(), None, user_client=user)

    assert response.job_id == "991"
    assert store.get("991").requested_by is None


def test_job_is_not_tracked_without_page_id(store):
    submitter, _ = make_submitter(store, FakeResponse(json_data={"job_id": "j"}))
    response = submitter.submit(DocumentPayload(text="x"), VideoSpecs(), None)
    assert response.tracked is False
    assert store.list_active() == []


def test_missing_job_id_still_returns_response(store):
    submitter, _ = make_submitter(store, FakeResponse(json_data={"message": "queued"}))
    response = submitter.submit(DocumentPayload(page_id="1", text="x"), VideoSpecs(), None)
    assert response.job_id is None
    assert response.tracked is False


def test_storage_failure_is_swallowed():
    submitter, _ = make_submitter(BrokenStore(), FakeResponse(json_data={"job_id": "j"}))
    response = submitter.submit(DocumentPayload(page_id="1", text="x"), VideoSpecs(), None)
    assert response.job_id == "j"
    assert response.tracked is False


@pytest.mark.parametrize("document", [None, DocumentPayload(page_id="1"), DocumentPayload(page_id="1", text="   ")])
def test_empty_document_is_rejected_before_any_call(store, document):
    script_service = EchoScriptService()
    submitter, session = make_submitter(store, FakeResponse(json_data={}), script_service=script_service)

    with pytest.raises(HTTPException) as exc:
        submitter.submit(document, VideoSpecs(), None)

    assert exc.value.status_code == 400
    assert session.calls == []
    assert script_service.calls == []


def test_vendor_error_is_surfaced(store):
    submitter, _ = make_submitter(store, FakeResponse(status_code=400, json_data={"error": "bad voice"}))
    with pytest.raises(HTTPException) as exc:
        submitter.submit(DocumentPayload(page_id="1", text="x"), VideoSpecs(), None)
    assert "bad voice" in exc.value.detail
    assert store.list_active() == []


def test_missing_vendor_key_fails_before_script_generation(store):
    script_service = EchoScriptService()
    session = FakeSession()
    video_service = VideoService(api_key="", api_url="https://golpo.test", session=session)
    submitter = VideoJobSubmitter(script_service, video_service, store)

    with pytest.raises(HTTPException) as exc:
        submitter.submit(DocumentPayload(page_id="1", text="some page text"), VideoSpecs(), None)

    assert exc.value.status_code == 500
    assert script_service.calls == []
    assert session.calls == []
