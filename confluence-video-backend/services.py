"""
Service classes for the Confluence page-to-video backend.
Contains ScriptService, VideoService and VideoJobSubmitter.
"""

import base64
import logging
import re
from datetime import datetime, timezone
from typing import Optional

import requests
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from config import (
    GEMINI_API_KEY,
    GEMINI_API_URL,
    GOLPO_API_KEY,
    GOLPO_API_URL,
    GOLPO_GENERATE_PATH,
    GOLPO_STATUS_PATH,
    SCRIPT_PROMPT_TEMPLATE,
    SCRIPT_TIMEOUT,
    STATUS_TIMEOUT,
    VIDEO_ASPECT_RATIO,
    VIDEO_ORIENTATION,
    VIDEO_TIMEOUT,
    WORDS_PER_MINUTE,
)
from extractors import (
    JOB_ID_ACCESSORS,
    SCRIPT_TEXT_ACCESSORS,
    first_match,
    is_job_id,
    is_text,
)
from normalizers import (
    compute_target_duration,
    format_duration,
    normalize_language,
    normalize_voice,
    parse_duration_to_minutes,
)
from schemas import DocumentPayload, DocumentSnapshot, JobRecord, JobResponse, VideoChunk, VideoSpecs
from store import JobStore


def requested_duration(specs: VideoSpecs):
    """The user's duration choice, whichever field the UI filled in."""
    for value in (specs.duration, specs.duration_minutes, specs.duration_label):
        if parse_duration_to_minutes(value) is not None:
            return value
    return None


class ScriptService:
    """Handles AI model communication for script generation."""

    def __init__(self, api_key: str = GEMINI_API_KEY, api_url: str = GEMINI_API_URL, session=None):
        self.api_key = api_key
        self.api_url = api_url
        self.session = session or requests

    @staticmethod
    def build_prompt(text: str, specs: Optional[VideoSpecs] = None, description: Optional[str] = None) -> str:
        specs = specs or VideoSpecs()
        duration = compute_target_duration(text, requested_duration(specs))
        extra = f"5.  Follow this request from the user: {description.strip()}\n" if description and description.strip() else ""
        return SCRIPT_PROMPT_TEMPLATE.format(
            language=normalize_language(specs.language).capitalize(),
            duration=format_duration(duration),
            word_budget=int(duration * WORDS_PER_MINUTE),
            extra_instructions=extra,
            document=text,
        )

    def generate_script(self, text: str, specs: Optional[VideoSpecs] = None, description: Optional[str] = None) -> str:
        """
        Turn page text into a narration script. Falls back to returning the
        page text unchanged whenever the model cannot be used.
        """
        if not self.api_key:
            logging.warning("GEMINI_API_KEY is not set; using the page text as the script.")
            return text

        specs = specs or VideoSpecs()
        payload = {
            "contents": [{"role": "user", "parts": [{"text": self.build_prompt(text, specs, description)}]}],
            "generationConfig": {"temperature": 0.4, "topP": 0.95},
        }
        try:
            logging.info(f"📝 Requesting script ({len(text.split())} words of page text)")
            response = self.session.post(
                self.api_url, params={"key": self.api_key}, json=payload, timeout=SCRIPT_TIMEOUT
            )
        except requests.RequestException as e:
            logging.error(f"❌ Script generation request failed: {e}")
            return text

        if not response.ok:
            logging.error(f"❌ Script generation returned {response.status_code}: {response.text}")
            return text

        try:
            body = response.json()
        except ValueError:
            logging.error("❌ Script generation returned a malformed body.")
            return text

        label, script = first_match(body, SCRIPT_TEXT_ACCESSORS, is_text)
        if not script:
            logging.warning("Script generation response had no text; using the page text.")
            return text

        logging.info(f"✅ Script generated from '{label}' ({len(script.split())} words)")
        return script.strip()


def _error_detail(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("detail", "error", "message"):
            if body.get(key):
                return str(body[key])
    return str(body)


class VideoService:
    """Client for the video generation vendor."""

    def __init__(self, api_key: str = GOLPO_API_KEY, api_url: str = GOLPO_API_URL, session=None):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.session = session or requests

    def ensure_configured(self):
        if not self.api_key:
            raise HTTPException(status_code=500, detail="GOLPO_API_KEY is not configured.")

    def _headers(self) -> dict:
        self.ensure_configured()
        return {"x-api-key": self.api_key, "Content-Type": "application/json"}

    def submit(self, payload: dict) -> dict:
        headers = self._headers()
        try:
            response = self.session.post(
                f"{self.api_url}{GOLPO_GENERATE_PATH}", json=payload, headers=headers, timeout=VIDEO_TIMEOUT
            )
        except requests.RequestException as e:
            raise HTTPException(status_code=503, detail=f"Could not connect to the video generation API: {e}")

        if not response.ok:
            detail = _error_detail(response)
            logging.error(f"❌ Video generation failed ({response.status_code}): {detail}")
            raise HTTPException(status_code=502, detail=f"Video generation failed: {detail}")

        try:
            return response.json()
        except ValueError:
            raise HTTPException(status_code=502, detail="Video generation API returned an invalid response format.")

    def get_status(self, job_id: str) -> dict:
        headers = self._headers()
        url = f"{self.api_url}{GOLPO_STATUS_PATH.format(job_id=job_id)}"
        try:
            response = self.session.get(url, headers=headers, timeout=STATUS_TIMEOUT)
        except requests.RequestException as e:
            raise HTTPException(status_code=503, detail=f"Could not connect to the video generation API: {e}")

        if not response.ok:
            raise HTTPException(status_code=502, detail=f"Status check failed: {_error_detail(response)}")

        try:
            body = response.json()
        except ValueError:
            raise HTTPException(status_code=502, detail="Video status API returned an invalid response format.")
        if not isinstance(body, dict):
            raise HTTPException(status_code=502, detail="Video status API returned an invalid response format.")
        return body

    def fetch_chunk(self, video_url: str, start_byte: int, end_byte: int) -> VideoChunk:
        """Fetch one byte range of a finished video, base64 encoded for the UI."""
        if not re.match(r"^https?://", video_url or ""):
            raise HTTPException(status_code=400, detail="A valid http(s) video URL is required.")
        if start_byte < 0 or end_byte < start_byte:
            raise HTTPException(status_code=400, detail="Invalid byte range.")

        try:
            response = self.session.get(
                video_url, headers={"Range": f"bytes={start_byte}-{end_byte}"}, timeout=VIDEO_TIMEOUT
            )
        except requests.RequestException as e:
            raise HTTPException(status_code=503, detail=f"Could not download video: {e}")

        if response.status_code >= 400:
            raise HTTPException(status_code=502, detail=f"Video download failed with status {response.status_code}")

        content_range = response.headers.get("Content-Range")
        total_size = None
        if content_range and "/" in content_range:
            total = content_range.rsplit("/", 1)[1]
            total_size = int(total) if total.isdigit() else None
        elif response.headers.get("Content-Length", "").isdigit():
            total_size = int(response.headers["Content-Length"])

        return VideoChunk(
            status=response.status_code,
            base64_data=base64.b64encode(response.content).decode("ascii"),
            content_range=content_range,
            total_size=total_size,
            content_type=response.headers.get("Content-Type"),
        )


class VideoJobSubmitter:
    """Turns a page into a vendor render request and records the job for polling."""

    def __init__(self, script_service: ScriptService, video_service: VideoService, store: JobStore):
        self.script_service = script_service
        self.video_service = video_service
        self.store = store

    @staticmethod
    def build_payload(script: str, duration: str, voice: str, language: str, specs: VideoSpecs) -> dict:
        return {
            "prompt": script,
            "script": script,
            "duration": duration,
            "timing": duration,
            "voice_type": voice,
            "language": language,
            "style": specs.style or "whiteboard",
            "bg_music": specs.music,
            "use_color": specs.use_color,
            # The vendor has accepted each of these names at some point
            "orientation": VIDEO_ORIENTATION,
            "video_orientation": VIDEO_ORIENTATION,
            "aspect_ratio": VIDEO_ASPECT_RATIO,
            "aspectRatio": VIDEO_ASPECT_RATIO,
            "output_type": "video",
            "format": "video",
            "audio_only": False,
        }

    def submit(self, document: Optional[DocumentPayload], video_specs: Optional[VideoSpecs] = None,
               description: Optional[str] = None, user_client=None) -> JobResponse:
        if document is None or not (document.text or "").strip():
            raise HTTPException(status_code=400, detail="A document with text is required to generate a video.")

        self.video_service.ensure_configured()

        specs = video_specs or VideoSpecs()
        text = document.text.strip()

        duration = format_duration(compute_target_duration(text, requested_duration(specs)))
        voice = normalize_voice(specs.voice)
        language = normalize_language(specs.language)

        script = self.script_service.generate_script(text, specs, description)
        payload = self.build_payload(script, duration, voice, language, specs)

        logging.info(f"✨ Submitting video for page {document.page_id}: duration={duration} voice={voice} language={language}")
        body = self.video_service.submit(payload)

        label, job_id = first_match(body, JOB_ID_ACCESSORS, is_job_id)
        job_id = str(job_id) if job_id is not None else None
        if job_id:
            logging.info(f"🎬 Vendor accepted job {job_id} (from '{label}')")
        else:
            logging.warning(f"Vendor response had no job id: {body}")

        tracked = False
        if job_id and document.page_id:
            tracked = self._track(job_id, document, user_client)

        return JobResponse(
            job_id=job_id,
            status="processing",
            duration=duration,
            language=language,
            voice=voice,
            script_generated=script != text,
            tracked=tracked,
        )

    def _track(self, job_id: str, document: DocumentPayload, user_client) -> bool:
        requested_by = None
        if user_client is not None:
            try:
                requested_by = user_client.get_current_user()
            except HTTPException as e:
                logging.warning(f"Could not look up the requesting user for job {job_id}: {e.detail}")

        record = JobRecord(
            job_id=job_id,
            page_id=document.page_id,
            status="processing",
            created_at=datetime.now(timezone.utc),
            document=DocumentSnapshot(page_id=document.page_id, title=document.title),
            requested_by=requested_by,
        )
        try:
            self.store.put(record)
            self.store.add_active(job_id)
        except SQLAlchemyError as e:
            logging.error(f"❌ Could not store job {job_id} for background polling: {e}")
            return False
        return True
