"""
Pydantic models for data validation in the Confluence page-to-video backend.
"""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import Any, Optional, Union


class DocumentPayload(BaseModel):
    """The Confluence page the user picked, as sent by the UI."""
    page_id: Optional[str] = None
    title: Optional[str] = None
    text: Optional[str] = None


class VideoSpecs(BaseModel):
    """User-selected video options. Every field is optional."""
    duration: Optional[Union[float, str]] = None
    duration_minutes: Optional[Union[float, str]] = None
    duration_label: Optional[str] = None
    language: Optional[str] = None
    voice: Optional[str] = None
    style: Optional[str] = None
    music: Optional[str] = None
    use_color: bool = True


class GenerateVideoRequest(BaseModel):
    """Request model for turning a page into a video."""
    document: Optional[DocumentPayload] = None
    video_specs: VideoSpecs = Field(default_factory=VideoSpecs)
    description: Optional[str] = None


class JobResponse(BaseModel):
    """Response when a video generation job was accepted by the vendor."""
    job_id: Optional[str] = None
    status: str  # e.g., "processing"
    duration: str
    language: str
    voice: str
    script_generated: bool = False
    tracked: bool = False  # True when the job was recorded for background polling


class StatusResponse(BaseModel):
    """Response for checking a job directly against the vendor."""
    job_id: str
    status: str  # "processing" | "completed" | "failed"
    vendor_status: Optional[str] = None
    video_url: Optional[str] = None


class DocumentSnapshot(BaseModel):
    page_id: str
    title: Optional[str] = None


class Requester(BaseModel):
    account_id: Optional[str] = None
    display_name: Optional[str] = None


class JobRecord(BaseModel):
    """A video render the background poller is waiting on."""
    job_id: str
    page_id: str
    status: str = "processing"  # processing | completed | failed
    created_at: datetime
    document: DocumentSnapshot
    requested_by: Optional[Requester] = None


class PollSummary(BaseModel):
    """Counts reported by one run of the background poller."""
    processed: int = 0
    completed: int = 0
    failed: int = 0
    remaining: int = 0


class PageDetails(BaseModel):
    id: str
    title: Optional[str] = None
    type: Optional[str] = None
    space_key: Optional[str] = None
    space_name: Optional[str] = None
    url: Optional[str] = None
    summary: str = ""


class PageSummary(BaseModel):
    id: str
    title: Optional[str] = None
    space_key: Optional[str] = None
    space_name: Optional[str] = None


class CommentRequest(BaseModel):
    """Request model for posting a finished video to a page."""
    video_url: str
    requested_by: Optional[Requester] = None


class CommentResponse(BaseModel):
    page_id: str
    posted: bool


class VideoChunk(BaseModel):
    status: int
    base64_data: str
    content_range: Optional[str] = None
    total_size: Optional[int] = None
    content_type: Optional[str] = None


class FooterComment(BaseModel):
    id: str
    author_id: Optional[str] = None
    created_at: Optional[str] = None
    body: Optional[Any] = None
