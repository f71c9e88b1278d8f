"""
Router for video generation endpoints.
Handles job submission, status checks, background polling and video streaming.
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends
from confluence import CommentPublisher, ConfluenceClient, get_optional_user_client
from poller import JobPoller, classify_status, extract_status, extract_video_url
from schemas import GenerateVideoRequest, JobRecord, JobResponse, PollSummary, StatusResponse, VideoChunk
from services import ScriptService, VideoService, VideoJobSubmitter
from store import JobStore, get_job_store


# Create the router
router = APIRouter(tags=["generation"])


def get_script_service() -> ScriptService:
    return ScriptService()


def get_video_service() -> VideoService:
    return VideoService()


def get_comment_publisher() -> CommentPublisher:
    return CommentPublisher()


@router.post("/generate-video/", response_model=JobResponse)
def generate_video(
    request: GenerateVideoRequest,
    store: JobStore = Depends(get_job_store),
    script_service: ScriptService = Depends(get_script_service),
    video_service: VideoService = Depends(get_video_service),
    user_client: Optional[ConfluenceClient] = Depends(get_optional_user_client),
):
    """
    Converts the page into a script, submits it to the video vendor and
    records the job so the background poller can post the result.
    """
    submitter = VideoJobSubmitter(script_service, video_service, store)
    try:
        return submitter.submit(request.document, request.video_specs, request.description, user_client=user_client)
    except HTTPException:
        raise
    except Exception as e:
        logging.error(f"Failed to submit video job: {e}")
        raise HTTPException(status_code=500, detail=f"An unexpected internal error occurred: {e}")


@router.get("/video-status/{job_id}", response_model=StatusResponse)
def get_video_status(job_id: str, video_service: VideoService = Depends(get_video_service)):
    """
    Checks the status of a job directly with the vendor.
    """
    body = video_service.get_status(job_id)
    vendor_status = extract_status(body)
    status = classify_status(vendor_status)
    return {
        "job_id": job_id,
        "status": status,
        "vendor_status": vendor_status,
        "video_url": extract_video_url(body) if status == "completed" else None,
    }


@router.post("/poll-active-jobs/", response_model=PollSummary)
def poll_active_jobs(
    store: JobStore = Depends(get_job_store),
    video_service: VideoService = Depends(get_video_service),
    publisher: CommentPublisher = Depends(get_comment_publisher),
):
    """Runs one poll cycle inline, the same work the scheduled task does."""
    return JobPoller(store, video_service, publisher).run()


@router.get("/jobs/{job_id}", response_model=JobRecord)
def get_tracked_job(job_id: str, store: JobStore = Depends(get_job_store)):
    """Returns the stored record of a job that is still being polled."""
    record = store.get(job_id)
    if not record:
        raise HTTPException(status_code=404, detail="Job not found.")
    return record


@router.get("/video-chunk/", response_model=VideoChunk)
def get_video_chunk(
    video_url: str,
    start_byte: int = 0,
    end_byte: int = 1024 * 1024 - 1,
    video_service: VideoService = Depends(get_video_service),
):
    """
    Proxies one byte range of a finished video so the UI can stream it
    without loading the vendor's domain directly.
    """
    return video_service.fetch_chunk(video_url, start_byte, end_byte)
