"""
Background poller for outstanding video renders.

One run walks the active-jobs list in order, asks the vendor about each job,
posts a comment for finished videos and retires finished or failed jobs.
Whatever is still pending (or could not be checked) is written back as the
new active list in a single overwrite at the end of the run.
"""

import logging
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from confluence import CommentPublisher
from extractors import STATUS_ACCESSORS, VIDEO_URL_ACCESSORS, first_match, is_text, is_video_url
from schemas import PollSummary
from services import VideoService
from store import JobStore

READY_STATUSES = {"completed", "ready", "success", "finished", "done", "complete"}
FAILED_STATUSES = {"failed", "error", "cancelled", "denied", "rejected"}

READY = "completed"
FAILED = "failed"
PROCESSING = "processing"


def classify_status(status_text: Optional[str]) -> str:
    text = (status_text or "").strip().lower()
    if text in READY_STATUSES:
        return READY
    if text in FAILED_STATUSES:
        return FAILED
    return PROCESSING


def extract_status(body: dict) -> Optional[str]:
    _, status = first_match(body, STATUS_ACCESSORS, is_text)
    return status


def extract_video_url(body: dict) -> Optional[str]:
    _, url = first_match(body, VIDEO_URL_ACCESSORS, is_video_url)
    return url


class JobPoller:
    def __init__(self, store: JobStore, video_service: VideoService, publisher: CommentPublisher):
        self.store = store
        self.video_service = video_service
        self.publisher = publisher

    def _retire(self, job_id: str):
        try:
            self.store.delete(job_id)
        except SQLAlchemyError as e:
            logging.error(f"❌ Could not delete record for job {job_id}: {e}")

    def run(self) -> PollSummary:
        summary = PollSummary()

        try:
            active_ids = self.store.list_active()
        except SQLAlchemyError as e:
            logging.error(f"❌ Could not read the active jobs list: {e}")
            return summary

        if not active_ids:
            return summary

        logging.info(f"🔄 Polling {len(active_ids)} active video job(s)")
        remaining: List[str] = []

        for job_id in active_ids:
            try:
                record = self.store.get(job_id)
            except SQLAlchemyError as e:
                logging.error(f"❌ Could not load job {job_id}, will retry: {e}")
                remaining.append(job_id)
                continue

            if record is None:
                logging.warning(f"Job {job_id} has no stored record; dropping it.")
                continue

            try:
                body = self.video_service.get_status(job_id)
            except HTTPException as e:
                logging.warning(f"Status check for job {job_id} failed, will retry: {e.detail}")
                remaining.append(job_id)
                continue

            vendor_status = extract_status(body)
            outcome = classify_status(vendor_status)

            if outcome == READY:
                video_url = extract_video_url(body)
                if not video_url:
                    logging.error(
                        f"❌ Job {job_id} reports '{vendor_status}' but no video URL was found in {sorted(body)}; will retry."
                    )
                    remaining.append(job_id)
                    continue

                posted = self.publisher.publish(
                    record.page_id, video_url, requested_by=record.requested_by, as_app=True
                )
                if not posted:
                    logging.warning(f"Job {job_id} finished but the comment on page {record.page_id} was not posted.")
                self._retire(job_id)
                summary.completed += 1
                logging.info(f"✅ Job {job_id} completed: {video_url}")

            elif outcome == FAILED:
                self._retire(job_id)
                summary.failed += 1
                logging.error(f"❌ Job {job_id} failed at the vendor with status '{vendor_status}'")

            else:
                remaining.append(job_id)
                summary.processed += 1

        try:
            self.store.set_active(remaining)
        except SQLAlchemyError as e:
            logging.error(f"❌ Could not save the active jobs list: {e}")

        summary.remaining = len(remaining)
        logging.info(
            f"Poll finished: processed={summary.processed} completed={summary.completed} "
            f"failed={summary.failed} remaining={summary.remaining}"
        )
        return summary


def build_poller() -> JobPoller:
    return JobPoller(store=JobStore(), video_service=VideoService(), publisher=CommentPublisher())
